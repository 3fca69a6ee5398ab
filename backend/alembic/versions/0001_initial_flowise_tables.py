"""Create agent and Flowise workflow tables.

Revision ID: 0001_initial_flowise_tables
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0001_initial_flowise_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "agents",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("workspace_id", sa.String(length=100), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("config", sa.Text(), nullable=True),
        # Timestamps
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
    )
    op.create_index("ix_agents_workspace_id", "agents", ["workspace_id"])

    op.create_table(
        "flowise_workflows",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("workspace_id", sa.String(length=100), nullable=False),
        sa.Column("flowise_id", sa.String(length=100), nullable=False),
        # Workflow metadata
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", sa.String(length=20), nullable=False, server_default="CHATFLOW"),
        sa.Column("category", sa.String(length=100), nullable=True),
        # Versioned flow-data envelope
        sa.Column("flow_data", sa.Text(), nullable=False),
        # State
        sa.Column("deployed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        # Extracted metrics
        sa.Column("complexity_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("node_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("edge_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("max_depth", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("capabilities", postgresql.JSON(), nullable=True, server_default=sa.text("'{}'::json")),
        # Timestamps
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
    )
    op.create_index("ix_flowise_workflows_workspace_id", "flowise_workflows", ["workspace_id"])
    op.create_index("ix_flowise_workflows_flowise_id", "flowise_workflows", ["flowise_id"])


def downgrade() -> None:
    op.drop_index("ix_flowise_workflows_flowise_id", table_name="flowise_workflows")
    op.drop_index("ix_flowise_workflows_workspace_id", table_name="flowise_workflows")
    op.drop_table("flowise_workflows")

    op.drop_index("ix_agents_workspace_id", table_name="agents")
    op.drop_table("agents")
