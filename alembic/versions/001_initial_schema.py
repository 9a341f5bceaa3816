"""Initial schema: interface_runs

Revision ID: 001
Revises:
Create Date: 2024-01-01 00:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Check if tables already exist and skip if so
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    existing_tables = inspector.get_table_names()

    if "interface_runs" in existing_tables:
        return

    op.create_table(
        "interface_runs",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("interface_name", sa.String(200), nullable=False),
        sa.Column("integration_key", sa.String(100), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("message", sa.Text, nullable=False, server_default=""),
        sa.Column("severity", sa.String(16), nullable=False, server_default="LOW"),
        sa.Column("execution_time", sa.Integer, nullable=False, server_default="0"),
        sa.Column("records_processed", sa.Integer, nullable=False, server_default="0"),
        sa.Column("source_system", sa.String(200), nullable=False),
        sa.Column("target_system", sa.String(200), nullable=False),
        sa.Column("error_details", sa.Text),
        sa.Column("retry_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("next_retry_time", sa.DateTime),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_interface_runs_created_at", "interface_runs", ["created_at"])
    op.create_index("idx_interface_runs_status_created_at", "interface_runs", ["status", "created_at"])
    op.create_index("idx_interface_runs_name_created_at", "interface_runs", ["interface_name", "created_at"])
    op.create_index("idx_interface_runs_key_created_at", "interface_runs", ["integration_key", "created_at"])


def downgrade() -> None:
    op.drop_index("idx_interface_runs_key_created_at", table_name="interface_runs")
    op.drop_index("idx_interface_runs_name_created_at", table_name="interface_runs")
    op.drop_index("idx_interface_runs_status_created_at", table_name="interface_runs")
    op.drop_index("idx_interface_runs_created_at", table_name="interface_runs")
    op.drop_table("interface_runs")
