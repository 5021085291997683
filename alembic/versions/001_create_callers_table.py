"""Create callers and call_records tables (call-history shape)

Revision ID: 001
Revises: None
Create Date: 2026-09-02
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "callers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("phone_number", sa.String(64), index=True, nullable=False),
        sa.Column("name", sa.Text, nullable=False, server_default="Unknown"),
        sa.Column("course", sa.Text, nullable=False, server_default="Unknown"),
        sa.Column("user_type", sa.Text, nullable=False, server_default="Unknown"),
        sa.Column("city", sa.Text, nullable=False, server_default="Unknown"),
        sa.Column("state", sa.Text, nullable=False, server_default="Unknown"),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_table(
        "call_records",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("caller_id", sa.Integer, sa.ForeignKey("callers.id", ondelete="CASCADE"), index=True, nullable=False),
        sa.Column("call_date", sa.DateTime, server_default=sa.func.now()),
        sa.Column("summary", sa.Text, nullable=True),
        sa.Column("transcript", sa.Text, nullable=True),
        sa.Column("call_status", sa.Text, nullable=True),
        sa.Column("lead_status", sa.Text, nullable=True),
        sa.Column("remark", sa.Text, nullable=True),
        sa.Column("followup_date", sa.Text, nullable=True),
        sa.Column("followup_time", sa.Text, nullable=True),
    )


def downgrade() -> None:
    op.drop_table("call_records")
    op.drop_table("callers")
