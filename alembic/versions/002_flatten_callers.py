"""Flatten callers to one latest-state row keyed by contact_num

Folds each caller's most recent call record into columns on the caller
row, drops the call history, and makes the phone number unique.
Duplicate callers for the same number (left by the old read-then-write
upsert) are collapsed to the most recently updated row first.

Revision ID: 002
Revises: 001
Create Date: 2026-10-06
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column("callers", sa.Column("call_status", sa.Text, nullable=True))
    op.add_column("callers", sa.Column("lead_status", sa.Text, nullable=True))
    op.add_column("callers", sa.Column("contact_status", sa.Text, nullable=True))
    op.add_column("callers", sa.Column("contact_followupdate", sa.Text, nullable=False, server_default="N/A"))
    op.add_column("callers", sa.Column("contact_followuptime", sa.Text, nullable=False, server_default="N/A"))
    op.add_column("callers", sa.Column("remark", sa.Text, nullable=True))
    op.add_column("callers", sa.Column("last_call_summary", sa.Text, nullable=True))
    op.add_column("callers", sa.Column("last_transcript", sa.Text, nullable=True))

    # Latest call record wins
    op.execute(
        """
        UPDATE callers AS c SET
            call_status = r.call_status,
            lead_status = r.lead_status,
            contact_status = r.lead_status,
            contact_followupdate = COALESCE(r.followup_date, 'N/A'),
            contact_followuptime = COALESCE(r.followup_time, 'N/A'),
            remark = r.remark,
            last_call_summary = r.summary,
            last_transcript = r.transcript
        FROM (
            SELECT DISTINCT ON (caller_id) *
            FROM call_records
            ORDER BY caller_id, call_date DESC, id DESC
        ) AS r
        WHERE r.caller_id = c.id
        """
    )
    op.drop_table("call_records")

    op.execute(
        """
        DELETE FROM callers AS c
        USING callers AS newer
        WHERE c.phone_number = newer.phone_number
          AND (c.updated_at, c.id) < (newer.updated_at, newer.id)
        """
    )

    op.drop_index("ix_callers_phone_number", table_name="callers")
    op.alter_column("callers", "phone_number", new_column_name="contact_num")
    op.alter_column("callers", "name", new_column_name="contact_name")
    op.alter_column("callers", "updated_at", new_column_name="last_updated_at")
    op.create_index("ix_callers_contact_num", "callers", ["contact_num"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_callers_contact_num", table_name="callers")
    op.alter_column("callers", "last_updated_at", new_column_name="updated_at")
    op.alter_column("callers", "contact_name", new_column_name="name")
    op.alter_column("callers", "contact_num", new_column_name="phone_number")
    op.create_index("ix_callers_phone_number", "callers", ["phone_number"], unique=False)

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
    # The flat row becomes a single-entry history
    op.execute(
        """
        INSERT INTO call_records
            (caller_id, call_date, summary, transcript, call_status, lead_status,
             remark, followup_date, followup_time)
        SELECT id, updated_at, last_call_summary, last_transcript, call_status, lead_status,
               remark, contact_followupdate, contact_followuptime
        FROM callers
        WHERE call_status IS NOT NULL
        """
    )

    for column in (
        "last_transcript", "last_call_summary", "remark", "contact_followuptime",
        "contact_followupdate", "contact_status", "lead_status", "call_status",
    ):
        op.drop_column("callers", column)
