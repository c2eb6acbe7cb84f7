# migrations/versions/20251020_0001_generated_reports.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Add generated_reports, the only table written by the safety service.

Employers, sites, incidents and hours_worked are owned by the primary store
and are only read here.
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20251020_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "generated_reports",
        sa.Column("employer_id", sa.Integer(), nullable=False),
        sa.Column("month", sa.String(length=7), nullable=False),
        sa.Column("current_summary", sa.Text(), nullable=False),
        sa.Column("last_summary_generated", sa.DateTime(timezone=True), nullable=False),
        sa.Column("summary_history", sa.JSON(), nullable=False, server_default="[]"),
        sa.ForeignKeyConstraint(
            ["employer_id"],
            ["employers.employer_id"],
            name="fk_generated_reports_employer_id_employers",
        ),
        sa.PrimaryKeyConstraint("employer_id", "month", name="pk_generated_reports"),
    )


def downgrade() -> None:
    op.drop_table("generated_reports")
