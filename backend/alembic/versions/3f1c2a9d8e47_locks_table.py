"""locks table

Revision ID: 3f1c2a9d8e47
Revises:
Create Date: 2026-10-19 09:12:44.118203

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f1c2a9d8e47"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "locks",
        sa.Column("resource_id", sa.String(length=64), primary_key=True),
        sa.Column("holder_name", sa.String(length=255), nullable=False),
        sa.Column("holder_group", sa.String(length=255), nullable=False),
        sa.Column("acquired_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_locks_expires_at", "locks", ["expires_at"])


def downgrade() -> None:
    op.drop_index("ix_locks_expires_at", table_name="locks")
    op.drop_table("locks")
