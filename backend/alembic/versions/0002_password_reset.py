from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    with op.batch_alter_table("users") as batch_op:
        batch_op.add_column(sa.Column("reset_token", sa.String(64), nullable=True))
        batch_op.add_column(sa.Column("reset_expires", sa.DateTime(timezone=True), nullable=True))
        batch_op.create_index("ix_users_reset_token", ["reset_token"])


def downgrade() -> None:
    with op.batch_alter_table("users") as batch_op:
        batch_op.drop_index("ix_users_reset_token")
        batch_op.drop_column("reset_expires")
        batch_op.drop_column("reset_token")
