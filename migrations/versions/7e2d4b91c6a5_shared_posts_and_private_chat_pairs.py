"""shared posts and one private chat per pair

Revision ID: 7e2d4b91c6a5
Revises: 3c1a9e7d2b40
Create Date: 2026-10-19 09:41:07.552310

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "7e2d4b91c6a5"
down_revision: Union[str, Sequence[str], None] = "3c1a9e7d2b40"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Add feed shares and make private chat pairs unique."""
    op.create_table(
        "shared_post",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("post_id", sa.Integer(), nullable=False),
        sa.Column("shared_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["user_account.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "post_id", name="uq_shared_post_user_post"),
    )
    op.create_index("ix_shared_post_post_id", "shared_post", ["post_id"])

    # Order every pair, then fold duplicate chats into the oldest one.
    op.execute(
        "UPDATE private_chat SET user1_id = user2_id, user2_id = user1_id "
        "WHERE user1_id > user2_id"
    )
    op.execute(
        "UPDATE private_message SET private_chat_id = ("
        " SELECT MIN(keep.id) FROM private_chat keep, private_chat dup"
        " WHERE dup.id = private_message.private_chat_id"
        " AND keep.user1_id = dup.user1_id AND keep.user2_id = dup.user2_id)"
    )
    op.execute(
        "DELETE FROM private_chat WHERE id NOT IN ("
        " SELECT keep_id FROM (SELECT MIN(id) AS keep_id FROM private_chat"
        " GROUP BY user1_id, user2_id) AS kept)"
    )

    with op.batch_alter_table("private_chat") as batch_op:
        batch_op.create_unique_constraint("uq_private_chat_pair", ["user1_id", "user2_id"])
        batch_op.create_check_constraint("ck_private_chat_ordered", "user1_id < user2_id")


def downgrade() -> None:
    """Drop feed shares and the private chat pair constraints."""
    with op.batch_alter_table("private_chat") as batch_op:
        batch_op.drop_constraint("ck_private_chat_ordered", type_="check")
        batch_op.drop_constraint("uq_private_chat_pair", type_="unique")

    op.drop_index("ix_shared_post_post_id", table_name="shared_post")
    op.drop_table("shared_post")
