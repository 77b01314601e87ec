"""
Add unique constraint user_id url to bookmarks.

The constraint is the authoritative duplicate check for bookmarks; the API
maps its violation to 409.

Revision ID: 741b520cb24b
Revises: 1a2b3c4d5e6f
Create Date: 2025-11-03 10:20:05.970553

"""
from collections.abc import Sequence

from alembic import op


# revision identifiers, used by Alembic.
revision: str = "741b520cb24b"
down_revision: str | Sequence[str] | None = "1a2b3c4d5e6f"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    with op.batch_alter_table("bookmarks") as batch_op:
        batch_op.create_unique_constraint("uq_bookmark_user_url", ["user_id", "url"])


def downgrade() -> None:
    """Downgrade schema."""
    with op.batch_alter_table("bookmarks") as batch_op:
        batch_op.drop_constraint("uq_bookmark_user_url", type_="unique")
