"""Add restaurants, dinner_groups and attendees tables."""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "restaurants",
        sa.Column("id", sa.String(256), primary_key=True),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("price_level", sa.Integer(), nullable=True),
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("lng", sa.Float(), nullable=False),
        sa.Column("photo_ref", sa.String(1024), nullable=True),
        sa.Column("maps_url", sa.String(1024), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_table(
        "dinner_groups",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "restaurant_id",
            sa.String(256),
            sa.ForeignKey("restaurants.id", ondelete="CASCADE", onupdate="CASCADE"),
            nullable=False,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("restaurant_id", name="uq_dinner_groups_restaurant_id"),
    )
    op.create_table(
        "attendees",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(256), nullable=False),
        sa.Column(
            "dinner_group_id",
            sa.String(36),
            sa.ForeignKey("dinner_groups.id", ondelete="CASCADE", onupdate="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_id", name="uq_attendees_user_id"),
    )
    op.create_index("ix_attendees_dinner_group_id", "attendees", ["dinner_group_id"])


def downgrade() -> None:
    op.drop_index("ix_attendees_dinner_group_id", table_name="attendees")
    op.drop_table("attendees")
    op.drop_table("dinner_groups")
    op.drop_table("restaurants")
