"""Seed the recipe category taxonomy

Revision ID: 002
Revises: 001
Create Date: 2024-06-01 00:05:00.000000+00:00

Idempotent: ON CONFLICT (name) DO NOTHING, so re-running against a database
that already has some of these categories is safe.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CATEGORIES = [
    ("Breakfast", "🍳", "Morning meals to start the day right"),
    ("Main Course", "🍽️", "Hearty dishes for lunch and dinner"),
    ("Desserts", "🍰", "Sweet treats and baked goods"),
    ("Vegetarian", "🥗", "Meat-free meals full of flavor"),
    ("Soups", "🍲", "Warm bowls for any season"),
    ("Snacks", "🥨", "Quick bites between meals"),
    ("Baking", "🥖", "Breads, pastries and more from the oven"),
    ("Drinks", "🥤", "Smoothies, cocktails and warm beverages"),
]


def upgrade() -> None:
    insert = sa.text(
        "INSERT INTO categories (name, emoji, description) "
        "VALUES (:name, :emoji, :description) "
        "ON CONFLICT (name) DO NOTHING"
    )
    for name, emoji, description in CATEGORIES:
        op.execute(insert.bindparams(name=name, emoji=emoji, description=description))


def downgrade() -> None:
    delete = sa.text("DELETE FROM categories WHERE name = :name")
    for name, _, _ in CATEGORIES:
        op.execute(delete.bindparams(name=name))
