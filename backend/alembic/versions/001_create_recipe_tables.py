"""Create account, profile, category and recipe tables

Revision ID: 001
Revises: None
Create Date: 2024-06-01 00:00:00.000000+00:00

What:  The full RecipeShare schema: users, auth_sessions, profiles,
       categories, recipes, recipe_ratings, recipe_favorites.
How:   UUID keys from gen_random_uuid() (built in since PostgreSQL 13),
       TIMESTAMP WITH TIME ZONE everywhere, TEXT[] for ingredient and
       instruction lists. Everything owned by a user cascades on user
       delete; ratings and favorites cascade on recipe delete.

Rollback: downgrade() drops every table (all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def _user_fk(name: str = "user_id") -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    # ── Accounts ──────────────────────────────────────────────────────────
    op.create_table(
        "users",
        _id_column(),
        sa.Column("email", sa.String(320), nullable=False, comment="Lower-cased"),
        sa.Column("password_hash", sa.String(255), nullable=False, comment="bcrypt"),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "auth_sessions",
        sa.Column("token", sa.String(128), nullable=False),
        _user_fk(),
        sa.Column("expires_at", sa.TIMESTAMP(timezone=True), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("token"),
    )
    op.create_index("idx_auth_sessions_user_id", "auth_sessions", ["user_id"])

    op.create_table(
        "profiles",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("username", sa.String(50), nullable=True),
        sa.Column("full_name", sa.String(100), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username", name="uq_profiles_username"),
    )

    # ── Taxonomy ──────────────────────────────────────────────────────────
    op.create_table(
        "categories",
        _id_column(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("emoji", sa.String(16), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="uq_categories_name"),
    )

    # ── Recipes ───────────────────────────────────────────────────────────
    op.create_table(
        "recipes",
        _id_column(),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "ingredients",
            postgresql.ARRAY(sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::text[]"),
            comment="Ordered; array position is display order",
        ),
        sa.Column(
            "instructions",
            postgresql.ARRAY(sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::text[]"),
            comment="Ordered steps",
        ),
        sa.Column("prep_time", sa.Integer(), nullable=True, comment="Minutes"),
        sa.Column("cook_time", sa.Integer(), nullable=True, comment="Minutes"),
        sa.Column("servings", sa.Integer(), nullable=True),
        sa.Column("difficulty", sa.String(10), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column(
            "category_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        _user_fk(),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "difficulty IS NULL OR difficulty IN ('Easy', 'Medium', 'Hard')",
            name="ck_recipes_difficulty",
        ),
        sa.CheckConstraint("prep_time IS NULL OR prep_time >= 0", name="ck_recipes_prep_time"),
        sa.CheckConstraint("cook_time IS NULL OR cook_time >= 0", name="ck_recipes_cook_time"),
        sa.CheckConstraint("servings IS NULL OR servings >= 1", name="ck_recipes_servings"),
    )
    # Default feed order: newest first
    op.create_index("idx_recipes_created_at", "recipes", [sa.text("created_at DESC")])
    op.create_index("idx_recipes_user_id", "recipes", ["user_id"])
    op.create_index("idx_recipes_category_id", "recipes", ["category_id"])

    # ── Ratings & Favorites ───────────────────────────────────────────────
    op.create_table(
        "recipe_ratings",
        _id_column(),
        sa.Column(
            "recipe_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("recipes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk(),
        sa.Column("rating", sa.SmallInteger(), nullable=False),
        sa.Column("review", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("recipe_id", "user_id", name="uq_recipe_ratings_recipe_user"),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_recipe_ratings_rating"),
    )
    op.create_index("idx_recipe_ratings_user_id", "recipe_ratings", ["user_id"])
    op.create_index("idx_recipe_ratings_created_at", "recipe_ratings", [sa.text("created_at DESC")])

    op.create_table(
        "recipe_favorites",
        _id_column(),
        sa.Column(
            "recipe_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("recipes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk(),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("recipe_id", "user_id", name="uq_recipe_favorites_recipe_user"),
    )
    op.create_index("idx_recipe_favorites_user_id", "recipe_favorites", ["user_id"])


def downgrade() -> None:
    op.drop_index("idx_recipe_favorites_user_id", table_name="recipe_favorites")
    op.drop_table("recipe_favorites")
    op.drop_index("idx_recipe_ratings_created_at", table_name="recipe_ratings")
    op.drop_index("idx_recipe_ratings_user_id", table_name="recipe_ratings")
    op.drop_table("recipe_ratings")
    op.drop_index("idx_recipes_category_id", table_name="recipes")
    op.drop_index("idx_recipes_user_id", table_name="recipes")
    op.drop_index("idx_recipes_created_at", table_name="recipes")
    op.drop_table("recipes")
    op.drop_table("categories")
    op.drop_table("profiles")
    op.drop_index("idx_auth_sessions_user_id", table_name="auth_sessions")
    op.drop_table("auth_sessions")
    op.drop_table("users")
