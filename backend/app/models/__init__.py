"""
ORM models. Importing this package registers every table on Base.metadata
(Alembic's env.py relies on that).
"""

from app.models.category import Category
from app.models.favorite import RecipeFavorite
from app.models.profile import Profile
from app.models.rating import RecipeRating
from app.models.recipe import DIFFICULTIES, Recipe
from app.models.user import AuthSession, User

__all__ = [
    "AuthSession",
    "Category",
    "DIFFICULTIES",
    "Profile",
    "Recipe",
    "RecipeFavorite",
    "RecipeRating",
    "User",
]
