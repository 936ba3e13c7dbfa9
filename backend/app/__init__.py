"""
RecipeShare Backend — Application Package
==========================================

A recipe sharing API: accounts, profiles, recipes with ordered ingredient
and instruction lists, categories, 1–5 star ratings with reviews,
favorites, and recipe image uploads.

Layers:

    ┌─────────────────────────────────────┐
    │   Routes + dependencies (HTTP)      │  ← status codes, headers, auth
    ├─────────────────────────────────────┤
    │   Services (business rules)         │  ← ownership, normalization, feeds
    ├─────────────────────────────────────┤
    │   Models & Schemas (data)           │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database (persistence)            │  ← async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
