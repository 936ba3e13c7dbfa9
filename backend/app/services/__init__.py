# Services package init
"""
RecipeShare Backend — Services Layer
=====================================

What:  Business logic between routes (HTTP) and the database (persistence).
How:   Each service is a module-level singleton whose methods take the
       request's AsyncSession first, apply the rules, and raise the
       exceptions in app.exceptions. Routes only translate HTTP to calls.

Service Inventory:
    - AuthService: accounts, password hashing, bearer sessions
    - ProfileService: profiles (lazy creation, unique usernames)
    - CategoryService: the category taxonomy
    - RecipeService: recipe CRUD, community feed, shared feed query helpers
    - RatingService: ratings/reviews, rating summary, review feeds
    - FavoriteService: favorite marks and the favorites page
    - DashboardService: per-user counts
    - FileService: image upload validation, storage, serving, cleanup
"""
