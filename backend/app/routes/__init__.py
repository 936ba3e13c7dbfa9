# Routes package init
"""
RecipeShare Backend — API Routes Package
=========================================

Route Inventory:
    - auth.py:        POST /api/auth/signup | signin | signout, GET /api/auth/me
    - profiles.py:    GET/PUT /api/profile, GET /api/profiles/{user_id}
    - categories.py:  GET /api/categories
    - recipes.py:     GET/POST /api/recipes, GET/PATCH/DELETE /api/recipes/{id}
    - ratings.py:     GET /api/recipes/{id}/ratings, GET/PUT /api/recipes/{id}/rating,
                      GET /api/reviews
    - favorites.py:   GET/PUT/DELETE /api/recipes/{id}/favorite
    - me.py:          GET /api/me/recipes | favorites | reviews | reviews/received | dashboard
    - uploads.py:     POST /api/uploads/images, GET /api/files/{path}
    - health.py:      GET /health

Routes stay thin: parse the request, call one service, set headers
(X-Total-Count on lists, Cache-Control). Business rules live in services.
"""
