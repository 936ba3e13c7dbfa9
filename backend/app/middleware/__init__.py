# Middleware package init
"""
RecipeShare Backend — Middleware Package
=========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Access Log] → [GZip] → [CORS] → Route

    1. Rate Limit: rejects abusive clients before any other work; sign-in
       and sign-up get a much smaller budget than the rest of the API
    2. Request ID: correlation id in a ContextVar and the X-Request-ID header
    3. Access Log: one line per request with status and duration
    4. GZip / CORS: Starlette built-ins configured in main.py
"""
