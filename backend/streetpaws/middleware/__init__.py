# Middleware package init
"""
StreetPaws Backend — Middleware Package
=========================================

What:  Cross-cutting concerns applied to every HTTP request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Rate Limit] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID first: correlation ID for logs and every error body, 429s included
    2. Rate Limit: over-limit requests are rejected before any work
    3. Logging: one access line per request, with the request ID
    4. GZip / CORS: Starlette's stock middleware

WebSocket connections bypass the HTTP middleware.
"""
