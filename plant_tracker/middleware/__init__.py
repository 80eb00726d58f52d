# Middleware package init
"""
Office Plant Tracker Backend — Middleware Package
=================================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    Rate limiting runs first so rejected requests cost nothing. The request ID
    is set before the access logger reads it.
"""
