"""
Schools24 Backend — Middleware Package
========================================

Cross-cutting concerns applied before routing.

Middleware Chain (request direction, outermost first):
    CORS → GZip → [Request ID] → [Logging] → [Rate Limit] → [JWT Auth] → Route

    1. CORS first: preflight requests are answered without touching the rest
    2. Request ID before logging so every access line carries it
    3. Rate limiting before auth: floods are rejected before token verification
    4. JWT auth last: only requests that survived the limiter are verified

Responses unwind in reverse, so the access log records 401 and 429 answers too.
"""
