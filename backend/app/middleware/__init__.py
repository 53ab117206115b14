# Middleware package init
"""
Sites API — Middleware Package
================================

Middleware Chain (outermost first):
    Request → [CORS] → [Request ID] → [Logging] → [GZip] → [Store Ready] → Route

    1. CORS outermost so that error responses also carry CORS headers
    2. Request ID before logging so every access line has the ID
    3. Store Ready last, right before routing: no handler runs until the
       store has been initialized
"""
