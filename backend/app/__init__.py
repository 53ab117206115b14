"""
Sites API — Application Package
=================================

REST API over a single "sites" collection: CRUD, pagination and filtering.

Layers:
    routes/       HTTP parsing, status codes, literal error messages
    services/     SiteService (all store I/O) and the initialization guard
    models/       SQLAlchemy `Site` table
    schemas/      Pydantic request/response bodies (camelCase on the wire)
    middleware/   request IDs, access log, store readiness
    database.py   async engine, sessions, schema creation

Entry points: `app.main:app` (ASGI) and the `sites-api` console script.
"""

__version__ = "1.0.0"
