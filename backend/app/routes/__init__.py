# Routes package init
"""
Sites API — API Routes Package
================================

Route Inventory:
    - root.py:    GET  /                     (identification payload)
    - sites.py:   POST/GET /api/sites         (create, list)
                  GET/PUT/DELETE /api/sites/{id}
    - health.py:  GET  /health               (service health check)

Routes stay thin: parse the request, call SiteService, pick the status
code. Storage concerns live in app.services.site_service.
"""
