# Services package init
"""
Sites API — Services Layer
============================

Service Inventory:
    - SiteService: all store I/O for site records (singleton `site_service`)
    - InitializationGuard: one-shot, shared-outcome store initialization
"""
