# Routes package init
"""
Office Plant Tracker Backend — API Routes Package
=================================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - plants.py:     /api/plants (CRUD), /api/statistics
    - locations.py:  /api/locations, /api/zones, /api/locations/hierarchy,
                     /api/floors, /api/main-zones, /api/sub-zones
    - imports.py:    POST /api/import-csv
    - health.py:     GET /health

Routes stay thin: extract request data, call a service, shape the response.
Errors are raised as application exceptions and formatted by the global
handlers in main.py.
"""
