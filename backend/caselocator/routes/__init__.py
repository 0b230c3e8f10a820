# Routes package init
"""
CaseLocator Backend — API Routes Package
=========================================

What:  HTTP route handlers over the location services.

Route Inventory:
    - locations.py: GET  /api/locations/...            (stateless lookups)
    - sessions.py:  POST /api/location-sessions         (open a form session)
                    GET/DELETE /api/location-sessions/{id}
                    POST /api/location-sessions/{id}/{field}
    - health.py:    GET  /health

Routes stay thin: parse the request, call one service, return its model.
Cascade rules live in services/cascade_controller.py.
"""
