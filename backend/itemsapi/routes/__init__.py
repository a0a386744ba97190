# Routes package init
"""
Items API — Routes Package
===========================

Route Inventory:
    - health.py:     GET    /                  (liveness text)
                     GET    /diag              (store connectivity)
    - items.py:      GET    /item?id=          (single item, cache-first)
                     GET    /items?limit=      (newest first)
                     POST   /items             (insert)
                     DELETE /items/{id}        (delete + cache invalidation)
    - benchmark.py:  GET    /benchmark?n=&mode=

Anything else is answered 404 {"error": "Not found"} by the handler
registered in main.py, including known paths with the wrong method.

Routes stay thin: coerce input, call a service, shape the response.
"""
