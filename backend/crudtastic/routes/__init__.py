"""
Crudtastic: API Routes Package
==============================

Route Inventory:
    - resource.py:         RestfulResource (one reflected table + its model)
    - resource_router.py:  GET/POST /<table>, GET/HEAD/PUT/PATCH/DELETE /<table>/{id}
    - health.py:           GET / and GET /health

Routes stay thin: they gather params, build a handler and hand it to the
dispatcher. Everything that touches data lives in the handlers and models.
"""
