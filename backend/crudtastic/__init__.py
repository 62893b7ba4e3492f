"""
Crudtastic: Application Package Initializer
===========================================

What: A REST API generated from a relational database schema.
How:  Tables are reflected at startup; every table gets a generic data model
      and six CRUD route handlers mounted behind a resource router.

Architecture Note:

    ┌─────────────────────────────────────┐
    │     Server / Routes (API Layer)     │  ← FastAPI app, resource routers
    ├─────────────────────────────────────┤
    │  Dispatch + Route Handlers (Core)   │  ← params → transaction → response
    ├─────────────────────────────────────┤
    │     Models (TableModel / Record)    │  ← generic CRUD over reflected tables
    ├─────────────────────────────────────┤
    │      Database (Persistence)         │  ← async SQLAlchemy engine
    └─────────────────────────────────────┘

    Handlers never see HTTP objects. They receive a response builder, a data
    model, a logger and a URL builder, so each layer can be tested alone.
"""

__version__ = "1.0.0"
