"""
Crudtastic: ASGI Application Factory
====================================

What:  Builds the application from environment settings for ASGI servers.
How:   uvicorn --factory crudtastic.main:create_app
       Tables are reflected in the app's lifespan, before the first request.
"""

from fastapi import FastAPI

from crudtastic.config import Settings
from crudtastic.server import Server


def create_app(settings: Settings | None = None) -> FastAPI:
    return Server(settings).app
