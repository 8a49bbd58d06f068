"""ASGI application factory for serving the food journal API."""

from fastapi import FastAPI

from food_journal.api.app import create_app
from food_journal.containers import build_container


def build_app() -> FastAPI:
    """Open the configured LMDB environment and return the app that owns it.

    Served with ``uvicorn --factory`` so importing this module opens nothing.
    """
    return create_app(build_container())
