"""ASGI entrypoint: `papersmith.api.main:app`."""

from __future__ import annotations

from papersmith.api.app import create_app

app = create_app()
