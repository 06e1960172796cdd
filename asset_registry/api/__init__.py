"""
HTTP surface of the asset registry (FastAPI).

    from asset_registry.api import create_app
    app = create_app()            # settings from the environment
"""

from __future__ import annotations

from .app import create_app

__all__ = ["create_app"]
