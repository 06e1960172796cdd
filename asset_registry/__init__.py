"""
Asset Registry
==============

Lifecycle registry for discrete digital assets identified by sequential
integer ids: mint (single and bulk), recipient-claimed transfer, owner and
administrative destruction, metadata updates, plus an audit trail.

This package exposes:

- ``__version__``: semantic version string
- ``AssetRegistry``: the registry facade (see :mod:`asset_registry.registry`)
- ``open_registry()``: open a registry on a KV URI
- ``build_app()``: convenience creator for a configured FastAPI app

Prefer importing submodules directly for specific concerns:
``asset_registry.config``, ``asset_registry.errors``, ``asset_registry.db``.
"""

from __future__ import annotations

from .version import __version__
from .registry import AssetRegistry, BulkMintResult, open_registry

__all__ = ["__version__", "AssetRegistry", "BulkMintResult", "open_registry", "build_app"]


def build_app():
    """
    Create and return a fully configured FastAPI application.

    Importing lazily avoids importing FastAPI (and related deps) when
    consumers only need the registry core.
    """
    from .api.app import create_app

    return create_app()
