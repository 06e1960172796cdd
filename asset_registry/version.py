"""
Version helpers for the asset registry.

``__version__`` is the semantic version for packaging; ``version_info()``
returns the payload served by ``GET /version``.
"""

from __future__ import annotations

import platform
from typing import Dict

# Bump this when making a release; use semver (MAJOR.MINOR.PATCH)
__version__ = "0.1.0"


def version_info() -> Dict[str, str]:
    return {
        "name": "asset-registry",
        "version": __version__,
        "python": platform.python_version(),
    }


__all__ = ["__version__", "version_info"]
