"""
REST API for eventvault.

Routes:
- /api/upload: server-mediated upload and the direct-upload steps
- /api/assets, /api/download, /api/stats: catalogue access
- /api/health: liveness, readiness and configuration presence
"""

from .app import create_app

__all__ = ["create_app"]
