"""
HTTP API for federated search.

Provides the REST endpoints used by browser front-ends and scripts.
"""

from .server import create_api_server, run_api_server

__all__ = ["create_api_server", "run_api_server"]
