"""
gramwalk REST API Server

Serves sentence generation and bit operations over HTTP.
"""

from gramwalk.server.api import app, registry, start_server

__all__ = ["app", "registry", "start_server"]
