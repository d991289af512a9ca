"""HTTP exposition adapters.

The FastAPI adapter is imported from its own module so the plain ASGI app
works without FastAPI installed.
"""

from ledger_exporter.adapters.frameworks.asgi import create_asgi_app

__all__ = [
    "create_asgi_app",
]
