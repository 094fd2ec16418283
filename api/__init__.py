"""FastAPI apps for the relay and the commit worker."""

from .relay import create_relay_app
from .commit import create_worker_app


__all__ = [
    'create_relay_app',
    'create_worker_app',
]
