import sqlite3
from importlib import import_module
from typing import Optional

from luxcars.errors import LuxCarsError
from luxcars.logger import Logger


log = Logger.bind(__name__)

BACKENDS = {
    'sqlite': 'app.db.sqlite',
    'd1': 'app.db.d1',
}


def adapter(backend: str):
    name = BACKENDS.get((backend or 'sqlite').lower())
    if name is None:
        raise LuxCarsError(f"unknown DB_BACKEND '{backend}' (expected one of {', '.join(BACKENDS)})")
    return import_module(name)


def open_store(settings) -> Optional[object]:
    """Contact store for ``settings.db_backend`` or None when it cannot be opened."""
    try:
        store = adapter(settings.db_backend).open_store(settings)
    except (LuxCarsError, OSError, sqlite3.Error) as e:
        log.warn(f"contact store unavailable backend={settings.db_backend} error={e}")
        return None
    log.debug(f"contact store ready backend={settings.db_backend}")
    return store


__all__ = ["adapter", "open_store", "BACKENDS"]
