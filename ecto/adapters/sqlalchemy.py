"""
SQLAlchemy adapter.

Each started repo gets its own Engine (connection pool). The adapter's
``sqlalchemy`` application owns every live engine: stopping it disposes
the pools, which is what a post-migration restart relies on to drop
stale connections.
"""

import logging
import weakref
from contextlib import contextmanager
from typing import Any, Dict, List

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from ecto import application
from ecto.application import Application
from ecto.repo import Adapter, MigrationAdapter

logger = logging.getLogger(__name__)

APP_NAME = 'sqlalchemy'

_engines: 'weakref.WeakSet[Engine]' = weakref.WeakSet()


def _dispose_all():
    for engine in list(_engines):
        engine.dispose()
    logger.debug("SQLAlchemyAdapter: Disposed all engines")


def _engine_options(url: str, pool_size: int, config: Dict[str, Any]) -> Dict[str, Any]:
    options = dict(config.get('engine_options', {}))
    if url.startswith('sqlite') and (url == 'sqlite://' or ':memory:' in url):
        # in-memory databases live and die with their single connection
        options.setdefault('poolclass', StaticPool)
        options.setdefault('connect_args', {'check_same_thread': False})
    else:
        options.setdefault('pool_size', pool_size)
    return options


class SQLAlchemyAdapter(Adapter, MigrationAdapter):

    @classmethod
    def ensure_all_started(cls, repo, restart_type: str) -> List[str]:
        controller = application.controller
        if controller.get_spec(APP_NAME) is None:
            controller.register(Application(APP_NAME, stop=_dispose_all))
        return controller.ensure_all_started(APP_NAME, restart_type)

    @classmethod
    def start(cls, repo, config: Dict[str, Any], pool_size: int) -> Engine:
        url = config.get('url')
        if not url:
            raise ValueError(f"missing :url in configuration for {repo.dotted_name()}")
        engine = create_engine(url, **_engine_options(url, pool_size, config))
        _engines.add(engine)
        return engine

    @classmethod
    def stop(cls, repo, handle: Engine) -> None:
        _engines.discard(handle)
        handle.dispose()

    @classmethod
    @contextmanager
    def connect(cls, repo):
        engine = repo.handle()
        if engine is None:
            raise RuntimeError(f"{repo.dotted_name()} is not started")
        with engine.connect() as connection:
            yield connection
