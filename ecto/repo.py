"""
Repos and the adapter interfaces they delegate to.

A repo is a ``Repo`` subclass naming the application that owns its
configuration (``otp_app``) and the adapter backing it::

    class Repo(ecto.Repo):
        otp_app = 'my_app'
        adapter_class = SQLAlchemyAdapter

Its configuration lives in the owning application's env under the repo's
dotted name, e.g. ``controller.put_env('my_app', 'my_app.repo.Repo', {...})``.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ecto import application
from ecto.errors import AlreadyStartedError

logger = logging.getLogger(__name__)


class Adapter(ABC):
    """Storage backend a repo delegates to."""

    @classmethod
    @abstractmethod
    def ensure_all_started(cls, repo, restart_type: str) -> List[str]:
        """Start the applications the adapter needs; return the ones started."""

    @classmethod
    @abstractmethod
    def start(cls, repo, config: Dict[str, Any], pool_size: int) -> Any:
        """Open a handle (connection pool) for ``repo``."""

    @classmethod
    @abstractmethod
    def stop(cls, repo, handle: Any) -> None:
        """Release a handle returned by ``start``."""


class MigrationAdapter(ABC):
    """Adapters that can hand out connections for running migrations."""

    @classmethod
    @abstractmethod
    def connect(cls, repo):
        """Return a context manager yielding a connection for ``repo``."""


class Repo:
    otp_app: Optional[str] = None
    adapter_class = None

    _handle = None

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        # every repo class tracks its own handle
        cls._handle = None

    @classmethod
    def adapter(cls):
        if cls.adapter_class is None:
            raise TypeError(f"{cls.dotted_name()} does not define an adapter_class")
        return cls.adapter_class

    @classmethod
    def dotted_name(cls) -> str:
        return f"{cls.__module__}.{cls.__qualname__}"

    @classmethod
    def config(cls) -> Dict[str, Any]:
        """Repo configuration: ``otp_app`` plus the app env entry for this repo."""
        config: Dict[str, Any] = {}
        if cls.otp_app is not None:
            config['otp_app'] = cls.otp_app
            config.update(application.controller.get_env(cls.otp_app, cls.dotted_name(), {}))
        return config

    @classmethod
    def start_link(cls, pool_size: int = 1):
        if cls._handle is not None:
            raise AlreadyStartedError(cls.dotted_name(), cls._handle)
        cls._handle = cls.adapter().start(cls, cls.config(), pool_size)
        logger.info(f"Repo: Started {cls.dotted_name()} (pool_size={pool_size})")
        return cls._handle

    @classmethod
    def handle(cls):
        return cls._handle

    @classmethod
    def stop(cls) -> None:
        handle, cls._handle = cls._handle, None
        if handle is not None:
            cls.adapter().stop(cls, handle)
            logger.info(f"Repo: Stopped {cls.dotted_name()}")


def is_repo(obj) -> bool:
    """True when ``obj`` is a concrete Repo class with an adapter."""
    return isinstance(obj, type) and issubclass(obj, Repo) and obj is not Repo and obj.adapter_class is not None


def repo_name(repo) -> str:
    if isinstance(repo, type) and issubclass(repo, Repo):
        return repo.dotted_name()
    if isinstance(repo, type):
        return f"{repo.__module__}.{repo.__qualname__}"
    return str(repo)
