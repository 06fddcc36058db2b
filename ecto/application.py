"""
Application registry.

Keeps track of named applications, the applications they depend on, and
whether they are currently running. Repos, adapters and projects all hang
their lifecycle off this registry so tasks can stop and start them as
a group.
"""

import importlib.util
import logging
import os
from typing import Any, Callable, Dict, Iterable, List, Optional

from ecto.errors import UnknownApplicationError

logger = logging.getLogger(__name__)

RESTART_TYPES = ('permanent', 'transient', 'temporary')


class Application:
    """Specification of a single application."""

    def __init__(
        self,
        name: str,
        applications: Iterable[str] = (),
        start: Optional[Callable[[], Any]] = None,
        stop: Optional[Callable[[], Any]] = None,
        env: Optional[Dict[str, Any]] = None,
        path: Optional[str] = None,
    ):
        self.name = name
        self.applications = tuple(applications)
        self.start = start
        self.stop = stop
        self.env = dict(env or {})
        self.path = path

    def __repr__(self):
        return f"<Application {self.name!r}>"


class ApplicationController:
    """Starts, stops and configures registered applications."""

    def __init__(self):
        self._specs: Dict[str, Application] = {}
        self._env: Dict[str, Dict[str, Any]] = {}
        # name -> restart type, in start order
        self._started: Dict[str, str] = {}

    def register(self, application: Application) -> Application:
        if application.name in self._specs:
            logger.warning(f"ApplicationController: Application '{application.name}' already registered, overwriting")
        self._specs[application.name] = application
        env = self._env.setdefault(application.name, {})
        for key, value in application.env.items():
            env.setdefault(key, value)
        logger.debug(f"ApplicationController: Registered application '{application.name}'")
        return application

    def get_spec(self, name: str) -> Optional[Application]:
        return self._specs.get(name)

    def ensure_all_started(self, name: str, restart_type: str = 'temporary') -> List[str]:
        """Start ``name`` and every application it depends on.

        Returns the names of the applications started by this call, in the
        order they were started. Already running applications are skipped.
        """
        if restart_type not in RESTART_TYPES:
            raise ValueError(f"invalid restart type: {restart_type!r}")

        started: List[str] = []
        self._start(name, restart_type, started, ())
        return started

    def _start(self, name, restart_type, started, path):
        if name in self._started:
            return
        if name in path:
            raise ValueError(f"circular application dependency: {' -> '.join(path + (name,))}")

        spec = self._specs.get(name)
        if spec is None:
            raise UnknownApplicationError(name)

        for dep in spec.applications:
            self._start(dep, restart_type, started, path + (name,))

        if spec.start is not None:
            spec.start()
        self._started[name] = restart_type
        started.append(name)
        logger.info(f"ApplicationController: Started application '{name}' ({restart_type})")

    def stop(self, name: str) -> None:
        if name not in self._started:
            logger.debug(f"ApplicationController: Application '{name}' is not running")
            return

        spec = self._specs.get(name)
        # Mark stopped first so a failing stop callback doesn't leave it "running"
        del self._started[name]
        if spec is not None and spec.stop is not None:
            spec.stop()
        logger.info(f"ApplicationController: Stopped application '{name}'")

    def is_started(self, name: str) -> bool:
        return name in self._started

    def started_applications(self) -> List[str]:
        return list(self._started)

    def restart_type(self, name: str) -> Optional[str]:
        return self._started.get(name)

    def get_env(self, app: Optional[str], key: str, default: Any = None) -> Any:
        return self._env.get(app, {}).get(key, default)

    def put_env(self, app: str, key: str, value: Any) -> None:
        self._env.setdefault(app, {})[key] = value

    def delete_env(self, app: str, key: str) -> None:
        self._env.get(app, {}).pop(key, None)

    def app_dir(self, app: str, *parts: str) -> str:
        """Return the directory an application is installed in, joined with ``parts``."""
        spec = self._specs.get(app)
        if spec is not None and spec.path:
            base = spec.path
        else:
            try:
                found = importlib.util.find_spec(app)
            except (ImportError, ValueError):
                found = None
            if found is None or not found.submodule_search_locations:
                raise UnknownApplicationError(app)
            base = list(found.submodule_search_locations)[0]
        return os.path.join(base, *parts)


# Global controller instance
controller = ApplicationController()
controller.register(Application('ecto'))
