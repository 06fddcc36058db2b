"""
The project a task runs in.

Knows the project application's name, whether it is an umbrella, where
build output goes and which dependencies it declares. Also implements the
``loadpaths`` and ``compile`` steps tasks run before touching a repo.
"""

import compileall
import importlib
import importlib.metadata
import logging
import os
import re
import shutil
import sys
from typing import Dict, List, Optional

from ecto.application import Application
from ecto.config import Settings
from ecto.errors import TaskError

logger = logging.getLogger(__name__)

_REQUIREMENT_NAME = re.compile(r'^\s*([A-Za-z0-9][A-Za-z0-9._-]*)')


def _normalize(name: str) -> str:
    return re.sub(r'[-_.]+', '_', name).lower()


class Project:

    def __init__(
        self,
        app: Optional[str] = None,
        apps_path: Optional[str] = None,
        build_path: str = '_build',
        env: str = 'dev',
        source_path: str = '.',
        deps: Optional[Dict[str, Optional[str]]] = None,
        repos: Optional[List[str]] = None,
    ):
        self.app = app
        self.apps_path = apps_path
        self.build_path = build_path
        self.env = env
        self.source_path = os.path.abspath(source_path)
        self.deps = deps
        self.repos = repos

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> 'Project':
        settings = settings or Settings()
        return cls(
            app=settings.ECTO_APP,
            apps_path=settings.ECTO_APPS_PATH,
            build_path=settings.ECTO_BUILD_PATH,
            env=settings.ECTO_ENV,
            source_path=settings.ECTO_SOURCE_PATH,
            repos=settings.repo_names(),
        )

    def config(self) -> dict:
        return {
            'app': self.app,
            'apps_path': self.apps_path,
            'build_path': self.build_path,
            'env': self.env,
            'source_path': self.source_path,
        }

    def umbrella(self) -> bool:
        return bool(self.apps_path)

    def build_root(self) -> str:
        return os.path.join(self.source_path, self.build_path, self.env)

    def app_path(self) -> str:
        """Build output directory of the project application."""
        if not self.app:
            raise TaskError("Cannot access build without an application name, "
                            "please set ECTO_APP for your project")
        return os.path.join(self.build_root(), 'lib', self.app)

    def deps_paths(self) -> Dict[str, Optional[str]]:
        """Map declared dependency names to where they are installed."""
        if self.deps is not None:
            return dict(self.deps)
        if not self.app:
            return {}

        try:
            requires = importlib.metadata.requires(self.app) or []
        except importlib.metadata.PackageNotFoundError:
            logger.debug(f"Project: '{self.app}' is not an installed distribution, no dependencies known")
            return {}

        paths: Dict[str, Optional[str]] = {}
        for requirement in requires:
            # skip extras-only requirements such as 'pytest; extra == "test"'
            if 'extra ==' in requirement:
                continue
            match = _REQUIREMENT_NAME.match(requirement)
            if not match:
                continue
            name = _normalize(match.group(1))
            try:
                paths[name] = str(importlib.metadata.distribution(name).locate_file(''))
            except importlib.metadata.PackageNotFoundError:
                paths[name] = None
        return paths

    def load(self, controller) -> None:
        """Register the project application and seed its env from settings."""
        if not self.app:
            return
        spec = controller.get_spec(self.app)
        if spec is None or spec.path != self.app_path():
            controller.register(Application(self.app, path=self.app_path()))
        if self.repos is not None and controller.get_env(self.app, 'ecto_repos') is None:
            controller.put_env(self.app, 'ecto_repos', list(self.repos))

    def load_paths(self, args: List[str]) -> None:
        """Make the project sources importable."""
        if self.source_path not in sys.path:
            sys.path.insert(0, self.source_path)
        importlib.invalidate_caches()

    def compile(self, args: List[str]) -> None:
        """Byte-compile the project sources and link priv into the build."""
        build_dir = os.path.join(self.source_path, self.build_path)
        # only the part below source_path is filtered, parent dirs may be hidden
        skip = re.compile(
            '^' + re.escape(self.source_path) + r'[/\\]([^/\\]+[/\\])*'
            r'(\.|__pycache__|' + re.escape(os.path.basename(build_dir)) + r')'
        )
        ok = compileall.compile_dir(self.source_path, quiet=1, rx=skip)
        if not ok:
            raise TaskError("Compilation failed")
        logger.debug(f"Project: Compiled {self.source_path}")

        if self.app:
            self._link_priv()

    def _link_priv(self) -> None:
        source_priv = os.path.join(self.source_path, 'priv')
        if not os.path.isdir(source_priv):
            return

        app_path = self.app_path()
        target = os.path.join(app_path, 'priv')
        os.makedirs(app_path, exist_ok=True)
        if os.path.islink(target) or os.path.exists(target):
            if os.path.islink(target) or os.path.isfile(target):
                return
            # a previous copy: refresh it
            shutil.rmtree(target)

        try:
            os.symlink(source_priv, target, target_is_directory=True)
        except OSError as e:
            logger.debug(f"Project: Could not symlink priv ({e}), copying instead")
            shutil.copytree(source_priv, target)


# Current project, built lazily from the environment
_project: Optional[Project] = None


def get_project() -> Project:
    global _project

    if _project is None:
        _project = Project.from_settings()
    return _project


def set_project(project: Optional[Project]) -> None:
    global _project
    _project = project
