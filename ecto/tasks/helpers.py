"""
Conveniences for writing ecto tasks.

Every function here aborts the running command with a ``TaskError`` when
it cannot do its job; callers do not need to check return values for
failure.
"""

import importlib
import logging
import os
import re
import shlex
import subprocess
from collections import namedtuple
from typing import Any, Dict, List, Optional, Sequence

import click

from ecto import application
from ecto.errors import AlreadyStartedError, TaskError
from ecto.project import get_project
from ecto.repo import is_repo, repo_name
from ecto.utils.logger import CONSOLE, console_backends

logger = logging.getLogger(__name__)

REPO_FLAGS = ('--repo', '-r')
FRAMEWORK_DEP = 'ecto'
EDITOR_ENV_VAR = 'ECTO_EDITOR'

REMEDY = "Please configure your app accordingly or pass a repo with the -r option."

StartResult = namedtuple('StartResult', ['started', 'handle', 'apps'])


def parse_repo(args: Sequence[str], project=None, controller=None) -> List[Any]:
    """Parse the repo options from ``args``.

    If no ``--repo``/``-r`` option is given, the repos are read from the
    project application's ``ecto_repos`` env.
    """
    args = list(args)
    repos: List[Any] = []
    i = 0
    while i < len(args):
        # a trailing flag without a value is simply dropped
        if args[i] in REPO_FLAGS and i + 1 < len(args):
            repos.append(args[i + 1])
            i += 2
        else:
            i += 1

    if repos:
        return repos

    project = project or get_project()
    controller = controller or application.controller
    app = project.app

    repos = controller.get_env(app, 'ecto_repos')
    if repos is not None:
        return list(repos)

    deps_paths = getattr(project, 'deps_paths', None)
    # Projects that can't list their dependencies get the warning too
    if deps_paths is None or FRAMEWORK_DEP in deps_paths():
        click.secho(
            f"warning: could not find repositories for application {app!r}.\n"
            "\n"
            "You can avoid this warning by passing the -r flag or by setting the\n"
            "repositories managed by this application in your environment:\n"
            "\n"
            "    ECTO_REPOS=my_app.repo.Repo\n"
            "\n"
            f"or in code with controller.put_env({app!r}, 'ecto_repos', [...]).\n"
            "\n"
            "The configuration may be an empty list if it does not define any repo.\n",
            fg='red',
            err=True,
        )
    return []


def load_repo(name: str):
    """Import ``pkg.module.Attr`` and return the attribute."""
    module_path, _, attr = name.rpartition('.')
    if not module_path or not attr:
        raise ImportError(f"{name!r} is not a dotted path to a repo")
    module = importlib.import_module(module_path)
    try:
        return getattr(module, attr)
    except AttributeError:
        raise ImportError(f"module {module_path!r} has no attribute {attr!r}") from None


def ensure_repo(repo, args: Sequence[str], project=None):
    """Ensure the given module is a repository and return it."""
    project = project or get_project()
    project.load_paths(list(args))

    if '--no-compile' not in args:
        project.compile(list(args))

    name = repo_name(repo)
    if isinstance(repo, str):
        try:
            repo = load_repo(repo)
        except Exception as e:
            raise TaskError(f"Could not load {name}, error: {e!r}. {REMEDY}") from e

    if is_repo(repo):
        return repo
    raise TaskError(f"Module {name} is not an Ecto repo. {REMEDY}")


def ensure_started(repo, opts: Optional[Dict[str, Any]] = None) -> StartResult:
    """Ensure the given repository is started and running."""
    opts = opts or {}
    controller = application.controller
    controller.ensure_all_started('ecto')
    apps = repo.adapter().ensure_all_started(repo, 'temporary')

    pool_size = opts.get('pool_size')
    if pool_size is None:
        pool_size = 1
    try:
        handle = repo.start_link(pool_size=pool_size)
    except AlreadyStartedError:
        return StartResult(True, None, apps)
    except Exception as e:
        raise TaskError(f"Could not start repo {repo_name(repo)}, error: {e!r}") from e
    return StartResult(True, handle, apps)


def relative_to(path: str, base: str) -> str:
    """Like os.path.relpath, but leaves paths outside ``base`` untouched."""
    base = base.rstrip(os.sep)
    if path == base:
        return '.'
    if path.startswith(base + os.sep):
        return path[len(base) + 1:]
    return path


def ensure_migrations_path(repo, project=None):
    """Ensure the repository's migrations directory exists."""
    project = project or get_project()
    if project.umbrella():
        return repo

    path = relative_to(migrations_path(repo), project.app_path())
    if not os.path.isdir(path):
        raise TaskError(f"Could not find migrations directory {path!r} for repo {repo_name(repo)}")
    return repo


def restart_apps_if_migrated(apps: Sequence[str], migrations: Sequence[Any], backends=None, controller=None) -> None:
    """Restart ``apps`` if any migration ran."""
    if not migrations:
        return

    apps = list(apps)
    backends = backends or console_backends
    controller = controller or application.controller

    # Silence the console to avoid application down messages
    backends.remove_backend(CONSOLE)
    try:
        for app in reversed(apps):
            controller.stop(app)
        for app in apps:
            controller.ensure_all_started(app)
    finally:
        backends.add_backend(CONSOLE, flush=True)


def underscore(name: str) -> str:
    """``ReadOnlyRepo`` -> ``read_only_repo``."""
    name = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', name)
    name = re.sub(r'([a-z\d])([A-Z])', r'\1_\2', name)
    return name.replace('-', '_').lower()


def migrations_path(repo) -> str:
    return os.path.join(build_repo_priv(repo), 'migrations')


def source_repo_priv(repo) -> str:
    """Private repo path relative to the source."""
    return repo.config().get('priv') or f"priv/{underscore(repo.__name__)}"


def build_repo_priv(repo) -> str:
    """Private repo path inside the build."""
    config = repo.config()
    return application.controller.app_dir(config['otp_app'], source_repo_priv(repo))


def open_in_editor(path: str) -> bool:
    """Open ``path`` with the command in ECTO_EDITOR, if one is set."""
    editor = os.getenv(EDITOR_ENV_VAR) or ''
    if editor == '':
        return False

    subprocess.run(f"{editor} {shlex.quote(path)}", shell=True, check=False)
    return True


def no_umbrella(task: str, project=None) -> None:
    """Raise when running inside an umbrella project."""
    project = project or get_project()
    if project.umbrella():
        raise TaskError(f"Cannot run task {task!r} from umbrella application")


def ensure_implements(module, behaviour, message: str) -> None:
    """Raise unless ``module`` implements ``behaviour``."""
    if not (isinstance(module, type) and issubclass(module, behaviour)):
        raise TaskError(
            f"Expected {repo_name(module)} to implement {repo_name(behaviour)} in order to {message}"
        )
