"""``ecto migrate`` and ``ecto rollback``."""

import logging
from typing import Callable, List, Optional, Sequence

import click
from alembic.util import CommandError

from ecto import migrator
from ecto.errors import TaskError
from ecto.repo import MigrationAdapter
from ecto.tasks.helpers import (
    ensure_implements,
    ensure_migrations_path,
    ensure_repo,
    ensure_started,
    migrations_path,
    parse_repo,
    restart_apps_if_migrated,
)

logger = logging.getLogger(__name__)


def task_args(repos: Sequence[str], no_compile: bool) -> List[str]:
    """Rebuild the raw argument list the helpers expect."""
    args: List[str] = []
    for repo in repos:
        args += ['--repo', repo]
    if no_compile:
        args.append('--no-compile')
    return args


def run_migrations(
    args: Sequence[str],
    direction: str,
    target: str,
    pool_size: Optional[int] = None,
    run: Callable = migrator.run,
) -> None:
    """Migrate every repo named in ``args`` (or configured) to ``target``."""
    for repo in parse_repo(args):
        repo = ensure_repo(repo, args)
        ensure_implements(repo.adapter(), MigrationAdapter, 'run migrations')
        ensure_migrations_path(repo)
        started = ensure_started(repo, {'pool_size': pool_size})

        try:
            migrated = run(repo, migrations_path(repo), direction, target)
        except CommandError as e:
            raise TaskError(f"Could not migrate repo {repo.dotted_name()}, error: {e}") from e

        if started.handle is not None:
            repo.stop()
        restart_apps_if_migrated(started.apps, migrated)

        if not migrated:
            click.echo(f"Already {direction}: {repo.dotted_name()}")
        for revision in migrated:
            verb = 'Migrated' if direction == migrator.UP else 'Rolled back'
            click.echo(f"{verb} {revision} on {repo.dotted_name()}")


def _repo_options(f):
    f = click.option('--pool-size', type=int, default=None, help='Connection pool size used while migrating')(f)
    f = click.option('--no-compile', is_flag=True, help='Do not compile the project before migrating')(f)
    f = click.option('-r', '--repo', 'repos', multiple=True, help='Dotted path of the repo to migrate (repeatable)')(f)
    return f


@click.command('migrate')
@_repo_options
@click.option('--to', 'to', default=None, help='Run migrations up to and including this revision')
@click.option('--step', '-n', type=int, default=None, help='Run this many pending migrations')
def migrate(repos, no_compile, pool_size, to, step):
    """Run pending migrations."""
    if to and step:
        raise click.UsageError("--to and --step are mutually exclusive")
    target = to or (f"+{step}" if step else 'heads')
    run_migrations(task_args(repos, no_compile), migrator.UP, target, pool_size)


@click.command('rollback')
@_repo_options
@click.option('--to', 'to', default=None, help='Revert migrations down to this revision')
@click.option('--step', '-n', type=int, default=None, help='Revert this many migrations (default 1)')
@click.option('--all', 'all_', is_flag=True, help='Revert all applied migrations')
def rollback(repos, no_compile, pool_size, to, step, all_):
    """Revert applied migrations."""
    if sum(bool(x) for x in (to, step, all_)) > 1:
        raise click.UsageError("--to, --step and --all are mutually exclusive")
    if all_:
        target = 'base'
    else:
        target = to or f"-{step or 1}"
    run_migrations(task_args(repos, no_compile), migrator.DOWN, target, pool_size)
