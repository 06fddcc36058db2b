"""Command-line tasks and the helpers they share."""

from ecto.tasks.helpers import (
    StartResult,
    build_repo_priv,
    ensure_implements,
    ensure_migrations_path,
    ensure_repo,
    ensure_started,
    migrations_path,
    no_umbrella,
    open_in_editor,
    parse_repo,
    restart_apps_if_migrated,
    source_repo_priv,
)

__all__ = [
    'StartResult',
    'build_repo_priv',
    'ensure_implements',
    'ensure_migrations_path',
    'ensure_repo',
    'ensure_started',
    'migrations_path',
    'no_umbrella',
    'open_in_editor',
    'parse_repo',
    'restart_apps_if_migrated',
    'source_repo_priv',
]
