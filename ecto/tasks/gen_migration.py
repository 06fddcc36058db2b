"""``ecto gen.migration``: create an empty migration script for a repo."""

import glob
import os
import re

import click

from ecto import migrator
from ecto.errors import TaskError
from ecto.project import get_project
from ecto.tasks.helpers import (
    ensure_repo,
    migrations_path,
    no_umbrella,
    open_in_editor,
    parse_repo,
    relative_to,
    underscore,
)
from ecto.tasks.migrate import migrate, task_args

VALID_NAME = re.compile(r'^[a-z0-9_]+$')


@click.command('gen.migration')
@click.argument('name')
@click.option('-r', '--repo', 'repos', multiple=True, help='Dotted path of the repo (repeatable)')
@click.option('--no-compile', is_flag=True, help='Do not compile the project first')
@click.pass_context
def gen_migration(ctx, name, repos, no_compile):
    """Generate a new migration called NAME."""
    no_umbrella('gen.migration')
    args = task_args(repos, no_compile)
    project = get_project()

    base_name = underscore(name)
    if not VALID_NAME.match(base_name):
        raise TaskError(f"expected gen.migration to receive the migration file name, got: {name!r}")

    for repo in parse_repo(args):
        repo = ensure_repo(repo, args)
        path = relative_to(migrations_path(repo), project.app_path())
        os.makedirs(path, exist_ok=True)

        if glob.glob(os.path.join(path, f"*_{base_name}.py")):
            raise TaskError(f"migration can't be created, there is already a migration file with name {base_name}.")

        filename = migrator.generate(path, base_name)
        click.echo(f"* creating {filename}")

        if open_in_editor(filename) and click.confirm("Do you want to run this migration?"):
            ctx.invoke(migrate, repos=(repo.dotted_name(),), no_compile=True)
