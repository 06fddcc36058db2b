"""Entry point for the ``ecto`` command."""

import click

from ecto import __version__, application
from ecto.config import Settings
from ecto.project import Project, set_project
from ecto.tasks.gen_migration import gen_migration
from ecto.tasks.migrate import migrate, rollback
from ecto.utils.logger import configure_logging


@click.group()
@click.version_option(__version__, prog_name='ecto')
def cli():
    """Repository and migration tasks."""
    settings = Settings()
    configure_logging(settings.ECTO_LOG_LEVEL)

    project = Project.from_settings(settings)
    project.load(application.controller)
    set_project(project)


cli.add_command(migrate)
cli.add_command(rollback)
cli.add_command(gen_migration)


def main():
    cli()


if __name__ == '__main__':
    main()
