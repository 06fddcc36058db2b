import glob
import os
import pytest
import sqlalchemy as sa
from click.testing import CliRunner

from ecto.cli import cli
from ecto.project import set_project
from conftest import write_migration


@pytest.fixture
def runner():
    """A test runner for the ecto commands."""
    return CliRunner()


@pytest.fixture
def cli_env(project_dir, controller, monkeypatch):
    for key in list(os.environ):
        if key.startswith('ECTO_'):
            monkeypatch.delenv(key)
    monkeypatch.setenv('ECTO_APP', 'sample_app')
    monkeypatch.setenv('ECTO_SOURCE_PATH', str(project_dir))
    monkeypatch.setenv('ECTO_REPOS', 'sample_app.repo.Repo')
    monkeypatch.setenv('ECTO_ENV', 'dev')

    db_path = project_dir / 'app.db'
    controller.put_env('sample_app', 'sample_app.repo.Repo', {'url': f'sqlite:///{db_path}'})
    write_migration(project_dir / 'priv' / 'repo' / 'migrations', '0001', None, 'users')
    yield db_path
    set_project(None)


def tables(db_path):
    engine = sa.create_engine(f'sqlite:///{db_path}')
    try:
        return set(sa.inspect(engine).get_table_names()) - {'alembic_version'}
    finally:
        engine.dispose()


def test_migrate_runs_pending_migrations(runner, cli_env, controller):
    result = runner.invoke(cli, ['migrate'])
    assert result.exit_code == 0, result.output
    assert 'Migrated 0001 on sample_app.repo.Repo' in result.output
    assert tables(cli_env) == {'users'}
    # adapter app was restarted after migrating
    assert controller.is_started('sqlalchemy')

    result = runner.invoke(cli, ['migrate'])
    assert result.exit_code == 0, result.output
    assert 'Already up: sample_app.repo.Repo' in result.output


def test_rollback_reverts_last_migration(runner, cli_env):
    assert runner.invoke(cli, ['migrate']).exit_code == 0

    result = runner.invoke(cli, ['rollback', '-r', 'sample_app.repo.Repo'])
    assert result.exit_code == 0, result.output
    assert 'Rolled back 0001 on sample_app.repo.Repo' in result.output
    assert tables(cli_env) == set()


def test_migrate_rejects_non_repo(runner, cli_env):
    result = runner.invoke(cli, ['migrate', '-r', 'sample_app.repo.NotARepo'])
    assert result.exit_code == 1
    assert 'Module sample_app.repo.NotARepo is not an Ecto repo' in result.output


def test_migrate_missing_migrations_directory(runner, cli_env, project_dir):
    for path in glob.glob(str(project_dir / 'priv' / 'repo' / 'migrations' / '*.py')):
        os.remove(path)
    os.rmdir(project_dir / 'priv' / 'repo' / 'migrations')

    result = runner.invoke(cli, ['migrate', '--no-compile'])
    assert result.exit_code == 1
    assert 'Could not find migrations directory' in result.output


def test_migrate_rejects_conflicting_targets(runner, cli_env):
    result = runner.invoke(cli, ['migrate', '--to', '0001', '--step', '1'])
    assert result.exit_code == 2


def test_gen_migration_creates_file(runner, cli_env, project_dir, monkeypatch):
    monkeypatch.delenv('ECTO_EDITOR', raising=False)

    result = runner.invoke(cli, ['gen.migration', 'AddEmailToUsers'])
    assert result.exit_code == 0, result.output

    created = glob.glob(str(project_dir / 'priv' / 'repo' / 'migrations' / '*_add_email_to_users.py'))
    assert len(created) == 1
    assert '* creating' in result.output
    assert "down_revision = '0001'" in open(created[0]).read()

    result = runner.invoke(cli, ['gen.migration', 'add_email_to_users'])
    assert result.exit_code == 1
    assert 'already a migration file with name add_email_to_users' in result.output


def test_gen_migration_rejects_bad_name(runner, cli_env):
    result = runner.invoke(cli, ['gen.migration', 'add users!'])
    assert result.exit_code == 1
    assert 'expected gen.migration to receive the migration file name' in result.output


def test_gen_migration_refuses_umbrella(runner, cli_env, monkeypatch):
    monkeypatch.setenv('ECTO_APPS_PATH', 'apps')

    result = runner.invoke(cli, ['gen.migration', 'add_users'])
    assert result.exit_code == 1
    assert "Cannot run task 'gen.migration' from umbrella application" in result.output


def test_gen_migration_opens_editor_and_runs_migration(runner, cli_env, monkeypatch):
    from ecto.tasks import helpers

    opened = []
    monkeypatch.setenv('ECTO_EDITOR', 'true')
    monkeypatch.setattr(helpers.subprocess, 'run', lambda cmd, **kwargs: opened.append(cmd))

    result = runner.invoke(cli, ['gen.migration', 'create_posts'], input='y\n')
    assert result.exit_code == 0, result.output
    assert len(opened) == 1 and opened[0].startswith('true ')
    assert 'Migrated 0001 on sample_app.repo.Repo' in result.output
