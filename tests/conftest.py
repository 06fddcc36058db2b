import sys
import textwrap
import pytest
from ecto import application
from ecto.application import Application, ApplicationController
from ecto.project import Project, set_project

SAMPLE_REPO_MODULE = textwrap.dedent('''
    import ecto
    from ecto.adapters import SQLAlchemyAdapter


    class Repo(ecto.Repo):
        otp_app = 'sample_app'
        adapter_class = SQLAlchemyAdapter


    class NotARepo:
        pass
''')

MIGRATION_TEMPLATE = textwrap.dedent('''
    from alembic import op
    import sqlalchemy as sa

    revision = {revision!r}
    down_revision = {down_revision!r}
    branch_labels = None
    depends_on = None


    def upgrade():
        op.create_table({table!r}, sa.Column('id', sa.Integer, primary_key=True))


    def downgrade():
        op.drop_table({table!r})
''')


def write_migration(directory, revision, down_revision, table):
    """Write a revision file creating ``table`` into ``directory``."""
    path = directory / f'{revision}_create_{table}.py'
    path.write_text(MIGRATION_TEMPLATE.format(revision=revision, down_revision=down_revision, table=table))
    return path


@pytest.fixture
def controller(monkeypatch):
    """A fresh application controller installed as the global one."""
    ctrl = ApplicationController()
    ctrl.register(Application('ecto'))
    monkeypatch.setattr(application, 'controller', ctrl)
    return ctrl


@pytest.fixture
def project_dir(tmp_path, monkeypatch):
    """An on-disk project with a ``sample_app`` package; also the cwd."""
    pkg = tmp_path / 'sample_app'
    pkg.mkdir()
    (pkg / '__init__.py').write_text('')
    (pkg / 'repo.py').write_text(SAMPLE_REPO_MODULE)
    (tmp_path / 'priv' / 'repo' / 'migrations').mkdir(parents=True)

    monkeypatch.chdir(tmp_path)
    # load_paths mutates sys.path; restore it afterwards
    monkeypatch.setattr(sys, 'path', list(sys.path))
    yield tmp_path

    for name in list(sys.modules):
        if name == 'sample_app' or name.startswith('sample_app.'):
            del sys.modules[name]


@pytest.fixture
def project(project_dir, controller):
    """The sample project, loaded and installed as the current project."""
    proj = Project(app='sample_app', source_path=str(project_dir), deps={})
    proj.load(controller)
    controller.put_env('sample_app', 'sample_app.repo.Repo', {'url': f"sqlite:///{project_dir / 'sample.db'}"})
    set_project(proj)
    yield proj
    set_project(None)
