"""
Run a repo's migration scripts with Alembic.

Migration scripts are plain Alembic revision files kept directly in the
repo's migrations directory (``priv/<repo>/migrations/*.py``); no
``env.py`` or ``alembic.ini`` is needed.
"""

import datetime
import logging
import os
from typing import List, Optional, Tuple, Union

from alembic.config import Config
from alembic.runtime.environment import EnvironmentContext
from alembic.script import ScriptDirectory

logger = logging.getLogger(__name__)

UP = 'up'
DOWN = 'down'

REVISION_TEMPLATE = '''"""{message}

Revision ID: {revision}
Revises: {down_label}
Create Date: {create_date}
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = {revision!r}
down_revision = {down_revision!r}
branch_labels = None
depends_on = None


def upgrade():
    pass


def downgrade():
    pass
'''


def script_directory(path: str) -> ScriptDirectory:
    return ScriptDirectory(path, version_locations=[path])


def _config(path: str) -> Config:
    config = Config()
    config.set_main_option('script_location', path)
    return config


def run(repo, path: str, direction: str, target: str) -> List[str]:
    """Migrate ``repo`` to ``target`` and return the revisions that ran, in order."""
    if direction not in (UP, DOWN):
        raise ValueError(f"invalid migration direction: {direction!r}")

    script = script_directory(path)
    applied: List[str] = []

    def migrate(rev, context):
        if direction == UP:
            steps = script._upgrade_revs(target, rev)
        elif not rev:
            # nothing applied, nothing to roll back
            steps = []
        else:
            steps = script._downgrade_revs(target, rev)
        applied.extend(step.revision.revision for step in steps)
        return steps

    with repo.adapter().connect(repo) as connection:
        with EnvironmentContext(_config(path), script, fn=migrate, destination_rev=target) as env:
            env.configure(connection=connection, target_metadata=None)
            with env.begin_transaction():
                env.run_migrations()

    for revision in applied:
        logger.info(f"Migrator: {'Applied' if direction == UP else 'Reverted'} {revision} on {repo.dotted_name()}")
    return applied


def current_heads(path: str) -> Tuple[str, ...]:
    return tuple(script_directory(path).get_heads())


def generate(path: str, name: str, message: Optional[str] = None, now: Optional[datetime.datetime] = None) -> str:
    """Write an empty revision file chained onto the current head(s)."""
    now = now or datetime.datetime.utcnow()
    revision = now.strftime('%Y%m%d%H%M%S')
    filename = os.path.join(path, f"{revision}_{name}.py")

    heads = current_heads(path)
    down_revision: Union[None, str, Tuple[str, ...]]
    if not heads:
        down_revision = None
    elif len(heads) == 1:
        down_revision = heads[0]
    else:
        down_revision = heads

    content = REVISION_TEMPLATE.format(
        message=message or name.replace('_', ' ').capitalize(),
        revision=revision,
        down_revision=down_revision,
        down_label=', '.join(heads),
        create_date=now.isoformat(),
    )
    with open(filename, 'w', encoding='utf-8') as f:
        f.write(content)
    logger.debug(f"Migrator: Generated {filename}")
    return filename
