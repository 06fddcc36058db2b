"""
ecto - repository helpers and migration tasks.

Resolves which repos a command operates on, makes sure they are compiled and
started, locates their migrations and restarts dependent applications after
migrations have run.
"""

from ecto.application import Application, ApplicationController, controller
from ecto.errors import AlreadyStartedError, EctoError, TaskError, UnknownApplicationError
from ecto.repo import Adapter, MigrationAdapter, Repo

__version__ = '0.1.0'

__all__ = [
    'Adapter',
    'AlreadyStartedError',
    'Application',
    'ApplicationController',
    'EctoError',
    'MigrationAdapter',
    'Repo',
    'TaskError',
    'UnknownApplicationError',
    'controller',
]
