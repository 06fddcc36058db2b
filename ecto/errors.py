"""Errors raised by ecto and its command-line tasks."""

import click


class EctoError(Exception):
    """Base class for library-level errors."""


class UnknownApplicationError(EctoError, LookupError):
    """Raised when an application name is neither registered nor importable."""

    def __init__(self, name):
        super().__init__(f"unknown application: {name!r}")
        self.name = name


class AlreadyStartedError(EctoError):
    """Raised by Repo.start_link when the repo already holds a live handle."""

    def __init__(self, repo, handle):
        super().__init__(f"{repo} is already started")
        self.repo = repo
        self.handle = handle


class TaskError(click.ClickException):
    """Fatal task error: aborts the command with exit status 1."""
