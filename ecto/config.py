from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import model_validator, field_validator
from typing import List, Optional


class Settings(BaseSettings):
    # Project layout
    ECTO_APP: Optional[str] = None
    ECTO_APPS_PATH: Optional[str] = None  # set for umbrella projects
    ECTO_BUILD_PATH: str = '_build'
    ECTO_ENV: str = 'dev'
    ECTO_SOURCE_PATH: str = '.'

    # Repos managed by the project app (comma separated dotted paths)
    ECTO_REPOS: Optional[str] = None

    # Logging
    ECTO_LOG_LEVEL: str = 'INFO'

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',  # Ignore extra fields from .env
    )

    @field_validator('ECTO_REPOS', mode='before')
    def _strip_repos(cls, v):
        """Allow ECTO_REPOS to carry an inline comment like 'my_app.repo.Repo  # main db'."""
        if isinstance(v, str):
            v = v.split('#', 1)[0].strip()
        return v

    @model_validator(mode='after')
    def normalize_paths(self) -> 'Settings':
        """Treat a blank ECTO_APPS_PATH as a regular (non-umbrella) project."""
        if self.ECTO_APPS_PATH is not None and not self.ECTO_APPS_PATH.strip():
            self.ECTO_APPS_PATH = None
        return self

    def repo_names(self) -> Optional[List[str]]:
        """Return ECTO_REPOS as a list, or None when it is not configured at all."""
        if self.ECTO_REPOS is None:
            return None
        return [name.strip() for name in self.ECTO_REPOS.split(',') if name.strip()]
