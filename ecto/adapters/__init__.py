"""Storage adapters shipped with ecto."""

from ecto.adapters.sqlalchemy import SQLAlchemyAdapter

__all__ = ['SQLAlchemyAdapter']
