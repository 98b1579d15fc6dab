"""DBBase - uniform access to PostgreSQL, MySQL and key-value stores."""

from dbbase.constants import SERVER_VERSION as __version__

__all__ = ["__version__"]
