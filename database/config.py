"""Database connection configuration built from application settings."""

from config.settings import DatabaseSettings, settings


class DatabaseConfig:
    """Resolved connection parameters for the application database."""

    def __init__(self, db_settings: DatabaseSettings | None = None, url: str | None = None):
        db_settings = db_settings or settings.database
        self.database = db_settings.database
        self.echo = db_settings.echo
        self._url = url or db_settings.url
        self._sync_url = db_settings.sync_url

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        return cls(settings.database)

    @classmethod
    def from_url(cls, url: str) -> "DatabaseConfig":
        """Config pointing at an explicit URL (e.g. sqlite+aiosqlite for local runs)."""
        return cls(settings.database, url=url)

    @property
    def url(self) -> str:
        return self._url

    @property
    def sync_url(self) -> str:
        return self._sync_url

    @property
    def is_postgres(self) -> bool:
        return self._url.startswith("postgresql")
