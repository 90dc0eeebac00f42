"""Settings store backed by the service database."""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import text

from app.database import get_session
from log import get_logger
from models.database.settings import AppSetting
from settings_store.settings_store import SettingsStore, SettingsStoreError

logger = get_logger("settings_store.database_settings_store")


class DatabaseSettingsStore(SettingsStore):
    """Settings stored in the `app_setting` table (SQLite or PostgreSQL).

    The database engine has to be initialized before the store is used,
    see `app.database.initialize_database`.
    """

    def _read(self, key: str) -> Optional[str]:
        """Read raw value from the database."""
        try:
            with get_session() as session:
                setting = session.get(AppSetting, key)
                return setting.value if setting is not None else None
        except SQLAlchemyError as e:
            logger.error("Failed to read settings key %s: %s", key, e)
            raise SettingsStoreError(f"Failed to read settings key {key}") from e

    def _write_many(self, values: dict[str, str]) -> None:
        """Insert or update all values and commit them together."""
        with get_session() as session:
            try:
                for key, value in values.items():
                    setting = session.get(AppSetting, key)
                    if setting is None:
                        session.add(AppSetting(key=key, value=value))
                    else:
                        setting.value = value
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.error("Failed to store settings, nothing was changed: %s", e)
                raise SettingsStoreError("Failed to store settings") from e

    def ready(self) -> bool:
        """Check if the database can be reached."""
        try:
            with get_session() as session:
                session.execute(text("SELECT 1"))
            return True
        except (RuntimeError, SQLAlchemyError) as e:
            logger.error("Settings database is not ready: %s", e)
            return False
