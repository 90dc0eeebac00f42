"""Integration settings models."""

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import DateTime, func

from models.database.base import Base


class AppSetting(Base):  # pylint: disable=too-few-public-methods
    """Model for storing one integration setting as a key/value pair."""

    __tablename__ = "app_setting"

    # The settings key, e.g. ha_url
    key: Mapped[str] = mapped_column(primary_key=True)

    # String representation of the value
    value: Mapped[str] = mapped_column(default="")

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),  # pylint: disable=not-callable
        onupdate=func.now(),  # pylint: disable=not-callable
    )
