"""Key/value device state (seen app version, activity viewed marker)."""
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, String, Text

from seriee_service.models.base import Base


class DeviceSetting(Base):
    __tablename__ = "device_settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    def __repr__(self):
        return f"<DeviceSetting(key='{self.key}', value='{self.value}')>"
