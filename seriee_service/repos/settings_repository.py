"""Repository for key/value device settings."""

from datetime import UTC, datetime

from sqlalchemy.orm import Session

from seriee_service.models import DeviceSetting


class SettingsRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str, default: str | None = None) -> str | None:
        setting = self.db.query(DeviceSetting).filter(DeviceSetting.key == key).first()
        if setting is None or setting.value is None:
            return default
        return setting.value

    def set(self, key: str, value: str) -> DeviceSetting:
        setting = self.db.query(DeviceSetting).filter(DeviceSetting.key == key).first()
        if setting:
            setting.value = value  # type: ignore[assignment]
            setting.updated_at = datetime.now(UTC)  # type: ignore[assignment]
        else:
            setting = DeviceSetting(key=key, value=value)
            self.db.add(setting)
        self.db.commit()
        self.db.refresh(setting)
        return setting

    def delete(self, key: str) -> bool:
        count = self.db.query(DeviceSetting).filter(DeviceSetting.key == key).delete()
        self.db.commit()
        return count > 0
