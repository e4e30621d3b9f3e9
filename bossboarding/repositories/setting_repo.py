from sqlalchemy.orm import Session
from typing import Any, Dict, Mapping
from bossboarding.models.setting import AppSetting


class SettingRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> Dict[str, Any]:
        """All settings as a key -> value dict"""
        return {row.key: row.value for row in self.db.query(AppSetting).order_by(AppSetting.key).all()}

    def get(self, key: str, default: Any = None) -> Any:
        row = self.db.query(AppSetting).filter(AppSetting.key == key).first()
        return row.value if row else default

    def _upsert(self, key: str, value: Any) -> AppSetting:
        row = self.db.query(AppSetting).filter(AppSetting.key == key).first()
        if row:
            row.value = value
        else:
            row = AppSetting(key=key, value=value)
            self.db.add(row)
        return row

    def upsert(self, key: str, value: Any) -> AppSetting:
        row = self._upsert(key, value)
        self.db.commit()
        self.db.refresh(row)
        return row

    def upsert_many(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        try:
            for key, value in values.items():
                self._upsert(key, value)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return self.get_all()
