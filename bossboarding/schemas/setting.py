from pydantic import BaseModel, Field
from typing import Any, Dict


class SettingUpsert(BaseModel):
    key: str = Field(..., min_length=1)
    value: Any = None


class SettingsBulkUpdate(BaseModel):
    settings: Dict[str, Any]
