from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ActivityLogRead(BaseModel):
    id: int
    user_id: int | None
    activity_type: str
    entity_type: str
    description: str
    created_at: datetime
    metadata: Any | None = None
    username: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ActivityLogPage(BaseModel):
    data: list[ActivityLogRead]
    total: int


class ActivityLogFilter(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)
    user_id: int | None = None
    activity_type: str | None = None
    entity_type: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    search_term: str | None = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @model_validator(mode="after")
    def check_date_range(self) -> "ActivityLogFilter":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self
