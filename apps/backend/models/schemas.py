from datetime import date as date_type, time as time_type
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

class LessonType(str, Enum):
    LECTURE = "LECTURE"
    TUTORIAL = "TUTORIAL"
    LAB = "LAB"
    SEMINAR = "SEMINAR"
    PRACTICAL = "PRACTICAL"

class LessonStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

class LessonCreate(BaseModel):
    """Payload for creating or fully updating a lesson."""
    model_config = ConfigDict(populate_by_name=True)

    subject: str = Field(min_length=1)
    description: str = Field(min_length=1)
    date: date_type
    start_time: time_type = Field(alias="startTime")
    end_time: time_type = Field(alias="endTime")
    classroom: str = Field(min_length=1)
    type: LessonType

    @field_validator("subject", "description", "classroom")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

class StatusUpdate(BaseModel):
    status: LessonStatus

class LessonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    subject: str
    description: str
    date: date_type
    start_time: time_type = Field(serialization_alias="startTime")
    end_time: time_type = Field(serialization_alias="endTime")
    classroom: str
    type: LessonType
    status: LessonStatus

class NotificationList(BaseModel):
    notifications: List[str] = []
    count: int = 0

class MessageResponse(BaseModel):
    message: str
    id: Optional[int] = None
