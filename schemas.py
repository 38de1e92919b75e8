"""
Database Schemas

MongoDB collection schemas defined as Pydantic models.
The Student model is stored in the "student" collection (configurable).

App entities:
- Student        (payload accepted on create)
- StudentUpdate  (partial payload accepted on update)
- StudentRecord  (stored document as returned to callers)
"""
from enum import Enum
from typing import Optional
import datetime as dt

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AttendanceStatus(str, Enum):
    present = "present"
    absent = "absent"

    def toggled(self):
        if self is AttendanceStatus.present:
            return AttendanceStatus.absent
        return AttendanceStatus.present


class Student(BaseModel):
    roll: str = Field(..., min_length=1, description="Roll number, e.g., A1")
    name: str = Field(..., min_length=1, description="Full name of student")
    status: AttendanceStatus = Field(AttendanceStatus.absent, description="present | absent")
    remarks: Optional[str] = Field(None, description="Optional note")


class StudentUpdate(BaseModel):
    """Partial update: only the fields a caller sends are applied."""

    roll: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    status: Optional[AttendanceStatus] = None
    remarks: Optional[str] = None

    @field_validator("roll", "name", "status")
    @classmethod
    def _not_null(cls, value):
        # remarks may be cleared, the rest may not
        if value is None:
            raise ValueError("may not be null")
        return value

    def changes(self):
        return self.model_dump(exclude_unset=True, mode="json")


class StudentRecord(Student):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id", description="Document id as string")
    createdAt: dt.datetime
    updatedAt: dt.datetime
