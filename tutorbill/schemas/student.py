# tutorbill/schemas/student.py
from pydantic import BaseModel, field_validator
from typing import Optional, List
from datetime import datetime
from uuid import UUID


class StudentCreate(BaseModel):
    name: str
    parent_name: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""
    course: str = "Beginner"
    photo: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError('Name cannot be empty')
        return v.strip()

    @field_validator('course')
    @classmethod
    def validate_course(cls, v: str) -> str:
        return v.strip() or "Beginner"


class StudentUpdate(BaseModel):
    name: Optional[str] = None
    parent_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    course: Optional[str] = None
    photo: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError('Name cannot be empty')
        return v.strip() if v else v


class StudentOut(BaseModel):
    id: UUID
    name: str
    parent_name: str
    phone: str
    email: str
    address: str
    course: str
    photo: Optional[str] = None
    fee_per_class: int = 0
    created_at: datetime

    class Config:
        from_attributes = True


class StudentList(BaseModel):
    students: List[StudentOut]
    total: int
