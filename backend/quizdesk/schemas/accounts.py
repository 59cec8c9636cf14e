"""Teacher and student account schemas."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator


class AccountCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: str | None = Field(None, max_length=32)
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower().strip()


class AccountUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=32)
    password: str | None = Field(None, min_length=8, max_length=128)
    is_active: bool | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return v.lower().strip() if v else v


class TeacherCreate(AccountCreate):
    pass


class TeacherUpdate(AccountUpdate):
    pass


class StudentCreate(AccountCreate):
    faculty_id: int | None = None


class StudentUpdate(AccountUpdate):
    faculty_id: int | None = None


class AccountResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: str | None = None
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class TeacherResponse(AccountResponse):
    pass


class StudentResponse(AccountResponse):
    faculty_id: int | None = None
