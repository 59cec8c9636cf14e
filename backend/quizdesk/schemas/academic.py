"""Faculty and subject schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class TaxonomyCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=32)
    name: str = Field(..., min_length=1, max_length=255)


class TaxonomyUpdate(BaseModel):
    code: str | None = Field(None, min_length=1, max_length=32)
    name: str | None = Field(None, min_length=1, max_length=255)


class FacultyCreate(TaxonomyCreate):
    pass


class FacultyUpdate(TaxonomyUpdate):
    pass


class SubjectCreate(TaxonomyCreate):
    pass


class SubjectUpdate(TaxonomyUpdate):
    pass


class TaxonomyResponse(BaseModel):
    id: int
    code: str
    name: str
    created_at: datetime
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class FacultyResponse(TaxonomyResponse):
    pass


class SubjectResponse(TaxonomyResponse):
    pass
