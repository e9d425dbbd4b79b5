from typing import Any

from pydantic import BaseModel, Field, field_validator


def _clean_note(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip()
    return v or None


class ApplicationCreateIn(BaseModel):
    job_id: int = Field(..., ge=1)
    candidate_id: int = Field(..., ge=1)


class ApplicationStatusUpdateIn(BaseModel):
    status_id: int = Field(..., ge=1)
    note: str | None = Field(default=None, max_length=2000)

    @field_validator("note")
    @classmethod
    def _strip_note(cls, v: str | None) -> str | None:
        return _clean_note(v)


class BulkApplicationActionIn(BaseModel):
    # Entries are checked by the bulk service: empty is an error, malformed ids are skipped.
    application_ids: list[Any] = Field(default_factory=list)
    status_id: int = Field(..., ge=1)
    note: str | None = Field(default=None, max_length=2000)

    @field_validator("note")
    @classmethod
    def _strip_note(cls, v: str | None) -> str | None:
        return _clean_note(v)


class ScreenByScoreIn(BaseModel):
    job_id: int = Field(..., ge=1)
    min_score: float = Field(default=0.0, ge=0, le=100)
    max_score: float = Field(default=100.0, ge=0, le=100)
    status_id: int = Field(..., ge=1)
    note: str | None = Field(default=None, max_length=2000)

    @field_validator("note")
    @classmethod
    def _strip_note(cls, v: str | None) -> str | None:
        return _clean_note(v)


class ApplicationStatusIn(BaseModel):
    status: str = Field(..., min_length=1, max_length=50)
