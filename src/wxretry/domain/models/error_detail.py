"""Error detail models - the watsonx error envelope"""

from dataclasses import dataclass
from typing import List

from pydantic import BaseModel, field_validator


@dataclass(frozen=True)
class ErrorDetail:
    """Represents a single error record from a failed response"""

    code: str = ""
    message: str = ""
    more_info: str = ""


class ErrorDetailPayload(BaseModel):
    """Wire shape of one entry in the envelope's ``errors`` list."""

    code: str = ""
    message: str = ""
    more_info: str = ""

    @field_validator("code", "message", "more_info", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return "" if value is None else value

    def to_detail(self) -> ErrorDetail:
        return ErrorDetail(code=self.code, message=self.message, more_info=self.more_info)


class ErrorEnvelope(BaseModel):
    """Error response body: ``{"errors": [...], "trace": "..."}``.

    Unknown fields are ignored, missing fields default to empty.
    """

    errors: List[ErrorDetailPayload] = []
    trace: str = ""

    @field_validator("errors", mode="before")
    @classmethod
    def _none_as_no_errors(cls, value):
        return [] if value is None else value

    @field_validator("trace", mode="before")
    @classmethod
    def _none_as_no_trace(cls, value):
        return "" if value is None else value
