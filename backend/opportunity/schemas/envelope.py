"""Uniform response envelope shared by every API route."""
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ErrorBody(BaseModel):
    code: str
    message: str


class Envelope(BaseModel, Generic[T]):
    """{"success": ..., "data": ..., "error": ...}"""
    success: bool = True
    data: Optional[T] = None
    error: Optional[ErrorBody] = None


def ok(data) -> Envelope:
    return Envelope(success=True, data=data)


def failure(code: str, message: str) -> Envelope:
    return Envelope(success=False, error=ErrorBody(code=code, message=message))
