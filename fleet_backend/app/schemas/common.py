"""
Uniform action envelope.

Every endpoint answers ``{"success": true, "data": ...}``; failures are
rendered by the exception handlers as ``{"success": false, "error": ...}``.
"""

from typing import Any, Dict, Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Successful action result."""
    success: bool = True
    data: T


def ok(data: Any) -> Dict[str, Any]:
    return {"success": True, "data": data}
