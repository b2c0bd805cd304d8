from typing import Any, Optional
from pydantic import BaseModel


class ApiResponse(BaseModel):
    """Envelope used by every JSON endpoint: {success, data?, message?, error?, code?}"""
    success: bool
    data: Optional[Any] = None
    message: Optional[str] = None
    error: Optional[str] = None
    code: Optional[str] = None


def ok(data: Any = None, message: Optional[str] = None) -> dict:
    return ApiResponse(success=True, data=data, message=message).model_dump(exclude_none=True)


def fail(error: str, code: Optional[str] = None) -> dict:
    return ApiResponse(success=False, error=error, code=code).model_dump(exclude_none=True)
