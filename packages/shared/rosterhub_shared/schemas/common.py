from typing import Any, Optional

from pydantic import BaseModel


class APIResponse(BaseModel):
    """Success envelope: `{success: true, data | message}`."""
    success: bool = True
    data: Optional[Any] = None
    message: Optional[str] = None
    count: Optional[int] = None


class ErrorResponse(BaseModel):
    """Error envelope: `{success: false, status: fail | error, message}`."""
    success: bool = False
    status: str = "fail"
    message: str
