from pydantic import BaseModel, Field
from typing import Generic, TypeVar, Optional, Any, Dict

DataType = TypeVar("DataType")

class APIResponse(BaseModel, Generic[DataType]):
    """Envelope for every successful response."""
    message: str = Field(..., description="Human-readable outcome of the call.")
    data: Optional[DataType] = Field(None, description="Payload of the call, if any.")

class ErrorDetail(BaseModel):
    code: str = Field(..., description="Machine-readable error code, e.g. NOT_FOUND")
    message: str = Field(..., description="Single human-readable message")
    details: Optional[Dict[str, Any]] = Field(None, description="Extra context such as validation errors")

class ErrorResponse(BaseModel):
    """Envelope for every failed response."""
    error: ErrorDetail
    timestamp: str = Field(..., description="ISO 8601 time the error was produced")
    path: str = Field(..., description="Request path that failed")
    request_id: Optional[str] = Field(None, description="Correlates with the X-Request-ID header")
