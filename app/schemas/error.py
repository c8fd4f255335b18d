from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Standardized error response schema."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "code": "VAL_2001",
                "message": "Amount and userId are required.",
                "details": None,
                "trace_id": "123e4567-e89b-12d3-a456-426614174000",
                "timestamp": 1678901234.567
            }
        }
    )

    code: str = Field(..., description="Error code for programmatic handling")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    trace_id: str = Field(..., description="Request trace ID for debugging")
    timestamp: float = Field(..., description="Unix timestamp of the error")
