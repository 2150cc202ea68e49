"""
API response models for consistent response formatting.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict


class ErrorResponse(BaseModel):
    """Standard error response format."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": False,
                "error": "FileNotFound",
                "message": "File not found: photos/missing.jpeg"
            }
        }
    )

    success: bool = Field(
        False,
        description="Always false for error responses"
    )

    error: str = Field(
        ...,
        description="Machine-readable error code"
    )

    message: str = Field(
        ...,
        description="Detailed error message"
    )


class SuccessResponse(BaseModel):
    """Standard success response format for simple operations."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "message": "File deleted",
                "data": {
                    "path": "photos/bird.jpeg"
                }
            }
        }
    )

    success: bool = Field(
        True,
        description="Always true for success responses"
    )

    message: str = Field(
        ...,
        description="Success message"
    )

    data: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional response data"
    )


class DiskSummary(BaseModel):
    """Public view of a configured disk."""

    name: str
    driver: str
    is_default: bool = False


class DiskListResponse(BaseModel):
    """Response listing the configured disks."""

    success: bool = Field(True)
    default_disk: str = Field(..., description="Name of the active default disk")
    disks: List[DiskSummary] = Field(default_factory=list)
