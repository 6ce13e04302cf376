"""
API response schemas not covered by the catalog models.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    status_code: int = Field(..., description="HTTP status code")
    details: Optional[List[Dict[str, Any]]] = Field(None, description="Per-field validation errors")


class DeleteResponse(BaseModel):
    """Confirmation returned after a delete."""
    message: str = Field(..., description="Confirmation message")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    environment: str = Field(..., description="Deployment environment")
    database_status: str = Field(..., description="Database connection status")


class ServiceInfo(BaseModel):
    """Root endpoint response model."""
    message: str = Field(..., description="Service name")
    documentation: str = Field(..., description="Swagger UI path")
    swagger_json: str = Field(..., description="OpenAPI document path")
    health: str = Field(..., description="Health check path")
    version: str = Field(..., description="API version")
    environment: str = Field(..., description="Deployment environment")
