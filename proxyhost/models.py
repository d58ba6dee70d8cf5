"""
Pydantic Models for the ProxyHost gateway

This module defines all data models used in the application:
- Internal models for parsed request paths and stored objects
- Request/Response models for API endpoints
- Validation schemas with Pydantic
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


# =============================================================================
# ADDRESSING MODELS
# =============================================================================

class RequestPath(BaseModel):
    """
    A site request split into its tenant, site and sub-path parts.

    Attributes:
        tenant_id: Owning tenant's identifier (e.g., 'u1')
        site_id: Site identifier issued at upload time
        sub_path: Path inside the site; empty means the site root
    """
    model_config = ConfigDict(frozen=True)

    tenant_id: str = Field(..., description="Tenant that owns the site")
    site_id: str = Field(..., description="Opaque site identifier")
    sub_path: str = Field("", description="Relative path within the site")


class StoredObject(BaseModel):
    """
    Bytes returned by the blob store together with their declared content type.

    The gateway never keeps these around; every request fetches a fresh copy.
    """
    model_config = ConfigDict(frozen=True)

    data: bytes
    content_type: Optional[str] = None


# =============================================================================
# API REQUEST MODELS
# =============================================================================

class GenerateSiteRequest(BaseModel):
    """
    Request model for the /api/generate-site endpoint.

    Attributes:
        prompt: Description of the page to generate
    """
    prompt: str = Field(
        ...,
        min_length=1,
        max_length=4000,
        description="Description of the HTML page to generate"
    )

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "prompt": "A landing page for a neighbourhood bakery"
        }
    })


# =============================================================================
# API RESPONSE MODELS
# =============================================================================

class UploadResponse(BaseModel):
    """
    Response model for the /api/upload endpoint.

    Attributes:
        siteId: Newly issued site identifier
        url: Path under which the site is served
        siteName: Display name supplied with the upload, if any
    """
    siteId: str = Field(..., description="Issued site identifier")
    url: str = Field(..., description="Serving path for the new site")
    siteName: Optional[str] = Field(None, description="Site display name")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "siteId": "0b6f1c2e-8d43-4a8e-9a57-5d2f7e1f4c11",
            "url": "/site/demo-user/0b6f1c2e-8d43-4a8e-9a57-5d2f7e1f4c11/",
            "siteName": "bakery"
        }
    })


class GenerateSiteResponse(BaseModel):
    """Response model for the /api/generate-site endpoint."""
    html: str = Field(..., description="Generated HTML document")


class ErrorResponse(BaseModel):
    """
    Standard error response model.

    Attributes:
        detail: Human-readable error message
        error: Error code for programmatic handling
    """
    detail: str = Field(..., description="Error message")
    error: str = Field(..., description="Error code")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "detail": "Missing X-Tenant-Id header",
            "error": "unauthorized"
        }
    })


class HealthResponse(BaseModel):
    """
    Health check response model.

    Attributes:
        status: Service status ('healthy' or 'unhealthy')
        storage_backend: Name of the configured blob store backend
        timestamp: Current server timestamp
    """
    status: str = Field(..., description="Service health status")
    storage_backend: str = Field(..., description="Configured blob store backend")
    timestamp: str = Field(..., description="Server timestamp")
