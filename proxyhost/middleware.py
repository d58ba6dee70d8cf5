"""
Tenant Middleware Module

Attaches the caller-supplied tenant identity to /api/* requests.

SCOPE:
- The tenant id is read from the X-Tenant-Id header and accepted as given
- The only checks are that it is present, non-empty and free of '/',
  since it becomes a segment of every storage key the tenant writes
- Site serving (/site/...) and service endpoints are not touched; the tenant
  for those comes from the URL path
"""

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Optional

from .config import TENANT_HEADER


class TenantContext:
    """
    Immutable tenant context attached to each /api/* request.
    """
    def __init__(self, tenant_id: str):
        self._tenant_id = tenant_id

    @property
    def tenant_id(self) -> str:
        """Tenant identifier as supplied by the caller (e.g., 'demo-user')"""
        return self._tenant_id

    def __repr__(self) -> str:
        return f"TenantContext(tenant_id='{self._tenant_id}')"


class TenantMiddleware(BaseHTTPMiddleware):
    """
    Middleware resolving the tenant for API routes.

    FLOW:
    1. Skip anything outside /api/
    2. Read X-Tenant-Id from request headers
    3. Reject missing or unusable values with 401
    4. Attach TenantContext to request.state
    """

    PROTECTED_PREFIX = "/api/"

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.PROTECTED_PREFIX):
            return await call_next(request)

        # CORS preflight carries no custom headers
        if request.method == "OPTIONS":
            return await call_next(request)

        tenant_id: Optional[str] = request.headers.get(TENANT_HEADER.lower())
        tenant_id = tenant_id.strip() if tenant_id else None

        if not tenant_id:
            return JSONResponse(
                status_code=401,
                content={
                    "detail": f"Missing {TENANT_HEADER} header",
                    "error": "unauthorized"
                }
            )

        if "/" in tenant_id:
            return JSONResponse(
                status_code=401,
                content={
                    "detail": f"Invalid {TENANT_HEADER} header",
                    "error": "unauthorized"
                }
            )

        request.state.tenant = TenantContext(tenant_id=tenant_id)

        return await call_next(request)


def get_current_tenant(request: Request) -> TenantContext:
    """
    Dependency function to extract tenant from request state.

    Raises:
        HTTPException: If tenant not found in request state (middleware failure)
    """
    tenant = getattr(request.state, 'tenant', None)

    if not tenant:
        raise HTTPException(
            status_code=500,
            detail="Tenant context not found - middleware configuration error"
        )

    return tenant
