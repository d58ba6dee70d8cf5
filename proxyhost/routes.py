"""
API Routes Module for ProxyHost

ENDPOINTS:
- GET/HEAD /site/{tenant}/{site}/{path} - Serve hosted site objects
- POST /api/upload - Upload an HTML entry point as a new site
- POST /api/generate-site - Generate an HTML page with the AI model
- GET /health - Health check endpoint

Collaborators (gateway, blob store, generator) live on app.state and are
reached through the dependency functions below, so tests can override them.
"""

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool
from typing import Optional
from datetime import datetime, timezone
import logging
import uuid
from urllib.parse import quote

from openai import OpenAIError

from .blob_store import BackingStoreUnavailable, BlobStore
from .config import UPLOAD_CONTENT_TYPE
from .gateway import SiteGateway
from .generator import SiteGenerator
from .keys import resolve
from .middleware import get_current_tenant, TenantContext
from .models import GenerateSiteRequest, GenerateSiteResponse, HealthResponse, UploadResponse

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_gateway(request: Request) -> SiteGateway:
    return request.app.state.gateway


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store


def get_generator(request: Request) -> SiteGenerator:
    return request.app.state.generator


# =============================================================================
# STATIC HOSTING
# =============================================================================

@router.api_route(
    "/site/{raw_path:path}",
    methods=["GET", "HEAD"],
    summary="Serve a hosted site object",
    description="""
    Serve an object from a tenant's site: `/site/<tenant>/<site>/<path...>`.

    - Empty path serves the site's `index.html`
    - 404 when nothing is stored at the resolved key
    - Responses carry `Cache-Control: public, max-age=300`
    """,
    responses={
        400: {"description": "Path has fewer than two segments"},
        404: {"description": "No object at the resolved key"},
        503: {"description": "Blob store unavailable"},
    }
)
async def serve_site(
    raw_path: str,
    gateway: SiteGateway = Depends(get_gateway)
) -> Response:
    return await gateway.serve(raw_path)


# =============================================================================
# UPLOAD
# =============================================================================

@router.post(
    "/api/upload",
    response_model=UploadResponse,
    summary="Upload a site",
    description="""
    Store an HTML file as the `index.html` of a newly created site.

    - Tenant is taken from the `X-Tenant-Id` header
    - A fresh site id is issued on every upload
    """,
    responses={
        400: {"description": "Missing or empty file"},
        401: {"description": "Missing or invalid X-Tenant-Id header"},
    }
)
async def upload_site(
    file: Optional[UploadFile] = File(None),
    siteName: Optional[str] = Form(None),
    tenant: TenantContext = Depends(get_current_tenant),
    store: BlobStore = Depends(get_blob_store)
) -> UploadResponse:
    if file is None:
        raise HTTPException(status_code=400, detail="Missing file")

    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    site_id = str(uuid.uuid4())
    key = resolve(tenant.tenant_id, site_id, "")

    try:
        await store.put(key, data, UPLOAD_CONTENT_TYPE)
    except BackingStoreUnavailable as e:
        logger.error(f"Upload failed for {key}: {e}")
        raise HTTPException(status_code=503, detail="Storage backend unavailable")

    logger.info(f"Stored {len(data)} bytes at {key}")

    return UploadResponse(
        siteId=site_id,
        url=f"/site/{quote(tenant.tenant_id, safe='')}/{site_id}/",
        siteName=siteName
    )


# =============================================================================
# AI SITE GENERATION
# =============================================================================

@router.post(
    "/api/generate-site",
    response_model=GenerateSiteResponse,
    summary="Generate a site with AI",
    description="Ask the configured chat model for a complete HTML page."
)
async def generate_site(
    body: GenerateSiteRequest,
    tenant: TenantContext = Depends(get_current_tenant),
    generator: SiteGenerator = Depends(get_generator)
) -> GenerateSiteResponse:
    logger.info(f"Generating site for tenant: {tenant.tenant_id}")

    try:
        html = await run_in_threadpool(generator.generate, body.prompt)
    except OpenAIError as e:
        logger.error(f"Site generation failed: {e}")
        raise HTTPException(status_code=502, detail="AI generation failed")

    return GenerateSiteResponse(html=html)


# =============================================================================
# HEALTH CHECK ENDPOINT
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check API health status and the configured storage backend."
)
async def health_check(store: BlobStore = Depends(get_blob_store)) -> HealthResponse:
    return HealthResponse(
        status="healthy",
        storage_backend=store.name,
        timestamp=datetime.now(timezone.utc).isoformat()
    )
