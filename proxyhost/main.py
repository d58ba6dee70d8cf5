"""
ProxyHost - Main Application Entry Point

FastAPI application hosting tenant-uploaded static sites.

ARCHITECTURE OVERVIEW:
┌─────────────────────────────────────────────────────────────────┐
│                         FastAPI App                              │
├─────────────────────────────────────────────────────────────────┤
│  Middleware Layer (TenantMiddleware)                            │
│  ┌─────────────────────────────────────────────────────────────┐│
│  │ 1. /api/* only: read X-Tenant-Id header                     ││
│  │ 2. Reject missing or unusable values (401)                  ││
│  │ 3. Attach TenantContext to request.state                    ││
│  └─────────────────────────────────────────────────────────────┘│
├─────────────────────────────────────────────────────────────────┤
│  Route Handlers (routes.py)                                     │
│  ┌─────────────────────────────────────────────────────────────┐│
│  │ - GET /site/<tenant>/<site>/<path> : Serve site objects     ││
│  │ - POST /api/upload : Store a new site                       ││
│  │ - POST /api/generate-site : AI page generation              ││
│  │ - GET /health : Health check                                ││
│  └─────────────────────────────────────────────────────────────┘│
├─────────────────────────────────────────────────────────────────┤
│  Serving Layer                                                  │
│  ┌─────────────────────────────────────────────────────────────┐│
│  │ keys.py : tenant/site/path <-> storage key                  ││
│  │ gateway.py : fetch, media type, cache headers               ││
│  │ blob_store.py : memory / filesystem / R2 backends           ││
│  └─────────────────────────────────────────────────────────────┘│
└─────────────────────────────────────────────────────────────────┘

STARTUP SEQUENCE:
1. Read PROXYHOST_* settings from the environment
2. Build the blob store, gateway and generator and put them on app.state
3. Register middleware and include API routes
4. Start accepting requests
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Optional
import logging

from .blob_store import BlobStore, create_blob_store
from .config import GatewayConfig, Settings, load_settings
from .gateway import SiteGateway
from .generator import SiteGenerator
from .middleware import TenantMiddleware
from .routes import router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[BlobStore] = None,
    gateway_config: Optional[GatewayConfig] = None,
    generator: Optional[SiteGenerator] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Any collaborator left as None is built from settings, which in turn
    default to the PROXYHOST_* environment.
    """
    if settings is None:
        settings = load_settings()
    if store is None:
        store = create_blob_store(settings)
    if gateway_config is None:
        gateway_config = settings.gateway_config()
    if generator is None:
        generator = SiteGenerator(
            model=settings.ai_model,
            use_mock=settings.use_mock_generator
        )

    # =========================================================================
    # APPLICATION LIFESPAN (STARTUP/SHUTDOWN)
    # =========================================================================

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("=" * 60)
        logger.info("STARTING PROXYHOST SITE GATEWAY")
        logger.info("=" * 60)
        logger.info(f"  - storage backend: {store.name}")
        logger.info(f"  - cache policy: {gateway_config.cache_control}")
        logger.info(f"  - generator: {'mock' if generator.use_mock else generator.model}")
        logger.info("=" * 60)

        yield

        logger.info("Shutting down ProxyHost...")

    app = FastAPI(
        title="ProxyHost",
        description="""
## Multi-Tenant Static Site Hosting

Upload an HTML page and get it served back under your own namespace.

### Serving

`GET /site/<tenant>/<site>/<path>` returns the stored object with an inferred
`Content-Type` and `Cache-Control: public, max-age=300`.

### Uploading

```bash
curl -X POST "http://localhost:8000/api/upload" \\
  -H "X-Tenant-Id: demo-user" \\
  -F "file=@index.html" -F "siteName=my-site"
```
        """,
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.state.settings = settings
    app.state.blob_store = store
    app.state.gateway = SiteGateway(store, gateway_config)
    app.state.generator = generator

    app.add_middleware(TenantMiddleware)

    # Added last so it wraps TenantMiddleware and its 401s carry CORS headers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "HEAD", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint - API information."""
        return {
            "name": "ProxyHost",
            "version": "1.0.0",
            "description": "Multi-tenant static site hosting",
            "docs": "/docs",
            "health": "/health"
        }

    return app


app = create_app()


# =============================================================================
# RUN WITH UVICORN (for direct execution)
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "proxyhost.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
