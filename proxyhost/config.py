"""
Configuration module for the ProxyHost site gateway.
Contains the serving policy (cache directive, media types) and storage settings.

CONFIGURATION SOURCES:
- Serving policy defaults live here as module constants
- Deployment settings are read from PROXYHOST_* environment variables
- GatewayConfig is built once and injected into the gateway, never read globally
"""

import os
from typing import Optional, Tuple

from pydantic import BaseModel, Field

# =============================================================================
# TENANT HEADER
# =============================================================================
# Caller-supplied tenant identity for /api/* routes.
# The value is accepted as-is; there are no credentials behind it.

TENANT_HEADER: str = "X-Tenant-Id"

# =============================================================================
# STORAGE KEY SCHEME
# =============================================================================
# Every object lives at {KEY_PREFIX}/{tenant_id}/{site_id}/{sub_path}

KEY_PREFIX: str = "sites"
DEFAULT_DOCUMENT: str = "index.html"

# =============================================================================
# CACHE POLICY
# =============================================================================

DEFAULT_CACHE_MAX_AGE: int = 300
DEFAULT_FETCH_TIMEOUT: float = 10.0

# =============================================================================
# MEDIA TYPES
# =============================================================================
# Ordered (suffix, media type) pairs. Matched case-insensitively against the
# whole sub-path; first match wins.

MEDIA_TYPES: Tuple[Tuple[str, str], ...] = (
    (".html", "text/html; charset=utf-8"),
    (".htm", "text/html; charset=utf-8"),
    (".css", "text/css; charset=utf-8"),
    (".js", "application/javascript; charset=utf-8"),
    (".json", "application/json; charset=utf-8"),
    (".png", "image/png"),
    (".jpg", "image/jpeg"),
    (".jpeg", "image/jpeg"),
    (".gif", "image/gif"),
    (".svg", "image/svg+xml"),
    (".ico", "image/x-icon"),
    (".txt", "text/plain; charset=utf-8"),
)

DEFAULT_MEDIA_TYPE: str = "application/octet-stream"

# Content type recorded for uploaded HTML entry points
UPLOAD_CONTENT_TYPE: str = "text/html; charset=utf-8"


class GatewayConfig(BaseModel):
    """
    Serving policy for the site gateway.

    Passed into SiteGateway at construction so tests can swap the cache
    policy or the media-type table without touching gateway logic.
    """
    cache_max_age: int = Field(DEFAULT_CACHE_MAX_AGE, ge=0)
    media_types: Tuple[Tuple[str, str], ...] = MEDIA_TYPES
    default_media_type: str = DEFAULT_MEDIA_TYPE
    fetch_timeout_seconds: float = Field(DEFAULT_FETCH_TIMEOUT, gt=0)

    @property
    def cache_control(self) -> str:
        return f"public, max-age={self.cache_max_age}"


class Settings(BaseModel):
    """Deployment settings read from the environment."""
    storage_backend: str = "memory"
    storage_root: str = "site_files"
    r2_bucket: Optional[str] = None
    r2_endpoint: Optional[str] = None
    r2_region: str = "auto"
    cache_max_age: int = DEFAULT_CACHE_MAX_AGE
    fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT
    use_mock_generator: bool = True
    ai_model: str = "gpt-4o-mini"

    def gateway_config(self) -> GatewayConfig:
        return GatewayConfig(
            cache_max_age=self.cache_max_age,
            fetch_timeout_seconds=self.fetch_timeout_seconds,
        )


def load_settings() -> Settings:
    """Build Settings from PROXYHOST_* environment variables."""
    return Settings(
        storage_backend=os.getenv("PROXYHOST_STORAGE_BACKEND", "memory").lower(),
        storage_root=os.getenv("PROXYHOST_STORAGE_ROOT", "site_files"),
        r2_bucket=os.getenv("PROXYHOST_R2_BUCKET"),
        r2_endpoint=os.getenv("PROXYHOST_R2_ENDPOINT"),
        r2_region=os.getenv("PROXYHOST_R2_REGION", "auto"),
        cache_max_age=int(os.getenv("PROXYHOST_CACHE_MAX_AGE", str(DEFAULT_CACHE_MAX_AGE))),
        fetch_timeout_seconds=float(os.getenv("PROXYHOST_FETCH_TIMEOUT", str(DEFAULT_FETCH_TIMEOUT))),
        use_mock_generator=os.getenv("PROXYHOST_USE_MOCK", "true").lower() == "true",
        ai_model=os.getenv("PROXYHOST_AI_MODEL", "gpt-4o-mini"),
    )
