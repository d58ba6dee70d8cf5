"""
Storage Key Resolver

Maps a tenant, site and sub-path to the canonical blob store key, and back.

KEY SCHEME:
    sites/{tenant_id}/{site_id}/{sub_path}

- tenant_id and site_id are opaque, non-empty, and never contain '/'
- An empty or root-only sub_path means the site's index.html
- The sub_path is otherwise used verbatim (no collapsing, no trailing-slash stripping)

Uploads and the gateway both go through resolve(), so a key written by one is
always the key read by the other.
"""

from typing import List

from .config import DEFAULT_DOCUMENT, KEY_PREFIX
from .models import RequestPath


class MalformedPath(ValueError):
    """Raised when a path cannot be mapped onto a tenant/site namespace."""


def _check_token(value: str, name: str) -> None:
    if not value:
        raise MalformedPath(f"{name} must not be empty")
    if "/" in value:
        raise MalformedPath(f"{name} must not contain '/'")


def normalize_sub_path(sub_path: str) -> str:
    """Return the sub-path to address, defaulting the site root to index.html."""
    if not sub_path or sub_path == "/":
        return DEFAULT_DOCUMENT
    return sub_path


def resolve(tenant_id: str, site_id: str, sub_path: str = "") -> str:
    """
    Build the storage key for an object inside a tenant's site.

    Args:
        tenant_id: Tenant identifier (non-empty, no '/')
        site_id: Site identifier (non-empty, no '/')
        sub_path: Relative path within the site, possibly empty

    Returns:
        Canonical storage key

    Raises:
        MalformedPath: If tenant_id or site_id is empty or contains '/'
    """
    _check_token(tenant_id, "tenant_id")
    _check_token(site_id, "site_id")
    return f"{KEY_PREFIX}/{tenant_id}/{site_id}/{normalize_sub_path(sub_path)}"


def parse_request_path(raw_path: str) -> RequestPath:
    """
    Split a raw URL path into tenant, site and sub-path.

    Empty segments are discarded, so '/u1//s1/' parses like '/u1/s1'.
    Segments after the second are rejoined with '/' as the sub-path.

    Raises:
        MalformedPath: Fewer than two segments, or a '.'/'..' segment
    """
    segments: List[str] = [s for s in raw_path.split("/") if s]

    if len(segments) < 2:
        raise MalformedPath("expected /<tenant>/<site>[/<path>]")

    if any(s in (".", "..") for s in segments):
        raise MalformedPath("dot segments are not allowed")

    return RequestPath(
        tenant_id=segments[0],
        site_id=segments[1],
        sub_path="/".join(segments[2:]),
    )


def split_key(key: str) -> RequestPath:
    """
    Recover the (tenant, site, sub-path) triple from a storage key.

    Inverse of resolve(): the remainder after the site id may span several
    segments and is rejoined as the sub-path.
    """
    parts = key.split("/", 3)

    if len(parts) != 4 or parts[0] != KEY_PREFIX:
        raise MalformedPath(f"not a site key: {key!r}")

    _, tenant_id, site_id, sub_path = parts
    _check_token(tenant_id, "tenant_id")
    _check_token(site_id, "site_id")
    return RequestPath(tenant_id=tenant_id, site_id=site_id, sub_path=sub_path)
