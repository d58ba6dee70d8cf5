"""
Site Object Gateway

Turns a raw site path into an HTTP response backed by the blob store.

SERVE FLOW:
1. Parse the raw path into tenant, site and sub-path
2. Resolve the canonical storage key
3. Fetch the object from the blob store (fresh on every request)
4. Attach the inferred Content-Type and the configured Cache-Control

ERROR MAPPING:
- MalformedPath           -> 400 plain text
- ObjectNotFound          -> 404 "Not found"
- BackingStoreUnavailable -> 503 plain text (no retry here)
- any other store error   -> 503 plain text, logged

Error bodies never echo the tenant, site or storage key.
"""

import asyncio
import logging
from typing import Optional, Sequence, Tuple

from starlette.responses import PlainTextResponse, Response

from .blob_store import BackingStoreUnavailable, BlobStore, ObjectNotFound
from .config import DEFAULT_MEDIA_TYPE, MEDIA_TYPES, GatewayConfig
from .keys import MalformedPath, normalize_sub_path, parse_request_path, resolve

logger = logging.getLogger(__name__)


MALFORMED_BODY: str = "Malformed site path"
NOT_FOUND_BODY: str = "Not found"
UNAVAILABLE_BODY: str = "Storage backend unavailable"


def guess_media_type(
    path: str,
    table: Sequence[Tuple[str, str]] = MEDIA_TYPES,
    default: str = DEFAULT_MEDIA_TYPE,
) -> str:
    """
    Infer the media type of a site path from its suffix.

    The whole path is lower-cased and checked against each suffix in order;
    the first match wins.

    Example: "img/LOGO.PNG" -> "image/png"
    """
    lower = path.lower()
    for suffix, media_type in table:
        if lower.endswith(suffix):
            return media_type
    return default


class SiteGateway:
    """
    Serves tenant site objects out of a blob store.

    Holds only its injected store and config, so one instance can serve any
    number of concurrent requests.
    """

    def __init__(self, store: BlobStore, config: Optional[GatewayConfig] = None):
        self.store = store
        self.config = config if config is not None else GatewayConfig()

    def media_type_for(self, sub_path: str) -> str:
        return guess_media_type(
            sub_path,
            self.config.media_types,
            self.config.default_media_type,
        )

    async def serve(self, raw_path: str) -> Response:
        """
        Build the response for a raw site path like '/u1/s1/img/logo.png'.

        Args:
            raw_path: Path with any outer routing prefix already stripped

        Returns:
            Starlette Response (200, 400, 404 or 503)
        """
        # =================================================================
        # STEP 1: Parse and resolve
        # =================================================================
        try:
            request_path = parse_request_path(raw_path)
            key = resolve(request_path.tenant_id, request_path.site_id, request_path.sub_path)
        except MalformedPath as e:
            logger.info(f"Rejected site path {raw_path!r}: {e}")
            return PlainTextResponse(MALFORMED_BODY, status_code=400)

        # =================================================================
        # STEP 2: Fetch from the blob store
        # =================================================================
        try:
            stored = await asyncio.wait_for(
                self.store.get(key),
                timeout=self.config.fetch_timeout_seconds,
            )
        except ObjectNotFound:
            logger.info(f"No object at {key}")
            return PlainTextResponse(NOT_FOUND_BODY, status_code=404)
        except asyncio.TimeoutError:
            logger.error(f"Blob store timed out after {self.config.fetch_timeout_seconds}s for {key}")
            return PlainTextResponse(UNAVAILABLE_BODY, status_code=503)
        except BackingStoreUnavailable as e:
            logger.error(f"Blob store unavailable for {key}: {e}")
            return PlainTextResponse(UNAVAILABLE_BODY, status_code=503)
        except Exception as e:
            logger.error(f"Unexpected blob store error for {key}: {e!r}")
            return PlainTextResponse(UNAVAILABLE_BODY, status_code=503)

        # =================================================================
        # STEP 3: Build the response
        # =================================================================
        media_type = self.media_type_for(normalize_sub_path(request_path.sub_path))
        logger.debug(f"Serving {key} ({len(stored.data)} bytes, {media_type})")

        return Response(
            content=stored.data,
            media_type=media_type,
            headers={"Cache-Control": self.config.cache_control},
        )
