"""REST API endpoints for ExtraTheme.

This module contains the HTTP endpoints. Business logic is delegated to
ThemeClient; sessions come from the SessionStore on ``app.state``.

Endpoints:
- GET  /api/health                    - Health check
- GET  /api/themes/list               - Themes of the shop
- GET  /api/themes/{theme_id}/assets  - Asset catalog of one theme
- POST /api/themes/compare            - Content differences between two themes
- POST /api/themes/diff               - One asset side by side
- POST /api/themes/merge              - Copy chosen assets from source to target

Every themes endpoint takes the shop domain as the ``shop`` query parameter.
"""

from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from extratheme.client import ThemeClient
from extratheme.config import get_settings
from extratheme.exceptions import (
    AuthError,
    InvalidShopError,
    OperationTimeoutError,
    TransportError,
)
from extratheme.session import Session, SessionStore, require_session, sanitize_shop

router = APIRouter()


# =============================================================================
# Request Models
# =============================================================================


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CompareRequest(_CamelModel):
    source_theme_id: int | str = Field(alias="sourceThemeId")
    target_theme_id: int | str = Field(alias="targetThemeId")


class DiffRequest(CompareRequest):
    file_key: str = Field(alias="fileKey", min_length=1)


class MergeRequest(CompareRequest):
    files_to_merge: list[str] = Field(alias="filesToMerge")


# =============================================================================
# Dependencies
# =============================================================================


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store  # type: ignore[no-any-return]


async def get_session(
    shop: str | None = Query(default=None),
    store: SessionStore = Depends(get_session_store),
) -> Session:
    """Resolve and validate the session for the ``shop`` query parameter."""
    if not shop:
        raise HTTPException(status_code=400, detail="Missing shop parameter")
    try:
        shop = sanitize_shop(shop)
    except InvalidShopError as e:
        raise HTTPException(status_code=400, detail="Invalid shop domain") from e

    try:
        return require_session(await store.get(shop))
    except AuthError as e:
        logger.warning("Session rejected", extra={"shop": shop, "reason": str(e)})
        raise HTTPException(
            status_code=401, detail="Not authenticated or session expired"
        ) from e


async def get_theme_client(
    request: Request,
    session: Session = Depends(get_session),
) -> AsyncIterator[ThemeClient]:
    client: ThemeClient = request.app.state.client_factory(session)
    try:
        yield client
    finally:
        await client.close()


def _operation_failed(action: str, e: Exception) -> HTTPException:
    if isinstance(e, OperationTimeoutError):
        logger.error("Operation timed out", extra={"action": action, "error": str(e)})
        return HTTPException(status_code=504, detail=f"{action}: {e}")
    logger.error("Operation failed", extra={"action": action, "error": str(e)})
    return HTTPException(status_code=502, detail=f"{action}: {e}")


# =============================================================================
# Health Endpoints
# =============================================================================


@router.get("/health")
async def health_check() -> dict:
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "extratheme"}


# =============================================================================
# Theme Endpoints
# =============================================================================


@router.get("/themes/list")
async def list_themes(client: ThemeClient = Depends(get_theme_client)) -> dict:
    """List all themes of the shop, the live theme included."""
    try:
        themes = await client.list_themes()
    except TransportError as e:
        raise _operation_failed("Failed to fetch themes", e) from e
    logger.info("Fetched themes", extra={"count": len(themes)})
    return {"themes": [t.to_dict() for t in themes]}


@router.get("/themes/{theme_id}/assets")
async def list_assets(theme_id: str, client: ThemeClient = Depends(get_theme_client)) -> dict:
    """List the asset catalog of one theme."""
    try:
        assets = await client.list_assets(theme_id)
    except TransportError as e:
        raise _operation_failed("Failed to fetch theme assets", e) from e
    return {"assets": [a.to_dict() for a in assets]}


@router.post("/themes/compare")
async def compare_themes(
    body: CompareRequest,
    client: ThemeClient = Depends(get_theme_client),
) -> dict:
    """Compare the content assets of two themes."""
    try:
        differences = await client.compare(
            body.source_theme_id,
            body.target_theme_id,
            timeout=get_settings().operation_timeout,
        )
    except (TransportError, OperationTimeoutError) as e:
        raise _operation_failed("Failed to compare themes", e) from e
    return differences.to_dict()


@router.post("/themes/diff")
async def diff_file(
    body: DiffRequest,
    client: ThemeClient = Depends(get_theme_client),
) -> dict:
    """Return one asset from both themes, JSON pretty-printed."""
    try:
        file_diff = await client.diff(
            body.source_theme_id,
            body.target_theme_id,
            body.file_key,
            timeout=get_settings().operation_timeout,
        )
    except (TransportError, OperationTimeoutError) as e:
        raise _operation_failed("Failed to fetch file diff", e) from e
    return file_diff.to_dict()


@router.post("/themes/merge")
async def merge_themes(
    body: MergeRequest,
    client: ThemeClient = Depends(get_theme_client),
) -> dict:
    """Copy the chosen assets from the source theme into the target theme."""
    try:
        ledger = await client.merge(
            body.source_theme_id,
            body.target_theme_id,
            body.files_to_merge,
            timeout=get_settings().operation_timeout,
        )
    except OperationTimeoutError as e:
        raise _operation_failed("Failed to merge themes", e) from e
    return ledger.to_dict()
