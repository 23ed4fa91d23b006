"""HTTP interface of the design library: cached listing plus write endpoints."""

import json
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.responses import Response

from .cache_store import RedisCacheStore
from .collection_cache import CollectionCache
from .config import DEFAULT_PAGE_LIMIT, Settings
from .errors import UnknownCursorError, error_message
from .json_encoder import dumps
from .loggable import note
from .pagination import paginate
from .records import normalize_record, record_id
from .source import DesignSource, DynamoDBDesignSource

router = APIRouter(prefix="/api/design-library")


def _json(body, status_code: int = 200) -> Response:
    return Response(content=dumps(body), status_code=status_code, media_type="application/json")


def _flag(value: str | None) -> bool:
    return value == "true"


def _limit(value: str | None) -> int:
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return DEFAULT_PAGE_LIMIT
    return limit if limit > 0 else DEFAULT_PAGE_LIMIT


async def _body(request: Request) -> dict | None:
    try:
        data = await request.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


@router.get("/designs")
async def list_designs(request: Request,
                       limit: str | None = None,
                       last_key: str | None = Query(None, alias="lastKey"),
                       force_refresh: str | None = Query(None, alias="forceRefresh"),
                       force_start: str | None = Query(None, alias="forceStart")):
    cache: CollectionCache = request.app.state.cache
    page_limit = _limit(limit)
    cursor_id = None
    if last_key:
        try:
            cursor_id = record_id(json.loads(last_key))
        except ValueError:
            cursor_id = None
        if cursor_id is None:
            return _json({"error": "Invalid lastKey"}, 400)

    note(f"Designs request: limit={page_limit} forceRefresh={_flag(force_refresh)} "
         f"forceStart={_flag(force_start)} lastKey={'present' if cursor_id else 'none'}")
    try:
        if _flag(force_refresh):
            await cache.invalidate_all()
        if _flag(force_start):
            await cache.force_start()

        records = await cache.get_collection()
        if not records:
            if not await cache.has_complete():
                cache.refresh_in_background()
            return _json({"items": [], "lastEvaluatedKey": None, "total": 0})

        page = paginate(records, cursor_id, page_limit, strict=request.app.state.strict_cursors)
    except UnknownCursorError as e:
        return _json({"error": e.message}, 400)
    except Exception as e:
        note(f"Error occurred while fetching designs: {e!r}")
        return _json({"error": error_message(e)}, 500)

    note(f"Designs response: {len(page.items):,} of {page.total:,} records, has more: {page.has_more}")
    return _json({
        "items": page.items,
        "lastEvaluatedKey": page.items[-1] if page.has_more else None,
        "total": page.total,
    })


@router.get("/designs/status")
async def designs_status(request: Request):
    cache: CollectionCache = request.app.state.cache
    try:
        return _json(await cache.status())
    except Exception as e:
        note(f"Error reading cache status: {e!r}")
        return _json({"error": error_message(e)}, 500)


@router.post("/designs")
async def create_design(request: Request):
    data = await _body(request)
    if data is None:
        return _json({"error": "Invalid design payload"}, 400)
    record = normalize_record(data)
    if not record_id(record):
        return _json({"error": "Missing uid"}, 400)
    try:
        await request.app.state.source.put(record)
        await request.app.state.cache.invalidate_all()
    except Exception as e:
        note(f"Error creating design {record_id(record)!r}: {e!r}")
        return _json({"error": "Failed to create design", "details": str(e)}, 500)
    return _json({"message": "Design created successfully"})


@router.put("/designs")
async def update_design(request: Request):
    data = await _body(request)
    if data is None:
        return _json({"error": "Invalid design payload"}, 400)
    fields = normalize_record(data)
    uid = fields.pop("uid", None)
    if not uid:
        return _json({"error": "Missing uid"}, 400)
    if not fields:
        return _json({"error": "No fields to update"}, 400)
    try:
        attributes = await request.app.state.source.update(uid, fields)
        await request.app.state.cache.invalidate_all()
    except Exception as e:
        note(f"Error updating design {uid!r}: {e!r}")
        return _json({"error": "Failed to update design", "details": str(e)}, 500)
    return _json(attributes)


@router.delete("/designs")
async def delete_design(request: Request):
    data = await _body(request)
    uid = record_id(data) if data is not None else None
    if not uid:
        return _json({"error": "Missing uid"}, 400)
    try:
        await request.app.state.source.delete(uid)
        await request.app.state.cache.invalidate_all()
    except Exception as e:
        note(f"Error deleting design {uid!r}: {e!r}")
        return _json({"error": "Failed to delete design", "details": str(e)}, 500)
    return _json({"message": "Design deleted successfully"})


def create_app(cache: CollectionCache, source: DesignSource, strict_cursors: bool = False) -> FastAPI:
    """Application serving ``cache``; background jobs and the store are closed on shutdown."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await cache.jobs.shutdown()
        await cache.store.close()

    app = FastAPI(title="warmerator", lifespan=lifespan)
    app.state.cache = cache
    app.state.source = source
    app.state.strict_cursors = strict_cursors
    app.include_router(router)
    return app


def create_app_from_env(settings: Settings = None) -> FastAPI:
    """Redis + DynamoDB wiring, e.g. ``uvicorn --factory warmerator.api:create_app_from_env``."""
    settings = settings or Settings.from_env()
    if not settings.design_table:
        raise ValueError("DESIGN_TABLE is not configured")
    store = RedisCacheStore.from_url(settings.redis_url)
    source = DynamoDBDesignSource(settings.design_table, region_name=settings.aws_region)
    cache = CollectionCache.from_settings(settings, store, source)
    return create_app(cache, source, strict_cursors=settings.strict_cursors)
