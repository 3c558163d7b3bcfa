from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, List
from fastapi import APIRouter, Request

logger = logging.getLogger("growth.api.health")
router = APIRouter()


@router.get("/ping")
def ping():
    logger.info("GET /health/ping")
    return {"ok": True}


@router.get("/chat")
def chat_health(request: Request):
    """Live chat connections held by this process."""
    s = request.app.state.chat_registry.stats()
    logger.info("GET /health/chat connections=%d users=%d", s["connections"], s["users"])
    return {"ok": True, **s}


def iter_routes(routes: Iterable[Any], prefix: str = "") -> Iterator[Dict[str, Any]]:
    """
    Flatten a route table. Newer FastAPI keeps included routers as lazy
    entries (``original_router`` + ``include_context``) with no path of their
    own; older releases copy every route into the app with its full path.
    """
    for r in routes:
        included = getattr(r, "original_router", None)
        if included is not None:
            ctx = getattr(r, "include_context", None)
            yield from iter_routes(included.routes, prefix + (getattr(ctx, "prefix", "") or ""))
            continue
        path = getattr(r, "path", None)
        if path:
            yield {
                "path": prefix + path,
                "methods": sorted(getattr(r, "methods", None) or []),
                "name": getattr(r, "name", None),
            }


@router.get("/routes")
def list_routes(request: Request):
    """
    Introspect all registered routes to verify there are no collisions.
    """
    out: List[Dict[str, Any]] = list(iter_routes(request.app.routes))
    out.sort(key=lambda x: (x["path"], ",".join(x["methods"])))
    logger.info("GET /health/routes count=%d", len(out))
    return {"ok": True, "routes": out}
