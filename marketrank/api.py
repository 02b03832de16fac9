from __future__ import annotations

"""
FastAPI application for marketplace search and recommendations.

- Catalog and history store live on ``app.state`` (no module globals)
- /search and /suggest are pure reads over the in-memory catalog
- /views is the only write: it updates one client's view history
"""

from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from pydantic import BaseModel, Field

from . import config
from .catalog_build import Catalog, load_catalog_snapshot
from .config import (
    FilterOptions,
    HealthResponse,
    ItemListResponse,
    SearchResponse,
    SearchSuggestions,
)
from .history import InMemoryStore, JsonFileStore, KeyValueStore, ViewHistory
from .recommend import get_recommendations, get_similar_products, track_product_view
from .search import run_search
from .suggestions import get_search_suggestions


# -----------------------
# Request / response bodies
# -----------------------

class SearchRequest(BaseModel):
    query: str = ""
    filters: FilterOptions = Field(default_factory=FilterOptions)


class ViewRequest(BaseModel):
    client_id: str = Field(..., min_length=1)
    item_id: str = Field(..., min_length=1)


class HistoryResponse(BaseModel):
    history: List[str]


# -----------------------
# Helpers
# -----------------------

def _default_store() -> KeyValueStore:
    if config.HISTORY_STORE_PATH is not None:
        logger.info("Using JSON file history store at {}", config.HISTORY_STORE_PATH)
        return JsonFileStore(config.HISTORY_STORE_PATH)
    return InMemoryStore()


def _load_catalog(path: Path) -> Catalog:
    try:
        return load_catalog_snapshot(path)
    except FileNotFoundError:
        logger.warning("Catalog snapshot {} not found; serving an empty catalog", path)
    except ValueError as e:
        logger.error("Catalog snapshot {} is malformed; serving an empty catalog: {}", path, e)
    return Catalog()


def _client_history(request: Request, client_id: str) -> ViewHistory:
    return ViewHistory(request.app.state.store, key=f"{config.HISTORY_KEY}:{client_id}")


def _catalog(request: Request) -> Catalog:
    return request.app.state.catalog


# -----------------------
# FastAPI app
# -----------------------

def create_app(
    catalog: Optional[Catalog] = None,
    store: Optional[KeyValueStore] = None,
    catalog_path: Path = config.CATALOG_SNAPSHOT_PATH,
) -> FastAPI:
    """
    Build the API.  A catalog passed in is used as-is; otherwise the
    snapshot at ``catalog_path`` is loaded on startup.
    """
    app = FastAPI(title="marketrank")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.catalog = catalog if catalog is not None else Catalog()
    app.state.store = store if store is not None else _default_store()

    @app.on_event("startup")
    def startup_event() -> None:
        if catalog is not None:
            return
        logger.info("Loading catalog for API startup...")
        app.state.catalog = _load_catalog(catalog_path)
        logger.info("Startup complete with {} items.", len(app.state.catalog.items))

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="healthy")

    @app.post("/search", response_model=SearchResponse)
    def search(req: SearchRequest, request: Request) -> SearchResponse:
        return run_search(_catalog(request), req.query, req.filters)

    @app.get("/suggest", response_model=SearchSuggestions)
    def suggest(request: Request, q: str = Query(..., min_length=1)) -> SearchSuggestions:
        if not q.strip():
            raise HTTPException(status_code=422, detail="Query must be non-empty")
        catalog = _catalog(request)
        return get_search_suggestions(q, catalog.items, catalog.vendors, catalog.categories)

    @app.get("/recommendations", response_model=ItemListResponse)
    def recommendations(request: Request, client_id: str = Query(..., min_length=1)) -> ItemListResponse:
        items = get_recommendations(_catalog(request).items, _client_history(request, client_id))
        return ItemListResponse(items=items)

    @app.post("/views", response_model=HistoryResponse)
    def views(req: ViewRequest, request: Request) -> HistoryResponse:
        if _catalog(request).item_by_id(req.item_id) is None:
            raise HTTPException(status_code=404, detail=f"Unknown item {req.item_id}")
        history = track_product_view(_client_history(request, req.client_id), req.item_id)
        return HistoryResponse(history=history)

    @app.get("/items/{item_id}/similar", response_model=ItemListResponse)
    def similar(item_id: str, request: Request) -> ItemListResponse:
        catalog = _catalog(request)
        item = catalog.item_by_id(item_id)
        if item is None:
            raise HTTPException(status_code=404, detail=f"Unknown item {item_id}")
        return ItemListResponse(items=get_similar_products(item, catalog.items))

    return app


app = create_app()
