from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse

from .dictionary import LoadError, ReadingDictionary, SourceNotFoundError, load_dictionary
from .indexer import enrich_records
from .matcher import MatchResult, SearchIndex
from .records import CardRecord, load_records

__all__ = ["WebConfig", "create_app"]

DEFAULT_RESULT_LIMIT = 200
MAX_RESULT_LIMIT = 2000


@dataclass
class WebConfig:
    cards_path: Path
    # When set, readings are recomputed in memory on every (re)load.
    dictionary_path: Path | None = None
    result_limit: int = DEFAULT_RESULT_LIMIT


@dataclass
class _Catalog:
    records: list[CardRecord]
    index: SearchIndex
    dictionary: ReadingDictionary | None


def _load_catalog(config: WebConfig) -> _Catalog:
    records = load_records(config.cards_path)
    dictionary = None
    if config.dictionary_path is not None:
        dictionary = load_dictionary(config.dictionary_path)
        enrich_records(records, dictionary)
    return _Catalog(records=records, index=SearchIndex(records), dictionary=dictionary)


def _card_payload(record: CardRecord, result: MatchResult) -> dict[str, object]:
    return {
        "id": record.id,
        "name": record.name,
        "kana": record.reading,
        "match": {"raw": result.raw, "loose": result.loose, "reading": result.reading},
    }


def create_app(config: WebConfig) -> FastAPI:
    cards_path = config.cards_path.expanduser().resolve()
    if not cards_path.exists():
        raise SourceNotFoundError(f"Card data file not found: {cards_path}")
    config.cards_path = cards_path

    app = FastAPI(title="cardyomi search")
    app.state.config = config
    app.state.catalog = _load_catalog(config)
    catalog_lock = threading.Lock()

    def _catalog() -> _Catalog:
        with catalog_lock:
            return app.state.catalog

    @app.get("/api/health")
    def api_health() -> JSONResponse:
        catalog = _catalog()
        payload: dict[str, object] = {
            "status": "ok",
            "cards": len(catalog.records),
            "with_reading": sum(1 for record in catalog.records if record.reading),
        }
        if catalog.dictionary is not None:
            payload["dictionary_entries"] = len(catalog.dictionary)
        return JSONResponse(payload)

    @app.get("/api/search")
    def api_search(
        q: str = Query("", description="Partial, phonetic or script-variant query."),
        limit: int | None = Query(None, ge=1, le=MAX_RESULT_LIMIT),
    ) -> JSONResponse:
        catalog = _catalog()
        hits = catalog.index.search_with_results(q)
        max_results = limit or config.result_limit
        return JSONResponse(
            {
                "query": q,
                "count": len(hits),
                "results": [_card_payload(record, result) for record, result in hits[:max_results]],
            }
        )

    @app.post("/api/reload")
    def api_reload() -> JSONResponse:
        try:
            catalog = _load_catalog(config)
        except LoadError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        with catalog_lock:
            app.state.catalog = catalog
        return JSONResponse({"reloaded": True, "cards": len(catalog.records)})

    return app
