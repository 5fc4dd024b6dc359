from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import TypeAdapter, ValidationError
from starlette.concurrency import run_in_threadpool

from kvstore.core.store import KeyValueStore

router = APIRouter()

logger = logging.getLogger("kvstore")

_payload_adapter = TypeAdapter(Optional[Dict[str, str]])


def get_store(request: Request) -> KeyValueStore:
    return request.app.state.store


@router.post("/data", status_code=201)
async def put_data(request: Request, store: KeyValueStore = Depends(get_store)):
    # The body is JSON whatever the client labels it; null stores nothing.
    body = await request.body()
    try:
        payload = _payload_adapter.validate_json(body) or {}
    except ValidationError:
        store.increment_error()
        logger.info("event=request_rejected reason=invalid_json path=%s", request.url.path)
        raise HTTPException(status_code=400, detail="Invalid JSON")

    await run_in_threadpool(store.put_many, payload)
    logger.debug("event=data_stored keys=%s", len(payload))
    return {"status": "success"}


@router.get("/data")
def get_data(store: KeyValueStore = Depends(get_store)):
    return store.get_all()


@router.delete("/data/{key:path}")
def delete_data(key: str, store: KeyValueStore = Depends(get_store)):
    # "/data/" and "/data/a/b" both land here; neither names a single key.
    if not key or "/" in key:
        store.increment_error()
        logger.info("event=request_rejected reason=key_not_specified key=%r", key)
        raise HTTPException(status_code=400, detail="Key not specified")

    if not store.delete_one(key):
        store.increment_error()
        logger.info("event=request_rejected reason=key_not_found key=%s", key)
        raise HTTPException(status_code=404, detail="Key not found")

    logger.info("event=data_deleted key=%s", key)
    return {"status": "deleted"}


@router.get("/stats")
def stats(store: KeyValueStore = Depends(get_store)):
    return store.stats().as_dict()
