"""
/api/predictions — past predictions, newest first, as a bare JSON array.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool

from app.config import PREDICTION_HISTORY_LIMIT
from app.dependencies import get_prediction_store
from app.models.schemas import PredictionItem
from app.services.history_store import BoundedHistoryStore, recent_safely

router = APIRouter(prefix="/api", tags=["history"])


@router.get("/predictions", response_model=list[PredictionItem])
async def predictions(
    limit: int = Query(default=PREDICTION_HISTORY_LIMIT, ge=1, le=PREDICTION_HISTORY_LIMIT),
    store: BoundedHistoryStore = Depends(get_prediction_store),
):
    records = await run_in_threadpool(recent_safely, store, limit)
    return [PredictionItem.from_record(r) for r in records]
