"""
/api/upload-and-predict — classify an uploaded spiral drawing via the model
server and log the result to the prediction history.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool

from app.config import ALLOWED_IMAGE_TYPES, MAX_UPLOAD_MB
from app.dependencies import get_prediction_client, get_prediction_store
from app.exceptions import PredictionServiceError, ValidationError
from app.models.schemas import PredictionItem, PredictionResponse
from app.services.history_store import BoundedHistoryStore, Logged, record_safely
from app.services.prediction import PredictionClient, is_decodable_image

router = APIRouter(prefix="/api", tags=["prediction"])


@router.post("/upload-and-predict", response_model=PredictionResponse)
async def upload_and_predict(
    subject_id: str = Form(..., alias="subjectId"),
    spiral: UploadFile = File(...),
    client: PredictionClient = Depends(get_prediction_client),
    store: BoundedHistoryStore = Depends(get_prediction_store),
):
    subject_id = subject_id.strip()
    if not subject_id:
        raise HTTPException(status_code=422, detail="subjectId must not be empty.")

    if spiral.content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {spiral.content_type}. Upload an image.",
        )

    image_bytes = await spiral.read()

    if len(image_bytes) > MAX_UPLOAD_MB * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"Image too large. Maximum allowed size is {MAX_UPLOAD_MB} MB.",
        )
    if not is_decodable_image(image_bytes):
        raise HTTPException(status_code=400, detail="Uploaded file is not a readable image.")

    try:
        prediction = await client.predict(
            image_bytes=image_bytes,
            filename=spiral.filename or "spiral.png",
            content_type=spiral.content_type,
            subject_id=subject_id,
        )
    except PredictionServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)

    # Persist to history (best effort; ignore storage errors)
    try:
        write = await run_in_threadpool(
            record_safely,
            store,
            subject_id,
            prediction.model_dump(),
        )
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    outcome = Logged(result=prediction, history=write)

    if outcome.history.recorded:
        item = PredictionItem.from_record(outcome.history.record)
    else:
        item = PredictionItem(
            subject_id=subject_id,
            created_at=datetime.now(timezone.utc),
            **outcome.result.model_dump(),
        )

    return PredictionResponse(
        prediction=item,
        model_version=outcome.result.model_version,
        history_recorded=outcome.history.recorded,
    )
