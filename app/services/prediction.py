"""
Prediction service — validates an uploaded spiral drawing and forwards it to
the remote model server, which replies with a label and a confidence score.
"""

import logging
from io import BytesIO

import httpx
from PIL import Image, UnidentifiedImageError  # type: ignore

from app.config import DEFAULT_MODEL_VERSION, PREDICTION_API_URL
from app.exceptions import PredictionServiceError
from app.models.schemas import Prediction

logger = logging.getLogger(__name__)


def is_decodable_image(image_bytes: bytes) -> bool:
    """True if Pillow recognises the bytes as a complete image."""
    try:
        with Image.open(BytesIO(image_bytes)) as img:
            img.verify()
        return True
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError):
        return False


def parse_prediction(data: dict, default_model_version: str = DEFAULT_MODEL_VERSION) -> Prediction:
    """Map a model-server reply onto a Prediction.

    The result may sit at the top level or under ``prediction``; the model
    version may be reported as ``modelVersion``, ``model_version`` or ``model``.
    """
    if not isinstance(data, dict):
        raise PredictionServiceError("Model server returned unexpected result")
    body = data.get("prediction") if isinstance(data.get("prediction"), dict) else data

    version = (
        data.get("modelVersion")
        or body.get("modelVersion")
        or body.get("model_version")
        or body.get("model")
        or default_model_version
    )
    try:
        return Prediction(
            label=str(body["label"]),
            score=float(body["score"]),
            model_version=str(version),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise PredictionServiceError("Model server returned unexpected result") from exc


class PredictionClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        endpoint: str = PREDICTION_API_URL,
        default_model_version: str = DEFAULT_MODEL_VERSION,
    ):
        self._http = http
        self.endpoint = endpoint
        self.default_model_version = default_model_version

    async def predict(
        self,
        image_bytes: bytes,
        filename: str,
        content_type: str,
        subject_id: str,
    ) -> Prediction:
        if not self.endpoint:
            raise PredictionServiceError("Prediction endpoint not configured.", status_code=503)

        try:
            response = await self._http.post(
                self.endpoint,
                data={"subjectId": subject_id},
                files={"spiral": (filename, image_bytes, content_type)},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error("Model server returned %d for %s", exc.response.status_code, subject_id)
            raise PredictionServiceError(
                f"Model server error ({exc.response.status_code})."
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("Model server unreachable: %s", exc)
            raise PredictionServiceError("Model server unreachable.") from exc
        except ValueError as exc:
            raise PredictionServiceError("Model server returned unexpected result") from exc

        prediction = parse_prediction(data, self.default_model_version)
        logger.info(
            "Prediction for %s: %s (%.3f, %s)",
            subject_id, prediction.label, prediction.score, prediction.model_version,
        )
        return prediction
