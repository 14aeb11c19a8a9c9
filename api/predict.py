
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import HTMLResponse
from starlette.concurrency import run_in_threadpool

from schemas.prediction import DataUrlRequest, PredictionResponse, PreviewResponse
from services.feedback_service import build_response, render_alert_html, render_prediction_html
from services.model_service import ModelNotLoadedError, ModelService
from utils.image import InvalidImageError, decode_data_url, decode_image, read_image_as_data_url
from .deps import get_model_service

logger = logging.getLogger(__name__)

router = APIRouter()

NO_IMAGE_MESSAGE = "Please select an image first."


def _fail(status_code: int, level: str, message: str, render: Optional[str]):
    # render=html 이면 화면에 바로 넣을 alert 조각, 아니면 JSON 에러
    if render == "html":
        return HTMLResponse(render_alert_html(level, message), status_code=status_code)
    raise HTTPException(status_code=status_code, detail=message)


def _run(service: ModelService, data: bytes, render: Optional[str]):
    if not data:
        return _fail(400, "warning", NO_IMAGE_MESSAGE, render)
    try:
        image = decode_image(data)
    except InvalidImageError as e:
        return _fail(400, "danger", str(e), render)

    logger.info("Running inference on image %sx%s", *image.size)
    try:
        results = service.predict(image)
    except ModelNotLoadedError as e:
        return _fail(503, "danger", str(e), render)
    except Exception as e:
        logger.exception("Error during inference")
        return _fail(500, "danger", f"Error during inference: {e}", render)

    response = build_response(results)
    if render == "html":
        return HTMLResponse(render_prediction_html(response))
    return response


@router.post("/preview", response_model=PreviewResponse)
async def preview(file: Optional[UploadFile] = File(None)):
    """ 선택한 이미지를 미리보기용 data URL로 변환 """
    data = await file.read() if file is not None else b""
    if not data:
        raise HTTPException(status_code=400, detail=NO_IMAGE_MESSAGE)
    try:
        return PreviewResponse(data_url=read_image_as_data_url(data, file.content_type))
    except InvalidImageError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.post("/predict", response_model=PredictionResponse)
async def predict(
    file: Optional[UploadFile] = File(None),
    render: Optional[str] = Query(None, pattern="^(json|html)$"),
    service: ModelService = Depends(get_model_service),
):
    data = await file.read() if file is not None else b""
    return await run_in_threadpool(_run, service, data, render)


@router.post("/predict/data-url", response_model=PredictionResponse)
def predict_data_url(
    body: DataUrlRequest,
    render: Optional[str] = Query(None, pattern="^(json|html)$"),
    service: ModelService = Depends(get_model_service),
):
    """ 미리보기 이미지(data URL)로 추론 """
    if not body.image:
        return _fail(400, "warning", NO_IMAGE_MESSAGE, render)
    try:
        data = decode_data_url(body.image)
    except InvalidImageError as e:
        return _fail(400, "danger", str(e), render)
    return _run(service, data, render)
