
from typing import List

from fastapi import APIRouter, Depends

from schemas.prediction import ModelStatus
from services.model_service import ModelService
from .deps import get_model_service, require_loaded

router = APIRouter()


@router.get("/status", response_model=ModelStatus)
def model_status(service: ModelService = Depends(get_model_service)):
    return service.status


@router.get("/labels", response_model=List[str])
def model_labels(service: ModelService = Depends(get_model_service)):
    """ 로드된 모델의 라벨 목록 (모델 출력 순서) """
    return require_loaded(service).labels
