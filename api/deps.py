# deps.py: 라우터 공용 의존성

from fastapi import HTTPException, Request

from services.model_service import ModelService


def get_model_service(request: Request) -> ModelService:
    # main.create_app()에서 app.state에 1회 등록
    return request.app.state.model_service


def require_loaded(service: ModelService) -> ModelService:
    if not service.is_loaded:
        raise HTTPException(status_code=503, detail=service.message)
    return service
