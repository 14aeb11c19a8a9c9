import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool

import config
from api import api_router, portal_router
from services.model_service import ModelService

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(model_service: Optional[ModelService] = None) -> FastAPI:
    service = model_service or ModelService(config.MODEL_DIR)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # 서버 시작 시 1회 로드 (이미 로드된 서비스를 넘기면 건너뜀)
        if service.state == "loading":
            await run_in_threadpool(service.load)
        yield

    app = FastAPI(title="AI Web Portal", version="1.0.0", lifespan=lifespan)
    app.state.model_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 라우터 등록
    app.include_router(portal_router)
    app.include_router(api_router, prefix="/api")
    return app


logger.info("start api......")
app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
