# config.py: 포털 설정값 (환경변수로 덮어쓰기 가능)

import os

import torch

# 모델 디렉터리: model.json(디스크립터) + 가중치 파일 + metadata.json(라벨)
MODEL_DIR = os.getenv("PORTAL_MODEL_DIR", "model")
MODEL_DESCRIPTOR_FILE = "model.json"
METADATA_FILE = "metadata.json"

# metadata.json에 라벨이 없을 때 사용하는 기본 라벨
DEFAULT_LABELS = ["Class 1", "Class 2", "Class 3", "Class 4"]

# 모델 입력 크기 (디스크립터에 input_size가 없을 때)
DEFAULT_INPUT_SIZE = 224

# GPU 사용 가능 여부 확인
DEVICE = os.getenv("PORTAL_DEVICE", "cuda" if torch.cuda.is_available() else "cpu")

# 이 값보다 큰 confidence는 결과 목록에서 강조(bg-success) 표시
HIGHLIGHT_THRESHOLD = float(os.getenv("PORTAL_HIGHLIGHT_THRESHOLD", "0.5"))

# 로그 디스크립터 요약 최대 길이
DESCRIPTOR_LOG_LIMIT = 1000

LOG_LEVEL = os.getenv("PORTAL_LOG_LEVEL", "INFO")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "PORTAL_CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
    ).split(",")
    if origin.strip()
]
