# model_service.py: 모델 로드 및 추론 로직
#
# services/model_service.py

import json
import logging
import os
from typing import Dict, List, Optional

import torch
import torch.nn.functional as F
from PIL import Image

import config
from models.classifier import build_classifier, count_parameters, load_weights
from schemas.prediction import ClassConfidence, ModelStatus
from utils.image import build_preprocess, to_input_tensor

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = {"torch-state-dict"}


class ModelLoadError(RuntimeError):
    """model.json / 가중치 / metadata.json 로드 실패"""


class ModelNotLoadedError(RuntimeError):
    """로드가 끝나지 않았거나 실패한 상태에서 추론 요청"""


def _read_json(path: str) -> Dict:
    if not os.path.exists(path):
        raise ModelLoadError(f"File not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise ModelLoadError(f"Invalid JSON in {path}: {e}") from e


class ModelService:
    def __init__(self, model_dir: str = config.MODEL_DIR, device: str = config.DEVICE):
        self.model_dir = model_dir
        self.device = torch.device(device)

        self.model: Optional[torch.nn.Module] = None
        self.descriptor: Dict = {}
        self.labels: List[str] = []
        self.input_size = config.DEFAULT_INPUT_SIZE
        self.preprocess = build_preprocess(self.input_size)

        self.state = "loading"
        self.message = "Loading model..."

    @property
    def is_loaded(self) -> bool:
        return self.state == "loaded" and self.model is not None

    @property
    def status(self) -> ModelStatus:
        return ModelStatus(state=self.state, message=self.message, labels=list(self.labels))

    def load(self) -> bool:
        """
        model.json -> 가중치 -> metadata.json 순서로 로드.
        실패해도 예외를 올리지 않고 상태(failed)와 메시지로 남긴다.
        """
        descriptor_path = os.path.join(self.model_dir, config.MODEL_DESCRIPTOR_FILE)
        logger.info("Starting model load from %s", descriptor_path)
        self.state, self.message = "loading", "Loading model..."
        try:
            descriptor = self._load_descriptor(descriptor_path)
            model = self._load_model(descriptor)
            labels = self._load_labels(os.path.join(self.model_dir, config.METADATA_FILE))
        except Exception as e:
            logger.exception("Error loading model")
            self.model = None
            self.state = "failed"
            self.message = f"Failed to load model: {e}"
            return False

        self.descriptor = descriptor
        self.model = model
        self.labels = labels
        self.input_size = int(descriptor.get("input_size", config.DEFAULT_INPUT_SIZE))
        self.preprocess = build_preprocess(self.input_size)

        summary = json.dumps({**descriptor, "parameters": count_parameters(model)})
        if len(summary) > config.DESCRIPTOR_LOG_LIMIT:
            summary = summary[:config.DESCRIPTOR_LOG_LIMIT] + "…[TRUNCATED]"
        logger.info("Loaded labels: %s", labels)
        logger.info("Model loaded successfully: %s", summary)

        self.state = "loaded"
        self.message = "Model loaded successfully!"
        return True

    def _load_descriptor(self, path: str) -> Dict:
        descriptor = _read_json(path)
        fmt = descriptor.get("format", "torch-state-dict")
        if fmt not in SUPPORTED_FORMATS:
            raise ModelLoadError(f"Unsupported model format: {fmt}")
        for key in ("architecture", "num_classes", "weights"):
            if key not in descriptor:
                raise ModelLoadError(f"Missing '{key}' in {path}")
        return descriptor

    def _load_model(self, descriptor: Dict) -> torch.nn.Module:
        model = build_classifier(descriptor["architecture"], int(descriptor["num_classes"]))

        weight_files = descriptor["weights"]
        if isinstance(weight_files, str):
            weight_files = [weight_files]

        # 가중치가 여러 파일로 나뉘어 있으면 순서대로 합친다
        state_dict = {}
        for name in weight_files:
            path = os.path.join(self.model_dir, name)
            if not os.path.exists(path):
                raise ModelLoadError(f"Weight file not found: {path}")
            state_dict.update(torch.load(path, map_location=self.device, weights_only=True))

        try:
            load_weights(model, state_dict)
        except RuntimeError as e:
            raise ModelLoadError(str(e)) from e

        model.to(self.device)
        model.eval()
        return model

    def _load_labels(self, path: str) -> List[str]:
        metadata = _read_json(path)
        labels = metadata.get("labels")
        if labels is None:
            # 빈 리스트는 그대로 둔다 (출력 이름은 label_for에서 "Class N")
            labels = list(config.DEFAULT_LABELS)
        return [str(label) for label in labels]

    def label_for(self, idx: int) -> str:
        if idx < len(self.labels):
            return self.labels[idx]
        return f"Class {idx + 1}"

    def predict(self, image_pil: Image.Image) -> List[ClassConfidence]:
        """
        이미지 한 장의 클래스별 confidence를 높은 순으로 정렬해서 반환.
        """
        if not self.is_loaded:
            raise ModelNotLoadedError(self.message)

        # 이미지 전처리 및 모델 예측 (텐서는 요청이 끝나면 해제)
        x = to_input_tensor(image_pil, self.preprocess).to(self.device)
        with torch.no_grad():
            outputs = self.model(x)
            probs = F.softmax(outputs, dim=1)[0].cpu().tolist()
        del x, outputs

        logger.info("Inference result: %s", probs)

        results = [
            ClassConfidence(
                label=self.label_for(i),
                confidence=float(p),
                highlighted=float(p) > config.HIGHLIGHT_THRESHOLD,
            )
            for i, p in enumerate(probs)
        ]
        # confidence 내림차순 (동점이면 모델 출력 순서 유지)
        results.sort(key=lambda r: r.confidence, reverse=True)
        return results
