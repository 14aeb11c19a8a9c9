import io
import json

import pytest
import torch
import torch.nn as nn
from PIL import Image

from models.classifier import build_classifier
from services.model_service import ModelService

LABELS = ["T1", "T2", "Not Pediatric Medulloblastoma but still bad", "No Tumor"]


class FixedLogits(nn.Module):
    """입력과 상관없이 고정된 logits를 반환하는 테스트용 모델"""

    def __init__(self, logits):
        super().__init__()
        self.register_buffer("logits", torch.tensor([logits], dtype=torch.float32))

    def forward(self, x):
        return self.logits.expand(x.shape[0], -1)


def write_model_dir(path, labels=LABELS, architecture="mobilenet_v3_small", metadata=None, num_classes=None):
    path.mkdir(parents=True, exist_ok=True)
    torch.manual_seed(0)
    model = build_classifier(architecture, num_classes or len(labels))
    torch.save(model.state_dict(), path / "weights.pth")
    (path / "model.json").write_text(json.dumps({
        "format": "torch-state-dict",
        "architecture": architecture,
        "num_classes": num_classes or len(labels),
        "input_size": 224,
        "weights": "weights.pth",
    }))
    (path / "metadata.json").write_text(json.dumps(metadata if metadata is not None else {"labels": labels}))
    return path


def image_bytes(size=(64, 48), color=(120, 30, 200, 255), fmt="PNG"):
    image = Image.new("RGBA" if fmt == "PNG" else "RGB", size, color if fmt == "PNG" else color[:3])
    buf = io.BytesIO()
    image.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def model_dir(tmp_path):
    return write_model_dir(tmp_path / "model")


@pytest.fixture
def service(model_dir):
    svc = ModelService(str(model_dir), device="cpu")
    assert svc.load(), svc.message
    return svc


@pytest.fixture
def png_bytes():
    return image_bytes()
