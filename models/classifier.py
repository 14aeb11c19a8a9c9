# classifier.py: 모델 아키텍처 정의 (model.json의 architecture 이름으로 생성)
import torch
import torch.nn as nn
from torchvision.models import efficientnet_v2_s, mobilenet_v3_small, resnet34

# --- 모델 정의 ---
# 이 클래스 정의는 학습 시 사용된 것과 정확히 일치해야 합니다.
# 사전 학습 가중치는 내려받지 않고 구조만 만든 뒤 저장된 state_dict를 로드합니다.


class EfficientNetV2S(nn.Module):
    """
    EfficientNetV2-S + 3단 분류기
    """
    def __init__(self, num_classes: int):
        super().__init__()
        self.model = efficientnet_v2_s(weights=None)

        # 마지막 분류 레이어의 입력 피쳐(in_features)
        in_features = self.model.classifier[1].in_features

        self.model.classifier = nn.Sequential(
            nn.Linear(in_features, in_features // 2),
            nn.ReLU(),
            nn.Dropout(p=0.2),
            nn.Linear(in_features // 2, in_features // 4),
            nn.ReLU(),
            nn.Dropout(p=0.2),
            nn.Linear(in_features // 4, num_classes),
        )

    def forward(self, x):
        return self.model(x)


class ResNet34(nn.Module):
    """
    ResNet-34 + 2단 분류기(fc 교체)
    """
    def __init__(self, num_classes: int):
        super().__init__()
        self.model = resnet34(weights=None)
        in_features = self.model.fc.in_features
        self.model.fc = nn.Sequential(
            nn.Linear(in_features, in_features // 2),
            nn.ReLU(),
            nn.Dropout(p=0.2),
            nn.Linear(in_features // 2, num_classes),
        )

    def forward(self, x):
        return self.model(x)


class MobileNetV3Small(nn.Module):
    """
    MobileNetV3-Small, 기본 분류기의 출력 수만 변경
    """
    def __init__(self, num_classes: int):
        super().__init__()
        self.model = mobilenet_v3_small(weights=None, num_classes=num_classes)

    def forward(self, x):
        return self.model(x)


ARCHITECTURES = {
    "efficientnet_v2_s": EfficientNetV2S,
    "resnet34": ResNet34,
    "mobilenet_v3_small": MobileNetV3Small,
}


def build_classifier(architecture: str, num_classes: int) -> nn.Module:
    if architecture not in ARCHITECTURES:
        raise ValueError(
            "Unexpected architecture ( {} ), expect is [ {} ]".format(
                architecture, ", ".join(ARCHITECTURES.keys()))
        )
    if num_classes < 1:
        raise ValueError(f"num_classes must be positive, got {num_classes}")
    return ARCHITECTURES[architecture](num_classes=num_classes)


def remap_state_dict(state_dict: dict) -> dict:
    """
    저장된 state_dict의 키를 현재 래퍼 구조(self.model.*)에 맞게 수정합니다.
    - features.* / classifier.* / fc.* 등 백본 단독 저장 -> model.*
    - backbone.* -> model.*
    - module.* (DataParallel) 접두어 제거
    """
    new_state_dict = {}
    for k, v in state_dict.items():
        if k.startswith("module."):
            k = k[len("module."):]
        if k.startswith("backbone."):
            k = "model." + k[len("backbone."):]
        elif not k.startswith("model."):
            k = "model." + k
        new_state_dict[k] = v
    return new_state_dict


def load_weights(model: nn.Module, state_dict: dict) -> nn.Module:
    try:
        # 키가 조정된 state_dict를 모델에 로드합니다.
        model.load_state_dict(remap_state_dict(state_dict), strict=True)
    except RuntimeError as e:
        raise RuntimeError(f"Failed to load model state_dict: {e}") from e
    return model


def count_parameters(model: torch.nn.Module) -> int:
    return sum(p.numel() for p in model.parameters())
