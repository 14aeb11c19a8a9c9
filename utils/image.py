# image.py: 업로드 이미지 디코딩 / data URL 변환 / 모델 입력 텐서 생성

import base64
import binascii
import io
import re
from typing import Optional

import torch
from PIL import Image, UnidentifiedImageError
from torchvision import transforms
from torchvision.transforms import InterpolationMode

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^;,]+)*?);base64,(?P<data>.*)$", re.S)


class InvalidImageError(ValueError):
    """이미지로 해석할 수 없는 입력."""


def decode_image(data: bytes) -> Image.Image:
    """바이트를 RGB PIL 이미지로 디코딩 (알파 채널은 버림)."""
    if not data:
        raise InvalidImageError("Empty image data")
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise InvalidImageError(f"Invalid image file: {e}") from e
    return image.convert("RGB")


def guess_mime_type(data: bytes) -> str:
    try:
        with Image.open(io.BytesIO(data)) as image:
            mime = Image.MIME.get(image.format)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise InvalidImageError(f"Invalid image file: {e}") from e
    return mime or "application/octet-stream"


def read_image_as_data_url(data: bytes, content_type: Optional[str] = None) -> str:
    """
    미리보기용 data URL 생성.
    - content_type이 image/* 가 아니면 PIL로 포맷을 추정
    """
    if not data:
        raise InvalidImageError("Empty image data")
    mime = content_type if content_type and content_type.startswith("image/") else guess_mime_type(data)
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def decode_data_url(data_url: str) -> bytes:
    match = _DATA_URL_RE.match(data_url.strip()) if data_url else None
    if match is None:
        raise InvalidImageError("Malformed data URL")
    try:
        return base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError(f"Malformed data URL: {e}") from e


def build_preprocess(input_size: int) -> transforms.Compose:
    """
    추론용 전처리
    - nearest-neighbor 리사이즈 (input_size x input_size)
    - ToTensor: float 변환 + 255로 나눠서 [0, 1] 정규화, (C, H, W)
    """
    return transforms.Compose([
        transforms.Resize((input_size, input_size), interpolation=InterpolationMode.NEAREST),
        transforms.ToTensor(),
    ])


def to_input_tensor(image_pil: Image.Image, preprocess: transforms.Compose) -> torch.Tensor:
    # 배치 차원 추가: (1, C, H, W)
    return preprocess(image_pil.convert("RGB")).unsqueeze(0)
