# prediction.py: Pydantic 모델 정의(입출력 스키마)

from typing import List, Literal, Optional

from pydantic import BaseModel


class ClassConfidence(BaseModel):
    label: str
    confidence: float
    highlighted: bool = False


class Recommendation(BaseModel):
    title: str
    heading: Optional[str] = None
    paragraphs: List[str] = []
    items: List[str] = []


class PredictionResponse(BaseModel):
    results: List[ClassConfidence]
    top_label: str
    recommendation: Recommendation
    disclaimer: str


class DataUrlRequest(BaseModel):
    image: str


class PreviewResponse(BaseModel):
    data_url: str


class ModelStatus(BaseModel):
    state: Literal["loading", "loaded", "failed"]
    message: str
    labels: List[str] = []
