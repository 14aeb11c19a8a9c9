# feedback_service.py: 최상위 분류 결과 -> 치료 권고 문구 / 결과 HTML 렌더링

import html
from typing import List

from schemas.prediction import ClassConfidence, PredictionResponse, Recommendation

TITLE = "Treatment Recommendations"
DISCLAIMER = "This is a demo application and not a substitute for professional medical advice."

NOT_MEDULLOBLASTOMA = "Not Pediatric Medulloblastoma but still bad"

# 라벨(정확히 일치) -> 고정 권고 문구
RECOMMENDATIONS = {
    "T1": Recommendation(
        title=TITLE,
        heading="T1 (Tumor ≤3 cm in greatest dimension, confined to the cerebellum):",
        items=[
            "Surgical Resection: The primary treatment for a localized tumor (T1) is surgical removal of the tumor. "
            "Since it is confined to the cerebellum, the goal is to completely remove the tumor if feasible.",
            "Post-Surgical Radiation Therapy: After surgery, radiation therapy may be used to target any remaining "
            "tumor cells and reduce the risk of recurrence.",
            "Chemotherapy: Chemotherapy might be administered, especially for patients who are younger or in cases "
            "where the tumor is difficult to remove completely.",
        ],
    ),
    "T2": Recommendation(
        title=TITLE,
        heading="T2 (Tumor >3 cm but still localized in the cerebellum):",
        items=[
            "Surgical Resection: As with T1, surgery is the primary treatment, although it might be more complex "
            "due to the larger tumor size.",
            "Radiation Therapy: After surgery, radiation therapy to the entire brain and spinal cord is generally "
            "administered to treat any microscopic disease that might be left behind.",
            "Chemotherapy: Chemotherapy can be used both during and after radiation, particularly in younger "
            "patients or those with high-risk features.",
        ],
    ),
    NOT_MEDULLOBLASTOMA: Recommendation(
        title=TITLE,
        heading="A Tumor but not Medulloblastoma:",
        paragraphs=[
            "No Pediatric Medulloblastoma, but we believe you have another type of tumor. "
            "Please consult with a medical professional for more information.",
        ],
    ),
}

NO_TUMOR = Recommendation(
    title=TITLE,
    paragraphs=["No tumor detected. Please consult with a medical professional for a complete diagnosis."],
)


def recommendation_for(top_label: str) -> Recommendation:
    return RECOMMENDATIONS.get(top_label, NO_TUMOR)


def build_response(results: List[ClassConfidence]) -> PredictionResponse:
    top_label = results[0].label
    return PredictionResponse(
        results=results,
        top_label=top_label,
        recommendation=recommendation_for(top_label),
        disclaimer=DISCLAIMER,
    )


#############################################################################################
#  HTML 조각 렌더링 (Bootstrap 클래스 그대로 사용)
#  - 결과 목록: confidence > 임계값이면 bg-success, 아니면 bg-secondary 배지
#  - 권고 카드: 제목 + 라벨별 고정 문구 + 면책 문구
#############################################################################################

def render_alert_html(level: str, message: str) -> str:
    icon = "bi-exclamation-circle" if level == "warning" else "bi-exclamation-triangle"
    return (
        f'<div class="alert alert-{level}">'
        f'<i class="bi {icon} me-2"></i>{html.escape(message)}'
        "</div>"
    )


def render_results_html(results: List[ClassConfidence]) -> str:
    parts = ['<ul class="list-group mb-4">']
    for result in results:
        badge = "bg-success" if result.highlighted else "bg-secondary"
        parts.append(
            '<li class="list-group-item d-flex justify-content-between align-items-center">'
            f"<span>{html.escape(result.label)}</span>"
            f'<span class="badge {badge} rounded-pill" title="{result.confidence:.4f}">'
            '<i class="bi bi-check-circle"></i>'
            "</span>"
            "</li>"
        )
    parts.append("</ul>")
    return "".join(parts)


def render_feedback_html(recommendation: Recommendation, disclaimer: str = DISCLAIMER) -> str:
    parts = [
        '<div class="card bg-dark"><div class="card-body">',
        f'<h5 class="card-title text-white">{html.escape(recommendation.title)}</h5>',
    ]
    if recommendation.heading:
        parts.append(f'<p class="card-text text-white">{html.escape(recommendation.heading)}</p>')
    if recommendation.items:
        parts.append('<ul class="text-white">')
        parts.extend(f"<li>{html.escape(item)}</li>" for item in recommendation.items)
        parts.append("</ul>")
    for paragraph in recommendation.paragraphs:
        parts.append(f'<p class="card-text text-white">{html.escape(paragraph)}</p>')
    parts.append(
        '<div class="alert alert-warning mt-3">'
        f'<i class="bi bi-exclamation-triangle me-2"></i> {html.escape(disclaimer)}'
        "</div>"
    )
    parts.append("</div></div>")
    return "".join(parts)


def render_prediction_html(response: PredictionResponse) -> str:
    return render_results_html(response.results) + render_feedback_html(response.recommendation, response.disclaimer)
