
import html

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from services.model_service import ModelService
from .deps import get_model_service

router = APIRouter()

STATUS_CLASSES = {
    "loading": ("alert alert-info", "bi-hourglass-split"),
    "loaded": ("alert alert-success", "bi-check-circle"),
    "failed": ("alert alert-danger", "bi-exclamation-triangle"),
}

PAGE = """<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>AI Web Portal</title>
<link rel="stylesheet" href="https://cdn.jsdelivr.net/npm/bootstrap@5.3.3/dist/css/bootstrap.min.css">
<link rel="stylesheet" href="https://cdn.jsdelivr.net/npm/bootstrap-icons@1.11.3/font/bootstrap-icons.min.css">
</head>
<body class="container py-4">
<h1 class="mb-4">Image Classification</h1>
<div id="model-status" class="{status_class}"><i class="bi {status_icon} me-2"></i> {status_message}</div>
<div id="input-container" style="display: {input_display}">
  <input id="image-input" class="form-control mb-3" type="file" accept="image/*">
  <img id="preview-image" class="img-fluid mb-3" style="display: none; max-height: 320px" alt="preview">
  <button id="run-button" class="btn btn-primary mb-3">Run Inference</button>
</div>
<div id="result-container" style="display: none">
  <div id="inference-result"></div>
</div>
<script>
const input = document.getElementById('image-input');
const preview = document.getElementById('preview-image');
const resultContainer = document.getElementById('result-container');
const result = document.getElementById('inference-result');

input.addEventListener('change', async (e) => {{
  if (!e.target.files || !e.target.files[0]) return;
  const form = new FormData();
  form.append('file', e.target.files[0]);
  const res = await fetch('/api/preview', {{method: 'POST', body: form}});
  if (res.ok) {{
    preview.src = (await res.json()).data_url;
    preview.style.display = 'block';
  }}
}});

document.getElementById('run-button').addEventListener('click', async () => {{
  const image = preview.style.display === 'none' ? '' : preview.src;
  const res = await fetch('/api/predict/data-url?render=html', {{
    method: 'POST',
    headers: {{'Content-Type': 'application/json'}},
    body: JSON.stringify({{image: image}}),
  }});
  result.innerHTML = await res.text();
  resultContainer.style.display = 'block';
}});
</script>
</body>
</html>
"""


@router.get("/", response_class=HTMLResponse)
def index_page(service: ModelService = Depends(get_model_service)):
    status = service.status
    status_class, status_icon = STATUS_CLASSES[status.state]
    return HTMLResponse(PAGE.format(
        status_class=status_class,
        status_icon=status_icon,
        status_message=html.escape(status.message),
        input_display="block" if status.state == "loaded" else "none",
    ))
