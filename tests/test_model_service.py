import json
import logging

import pytest
import torch

import config
from models.classifier import build_classifier, load_weights, remap_state_dict
from services.model_service import ModelNotLoadedError, ModelService
from utils.image import decode_image
from conftest import LABELS, FixedLogits, write_model_dir


def test_load_success(service):
    status = service.status
    assert status.state == "loaded"
    assert status.message == "Model loaded successfully!"
    assert status.labels == LABELS
    assert service.input_size == 224
    assert not service.model.training


def test_initial_status_is_loading(model_dir):
    svc = ModelService(str(model_dir), device="cpu")
    assert svc.status.state == "loading"
    assert not svc.is_loaded


def test_default_labels_when_metadata_has_none(tmp_path):
    model_dir = write_model_dir(tmp_path / "m", metadata={"modelName": "no labels"})
    svc = ModelService(str(model_dir), device="cpu")
    assert svc.load()
    assert svc.labels == ["Class 1", "Class 2", "Class 3", "Class 4"]


def test_missing_metadata_fails(model_dir):
    (model_dir / "metadata.json").unlink()
    svc = ModelService(str(model_dir), device="cpu")
    assert svc.load() is False
    assert svc.status.state == "failed"
    assert svc.message.startswith("Failed to load model:")
    assert svc.model is None


def test_missing_directory_fails(tmp_path):
    svc = ModelService(str(tmp_path / "nowhere"), device="cpu")
    assert not svc.load()
    assert "model.json" in svc.message


def test_invalid_descriptor_json_fails(model_dir):
    (model_dir / "model.json").write_text("{not json")
    svc = ModelService(str(model_dir), device="cpu")
    assert not svc.load()
    assert "Invalid JSON" in svc.message


def test_unknown_architecture_fails(model_dir):
    descriptor = json.loads((model_dir / "model.json").read_text())
    descriptor["architecture"] = "vgg99"
    (model_dir / "model.json").write_text(json.dumps(descriptor))
    svc = ModelService(str(model_dir), device="cpu")
    assert not svc.load()
    assert "Unexpected architecture" in svc.message


def test_weight_shape_mismatch_fails(model_dir):
    descriptor = json.loads((model_dir / "model.json").read_text())
    descriptor["num_classes"] = 7
    (model_dir / "model.json").write_text(json.dumps(descriptor))
    svc = ModelService(str(model_dir), device="cpu")
    assert not svc.load()
    assert "state_dict" in svc.message


def test_bare_backbone_state_dict_is_remapped(tmp_path):
    model_dir = write_model_dir(tmp_path / "m")
    backbone = build_classifier("mobilenet_v3_small", len(LABELS)).model
    torch.save(backbone.state_dict(), model_dir / "weights.pth")
    svc = ModelService(str(model_dir), device="cpu")
    assert svc.load(), svc.message


def test_sharded_weights_are_merged(tmp_path):
    model_dir = write_model_dir(tmp_path / "m")
    state = torch.load(model_dir / "weights.pth", weights_only=True)
    keys = list(state)
    half = len(keys) // 2
    torch.save({k: state[k] for k in keys[:half]}, model_dir / "shard1.pth")
    torch.save({k: state[k] for k in keys[half:]}, model_dir / "shard2.pth")
    descriptor = json.loads((model_dir / "model.json").read_text())
    descriptor["weights"] = ["shard1.pth", "shard2.pth"]
    (model_dir / "model.json").write_text(json.dumps(descriptor))

    svc = ModelService(str(model_dir), device="cpu")
    assert svc.load(), svc.message


def test_remap_state_dict_prefixes():
    remapped = remap_state_dict({
        "features.0.weight": 1,
        "backbone.classifier.0.bias": 2,
        "module.model.fc.weight": 3,
        "model.features.1.weight": 4,
    })
    assert remapped == {
        "model.features.0.weight": 1,
        "model.classifier.0.bias": 2,
        "model.fc.weight": 3,
        "model.features.1.weight": 4,
    }


def test_predict_before_load_raises(model_dir, png_bytes):
    svc = ModelService(str(model_dir), device="cpu")
    with pytest.raises(ModelNotLoadedError):
        svc.predict(decode_image(png_bytes))


def test_predict_returns_sorted_probabilities(service, png_bytes):
    results = service.predict(decode_image(png_bytes))
    assert sorted(r.label for r in results) == sorted(LABELS)
    confidences = [r.confidence for r in results]
    assert confidences == sorted(confidences, reverse=True)
    assert sum(confidences) == pytest.approx(1.0, abs=1e-5)


def test_predict_highlights_above_threshold(service, png_bytes):
    service.model = FixedLogits([0.1, 3.0, 0.2, 0.0])
    results = service.predict(decode_image(png_bytes))
    assert results[0].label == "T2"
    assert results[0].highlighted
    assert not any(r.highlighted for r in results[1:])


def test_ties_keep_model_order(service, png_bytes):
    service.model = FixedLogits([0.0, 0.0, 0.0, 0.0])
    results = service.predict(decode_image(png_bytes))
    assert [r.label for r in results] == LABELS
    assert all(r.confidence == pytest.approx(0.25) for r in results)
    assert not any(r.highlighted for r in results)


def test_outputs_without_label_get_generic_name(service, png_bytes):
    service.model = FixedLogits([0.0, 0.0, 0.0, 0.0, 5.0])
    results = service.predict(decode_image(png_bytes))
    assert results[0].label == "Class 5"


def test_descriptor_summary_is_truncated_in_log(model_dir, caplog):
    descriptor = json.loads((model_dir / "model.json").read_text())
    descriptor["description"] = "x" * 3000
    (model_dir / "model.json").write_text(json.dumps(descriptor))

    caplog.set_level(logging.INFO, logger="services.model_service")
    svc = ModelService(str(model_dir), device="cpu")
    assert svc.load(), svc.message

    prefix = "Model loaded successfully: "
    messages = [r.getMessage() for r in caplog.records if r.getMessage().startswith(prefix)]
    assert len(messages) == 1
    summary = messages[0][len(prefix):]
    assert summary.endswith("…[TRUNCATED]")
    assert len(summary) == 1000 + len("…[TRUNCATED]")


def test_short_descriptor_summary_is_not_truncated(model_dir, caplog):
    caplog.set_level(logging.INFO, logger="services.model_service")
    svc = ModelService(str(model_dir), device="cpu")
    assert svc.load(), svc.message
    assert not any("TRUNCATED" in r.getMessage() for r in caplog.records)


@pytest.mark.parametrize("architecture", ["efficientnet_v2_s", "resnet34", "mobilenet_v3_small"])
def test_every_architecture_builds_and_loads_weights(architecture):
    torch.manual_seed(0)
    trained = build_classifier(architecture, 3)
    model = load_weights(build_classifier(architecture, 3), trained.state_dict())
    model.eval()
    with torch.no_grad():
        out = model(torch.rand(1, 3, 64, 64))
    assert out.shape == (1, 3)


@pytest.mark.parametrize("architecture", ["efficientnet_v2_s", "resnet34"])
def test_bare_backbone_weights_load_for_custom_heads(architecture):
    backbone = build_classifier(architecture, 3).model
    load_weights(build_classifier(architecture, 3), backbone.state_dict())


def test_resnet34_artifact_loads(tmp_path):
    model_dir = write_model_dir(tmp_path / "m", architecture="resnet34")
    svc = ModelService(str(model_dir), device="cpu")
    assert svc.load(), svc.message
    assert svc.labels == LABELS


def test_unknown_architecture_message_has_no_quotes(model_dir):
    descriptor = json.loads((model_dir / "model.json").read_text())
    descriptor["architecture"] = "vgg99"
    (model_dir / "model.json").write_text(json.dumps(descriptor))
    svc = ModelService(str(model_dir), device="cpu")
    assert not svc.load()
    assert svc.message.startswith("Failed to load model: Unexpected architecture ( vgg99 )")


def test_empty_label_list_is_kept(tmp_path, png_bytes):
    model_dir = write_model_dir(tmp_path / "m", metadata={"labels": []})
    svc = ModelService(str(model_dir), device="cpu")
    assert svc.load(), svc.message
    assert svc.labels == []
    results = svc.predict(decode_image(png_bytes))
    assert sorted(r.label for r in results) == ["Class 1", "Class 2", "Class 3", "Class 4"]


def test_highlight_threshold_is_read_from_config(service, png_bytes, monkeypatch):
    service.model = FixedLogits([0.0, 0.0, 0.0, 0.0])
    monkeypatch.setattr(config, "HIGHLIGHT_THRESHOLD", 0.2)
    results = service.predict(decode_image(png_bytes))
    assert all(r.highlighted for r in results)
