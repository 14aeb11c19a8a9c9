# 학습한 state_dict(.pth)를 포털이 읽는 모델 디렉터리로 내보내는 스크립트
#
#   python -m train.export_model --weights models/best_resnet34.pth \
#       --architecture resnet34 --labels T1 T2 "Not Pediatric Medulloblastoma but still bad" "No Tumor" \
#       --out model
#
# 결과:
#   model/model.json     (디스크립터)
#   model/weights.pth    (가중치)
#   model/metadata.json  (라벨)

import argparse
import json
import os
import shutil
from typing import List, Optional

import config
from models.classifier import ARCHITECTURES

WEIGHTS_FILE = "weights.pth"


def export_model(
    weights_path: str,
    architecture: str,
    labels: List[str],
    out_dir: str,
    input_size: int = config.DEFAULT_INPUT_SIZE,
    num_classes: Optional[int] = None,
) -> dict:
    if architecture not in ARCHITECTURES:
        raise ValueError(f"Unexpected architecture ( {architecture} ), expect is [ {', '.join(ARCHITECTURES)} ]")
    if not os.path.exists(weights_path):
        raise FileNotFoundError(f"Weights not found: {weights_path}")

    os.makedirs(out_dir, exist_ok=True)
    shutil.copyfile(weights_path, os.path.join(out_dir, WEIGHTS_FILE))

    descriptor = {
        "format": "torch-state-dict",
        "architecture": architecture,
        "num_classes": num_classes or len(labels),
        "input_size": input_size,
        "weights": [WEIGHTS_FILE],
    }
    with open(os.path.join(out_dir, config.MODEL_DESCRIPTOR_FILE), "w", encoding="utf-8") as f:
        json.dump(descriptor, f, indent=2)
    with open(os.path.join(out_dir, config.METADATA_FILE), "w", encoding="utf-8") as f:
        json.dump({"labels": labels, "imageSize": input_size}, f, indent=2, ensure_ascii=False)

    return descriptor


def main() -> None:
    parser = argparse.ArgumentParser(description="Export a trained state_dict as a portal model directory.")
    parser.add_argument("--weights", required=True, help="Trained state_dict (.pth).")
    parser.add_argument("--architecture", required=True, choices=sorted(ARCHITECTURES))
    parser.add_argument("--labels", nargs="+", required=True, help="Class labels in model output order.")
    parser.add_argument("--out", default=config.MODEL_DIR)
    parser.add_argument("--input_size", type=int, default=config.DEFAULT_INPUT_SIZE)
    args = parser.parse_args()

    descriptor = export_model(args.weights, args.architecture, args.labels, args.out, args.input_size)
    print(f"모델 내보내기 완료: {args.out}")
    print(json.dumps(descriptor, indent=2))


if __name__ == "__main__":
    main()
