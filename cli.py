"""
Command line inference for a single image.

Usage:
    python cli.py image.jpg --model-dir model
    python cli.py image.jpg --json
"""

import argparse
import logging
import sys

from rich.console import Console
from rich.table import Table

import config
from services.feedback_service import build_response
from services.model_service import ModelService
from utils.image import InvalidImageError, decode_image

console = Console()


def print_response(response) -> None:
    table = Table(title="Classification")
    table.add_column("Rank", justify="right")
    table.add_column("Label")
    table.add_column("Confidence", justify="right")
    for rank, result in enumerate(response.results, start=1):
        style = "bold green" if result.highlighted else None
        table.add_row(str(rank), result.label, f"{result.confidence:.4f}", style=style)
    console.print(table)

    rec = response.recommendation
    console.print(f"\n[bold]{rec.title}[/bold]")
    if rec.heading:
        console.print(rec.heading)
    for item in rec.items:
        console.print(f"  - {item}")
    for paragraph in rec.paragraphs:
        console.print(paragraph)
    console.print(f"\n[yellow]{response.disclaimer}[/yellow]")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Classify an image with the portal model.")
    parser.add_argument("image", help="Path to input image (png/jpg).")
    parser.add_argument("--model-dir", default=config.MODEL_DIR, help="Directory with model.json and metadata.json.")
    parser.add_argument("--json", action="store_true", help="Print the prediction as JSON.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=config.LOG_LEVEL)

    service = ModelService(args.model_dir)
    if not service.load():
        console.print(f"[bold red]{service.message}[/bold red]")
        return 1

    try:
        with open(args.image, "rb") as f:
            image = decode_image(f.read())
    except (OSError, InvalidImageError) as e:
        console.print(f"[bold red]{e}[/bold red]")
        return 1

    response = build_response(service.predict(image))
    if args.json:
        console.print_json(response.model_dump_json())
    else:
        print_response(response)
    return 0


if __name__ == "__main__":
    sys.exit(main())
