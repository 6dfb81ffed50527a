"""
PNG -> JPEG compression test tool.

Compresses a PNG file, or every PNG in a directory, with the same encoder the
pipeline uses and reports the size reduction per file.

    slack-images-compress --input screenshots/ --quality 60
"""

import logging
from pathlib import Path
from typing import List

import typer

from .compressor import compress_png_to_jpeg
from .constants import DEFAULT_JPEG_QUALITY
from .errors import CompressionFailedError

DEFAULT_OUTPUT_DIR = "test/compression/output"

app = typer.Typer(help="Test PNG to JPEG compression on local files.")


def _collect_png_files(input_path: Path) -> List[Path]:
    if input_path.is_dir():
        return sorted(
            p for p in input_path.iterdir()
            if p.is_file() and p.suffix.lower() == ".png"
        )
    if input_path.suffix.lower() != ".png":
        raise typer.BadParameter("input file must be a PNG", param_hint="--input")
    return [input_path]


def format_bytes(size: int) -> str:
    """Human-readable byte count (B, KB, MB, GB)."""
    if size >= 1024 ** 3:
        return f"{size / 1024 ** 3:.1f}GB"
    if size >= 1024 ** 2:
        return f"{size / 1024 ** 2:.1f}MB"
    if size >= 1024:
        return f"{size / 1024:.0f}KB"
    return f"{size}B"


def _ratio(original: int, compressed: int) -> float:
    if original == 0:
        return 0.0
    return (1 - compressed / original) * 100


@app.command()
def main(
    input_path: Path = typer.Option(..., "--input", "-i", exists=True, help="Input PNG file or directory containing PNG files"),
    quality: int = typer.Option(DEFAULT_JPEG_QUALITY, "--quality", "-q", min=1, max=100, help="JPEG quality (1-100)"),
    output_dir: Path = typer.Option(Path(DEFAULT_OUTPUT_DIR), "--output", "-o", help="Output directory for compressed JPEGs"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Compress PNG files to JPEG and report compression ratios."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    files = _collect_png_files(input_path)
    if not files:
        typer.echo("No PNG files found in input directory", err=True)
        raise typer.Exit(code=1)

    output_dir.mkdir(parents=True, exist_ok=True)

    total_original = 0
    total_compressed = 0
    failures = 0

    for png_file in files:
        data = png_file.read_bytes()
        try:
            compressed = compress_png_to_jpeg(data, quality)
        except CompressionFailedError as e:
            typer.echo(f"Error processing {png_file.name}: {e}", err=True)
            failures += 1
            continue

        output_file = output_dir / f"{png_file.stem}.jpg"
        output_file.write_bytes(compressed)

        total_original += len(data)
        total_compressed += len(compressed)
        typer.echo(
            f"{png_file.name}: {format_bytes(len(data))} -> {format_bytes(len(compressed))} "
            f"({_ratio(len(data), len(compressed)):.0f}% reduction) @ quality {quality}"
        )

    if len(files) - failures > 1:
        typer.echo(
            f"\nTotal: {format_bytes(total_original)} -> {format_bytes(total_compressed)} "
            f"({_ratio(total_original, total_compressed):.0f}% reduction)"
        )

    if failures == len(files):
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
