from __future__ import annotations

from pathlib import Path
from typing import Sequence

from ..traversal import TraversedEntity
from .mermaid_erd import render_mermaid_erd
from .mmdc import ExportFormat, run_mermaid_cli

# Device scale factor for raster output (roughly 300 DPI on a 96 DPI base).
PNG_SCALE = 3


def render_vector(entities: Sequence[TraversedEntity]) -> str:
    return render_mermaid_erd(entities)


def export_vector(content: str, output_path: Path, output_format: ExportFormat) -> Path:
    """Export tuned for print: high-DPI PNG and PDF pages cropped to the diagram."""
    if output_format == "png":
        return run_mermaid_cli(content, output_path, output_format="png", scale=PNG_SCALE)
    if output_format == "pdf":
        return run_mermaid_cli(content, output_path, output_format="pdf", pdf_fit=True)
    return run_mermaid_cli(content, output_path, output_format=output_format)
