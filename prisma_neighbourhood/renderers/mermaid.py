from __future__ import annotations

from pathlib import Path
from typing import Sequence

from ..traversal import TraversedEntity
from .mermaid_erd import render_mermaid_erd
from .mmdc import ExportFormat, run_mermaid_cli


def render_mermaid(entities: Sequence[TraversedEntity]) -> str:
    return render_mermaid_erd(entities)


def export_mermaid(content: str, output_path: Path, output_format: ExportFormat) -> Path:
    """Export with Mermaid CLI defaults (browser-resolution PNG, page-sized PDF)."""
    return run_mermaid_cli(content, output_path, output_format=output_format)
