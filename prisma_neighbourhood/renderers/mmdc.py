from __future__ import annotations

import json
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Literal, Optional

ExportFormat = Literal["svg", "png", "pdf"]

EXPORT_FORMATS: tuple[str, ...] = ("svg", "png", "pdf")

# htmlLabels off keeps the SVG renderable by non-browser rasterisers.
MERMAID_CONFIG = {
    "htmlLabels": False,
    "flowchart": {"htmlLabels": False},
}

# Edge label text must stay readable on the default label background.
CUSTOM_CSS = """
.edgeLabel .label {
  fill: #fff !important;
}
.edgeLabel tspan {
  fill: #333333 !important;
}
"""


class ExportError(RuntimeError):
    """Raised when a diagram cannot be exported to an image format."""


def find_mmdc() -> Optional[str]:
    return shutil.which("mmdc")


def run_mermaid_cli(
    content: str,
    output_path: Path,
    *,
    output_format: ExportFormat,
    background: str = "white",
    theme: str = "default",
    scale: Optional[int] = None,
    pdf_fit: bool = False,
) -> Path:
    """Render Mermaid source to `output_path` with the Mermaid CLI (`mmdc`).

    `mmdc` picks the output type from the file suffix, so `output_path` must
    end in `.<output_format>`.
    """
    if output_format not in EXPORT_FORMATS:
        raise ExportError(f"Unsupported export format: {output_format!r}")
    if output_path.suffix.lower() != f".{output_format}":
        raise ExportError(
            f"Output path {output_path} does not match export format {output_format!r}"
        )

    mmdc = find_mmdc()
    if not mmdc:
        raise ExportError(
            "Image export requested but 'mmdc' was not found on PATH. "
            "Install Mermaid CLI and retry: npm install -g @mermaid-js/mermaid-cli"
        )

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.TemporaryDirectory(prefix="prisma-neighbourhood-mmdc-") as td:
        tmp_dir = Path(td)
        input_path = tmp_dir / "input.mmd"
        config_path = tmp_dir / "config.json"
        css_path = tmp_dir / "custom.css"

        input_path.write_text(content, encoding="utf-8")
        config_path.write_text(json.dumps(MERMAID_CONFIG), encoding="utf-8")
        css_path.write_text(CUSTOM_CSS, encoding="utf-8")

        cmd = [
            mmdc,
            "-i", str(input_path),
            "-o", str(output_path),
            "-c", str(config_path),
            "-C", str(css_path),
            "-b", background,
            "-t", theme,
        ]
        if scale is not None:
            cmd += ["-s", str(scale)]
        if pdf_fit and output_format == "pdf":
            cmd.append("--pdfFit")

        proc = subprocess.run(cmd, text=True, capture_output=True)
        if proc.returncode != 0:
            stderr = (proc.stderr or "").strip()
            stdout = (proc.stdout or "").strip()
            detail = stderr or stdout or f"mmdc exited with code {proc.returncode}"
            raise ExportError(f"Mermaid CLI failed for {output_path.name}: {detail}")

    return output_path
