from __future__ import annotations

DEFAULT_MAX_DEPTH = 3
DEFAULT_RENDERER = "mermaid"

# Text outputs are written as-is; image outputs go through a renderer exporter.
TEXT_EXTENSIONS: tuple[str, ...] = (".mmd", ".md")
IMAGE_EXTENSIONS: tuple[str, ...] = (".svg", ".png", ".pdf")
SUPPORTED_EXTENSIONS: tuple[str, ...] = TEXT_EXTENSIONS + IMAGE_EXTENSIONS

# Picked up from the working directory when --config is not given.
CONFIG_FILENAME_DEFAULT = "prisma-neighbourhood.yaml"

SCHEMA_FILE_SUFFIX = ".prisma"

VERSION = "0.2.0"
