from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from ..constants import DEFAULT_RENDERER
from ..traversal import TraversedEntity
from .mermaid import export_mermaid, render_mermaid
from .mmdc import ExportFormat
from .vector import export_vector, render_vector

RenderFn = Callable[[Sequence[TraversedEntity]], str]
ExportFn = Callable[[str, Path, ExportFormat], Path]


@dataclass(frozen=True)
class RendererSpec:
    name: str
    description: str
    render: RenderFn
    export: Optional[ExportFn] = None

    @property
    def supports_export(self) -> bool:
        return self.export is not None


class RendererRegistry:
    """Named renderers, in registration order, with one default."""

    def __init__(self, default_name: str = DEFAULT_RENDERER) -> None:
        self._initial_default = default_name
        self._default_name = default_name
        self._renderers: dict[str, RendererSpec] = {}

    def register(self, spec: RendererSpec, *, default: bool = False) -> None:
        if spec.name in self._renderers:
            raise ValueError(f"Renderer {spec.name!r} is already registered")
        self._renderers[spec.name] = spec
        if default:
            self._default_name = spec.name

    def get(self, name: str) -> Optional[RendererSpec]:
        return self._renderers.get(name)

    def get_default(self) -> Optional[RendererSpec]:
        return self._renderers.get(self._default_name)

    @property
    def default_name(self) -> str:
        return self._default_name

    def has(self, name: str) -> bool:
        return name in self._renderers

    def list(self) -> list[RendererSpec]:
        return list(self._renderers.values())

    def names(self) -> list[str]:
        return list(self._renderers)

    def clear(self) -> None:
        self._renderers.clear()
        self._default_name = self._initial_default


def _builtin_registry() -> RendererRegistry:
    registry = RendererRegistry()
    registry.register(
        RendererSpec(
            name="mermaid",
            description="Mermaid ERD syntax (text). Supports export via mermaid-cli.",
            render=render_mermaid,
            export=export_mermaid,
        ),
        default=True,
    )
    registry.register(
        RendererSpec(
            name="vector",
            description=(
                "Vector-first Mermaid ERD renderer. Exports SVG, high-DPI PNG and "
                "diagram-fitted PDF using mermaid-cli."
            ),
            render=render_vector,
            export=export_vector,
        )
    )
    return registry


RENDERERS: RendererRegistry = _builtin_registry()
