from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class ImageElement:
    """One absolutely positioned image inside the trial container (pixels)."""

    image_id: str
    top: int
    left: int
    width: float
    height: float


class Display(Protocol):
    """Rendering surface owned by the active trial phase."""

    def show(self, elements: Sequence[ImageElement]) -> None:
        """Replace the whole scene with ``elements``."""
        ...

    def clear(self) -> None:
        ...
