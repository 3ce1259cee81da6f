from __future__ import annotations

import math
import random
from dataclasses import dataclass

from .config import TrialConfig

# (top, left) in container pixels.
Position = tuple[int, int]


@dataclass(frozen=True, slots=True)
class LayoutResult:
    """Pixel geometry for one trial.

    Every position is a ``(top, left)`` pair exactly as handed to the renderer.
    Circle slots carry the cosine term in ``top`` and the sine term in
    ``left``, so slot 0 at angle 0 sits below the centre rather than to its
    right. Fixation and flanker positions follow the same pair order.
    """

    paper_size: float
    fixation: Position
    display_locs: tuple[Position, ...]
    flanker_locs: tuple[Position, Position]
    angle_offset: int
    flanker_width: float
    flanker_height: float


def cosd(deg: float) -> float:
    return math.cos(deg / 180.0 * math.pi)


def sind(deg: float) -> float:
    return math.sin(deg / 180.0 * math.pi)


def draw_angle_offset(rng: random.Random) -> int:
    """Uniform integer start angle in [0, 360)."""

    return int(math.floor(rng.random() * 360))


def compute_layout(config: TrialConfig, angle_offset: int) -> LayoutResult:
    radius = config.circle_diameter / 2

    stim_h, stim_w = config.target_size
    half_stim_h = stim_h / 2
    half_stim_w = stim_w / 2

    flanker_h = stim_h * config.flanker_size
    flanker_w = stim_w * config.flanker_size
    half_flanker_w = flanker_w / 2
    flanker_offset = half_flanker_w + radius * config.flanker_offset

    paper_size = config.circle_diameter + flanker_offset
    centre = paper_size / 2

    fixation = (
        math.floor(centre - config.fixation_size[0] / 2),
        math.floor(centre - config.fixation_size[1] / 2),
    )

    n = config.set_size
    step = 360 / n
    display_locs = []
    for i in range(n):
        angle = angle_offset + i * step
        display_locs.append(
            (
                math.floor(centre + cosd(angle) * radius - half_stim_w),
                math.floor(centre - sind(angle) * radius - half_stim_h),
            )
        )

    flanker_top = math.floor(math.floor(centre) - half_flanker_w)
    flanker_locs = (
        (flanker_top, math.floor(centre + (flanker_offset - half_flanker_w))),
        (flanker_top, math.floor(centre - (flanker_offset + half_flanker_w))),
    )

    return LayoutResult(
        paper_size=paper_size,
        fixation=fixation,
        display_locs=tuple(display_locs),
        flanker_locs=flanker_locs,
        angle_offset=int(angle_offset),
        flanker_width=flanker_w,
        flanker_height=flanker_h,
    )
