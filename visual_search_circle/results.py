from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .config import TrialConfig
from .keyboard import compare_keys
from .layout import Position


@dataclass(frozen=True, slots=True)
class TrialResult:
    """The single record a finished trial hands back to its host."""

    correct: bool
    rt_ms: float | None
    response: str | None
    locations: tuple[Position, ...]
    target_image: str
    set_size: int
    flanker_image: str

    def to_dict(self) -> dict[str, Any]:
        """Plain, JSON-ready trial data using the plugin's field names."""

        return {
            "correct": bool(self.correct),
            "rt": self.rt_ms,
            "response": self.response,
            "locations": [list(loc) for loc in self.locations],
            "target_image": self.target_image,
            "set_size": int(self.set_size),
            "flanker_image": self.flanker_image,
        }


def score_response(key: str | None, config: TrialConfig) -> bool:
    """Correctness of a response key.

    Target-1 key scores when the target is the target-1 image. Target-2 key
    scores whenever the target is anything except the target-2 image.

    The target-2 branch is asymmetric with the target-1 branch and is most
    likely a logic defect in the rule as recorded. It is kept as stated. It
    also differs from the jsPsych plugin, where that branch compares
    ``!trial.target`` to a path and so never scores.
    """

    if compare_keys(key, config.target_1_key) and config.target == config.target_1_image:
        return True
    if compare_keys(key, config.target_2_key) and config.target != config.target_2_image:
        return True
    return False


def compensated_rt(rt_ms: float | None, config: TrialConfig) -> float | None:
    """RT from search-array onset: blank-screen RT plus the array duration."""

    if rt_ms is None:
        return None
    return rt_ms + config.search_array_duration_ms
