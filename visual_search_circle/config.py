from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path


class FoilPolicy(StrEnum):
    """How a foil sequence whose length differs from set_size is handled."""

    ERROR = "error"
    CYCLE = "cycle"


def normalize_foils(
    foil: str | Sequence[str],
    set_size: int,
    policy: FoilPolicy = FoilPolicy.ERROR,
) -> tuple[str, ...]:
    """Return exactly ``set_size`` foil image ids.

    A single id is repeated into every slot. A sequence must already hold
    ``set_size`` ids unless ``policy`` is CYCLE, in which case it is repeated
    (or cut) to length.
    """

    if isinstance(foil, str):
        return (foil,) * int(set_size)

    foils = tuple(str(f) for f in foil)
    if len(foils) == set_size:
        return foils
    if policy is FoilPolicy.CYCLE and foils:
        return tuple(foils[i % len(foils)] for i in range(set_size))
    raise ValueError(f"foil sequence has {len(foils)} images, set_size is {set_size}")


@dataclass(frozen=True, slots=True)
class TrialConfig:
    target: str
    foil: tuple[str, ...]
    fixation_image: str
    flanker_image: str
    set_size: int

    target_present: bool = True
    # (h, w) as declared; the renderer uses [0] as width and [1] as height.
    target_size: tuple[float, float] = (50, 50)
    fixation_size: tuple[float, float] = (16, 16)
    circle_diameter: float = 250

    target_1_key: str = "n"
    target_2_key: str = "z"

    trial_duration_ms: float | None = None
    fixation_duration_ms: float = 1000
    search_array_duration_ms: float = 200

    flanker_offset: float = 1.5  # multiples of the circle radius
    flanker_size: float = 1.5  # multiplier on target_size

    # Image paths that identify which target is shown, for scoring.
    target_1_image: str = "img/target1.png"
    target_2_image: str = "img/target2.png"

    foil_policy: FoilPolicy = field(default=FoilPolicy.ERROR, compare=False)

    def __post_init__(self) -> None:
        for name in ("target", "fixation_image", "flanker_image", "target_1_key", "target_2_key"):
            if not isinstance(getattr(self, name), str):
                raise ValueError(f"{name} must be a string")
        if int(self.set_size) < 1:
            raise ValueError("set_size must be >= 1")
        if self.circle_diameter <= 0:
            raise ValueError("circle_diameter must be > 0")
        for name in ("target_size", "fixation_size"):
            size = getattr(self, name)
            if len(size) != 2 or min(size) <= 0:
                raise ValueError(f"{name} must be two positive numbers")
        if self.flanker_size <= 0:
            raise ValueError("flanker_size must be > 0")
        if self.fixation_duration_ms < 0:
            raise ValueError("fixation_duration_ms must be >= 0")
        if self.search_array_duration_ms < 0:
            raise ValueError("search_array_duration_ms must be >= 0")
        if self.trial_duration_ms is not None and self.trial_duration_ms <= 0:
            raise ValueError("trial_duration_ms must be > 0 or None")
        if self.target_1_key.casefold() == self.target_2_key.casefold():
            raise ValueError("target_1_key and target_2_key must differ")

        # Frozen: normalize through object.__setattr__.
        object.__setattr__(self, "set_size", int(self.set_size))
        object.__setattr__(self, "foil", normalize_foils(self.foil, self.set_size, self.foil_policy))
        object.__setattr__(self, "target_size", tuple(self.target_size))
        object.__setattr__(self, "fixation_size", tuple(self.fixation_size))

    def image_ids(self) -> tuple[str, ...]:
        """Every image this trial may show, in first-use order, without repeats."""

        ids = [self.fixation_image, self.target, *self.foil, self.flanker_image]
        return tuple(dict.fromkeys(ids))

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "TrialConfig":
        """Build a config from plugin-style parameter names.

        Durations are given in milliseconds under ``trial_duration``,
        ``fixation_duration`` and ``search_array_duration``.
        """

        unknown = sorted(set(data) - set(_PARAMETER_FIELDS))
        if unknown:
            raise ValueError(f"unknown trial parameters: {', '.join(unknown)}")
        missing = [name for name in _REQUIRED_PARAMETERS if data.get(name) is None]
        if missing:
            raise ValueError(f"missing required trial parameters: {', '.join(missing)}")

        kwargs: dict[str, object] = {}
        for name, value in data.items():
            kwargs[_PARAMETER_FIELDS[name]] = value

        policy = kwargs.get("foil_policy")
        if policy is not None:
            kwargs["foil_policy"] = FoilPolicy(str(policy))
        try:
            for name in ("target_size", "fixation_size"):
                if name in kwargs:
                    kwargs[name] = tuple(kwargs[name])  # type: ignore[arg-type]
            return cls(**kwargs)  # type: ignore[arg-type]
        except TypeError as exc:
            raise ValueError(f"invalid trial parameter value: {exc}") from exc


_PARAMETER_FIELDS: dict[str, str] = {
    "target": "target",
    "foil": "foil",
    "fixation_image": "fixation_image",
    "flanker_image": "flanker_image",
    "set_size": "set_size",
    "target_present": "target_present",
    "target_size": "target_size",
    "fixation_size": "fixation_size",
    "circle_diameter": "circle_diameter",
    "target_1_key": "target_1_key",
    "target_2_key": "target_2_key",
    "trial_duration": "trial_duration_ms",
    "fixation_duration": "fixation_duration_ms",
    "search_array_duration": "search_array_duration_ms",
    "flanker_offset": "flanker_offset",
    "flanker_size": "flanker_size",
    "target_1_image": "target_1_image",
    "target_2_image": "target_2_image",
    "foil_policy": "foil_policy",
}

_REQUIRED_PARAMETERS = ("target", "foil", "fixation_image", "flanker_image", "set_size")


def load_trial_config(path: Path) -> TrialConfig:
    """Load a TrialConfig from a JSON object of trial parameters."""

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object of trial parameters")
    return TrialConfig.from_dict(data)
