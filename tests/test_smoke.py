"""Smoke tests for the pygame host.

These run the host loop with the SDL dummy drivers so no real window opens.
Image ids point at files that do not exist, which exercises the placeholder
path of the image store.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

# Use the dummy drivers before importing pygame or the application
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

from visual_search_circle.config import TrialConfig  # noqa: E402
from visual_search_circle.results import TrialResult  # noqa: E402


@dataclass
class FakeClock:
    t: float = 0.0

    def now_ms(self) -> float:
        return self.t


def _config() -> TrialConfig:
    return TrialConfig(
        target="img/target1.png",
        foil="img/foil.png",
        fixation_image="img/fixation.png",
        flanker_image="img/flanker.png",
        set_size=4,
        trial_duration_ms=1500,
    )


def test_app_runs_headless() -> None:
    """The host can start and draw a few frames without crashing."""
    from visual_search_circle.app import run

    exit_code = run(_config(), seed=1, max_frames=3)
    assert exit_code == 0


def test_app_scripted_key_press_finishes_trial() -> None:
    import pygame

    from visual_search_circle.app import run

    clock = FakeClock()
    results: list[TrialResult] = []

    def inject(frame: int) -> None:
        clock.t = frame * 100.0
        if frame == 15:
            pygame.event.post(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_n))

    exit_code = run(
        _config(),
        seed=1,
        clock=clock,
        on_finish=results.append,
        max_frames=100,
        event_injector=inject,
    )

    assert exit_code == 0
    assert len(results) == 1
    assert results[0].response == "n"
    assert results[0].rt_ms == 500.0
    assert results[0].correct is True


def test_app_key_in_same_frame_as_expired_deadline_loses_to_timeout() -> None:
    import pygame

    from visual_search_circle.app import run

    clock = FakeClock()
    results: list[TrialResult] = []

    def inject(frame: int) -> None:
        # Response window opens at 1200 (frame 12); deadline is 2700.
        if frame <= 12:
            clock.t = frame * 100.0
        elif frame == 13:
            clock.t = 3000.0  # one slow frame past the deadline
            pygame.event.post(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_n))

    exit_code = run(
        _config(),
        seed=1,
        clock=clock,
        on_finish=results.append,
        max_frames=100,
        event_injector=inject,
    )

    assert exit_code == 0
    assert len(results) == 1
    assert results[0].response is None
    assert results[0].rt_ms is None
    assert results[0].correct is False
