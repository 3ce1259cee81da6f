from __future__ import annotations

import logging
import random
from collections.abc import Callable
from enum import StrEnum

from .config import TrialConfig
from .display import Display, ImageElement
from .keyboard import KeyboardResponder, KeyResponse, ListenerHandle
from .layout import LayoutResult, compute_layout, draw_angle_offset
from .results import TrialResult, compensated_rt, score_response
from .timing import Scheduler, TimerHandle

log = logging.getLogger(__name__)


class TrialPhase(StrEnum):
    PENDING = "pending"
    FIXATION = "fixation"
    SEARCH_ARRAY = "search_array"
    RESPONSE_WAIT = "response_wait"
    ENDED = "ended"


class VisualSearchCircleTrial:
    """One visual-search-circle trial: fixation -> search array -> blank response window.

    - Geometry is computed once at construction from the config and one
      start angle (given, or drawn from ``rng``).
    - Phases advance on ``scheduler`` timers. The response window ends on the
      first valid key or on ``trial_duration_ms``, whichever comes first.
    - Entering ENDED cancels every pending timer and key listener, then hands
      the TrialResult to ``on_finish`` exactly once.
    """

    def __init__(
        self,
        *,
        config: TrialConfig,
        display: Display,
        scheduler: Scheduler,
        keyboard: KeyboardResponder,
        on_finish: Callable[[TrialResult], None] | None = None,
        angle_offset: int | None = None,
        rng: random.Random | None = None,
    ) -> None:
        if angle_offset is None:
            angle_offset = draw_angle_offset(rng or random.Random())
        if not (0 <= int(angle_offset) < 360):
            raise ValueError("angle_offset must be in [0, 360)")

        self._config = config
        self._display = display
        self._scheduler = scheduler
        self._keyboard = keyboard
        self._on_finish = on_finish

        self._layout = compute_layout(config, int(angle_offset))

        self._phase = TrialPhase.PENDING
        self._history: list[TrialPhase] = []
        self._timer: TimerHandle | None = None
        self._timeout: TimerHandle | None = None
        self._listener: ListenerHandle | None = None
        self._trial_over = False
        self._result: TrialResult | None = None

    @property
    def config(self) -> TrialConfig:
        return self._config

    @property
    def layout(self) -> LayoutResult:
        return self._layout

    @property
    def phase(self) -> TrialPhase:
        return self._phase

    @property
    def phase_history(self) -> tuple[TrialPhase, ...]:
        return tuple(self._history)

    @property
    def result(self) -> TrialResult | None:
        return self._result

    @property
    def finished(self) -> bool:
        return self._phase is TrialPhase.ENDED

    def presentation(self) -> tuple[str, ...]:
        """Image ids for the circle slots, in slot order."""

        cfg = self._config
        to_present: list[str] = [cfg.target] if cfg.target_present else []
        to_present.extend(cfg.foil)
        # With the target present the last foil has no slot.
        return tuple(to_present[: cfg.set_size])

    def run(self) -> None:
        if self._phase is not TrialPhase.PENDING:
            return
        self._show_fixation()

    def cancel(self) -> None:
        """Abort without a result; outstanding timers and listeners are dropped."""

        if self._phase is TrialPhase.ENDED:
            return
        self._trial_over = True
        self._cancel_pending()
        self._display.clear()
        self._enter(TrialPhase.ENDED)

    # Phases

    def _show_fixation(self) -> None:
        self._enter(TrialPhase.FIXATION)
        cfg = self._config
        top, left = self._layout.fixation
        self._display.show(
            [
                ImageElement(
                    image_id=cfg.fixation_image,
                    top=top,
                    left=left,
                    width=cfg.fixation_size[0],
                    height=cfg.fixation_size[1],
                )
            ]
        )
        self._timer = self._scheduler.schedule(self._show_search_array, cfg.fixation_duration_ms)

    def _show_search_array(self) -> None:
        self._timer = None
        self._enter(TrialPhase.SEARCH_ARRAY)
        cfg = self._config
        lay = self._layout

        elements = [
            ImageElement(
                image_id=image_id,
                top=top,
                left=left,
                width=cfg.target_size[0],
                height=cfg.target_size[1],
            )
            for image_id, (top, left) in zip(self.presentation(), lay.display_locs)
        ]
        for top, left in lay.flanker_locs:
            elements.append(
                ImageElement(
                    image_id=cfg.flanker_image,
                    top=top,
                    left=left,
                    width=lay.flanker_width,
                    height=lay.flanker_height,
                )
            )
        self._display.show(elements)
        self._timer = self._scheduler.schedule(self._show_response_screen, cfg.search_array_duration_ms)

    def _show_response_screen(self) -> None:
        self._timer = None
        self._enter(TrialPhase.RESPONSE_WAIT)
        self._display.clear()

        cfg = self._config
        self._listener = self._keyboard.register(
            valid_keys=(cfg.target_1_key, cfg.target_2_key),
            callback=self._after_response,
            measure_rt=True,
            single_shot=True,
            ignore_held=True,
        )
        if cfg.trial_duration_ms is not None:
            self._timeout = self._scheduler.schedule(self._on_timeout, cfg.trial_duration_ms)

    def _after_response(self, info: KeyResponse) -> None:
        if self._trial_over:
            return
        self._trial_over = True
        self._end_trial(rt_ms=info.rt_ms, correct=score_response(info.key, self._config), key=info.key)

    def _on_timeout(self) -> None:
        self._timeout = None
        if self._trial_over:
            return
        self._trial_over = True
        self._display.clear()
        self._end_trial(rt_ms=None, correct=False, key=None)

    def _end_trial(self, *, rt_ms: float | None, correct: bool, key: str | None) -> None:
        self._cancel_pending()
        self._enter(TrialPhase.ENDED)

        cfg = self._config
        self._result = TrialResult(
            correct=correct,
            rt_ms=compensated_rt(rt_ms, cfg),
            response=key,
            locations=self._layout.display_locs,
            target_image=cfg.target,
            set_size=cfg.set_size,
            flanker_image=cfg.flanker_image,
        )
        log.info(
            "trial ended: correct=%s rt=%s response=%s",
            self._result.correct,
            self._result.rt_ms,
            self._result.response,
        )
        if self._on_finish is not None:
            self._on_finish(self._result)

    def _cancel_pending(self) -> None:
        if self._timer is not None:
            self._scheduler.cancel(self._timer)
            self._timer = None
        if self._timeout is not None:
            self._scheduler.cancel(self._timeout)
            self._timeout = None
        if self._listener is not None:
            self._keyboard.cancel(self._listener)
            self._listener = None

    def _enter(self, phase: TrialPhase) -> None:
        log.debug("phase %s -> %s", self._phase.value, phase.value)
        self._phase = phase
        self._history.append(phase)


def build_visual_search_circle_trial(
    *,
    config: TrialConfig,
    display: Display,
    scheduler: Scheduler,
    keyboard: KeyboardResponder,
    on_finish: Callable[[TrialResult], None] | None = None,
    seed: int | None = None,
    angle_offset: int | None = None,
) -> VisualSearchCircleTrial:
    rng = None if seed is None else random.Random(int(seed))
    return VisualSearchCircleTrial(
        config=config,
        display=display,
        scheduler=scheduler,
        keyboard=keyboard,
        on_finish=on_finish,
        angle_offset=angle_offset,
        rng=rng,
    )
