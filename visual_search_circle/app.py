"""Pygame host for a single visual-search-circle trial.

The trial core (timing, layout, scoring) lives in visual_search_circle/*; this
module only supplies the collaborators it needs: a window to draw on, a
frame-polled scheduler, and keyboard events.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Protocol

import pygame

from .clock import Clock, RealClock
from .config import TrialConfig
from .display import ImageElement
from .keyboard import KeyboardListener
from .layout import compute_layout
from .results import TrialResult
from .timing import ClockScheduler
from .trial import VisualSearchCircleTrial, build_visual_search_circle_trial

log = logging.getLogger(__name__)

WINDOW_SIZE = (960, 540)
TARGET_FPS = 60
BACKGROUND = (255, 255, 255)
PLACEHOLDER = (160, 160, 160)


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


class App:
    def __init__(self, surface: pygame.Surface) -> None:
        self._surface = surface
        self._screens: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if not self._screens:
            return
        self._screens[-1].handle_event(event)

    def render(self) -> None:
        if not self._screens:
            return
        self._screens[-1].render(self._surface)


class ImageStore:
    """Resolves image ids (file paths) to pygame surfaces, scaled per size."""

    def __init__(self, base_dir: Path | None = None) -> None:
        self._base_dir = base_dir
        self._originals: dict[str, pygame.Surface | None] = {}
        self._scaled: dict[tuple[str, int, int], pygame.Surface] = {}

    def load(self, image_ids: Sequence[str]) -> None:
        for image_id in image_ids:
            self._original(image_id)

    def get(self, image_id: str, width: float, height: float) -> pygame.Surface:
        size = (max(1, int(width)), max(1, int(height)))
        key = (image_id, size[0], size[1])
        cached = self._scaled.get(key)
        if cached is not None:
            return cached

        original = self._original(image_id)
        if original is None:
            img = pygame.Surface(size)
            img.fill(PLACEHOLDER)
        else:
            img = pygame.transform.smoothscale(original, size)
        self._scaled[key] = img
        return img

    def _original(self, image_id: str) -> pygame.Surface | None:
        if image_id in self._originals:
            return self._originals[image_id]

        path = Path(image_id)
        if self._base_dir is not None and not path.is_absolute():
            path = self._base_dir / path
        try:
            img: pygame.Surface | None = pygame.image.load(str(path))
        except (pygame.error, OSError) as exc:
            log.warning("could not load image %s: %s", path, exc)
            img = None
        if img is not None and pygame.display.get_surface() is not None:
            img = img.convert_alpha()
        self._originals[image_id] = img
        return img


class PygameDisplay:
    """Display backed by a container of ``paper_size`` pixels centred in the window."""

    def __init__(self, images: ImageStore, *, paper_size: float) -> None:
        self._images = images
        self._paper_size = paper_size
        self._elements: tuple[ImageElement, ...] = ()

    @property
    def elements(self) -> tuple[ImageElement, ...]:
        return self._elements

    def show(self, elements: Sequence[ImageElement]) -> None:
        self._elements = tuple(elements)

    def clear(self) -> None:
        self._elements = ()

    def render(self, surface: pygame.Surface) -> None:
        surface.fill(BACKGROUND)
        w, h = surface.get_size()
        origin_x = (w - int(self._paper_size)) // 2
        origin_y = (h - int(self._paper_size)) // 2
        for el in self._elements:
            img = self._images.get(el.image_id, el.width, el.height)
            surface.blit(img, (origin_x + el.left, origin_y + el.top))


class TrialScreen:
    def __init__(
        self,
        app: App,
        *,
        trial_factory: Callable[[PygameDisplay, ClockScheduler, KeyboardListener], VisualSearchCircleTrial],
        clock: Clock,
        images: ImageStore,
        paper_size: float,
    ) -> None:
        self._app = app
        self._scheduler = ClockScheduler(clock)
        self._keyboard = KeyboardListener(clock)
        self._display = PygameDisplay(images, paper_size=paper_size)
        self._trial = trial_factory(self._display, self._scheduler, self._keyboard)
        self._aborted = False
        self._trial.run()

    @property
    def trial(self) -> VisualSearchCircleTrial:
        return self._trial

    @property
    def aborted(self) -> bool:
        return self._aborted

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_ESCAPE:
                self._aborted = True
                self._trial.cancel()
                self._app.quit()
                return
            # Timers already due (the response deadline) win over this key.
            self._scheduler.update()
            self._keyboard.key_down(pygame.key.name(event.key))
        elif event.type == pygame.KEYUP:
            self._keyboard.key_up(pygame.key.name(event.key))

    def render(self, surface: pygame.Surface) -> None:
        self._scheduler.update()
        self._display.render(surface)
        if self._trial.finished:
            self._app.quit()


def run(
    config: TrialConfig,
    *,
    seed: int | None = None,
    image_dir: Path | None = None,
    clock: Clock | None = None,
    on_finish: Callable[[TrialResult], None] | None = None,
    max_frames: int | None = None,
    event_injector: Callable[[int], None] | None = None,
) -> int:
    """Show one trial in a pygame window. Returns 0 when it ends, 1 when aborted."""

    pygame.init()
    pygame.display.set_caption("Visual Search Circle")
    surface = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)
    frame_clock = pygame.time.Clock()

    app = App(surface=surface)
    images = ImageStore(image_dir)
    images.load(config.image_ids())

    trial_clock = clock or RealClock()

    def make_trial(
        display: PygameDisplay, scheduler: ClockScheduler, keyboard: KeyboardListener
    ) -> VisualSearchCircleTrial:
        return build_visual_search_circle_trial(
            config=config,
            display=display,
            scheduler=scheduler,
            keyboard=keyboard,
            on_finish=on_finish,
            seed=seed,
        )

    # Paper size does not depend on the start angle.
    paper_size = compute_layout(config, 0).paper_size
    screen = TrialScreen(
        app,
        trial_factory=make_trial,
        clock=trial_clock,
        images=images,
        paper_size=paper_size,
    )
    app.push(screen)

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            frame_clock.tick(TARGET_FPS)
    finally:
        pygame.quit()

    return 1 if screen.aborted else 0
