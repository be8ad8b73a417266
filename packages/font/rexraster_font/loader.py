"""Single-flight, process-wide font atlas loading."""

from __future__ import annotations

import asyncio
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeout

from rexraster_core.errors import AtlasNotReady, ColorKeyLockedError
from rexraster_core.logging_setup import get_logger

from .atlas import DEFAULT_BACKGROUND_COLOR, FontSource, build_atlas, parse_color_key
from .models import Atlas

log = get_logger("font")


class AtlasLoader:
    """Builds one atlas at most once and hands the same value to every caller.

    The first ``load()`` starts the build on the calling thread; concurrent callers,
    threaded or asyncio, wait on the same future. A failed build is reported to all
    waiters and leaves the loader empty so a later ``load()`` can try again.
    """

    def __init__(self, background_color: int | str = DEFAULT_BACKGROUND_COLOR) -> None:
        self._lock = threading.Lock()
        self._future: Future[Atlas] | None = None
        self._background_color = parse_color_key(background_color)
        self._builds = 0

    @property
    def background_color(self) -> int:
        return self._background_color

    @background_color.setter
    def background_color(self, value: int | str) -> None:
        key = parse_color_key(value)
        with self._lock:
            if self._future is not None and key != self._background_color:
                raise ColorKeyLockedError(
                    f"color key is fixed at 0x{self._background_color:08X} once an atlas is loading or loaded; "
                    "call reset() first"
                )
            self._background_color = key

    @property
    def builds(self) -> int:
        """Number of build executions started since construction."""
        return self._builds

    @property
    def ready(self) -> bool:
        future = self._future
        return future is not None and future.done() and future.exception() is None

    @property
    def atlas(self) -> Atlas:
        """The built atlas, without waiting."""
        future = self._future
        if future is None or not future.done() or future.exception() is not None:
            raise AtlasNotReady("font atlas has not been built")
        return future.result()

    def load(
        self,
        source: FontSource,
        char_width: int | None = None,
        char_height: int | None = None,
    ) -> Atlas:
        with self._lock:
            future = self._future
            owner = future is None
            if owner:
                future = Future()
                future.set_running_or_notify_cancel()
                self._future = future
                self._builds += 1
                key = self._background_color

        if not owner:
            return future.result()

        try:
            atlas = build_atlas(source, char_width, char_height, background_color=key)
        except BaseException as exc:
            with self._lock:
                if self._future is future:
                    self._future = None
            future.set_exception(exc)
            raise
        future.set_result(atlas)
        return atlas

    async def load_async(
        self,
        source: FontSource,
        char_width: int | None = None,
        char_height: int | None = None,
    ) -> Atlas:
        return await asyncio.to_thread(self.load, source, char_width, char_height)

    def wait(self, timeout: float | None = None) -> Atlas:
        """Wait for a loaded or in-flight atlas; never starts a build."""
        future = self._future
        if future is None:
            raise AtlasNotReady("no font atlas has been requested; call load() first")
        try:
            return future.result(timeout=timeout)
        except FutureTimeout:
            raise AtlasNotReady(f"font atlas not ready after {timeout}s") from None

    async def wait_async(self) -> Atlas:
        future = self._future
        if future is None:
            raise AtlasNotReady("no font atlas has been requested; call load() first")
        return await asyncio.wrap_future(future)

    def reset(self) -> None:
        """Drop the cached atlas. An in-flight build still completes for its waiters."""
        with self._lock:
            self._future = None
        log.debug("font atlas cache reset", extra={"event": "font_atlas_reset"})


_default_loader = AtlasLoader()


def default_loader() -> AtlasLoader:
    return _default_loader
