"""Headless media elements and event dispatch."""

import inspect
from typing import Any, Callable

from .exceptions import MediaPlaybackError
from .log_config import get_context_logger
from .quality import PreloadPolicy


Listener = Callable[..., Any]


class EventEmitter:
    """
    Named-event dispatcher with DOM-like semantics.

    Listeners run in registration order. Coroutine listeners are awaited
    before the next listener runs. A listener that raises is logged and the
    remaining listeners still run.
    """

    def __init__(self, name: str = "emitter"):
        self.name = name
        self._listeners: dict[str, list[Listener]] = {}
        self._emitter_logger = get_context_logger("event_emitter")

    def add_listener(self, event: str, listener: Listener) -> None:
        listeners = self._listeners.setdefault(event, [])
        if listener not in listeners:
            listeners.append(listener)

    def remove_listener(self, event: str, listener: Listener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def once(self, event: str, listener: Listener) -> Listener:
        """Register a listener that removes itself before it runs.

        Returns:
            The wrapper actually registered (pass it to remove_listener)
        """

        def wrapper(**detail: Any) -> Any:
            self.remove_listener(event, wrapper)
            return listener(**detail)

        self.add_listener(event, wrapper)
        return wrapper

    def listener_count(self, event: str | None = None) -> int:
        if event is not None:
            return len(self._listeners.get(event, []))
        return sum(len(listeners) for listeners in self._listeners.values())

    async def emit(self, event: str, /, **detail: Any) -> None:
        """Dispatch an event to a snapshot of the current listeners."""
        for listener in list(self._listeners.get(event, [])):
            try:
                result = listener(**detail)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                self._emitter_logger.exception(
                    "Event listener failed", emitter=self.name, event_name=event
                )


class ListenerGroup:
    """
    Registrations made for one wiring cycle, removable in one call.

    Example:
        >>> group = ListenerGroup()
        >>> group.add(video, "play", on_play)
        >>> group.remove_all()
    """

    def __init__(self):
        self._registrations: list[tuple[EventEmitter, str, Listener]] = []

    def add(self, emitter: EventEmitter, event: str, listener: Listener) -> None:
        emitter.add_listener(event, listener)
        self._registrations.append((emitter, event, listener))

    def remove_all(self) -> None:
        for emitter, event, listener in self._registrations:
            emitter.remove_listener(event, listener)
        self._registrations.clear()

    def __len__(self) -> int:
        return len(self._registrations)


class MediaElement(EventEmitter):
    """
    In-process stand-in for a video element.

    The embedding application (or a test) reports media lifecycle by
    emitting "loadstart", "canplay", "loadeddata", "progress", "ended" and
    "error". play() emits "play" itself and raises MediaPlaybackError when a
    failure has been injected with fail_next_play().
    """

    def __init__(self, name: str = "video", poster: str | None = None):
        super().__init__(name)
        self.src: str | None = None
        self.poster = poster
        self.preload = PreloadPolicy.METADATA
        self.current_time = 0.0
        self.paused = True
        self.visible = True
        self.load_count = 0
        self.play_count = 0
        self._play_failure: Exception | None = None
        self.logger = get_context_logger("media_element")

    def load(self) -> None:
        """Restart loading of the current source."""
        self.load_count += 1
        self.current_time = 0.0
        self.paused = True
        self.logger.debug("Media load requested", element=self.name, src=self.src)

    def seek(self, position: float) -> None:
        self.current_time = max(0.0, position)

    def pause(self) -> None:
        self.paused = True

    def fail_next_play(self, error: Exception | None = None) -> None:
        """Make the next play() call reject."""
        self._play_failure = error or MediaPlaybackError("Playback was refused", element=self.name)

    async def play(self) -> None:
        """Start playback and dispatch "play".

        Raises:
            MediaPlaybackError: If a failure was injected
        """
        if self._play_failure is not None:
            error, self._play_failure = self._play_failure, None
            if isinstance(error, MediaPlaybackError):
                raise error
            raise MediaPlaybackError(str(error), element=self.name) from error

        self.play_count += 1
        self.paused = False
        await self.emit("play")


__all__ = ["EventEmitter", "ListenerGroup", "MediaElement", "Listener"]
