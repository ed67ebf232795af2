"""Connection-quality observation and classification."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Protocol, runtime_checkable

from .events import PlayerEvents
from .log_config import get_context_logger


class ConnectionSpeed(str, Enum):
    """Coarse connection class."""

    SLOW = "slow"
    MEDIUM = "medium"
    FAST = "fast"


@dataclass
class ConnectionInfo:
    """Snapshot of a connection-quality signal.

    Attributes:
        effective_type: Effective connection type (slow-2g, 2g, 3g, 4g)
        downlink: Estimated bandwidth in Mbit/s
        rtt: Estimated round-trip time in milliseconds
        save_data: User requested reduced data usage
    """

    effective_type: str | None = None
    downlink: float = 0.0
    rtt: float = 0.0
    save_data: bool = False


@runtime_checkable
class ConnectionSignal(Protocol):
    """External source of connection-quality information."""

    @property
    def info(self) -> ConnectionInfo:
        ...

    def add_listener(self, callback: Callable[[], Any]) -> None:
        ...

    def remove_listener(self, callback: Callable[[], Any]) -> None:
        ...


class StaticConnectionSignal:
    """In-process connection signal updated by the embedding application.

    Examples:
        >>> signal = StaticConnectionSignal(ConnectionInfo(effective_type="4g"))
        >>> signal.update(effective_type="2g")  # notifies listeners
    """

    def __init__(self, info: ConnectionInfo | None = None):
        self._info = info or ConnectionInfo()
        self._listeners: list[Callable[[], Any]] = []

    @property
    def info(self) -> ConnectionInfo:
        return self._info

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def add_listener(self, callback: Callable[[], Any]) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[], Any]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def update(self, **changes: Any) -> None:
        """Replace fields of the current info and notify listeners."""
        for key, value in changes.items():
            if not hasattr(self._info, key):
                raise AttributeError(f"ConnectionInfo has no field {key!r}")
            setattr(self._info, key, value)
        for callback in list(self._listeners):
            callback()


def classify_effective_type(effective_type: str | None) -> ConnectionSpeed:
    """Map an effective connection type to a speed class.

    slow-2g and 2g are slow, 3g is medium, 4g and anything unrecognised
    are fast.
    """
    if effective_type in ("slow-2g", "2g"):
        return ConnectionSpeed.SLOW
    if effective_type == "3g":
        return ConnectionSpeed.MEDIUM
    return ConnectionSpeed.FAST


class NetworkSpeedObserver:
    """
    Classifies a connection signal and re-classifies on change notifications.

    Without a signal the classification stays at medium and no quality hint
    is produced. Listeners registered with add_listener() are called
    synchronously with the new speed after every re-classification.
    """

    def __init__(self, signal: ConnectionSignal | None = None):
        self.signal = signal
        self.speed = ConnectionSpeed.MEDIUM
        self.quality_hint: str | None = None
        self._listeners: list[Callable[[ConnectionSpeed], Any]] = []
        self._subscribed = False
        self.logger = get_context_logger("network_observer")

    def start(self) -> ConnectionSpeed:
        """Classify the current signal and subscribe to its changes."""
        if self.signal is None:
            self.logger.debug("No connection signal, keeping default", speed=self.speed.value)
            return self.speed

        self._classify()
        if not self._subscribed:
            self.signal.add_listener(self._on_change)
            self._subscribed = True
        return self.speed

    def stop(self) -> None:
        if self.signal is not None and self._subscribed:
            self.signal.remove_listener(self._on_change)
            self._subscribed = False

    def add_listener(self, callback: Callable[[ConnectionSpeed], Any]) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[ConnectionSpeed], Any]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _on_change(self) -> None:
        self._classify()
        for callback in list(self._listeners):
            callback(self.speed)

    def _classify(self) -> None:
        # Imported here: quality depends on ConnectionSpeed from this module
        from .quality import initial_quality_for

        info = self.signal.info if self.signal is not None else ConnectionInfo()
        self.speed = classify_effective_type(info.effective_type)
        self.quality_hint = initial_quality_for(self.speed)
        self.logger.info(
            PlayerEvents.CONNECTION_CLASSIFIED,
            effective_type=info.effective_type,
            speed=self.speed.value,
            quality_hint=self.quality_hint,
        )


__all__ = [
    "ConnectionSpeed",
    "ConnectionInfo",
    "ConnectionSignal",
    "StaticConnectionSignal",
    "classify_effective_type",
    "NetworkSpeedObserver",
]
