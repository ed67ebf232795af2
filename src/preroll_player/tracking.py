"""View tracking and external ad-network notifiers."""

from dataclasses import asdict, dataclass
from typing import Any, Callable

from .events import VIEW_TRACKED_EVENT, PlayerEvents
from .log_config import get_context_logger
from .media import EventEmitter
from .metrics import MetricLabels, MetricsCollector, NoOpMetrics, PlayerMetrics
from .time_provider import RealtimeTimeProvider, TimeProvider


@dataclass
class ViewTrackedEvent:
    """Payload of the videoViewTracked event."""

    video_src: str
    timestamp: int  # milliseconds since epoch
    quality: str
    connection_speed: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ViewNotifier:
    """
    An optional external observer of view events.

    Attributes:
        name: Identifier used in logs and metrics
        notify: Called once per tracked view with the event
        available: Capability check; the notifier is skipped when it
            returns False
    """

    name: str
    notify: Callable[[ViewTrackedEvent], Any]
    available: Callable[[], bool] | None = None

    def is_available(self) -> bool:
        return self.available is None or bool(self.available())


class NotifierRegistry:
    """Ordered collection of view notifiers."""

    def __init__(self, notifiers: list[ViewNotifier] | None = None):
        self._notifiers: list[ViewNotifier] = list(notifiers or [])

    def register(self, notifier: ViewNotifier) -> None:
        self._notifiers.append(notifier)

    def unregister(self, name: str) -> None:
        self._notifiers = [n for n in self._notifiers if n.name != name]

    def __iter__(self):
        return iter(list(self._notifiers))

    def __len__(self) -> int:
        return len(self._notifiers)


def pop_magic_notifier(pop_magic: Any) -> ViewNotifier:
    """Notifier marking a pop-under network's slot as opened.

    Accepts objects exposing ``set_as_opened()`` or ``setAsOpened()``.
    """

    def _method() -> Callable[[], Any] | None:
        for attr in ("set_as_opened", "setAsOpened"):
            method = getattr(pop_magic, attr, None)
            if callable(method):
                return method
        return None

    return ViewNotifier(
        name="pop_magic",
        notify=lambda event: _method()(),
        available=lambda: pop_magic is not None and _method() is not None,
    )


def ad_provider_notifier(queue: Any) -> ViewNotifier:
    """Notifier pushing an impression command onto an ad provider's queue."""
    return ViewNotifier(
        name="ad_provider",
        notify=lambda event: queue.append({"serve": {"type": "impression"}}),
        available=lambda: isinstance(queue, list),
    )


class ViewTracker:
    """
    Fires the one-time "view tracked" side effect for a source load.

    Each notifier is called under its own guard so that a failing notifier
    cannot prevent the others or the bus event. reset() re-arms the tracker
    for the next source.
    """

    def __init__(
        self,
        registry: NotifierRegistry | None = None,
        bus: EventEmitter | None = None,
        metrics: MetricsCollector | None = None,
        time_provider: TimeProvider | None = None,
    ):
        self.registry = registry or NotifierRegistry()
        self.bus = bus or EventEmitter("document")
        self.metrics = metrics or NoOpMetrics()
        self.time_provider = time_provider or RealtimeTimeProvider()
        self.tracked = False
        self.logger = get_context_logger("view_tracker")

    def reset(self) -> None:
        self.tracked = False

    async def track(self, video_src: str, quality: str, connection_speed: str) -> ViewTrackedEvent | None:
        """Track a view unless one was already tracked for this load.

        Returns:
            The dispatched event, or None when already tracked
        """
        if self.tracked:
            return None
        self.tracked = True

        event = ViewTrackedEvent(
            video_src=video_src,
            timestamp=int(self.time_provider.now() * 1000),
            quality=quality,
            connection_speed=connection_speed,
        )

        for notifier in self.registry:
            try:
                if not notifier.is_available():
                    continue
                notifier.notify(event)
                self.logger.debug("View notifier called", notifier=notifier.name)
            except Exception as e:
                self.metrics.increment(
                    PlayerMetrics.NOTIFIER_FAILURES, labels={MetricLabels.NOTIFIER: notifier.name}
                )
                self.logger.warning(
                    PlayerEvents.NOTIFIER_FAILED,
                    notifier=notifier.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )

        await self.bus.emit(VIEW_TRACKED_EVENT, event=event)
        self.metrics.increment(PlayerMetrics.VIEWS_TRACKED)
        self.logger.info(PlayerEvents.VIEW_TRACKED, **event.to_dict())
        return event


__all__ = [
    "ViewTrackedEvent",
    "ViewNotifier",
    "NotifierRegistry",
    "ViewTracker",
    "pop_magic_notifier",
    "ad_provider_notifier",
]
