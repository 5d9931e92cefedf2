"""Per-sync context passed explicitly to the resolver and orchestrator."""

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from core.cancellation import CancellationToken, cancellable_sleep
from core.telemetry import SyncTelemetry
from credits.extractor import generate_name_variants

logger = logging.getLogger(__name__)

MIN_SUB_REQUEST_DELAY_S = 0.5


class SyncState(StrEnum):
    IDLE = "idle"
    RETRYING_FAILED = "retrying_failed"
    FETCHING_NEW = "fetching_new"
    STOPPED = "stopped"


@dataclass(frozen=True)
class TargetArtist:
    """The artist whose credits are being collected."""

    artist_id: str
    name: str | None = None
    name_variants: tuple[str, ...] = ()

    @classmethod
    def create(cls, artist_id: str | int, name: str | None) -> "TargetArtist":
        return cls(
            artist_id=str(artist_id),
            name=name,
            name_variants=tuple(generate_name_variants(name)),
        )

    @property
    def display_name(self) -> str:
        return self.name or f"Artist ID {self.artist_id}"


@dataclass
class ScanSession:
    """State of one sync run: pacing, stop flag, throttle indicator, telemetry.

    Created when a sync starts and discarded when it ends.
    """

    artist: TargetArtist
    request_delay: float
    cancel: CancellationToken = field(default_factory=CancellationToken)
    telemetry: SyncTelemetry = field(default_factory=SyncTelemetry)
    state: SyncState = SyncState.IDLE
    throttled: bool = False
    last_throttle_wait: float | None = None
    items_done: int = 0
    items_total: int = 0

    @property
    def sub_request_delay(self) -> float:
        """Delay between the sub-fetches made while resolving one item."""
        return max(MIN_SUB_REQUEST_DELAY_S, self.request_delay / 2)

    @property
    def stopped(self) -> bool:
        return self.cancel.cancelled

    def stop(self) -> None:
        self.cancel.cancel(f"Scan for {self.artist.display_name} stopped by user")

    def on_throttle(self, wait_seconds: float) -> None:
        """Throttle signal from the HTTP client."""
        self.throttled = True
        self.last_throttle_wait = wait_seconds
        self.telemetry.record_throttle(wait_seconds)

    def request_hooks(self) -> dict[str, Any]:
        """Keyword arguments threading this session through a client call."""
        return {"cancel": self.cancel, "on_throttle": self.on_throttle}

    def record_call(self, endpoint: str) -> None:
        """Count a completed API call; a response also ends any throttle episode."""
        self.telemetry.record_api_call(endpoint)
        self.throttled = False

    async def pause(self, seconds: float, where: str = "") -> None:
        """Inter-request delay that honors the stop flag."""
        await cancellable_sleep(seconds, self.cancel, where)
