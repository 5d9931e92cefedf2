"""Tracks the scan session running for each artist."""

import logging
from contextlib import asynccontextmanager

from core.exceptions import SyncInProgressError
from sync.session import ScanSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """At most one running session per artist.

    All access happens on the event loop thread, so a plain dict suffices.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, ScanSession] = {}

    def get(self, artist_id: str) -> ScanSession | None:
        return self._sessions.get(str(artist_id))

    def is_running(self, artist_id: str) -> bool:
        return str(artist_id) in self._sessions

    def register(self, session: ScanSession) -> None:
        """Claim the artist's slot.

        Raises:
            SyncInProgressError: If a session is already running for the artist
        """
        artist_id = session.artist.artist_id
        if artist_id in self._sessions:
            raise SyncInProgressError(
                f"A sync for artist {artist_id} is already running",
                details={"artist_id": artist_id},
            )
        self._sessions[artist_id] = session
        logger.debug(f"Registered scan session for artist {artist_id}")

    def release(self, session: ScanSession) -> None:
        artist_id = session.artist.artist_id
        if self._sessions.get(artist_id) is session:
            del self._sessions[artist_id]
            logger.debug(f"Released scan session for artist {artist_id}")

    @asynccontextmanager
    async def running(self, session: ScanSession):
        """Hold the artist's slot for the duration of the block."""
        self.register(session)
        try:
            yield session
        finally:
            self.release(session)

    def stop(self, artist_id: str) -> bool:
        """Set the stop flag of the artist's running session, if any."""
        session = self.get(artist_id)
        if session is None:
            return False
        session.stop()
        return True
