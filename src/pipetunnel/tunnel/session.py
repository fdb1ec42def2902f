"""
Session lifecycle bookkeeping.

A Session is one accepted connection plus the connection dialed for it. It
owns the traffic counters and the periodic stats task, and its teardown runs
exactly once no matter how many close/error events race to trigger it.
"""

import asyncio
import itertools

from pipetunnel.models.enums import Leg, Role, SessionState
from pipetunnel.utils.logger import get_logger
from pipetunnel.utils.units import format_bytes

logger = get_logger(__name__)

# Process-wide id sequence. Only touched from the event loop thread.
_session_ids = itertools.count(1)


def next_session_id() -> int:
    """Allocate the next session id. Ids are never reused."""
    return next(_session_ids)


class Session:
    """
    One tunnel session: near leg, far leg, counters and stats timer.

    bytes_forward counts near -> far traffic, bytes_reverse far -> near.
    In log lines they appear as in= and out=.
    """

    def __init__(
        self,
        role: Role,
        near_leg: Leg,
        far_leg: Leg,
        local_reader: asyncio.StreamReader,
        local_writer: asyncio.StreamWriter,
        stats_interval: float,
    ):
        """
        Initialize a session in DIALING state.

        Args:
            role: Tunnel role, used as the log prefix.
            near_leg: Name of the accepted leg.
            far_leg: Name of the dialed leg.
            local_reader: Reader of the accepted connection.
            local_writer: Writer of the accepted connection.
            stats_interval: Seconds between traffic reports.
        """
        self.id = next_session_id()
        self.role = role
        self.near_leg = near_leg
        self.far_leg = far_leg
        self.local_reader = local_reader
        self.local_writer = local_writer
        self.peer_reader: asyncio.StreamReader | None = None
        self.peer_writer: asyncio.StreamWriter | None = None
        # Near-leg bytes read while DIALING, sent first once RELAYING.
        self.early_data = bytearray()
        self.stats_interval = stats_interval

        self.state = SessionState.DIALING
        self.bytes_forward = 0
        self.bytes_reverse = 0
        self.close_reason: str | None = None

        self._stats_task: asyncio.Task | None = None
        self._closed = asyncio.Event()

    @property
    def log_prefix(self) -> str:
        return f"[{self.role.value}#{self.id}]"

    @property
    def is_closed(self) -> bool:
        return self.state == SessionState.CLOSED

    def traffic(self) -> str:
        return (
            f"in={format_bytes(self.bytes_forward)} "
            f"out={format_bytes(self.bytes_reverse)}"
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start_stats(self) -> None:
        """Start the periodic traffic report."""
        if self._stats_task is None and not self.is_closed:
            self._stats_task = asyncio.create_task(self._report_loop())

    async def _report_loop(self) -> None:
        while True:
            await asyncio.sleep(self.stats_interval)
            logger.info(f"{self.log_prefix} traffic {self.traffic()}")

    def attach_peer(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        """Record the dialed leg and move to RELAYING."""
        if self.is_closed:
            raise RuntimeError(f"{self.log_prefix} session already closed")
        self.peer_reader = reader
        self.peer_writer = writer
        self.state = SessionState.RELAYING

    def add_forward(self, n: int) -> None:
        if self.state == SessionState.RELAYING:
            self.bytes_forward += n

    def add_reverse(self, n: int) -> None:
        if self.state == SessionState.RELAYING:
            self.bytes_reverse += n

    def teardown(self, reason: str, error: BaseException | None = None) -> bool:
        """
        Close the session once.

        Cancels the stats task, closes both legs and logs the summary line.
        Runs synchronously, so concurrent triggers on the event loop collapse
        into the first one.

        Args:
            reason: Human-readable close reason, e.g. "local closed".
            error: The error that caused the close, if any.

        Returns:
            True if this call performed the teardown, False if the session
            was already closed.
        """
        if self.is_closed:
            return False
        self.state = SessionState.CLOSED
        self.close_reason = reason

        if self._stats_task is not None:
            self._stats_task.cancel()

        for writer in (self.local_writer, self.peer_writer):
            if writer is not None and not writer.is_closing():
                writer.close()

        summary = f"{self.log_prefix} closed ({reason}) total {self.traffic()}"
        if error is not None:
            logger.warning(summary)
        else:
            logger.info(summary)

        self._closed.set()
        return True

    async def wait_closed(self, timeout: float = 1.0) -> None:
        """Wait for teardown and for both legs to finish closing."""
        await self._closed.wait()
        for writer in (self.local_writer, self.peer_writer):
            if writer is None:
                continue
            try:
                await asyncio.wait_for(writer.wait_closed(), timeout=timeout)
            except (OSError, asyncio.TimeoutError):
                pass
        if self._stats_task is not None:
            await asyncio.gather(self._stats_task, return_exceptions=True)
