"""Bidirectional byte relay between the two legs of a session."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass

from pipetunnel.models.enums import Leg
from pipetunnel.tunnel.session import Session
from pipetunnel.utils.logger import get_logger

logger = get_logger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass
class RelayOutcome:
    """Terminal event of one relay direction."""

    leg: Leg
    error: BaseException | None = None

    @property
    def reason(self) -> str:
        if self.error is not None:
            return f"{self.leg.value} error"
        return f"{self.leg.value} closed"


async def pump(
    source: Leg,
    reader: asyncio.StreamReader,
    dest: Leg,
    writer: asyncio.StreamWriter,
    on_chunk: Callable[[int], None],
    pending: bytes = b"",
) -> RelayOutcome:
    """
    Pipe data from reader to writer until EOF or error.

    Waits for the writer to drain before reading the next chunk, so a slow
    destination pauses the source instead of growing a buffer.

    Args:
        source: Leg the reader belongs to.
        reader: AsyncIO stream reader.
        dest: Leg the writer belongs to.
        writer: AsyncIO stream writer.
        on_chunk: Called with the size of every chunk before it is written.
        pending: Bytes already taken from the source, written before
            anything else is read.

    Returns:
        The leg that ended the pipe and the error, if any.
    """
    if pending:
        on_chunk(len(pending))
        try:
            writer.write(pending)
            await writer.drain()
        except OSError as e:
            return RelayOutcome(dest, e)

    while True:
        try:
            data = await reader.read(CHUNK_SIZE)
        except OSError as e:
            return RelayOutcome(source, e)
        if not data:
            return RelayOutcome(source)

        on_chunk(len(data))
        try:
            writer.write(data)
            await writer.drain()
        except OSError as e:
            return RelayOutcome(dest, e)


async def relay(session: Session) -> RelayOutcome:
    """
    Forward both directions of a RELAYING session until one of them ends,
    then tear the session down.
    """
    early = bytes(session.early_data)
    session.early_data.clear()
    forward = asyncio.create_task(
        pump(
            session.near_leg,
            session.local_reader,
            session.far_leg,
            session.peer_writer,
            session.add_forward,
            early,
        )
    )
    reverse = asyncio.create_task(
        pump(
            session.far_leg,
            session.peer_reader,
            session.near_leg,
            session.local_writer,
            session.add_reverse,
        )
    )

    try:
        done, _ = await asyncio.wait(
            {forward, reverse}, return_when=asyncio.FIRST_COMPLETED
        )
        outcome = (forward if forward in done else reverse).result()

        if outcome.error is not None:
            logger.warning(
                f"{session.log_prefix} {outcome.leg.value} error: {outcome.error}"
            )
        session.teardown(outcome.reason, outcome.error)
        return outcome
    finally:
        for task in (forward, reverse):
            task.cancel()
        await asyncio.gather(forward, reverse, return_exceptions=True)


async def watch_dialing(session: Session, limit: int = CHUNK_SIZE) -> RelayOutcome:
    """
    Watch the near leg of a DIALING session until it closes or errors.

    Early data is moved into session.early_data, at most limit bytes; the
    rest waits in the transport buffer. Once something is held, EOF alone
    does not end the watch, because the held bytes are still owed to the far
    leg. Only an abort of the near connection does.

    Cancelled by the caller when the dial finishes first.
    """
    reader = session.local_reader
    try:
        while len(session.early_data) < limit:
            data = await reader.read(limit - len(session.early_data))
            if not data:
                if not session.early_data:
                    return RelayOutcome(session.near_leg)
                break
            session.early_data += data
        # Shielded: cancelling this watch must not cancel the shared close waiter.
        await asyncio.shield(session.local_writer.wait_closed())
    except OSError as e:
        return RelayOutcome(session.near_leg, e)
    return RelayOutcome(session.near_leg)
