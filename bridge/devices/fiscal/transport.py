"""
Fiscal Register Transport Layer.

Serial I/O for one fiscal register with a strict single-in-flight rule:
every command goes through a FIFO queue drained by one worker task, so a
frame is only written after the previous command has been answered or
has exhausted its retries. The protocol cannot correlate overlapping
answers, so this ordering must hold for every caller.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Optional, Sequence

from core.exceptions import DeviceNotConnectedError, NoFrameError
from loggers import hex_dump, logger

from .constants import (
    DEFAULT_RETRIES,
    DEFAULT_RETRY_DELAY_S,
    FLUSH_TIMEOUT_S,
    POLL_INTERVAL_S,
    READ_CHUNK_SIZE,
    RESPONSE_TIMEOUT_S,
    SEQUENCE_MAX,
    SEQUENCE_MIN,
)
from .frame import FiscalFrame, has_complete_wrapper


@dataclass
class PendingCommand:
    """A queued command and the future its caller awaits."""

    command: int
    params: tuple[str, ...]
    retries: int
    retry_delay: float
    future: asyncio.Future = field(repr=False)


class FiscalTransport:
    """
    Transport layer for the fiscal register protocol.

    Attributes:
        device_id: Label used in logs and errors.
        response_timeout: Seconds to wait for a complete answer per attempt.
        retries: Default number of attempts per command.
        retry_delay: Default pause between attempts, in seconds.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        device_id: str,
        response_timeout: float = RESPONSE_TIMEOUT_S,
        retries: int = DEFAULT_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY_S,
        poll_interval: float = POLL_INTERVAL_S,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self.device_id = device_id
        self.response_timeout = response_timeout
        self.retries = max(1, retries)
        self.retry_delay = max(0.0, retry_delay)
        self._poll_interval = poll_interval

        self._sequence = SEQUENCE_MIN
        self._queue: asyncio.Queue[PendingCommand] = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def is_open(self) -> bool:
        return not self._closed

    @property
    def sequence(self) -> int:
        """Sequence number used by the last frame."""
        return self._sequence

    def next_sequence(self) -> int:
        """Advance the wrapping sequence counter."""
        self._sequence = SEQUENCE_MIN if self._sequence >= SEQUENCE_MAX else self._sequence + 1
        return self._sequence

    # =========================================================================
    # Public API
    # =========================================================================

    async def send_command(
        self,
        command: int,
        params: Sequence[object] = (),
        retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ) -> bytes:
        """
        Queue a command and wait for its raw answer.

        Args:
            command: 16-bit command code.
            params: Data parameters, joined with TAB.
            retries: Attempts for this command (default: transport setting).
            retry_delay: Pause between attempts in seconds.

        Returns:
            Raw answer bytes containing a complete wrapper.

        Raises:
            NoFrameError: No complete answer after all attempts.
            DeviceNotConnectedError: The transport is closed or the port hit EOF.
        """
        if self._closed:
            raise DeviceNotConnectedError(
                f"Fiscal register {self.device_id} is not connected",
                device_name=self.device_id,
            )

        self._ensure_worker()
        loop = asyncio.get_running_loop()
        pending = PendingCommand(
            command=command,
            params=tuple(str(p) for p in params),
            retries=max(1, retries if retries else self.retries),
            retry_delay=max(0.0, retry_delay if retry_delay is not None else self.retry_delay),
            future=loop.create_future(),
        )
        await self._queue.put(pending)
        return await pending.future

    async def close(self) -> None:
        """Stop the worker, fail queued commands and close the port."""
        self._closed = True

        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

        while not self._queue.empty():
            pending = self._queue.get_nowait()
            if not pending.future.done():
                pending.future.set_exception(
                    DeviceNotConnectedError(
                        f"Fiscal register {self.device_id} closed",
                        device_name=self.device_id,
                    )
                )

        self._writer.close()
        try:
            await self._writer.wait_closed()
        except Exception as e:
            logger.debug(f"[{self.device_id}] Close error (ignored): {e}")

    # =========================================================================
    # Worker
    # =========================================================================

    def _ensure_worker(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(
                self._run(), name=f"fiscal-{self.device_id}"
            )

    async def _run(self) -> None:
        """Drain the command queue one command at a time."""
        while True:
            pending = await self._queue.get()
            try:
                if pending.future.done():
                    # Caller gave up before the command was sent
                    continue
                try:
                    result = await self._execute(pending)
                except asyncio.CancelledError:
                    if not pending.future.done():
                        pending.future.cancel()
                    raise
                except Exception as e:
                    if not pending.future.done():
                        pending.future.set_exception(e)
                else:
                    if not pending.future.done():
                        pending.future.set_result(result)
            finally:
                self._queue.task_done()

    async def _execute(self, pending: PendingCommand) -> bytes:
        last_response = b""

        for attempt in range(1, pending.retries + 1):
            response = await self._send_once(pending.command, pending.params)
            if has_complete_wrapper(response):
                return response

            last_response = response
            if attempt < pending.retries:
                logger.warning(
                    f"[{self.device_id}] No complete answer for CMD={pending.command:04x}. "
                    f"Retrying (#{attempt + 1}/{pending.retries})"
                )
                if pending.retry_delay > 0:
                    await asyncio.sleep(pending.retry_delay)

        logger.error(
            f"[{self.device_id}] CMD={pending.command:04x} unanswered after "
            f"{pending.retries} attempt(s)"
        )
        raise NoFrameError(self.device_id, pending.command, last_response)

    async def _send_once(self, command: int, params: tuple[str, ...]) -> bytes:
        """Write one frame and collect whatever arrives before the timeout."""
        frame = FiscalFrame.from_params(self.next_sequence(), command, params)
        data = frame.to_bytes()

        await self._flush_input()

        shown = frame.data.decode("ascii", errors="replace").replace("\t", "<TAB>")
        logger.debug(f"[{self.device_id}] TX CMD={command:04x} DATA=\"{shown}\"")
        logger.debug(f"[{self.device_id}] TX: {hex_dump(data)}")

        self._writer.write(data)
        await self._writer.drain()

        response = await self._collect_response()
        if has_complete_wrapper(response):
            logger.debug(f"[{self.device_id}] RX: {hex_dump(response)}")
        elif response:
            logger.warning(
                f"[{self.device_id}] Timeout, partial answer ({len(response)} B): "
                f"{hex_dump(response)}"
            )
        else:
            logger.warning(f"[{self.device_id}] Timeout, no answer")
        return response

    async def _collect_response(self) -> bytes:
        """Accumulate input until a complete wrapper or the response timeout."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.response_timeout
        buffer = bytearray()

        while not has_complete_wrapper(buffer):
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            try:
                chunk = await asyncio.wait_for(
                    self._reader.read(READ_CHUNK_SIZE),
                    timeout=min(self._poll_interval, remaining),
                )
            except asyncio.TimeoutError:
                continue

            if not chunk:
                self._closed = True
                raise DeviceNotConnectedError(
                    f"Fiscal register {self.device_id} port closed (EOF)",
                    device_name=self.device_id,
                )
            buffer.extend(chunk)

        return bytes(buffer)

    async def _flush_input(self) -> None:
        """Discard stale bytes left over from a previous exchange."""
        while True:
            try:
                junk = await asyncio.wait_for(
                    self._reader.read(READ_CHUNK_SIZE),
                    timeout=FLUSH_TIMEOUT_S,
                )
            except asyncio.TimeoutError:
                return
            if not junk:
                return
            logger.debug(f"[{self.device_id}] Flushed {len(junk)} bytes: {hex_dump(junk)}")
