"""
Pytest configuration for bridge tests.

Adds the bridge source root to sys.path so that tests can import modules
the same way the application does, and provides an in-memory serial line.
"""

import asyncio
import sys
from pathlib import Path
from typing import Callable, Optional

import pytest


# Add the bridge directory to sys.path for proper imports
bridge_path = Path(__file__).parent.parent
if str(bridge_path) not in sys.path:
    sys.path.insert(0, str(bridge_path))


class FakeSerial:
    """
    Scripted serial line.

    Acts as the StreamWriter; ``reader`` is the matching StreamReader.
    Every write is recorded and passed to ``responder``, whose return
    value (if any) is fed back as received bytes. Must be created inside
    a running event loop.
    """

    def __init__(self, responder: Optional[Callable[[bytes], Optional[bytes]]] = None) -> None:
        self.reader = asyncio.StreamReader()
        self.written: list[bytes] = []
        self.responder = responder
        self.closed = False

    def write(self, data: bytes) -> None:
        data = bytes(data)
        self.written.append(data)
        if self.responder is not None:
            reply = self.responder(data)
            if reply:
                self.reader.feed_data(reply)

    async def drain(self) -> None:
        await asyncio.sleep(0)

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        pass

    def feed(self, data: bytes) -> None:
        self.reader.feed_data(data)

    def connector(self):
        """Coroutine usable as a device ``connector``."""

        async def open_connection(**kwargs):
            return self.reader, self

        return open_connection


@pytest.fixture
def fake_serial():
    """Factory for FakeSerial (call it inside the test's event loop)."""
    return FakeSerial
