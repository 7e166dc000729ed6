"""Test doubles shared by the comms test suite."""

import asyncio

import httpx


class RecordingScheduler:
    """Schedules on the running loop and keeps every handle it hands out."""

    def __init__(self):
        self.handles = []
        self.delays = []

    def call_later(self, delay, callback):
        handle = asyncio.get_running_loop().call_later(delay, callback)
        self.delays.append(delay)
        self.handles.append(handle)
        return handle


class TrackingStream(httpx.AsyncByteStream):
    """Response body that records whether anyone read it."""

    def __init__(self, chunks=(b"",), delay: float = 0):
        self.chunks = chunks
        self.delay = delay
        self.read = False
        self.closed = False

    async def __aiter__(self):
        self.read = True
        for chunk in self.chunks:
            if self.delay:
                await asyncio.sleep(self.delay)
            yield chunk

    async def aclose(self):
        self.closed = True

