"""Pytest configuration and fixtures."""

from __future__ import annotations

import pytest

from hackrfone.core.device import HackRfOne
from hackrfone.core.exceptions import USBError
from hackrfone.core.protocol import Request


class FakeTransport:
    """In-memory transport for testing without hardware.

    Records every transfer and replays scripted responses.
    """

    def __init__(
        self,
        device_version: int = 0x0102,
        board_id: int = 2,
        version_string: bytes = b"2021.03.1",
        gain_status: int = 1,
    ) -> None:
        self.device_version = device_version
        self.in_responses: dict[int, bytes] = {
            Request.BOARD_ID_READ: bytes([board_id]),
            Request.VERSION_STRING_READ: version_string.ljust(16, b"\x00"),
            Request.SET_LNA_GAIN: bytes([gain_status]),
            Request.SET_VGA_GAIN: bytes([gain_status]),
            Request.SET_TXVGA_GAIN: bytes([gain_status]),
        }
        self.control_log: list[tuple[str, int, int, int, bytes]] = []
        self.bulk_chunks: list[bytes] = []
        self.default_chunk = b"\xff\x01" * 1024
        self.bulk_calls = 0
        self.bulk_error: Exception | None = None
        self.fail_requests: set[int] = set()
        self.short_write: int | None = None
        self.timeouts: list[float] = []
        self.closed = False

    def control_in(self, request: int, value: int, index: int, length: int, timeout: float) -> bytes:
        self.control_log.append(("in", request, value, index, b""))
        self.timeouts.append(timeout)
        if request in self.fail_requests:
            raise USBError(-7, "pipe error")
        return self.in_responses.get(request, bytes(length))

    def control_out(self, request: int, value: int, index: int, data: bytes, timeout: float) -> int:
        self.control_log.append(("out", request, value, index, bytes(data)))
        self.timeouts.append(timeout)
        if request in self.fail_requests:
            raise USBError(-7, "pipe error")
        if self.short_write is not None:
            return self.short_write
        return len(data)

    def bulk_in(self, endpoint: int, max_length: int, timeout: float) -> bytes:
        self.bulk_calls += 1
        if self.bulk_error is not None:
            raise self.bulk_error
        if self.bulk_chunks:
            return self.bulk_chunks.pop(0)[:max_length]
        return self.default_chunk

    def close(self) -> None:
        self.closed = True

    def requests(self, direction: str | None = None) -> list[int]:
        """Request codes issued so far, optionally filtered by direction."""
        return [entry[1] for entry in self.control_log if direction in (None, entry[0])]

    def last(self, request: int) -> tuple[str, int, int, int, bytes]:
        """Most recent transfer for ``request``."""
        for entry in reversed(self.control_log):
            if entry[1] == request:
                return entry
        raise AssertionError(f"request {request} was never issued")


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Provide a fake transport at USB API 1.0.2."""
    return FakeTransport()


@pytest.fixture
def radio(fake_transport: FakeTransport) -> HackRfOne:
    """Provide an idle radio on the fake transport."""
    return HackRfOne(fake_transport)
