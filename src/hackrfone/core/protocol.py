"""Vendor request codes and command encoding for HackRF firmware.

All functions here are pure: they turn domain values into the exact
bytes and 16-bit ``value``/``index`` fields the firmware expects.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum

import numpy as np

from hackrfone.core.config import (
    AUTO_FILTER_RATIO,
    LNA_GAIN_MASK,
    LNA_GAIN_MAX,
    TXVGA_GAIN_MAX,
    VGA_GAIN_MASK,
    VGA_GAIN_MAX,
)
from hackrfone.core.exceptions import ArgumentError, GainError

U32_MAX = 0xFFFF_FFFF
U64_MAX = 0xFFFF_FFFF_FFFF_FFFF
MHZ = 1_000_000


class Request(IntEnum):
    """Vendor control request codes implemented by this library."""

    SET_TRANSCEIVER_MODE = 1
    SAMPLE_RATE_SET = 6
    BASEBAND_FILTER_BANDWIDTH_SET = 7
    BOARD_ID_READ = 14
    VERSION_STRING_READ = 15
    SET_FREQ = 16
    AMP_ENABLE = 17
    SET_LNA_GAIN = 19
    SET_VGA_GAIN = 20
    SET_TXVGA_GAIN = 21
    ANTENNA_ENABLE = 23
    RESET = 30
    CLKOUT_ENABLE = 32


class TransceiverMode(IntEnum):
    """Values for ``Request.SET_TRANSCEIVER_MODE``."""

    OFF = 0
    RECEIVE = 1


class BoardId(IntEnum):
    """Board identifiers returned by ``Request.BOARD_ID_READ``."""

    JELLYBEAN = 0
    JAWBREAKER = 1
    HACKRF_ONE = 2
    RAD1O = 3
    UNRECOGNIZED = 0xFE
    UNDETECTED = 0xFF


BOARD_NAMES: dict[int, str] = {
    BoardId.JELLYBEAN: "Jellybean",
    BoardId.JAWBREAKER: "Jawbreaker",
    BoardId.HACKRF_ONE: "HackRF One",
    BoardId.RAD1O: "rad1o",
    BoardId.UNRECOGNIZED: "unrecognized",
    BoardId.UNDETECTED: "undetected",
}


def board_name(board_id: int) -> str:
    """Human readable name for a board id."""
    return BOARD_NAMES.get(board_id, f"unknown (0x{board_id:02x})")


@dataclass(frozen=True)
class GainStage:
    """Limits and step granularity of one gain amplifier."""

    name: str
    request: Request
    maximum: int
    mask: int = 0xFFFF

    def encode(self, gain: int) -> int:
        """Validate ``gain`` and return the masked request index.

        Raises:
            GainError: If gain is negative or above the stage maximum.
        """
        if gain < 0 or gain > self.maximum:
            raise GainError(self.name, gain, self.maximum)
        return gain & self.mask


LNA_GAIN = GainStage("LNA", Request.SET_LNA_GAIN, LNA_GAIN_MAX, LNA_GAIN_MASK)
VGA_GAIN = GainStage("VGA", Request.SET_VGA_GAIN, VGA_GAIN_MAX, VGA_GAIN_MASK)
TXVGA_GAIN = GainStage("TX VGA", Request.SET_TXVGA_GAIN, TXVGA_GAIN_MAX)


def _check_range(name: str, value: int, maximum: int) -> None:
    if value < 0 or value > maximum:
        raise ArgumentError(f"{name} out of range", f"{value} not in 0..{maximum}")


def encode_frequency(hz: int) -> bytes:
    """Encode a center frequency for ``Request.SET_FREQ``.

    The frequency is split into whole MHz and residual Hz, each a
    little-endian u32, MHz first. Either part saturates at ``U32_MAX``
    instead of wrapping.

    Example:
        >>> encode_frequency(915_000_001).hex()
        '9303000001000000'
    """
    _check_range("frequency", hz, U64_MAX)
    freq_mhz = min(hz // MHZ, U32_MAX)
    freq_hz = min(hz - freq_mhz * MHZ, U32_MAX)
    return struct.pack("<II", freq_mhz, freq_hz)


def encode_sample_rate(hz: int, divisor: int) -> bytes:
    """Encode ``hz`` and ``divisor`` as two little-endian u32 for ``Request.SAMPLE_RATE_SET``."""
    _check_range("sample rate", hz, U32_MAX)
    _check_range("sample rate divisor", divisor, U32_MAX)
    if divisor == 0:
        raise ArgumentError("sample rate divisor out of range", "divisor must be nonzero")
    return struct.pack("<II", hz, divisor)


def auto_filter_bandwidth(hz: int, divisor: int) -> int:
    """Baseband filter bandwidth applied after a sample rate change.

    75% of ``hz / divisor`` rounded down, computed in single precision
    to match the firmware tooling bit for bit.
    """
    if divisor == 0:
        raise ArgumentError("sample rate divisor out of range", "divisor must be nonzero")
    bandwidth = np.float32(AUTO_FILTER_RATIO) * np.float32(hz) / np.float32(divisor)
    return min(int(bandwidth), U32_MAX)


def encode_bandwidth(hz: int) -> tuple[int, int]:
    """Split a filter bandwidth into the ``(value, index)`` request fields."""
    _check_range("baseband filter bandwidth", hz, U32_MAX)
    return hz & 0xFFFF, (hz >> 16) & 0xFFFF
