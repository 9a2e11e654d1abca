"""Conversion of raw HackRF sample bytes to complex values.

The device streams interleaved signed 8-bit I/Q pairs. A bulk read is
not guaranteed to end on a pair boundary, so callers either feed chunks
through :class:`SampleAssembler`, which carries a trailing odd byte
into the next chunk, or only pass even-length buffers to the converters.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

import numpy as np

from hackrfone.core.exceptions import SignalProcessingError

if TYPE_CHECKING:
    from numpy.typing import NDArray

INT8_SCALE: float = 1.0 / 128.0  # Maps int8 full scale to [-1, 1)


class IQSample(NamedTuple):
    """One integer I/Q sample."""

    i: int
    q: int


def _as_int8(byte: int) -> int:
    byte &= 0xFF
    return byte - 0x100 if byte & 0x80 else byte


def iq_to_cplx_i8(i: int, q: int) -> IQSample:
    """Convert an I/Q byte pair to an integer sample.

    Example:
        >>> iq_to_cplx_i8(255, 1)
        IQSample(i=-1, q=1)
    """
    return IQSample(_as_int8(i), _as_int8(q))


def iq_to_cplx_f32(i: int, q: int) -> complex:
    """Convert an I/Q byte pair to a floating point complex number.

    Example:
        >>> iq_to_cplx_f32(255, 1)
        (-1+1j)
    """
    return complex(_as_int8(i), _as_int8(q))


def _check_even(data: bytes | bytearray | memoryview) -> None:
    if len(data) % 2:
        raise SignalProcessingError(
            "Odd-length sample buffer",
            f"{len(data)} bytes; carry the last byte into the next buffer",
        )


def bytes_to_iq_i8(data: bytes | bytearray | memoryview) -> NDArray[np.int8]:
    """View a raw buffer as an ``(n, 2)`` array of int8 I/Q pairs."""
    _check_even(data)
    return np.frombuffer(data, dtype=np.int8).reshape(-1, 2)


def bytes_to_complex64(
    data: bytes | bytearray | memoryview,
    scale: float | None = None,
) -> NDArray[np.complex64]:
    """Convert a raw buffer to complex64 samples.

    Args:
        data: Interleaved signed 8-bit I/Q bytes, even length.
        scale: Optional factor applied to both parts, e.g.
            :data:`INT8_SCALE` to normalize to [-1, 1).

    Returns:
        Complex64 array with one element per I/Q pair.
    """
    _check_even(data)
    interleaved = np.frombuffer(data, dtype=np.int8).astype(np.float32)
    if scale is not None:
        interleaved *= np.float32(scale)
    return interleaved.view(np.complex64)


class SampleAssembler:
    """Re-aligns a stream of raw chunks on I/Q pair boundaries.

    Example:
        >>> assembler = SampleAssembler()
        >>> len(assembler.feed(b"\\x01\\x02\\x03"))
        1
        >>> assembler.pending
        1
    """

    def __init__(self, scale: float | None = None) -> None:
        self.scale = scale
        self._carry = b""

    @property
    def pending(self) -> int:
        """Number of carried bytes waiting for their pair (0 or 1)."""
        return len(self._carry)

    def feed(self, chunk: bytes) -> NDArray[np.complex64]:
        """Decode every complete pair, carrying an odd trailing byte."""
        if self._carry:
            chunk = self._carry + chunk
        usable = len(chunk) - (len(chunk) % 2)
        self._carry = chunk[usable:]
        return bytes_to_complex64(chunk[:usable], self.scale)

    def reset(self) -> None:
        """Discard any carried byte."""
        self._carry = b""
