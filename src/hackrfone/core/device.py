"""HackRF One session handles with typestate-style mode tracking.

A freshly opened radio is a :class:`HackRfOne` (mode unknown / idle).
Configuration and identification live there. Entering receive mode
consumes that handle and returns a :class:`HackRfOneRx`, which only
offers streaming reads and ``stop_rx``. Because the two handle types
expose disjoint operation sets, a type checker rejects calls such as
``radio.rx()`` on an idle radio, and a consumed handle refuses further
use at runtime with :class:`ModeError`.

Example:
    >>> with HackRfOne.open() as radio:
    ...     radio.set_sample_rate(20_000_000, 2)
    ...     radio.set_freq(915_000_000)
    ...     rx = radio.into_rx_mode()
    ...     data = rx.rx()
    ...     radio = rx.stop_rx()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, ClassVar, Self, TypeVar

from hackrfone.core.config import (
    BOARD_ID_LENGTH,
    CLKOUT_MIN_VERSION,
    DEFAULT_TIMEOUT_S,
    GAIN_STATUS_LENGTH,
    RESET_MIN_VERSION,
    RX_ENDPOINT,
    RX_TRANSFER_SIZE,
    VERSION_STRING_LENGTH,
)
from hackrfone.core.exceptions import (
    ArgumentError,
    GainError,
    HackRFError,
    ModeError,
    TransferLengthError,
    VersionError,
)
from hackrfone.core.protocol import (
    LNA_GAIN,
    TXVGA_GAIN,
    VGA_GAIN,
    GainStage,
    Request,
    TransceiverMode,
    auto_filter_bandwidth,
    board_name,
    encode_bandwidth,
    encode_frequency,
    encode_sample_rate,
)
from hackrfone.core.transport import open_first
from hackrfone.core.version import Version

if TYPE_CHECKING:
    from hackrfone.core.config import RxSettings
    from hackrfone.core.transport import Transport

logger = logging.getLogger(__name__)

_ModeT = TypeVar("_ModeT", bound="_HackRfOneBase")


class UnknownMode:
    """Typestate marker: radio idle or in an unknown transceiver mode."""


class RxMode:
    """Typestate marker: radio has been commanded into receive mode."""


def _read_control(
    transport: Transport,
    timeout: float,
    request: Request,
    value: int,
    index: int,
    length: int,
) -> bytes:
    logger.debug(
        "control in: %s value=0x%04x index=0x%04x length=%d",
        request.name,
        value,
        index,
        length,
    )
    data = transport.control_in(request, value, index, length, timeout)
    if len(data) != length:
        raise TransferLengthError("in", len(data), length)
    return data


def _write_control(
    transport: Transport,
    timeout: float,
    request: Request,
    value: int,
    index: int,
    data: bytes = b"",
) -> None:
    logger.debug(
        "control out: %s value=0x%04x index=0x%04x length=%d",
        request.name,
        value,
        index,
        len(data),
    )
    written = transport.control_out(request, value, index, data, timeout)
    if written != len(data):
        raise TransferLengthError("out", written, len(data))


def _close_quietly(transport: Transport) -> None:
    try:
        transport.close()
    except Exception as e:
        logger.warning("Error closing transport: %s", e)


class _HackRfOneBase:
    """State and operations shared by every mode."""

    mode: ClassVar[type]

    def __init__(self, transport: Transport, timeout: float = DEFAULT_TIMEOUT_S) -> None:
        self._transport: Transport | None = transport
        self._timeout = timeout

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.close()

    def __copy__(self) -> Self:
        raise ModeError("HackRF handles cannot be copied", "the USB device has a single owner")

    def __deepcopy__(self, memo: dict[int, object]) -> Self:
        return self.__copy__()

    def __repr__(self) -> str:
        state = "open" if self.is_open else "consumed"
        return f"{type(self).__name__}({state}, timeout={self._timeout}s)"

    @property
    def is_open(self) -> bool:
        """True until the handle is closed or consumed by a transition."""
        return self._transport is not None

    @property
    def timeout(self) -> float:
        """Timeout in seconds applied to every subsequent transfer."""
        return self._timeout

    def set_timeout(self, seconds: float) -> None:
        """Set the timeout for USB transfers.

        Transfers already in flight keep the timeout they started with.
        """
        if seconds <= 0:
            raise ArgumentError("Timeout must be positive", str(seconds))
        self._timeout = seconds

    def device_version(self) -> Version:
        """USB API version from the device descriptor.

        The HackRF C API calls the equivalent of this
        ``hackrf_usb_api_version_read``.
        """
        return Version.from_bcd(self._live().device_version)

    def check_api_version(self, minimum: Version) -> None:
        """Raise unless the device version is at least ``minimum``.

        Raises:
            VersionError: Carrying the device version and the minimum.
        """
        device = self.device_version()
        if device < minimum:
            raise VersionError(device, minimum)

    def close(self) -> None:
        """Release the USB device."""
        if self._transport is None:
            return
        transport = self._take()
        _close_quietly(transport)
        logger.debug("Device closed")

    def _live(self) -> Transport:
        if self._transport is None:
            raise ModeError(
                f"{type(self).__name__} handle is no longer valid",
                "it was closed or consumed by a mode transition",
            )
        return self._transport

    def _take(self) -> Transport:
        transport = self._live()
        self._transport = None
        return transport

    def _read_control(self, request: Request, value: int, index: int, length: int) -> bytes:
        return _read_control(self._live(), self._timeout, request, value, index, length)

    def _write_control(self, request: Request, value: int, index: int, data: bytes = b"") -> None:
        _write_control(self._live(), self._timeout, request, value, index, data)

    def _transition(self, request: Request, value: int, target: type[_ModeT]) -> _ModeT:
        # The input handle is consumed whether or not the command succeeds.
        transport = self._take()
        try:
            _write_control(transport, self._timeout, request, value, 0)
        except HackRFError:
            _close_quietly(transport)
            raise
        return target(transport, self._timeout)

    def _set_transceiver_mode(self, mode: TransceiverMode, target: type[_ModeT]) -> _ModeT:
        radio = self._transition(Request.SET_TRANSCEIVER_MODE, mode, target)
        logger.info("Transceiver mode set to %s", mode.name)
        return radio


class HackRfOne(_HackRfOneBase):
    """HackRF One in unknown (idle) mode.

    Settings are sent straight to the device; nothing is cached here,
    the device is the source of truth for its configuration.
    """

    mode = UnknownMode

    @classmethod
    def open(cls, timeout: float = DEFAULT_TIMEOUT_S) -> HackRfOne:
        """Open the first attached HackRF One.

        Raises:
            DeviceNotFoundError: If no device is found or none can be opened.
        """
        radio = cls(open_first(), timeout)
        logger.info("Device opened: USB API %s", radio.device_version())
        return radio

    def board_id(self) -> int:
        """Read the board ID."""
        return self._read_control(Request.BOARD_ID_READ, 0, 0, BOARD_ID_LENGTH)[0]

    def version(self) -> str:
        """Read the firmware version string, e.g. ``"2021.03.1"``."""
        raw = self._read_control(Request.VERSION_STRING_READ, 0, 0, VERSION_STRING_LENGTH)
        return raw.decode("utf-8", errors="replace").rstrip("\x00")

    def set_freq(self, hz: int) -> None:
        """Set the center frequency in Hz."""
        self._write_control(Request.SET_FREQ, 0, 0, encode_frequency(hz))

    def set_amp_enable(self, enable: bool) -> None:
        """Enable the RX/TX RF amplifier.

        In GNU Radio this is used as the RF gain, where 0 dB is off and
        14 dB is on.
        """
        self._write_control(Request.AMP_ENABLE, int(bool(enable)), 0)

    def set_baseband_filter_bandwidth(self, hz: int) -> None:
        """Set the baseband filter bandwidth.

        This is set automatically by :meth:`set_sample_rate`; override it
        afterwards if a different filter is wanted.
        """
        value, index = encode_bandwidth(hz)
        self._write_control(Request.BASEBAND_FILTER_BANDWIDTH_SET, value, index)

    def set_sample_rate(self, hz: int, divisor: int) -> None:
        """Set the sample rate to ``hz / divisor``.

        For anti-aliasing the baseband filter bandwidth is then set to
        75% of the effective sample rate, every time.

        Limits are 8 MHz to 20 MHz. Preferred rates are 8, 10, 12.5, 16
        and 20 MHz due to less jitter.
        """
        bandwidth = auto_filter_bandwidth(hz, divisor)
        self._write_control(Request.SAMPLE_RATE_SET, 0, 0, encode_sample_rate(hz, divisor))
        self.set_baseband_filter_bandwidth(bandwidth)

    def _set_gain(self, stage: GainStage, gain: int) -> None:
        index = stage.encode(gain)
        status = self._read_control(stage.request, 0, index, GAIN_STATUS_LENGTH)
        if status[0] == 0:
            raise GainError(stage.name, gain, stage.maximum, rejected=True)

    def set_lna_gain(self, gain: int) -> None:
        """Set the LNA (IF) gain, 0 to 40 dB in 8 dB steps."""
        self._set_gain(LNA_GAIN, gain)

    def set_vga_gain(self, gain: int) -> None:
        """Set the VGA (baseband) gain, 0 to 62 dB in 2 dB steps."""
        self._set_gain(VGA_GAIN, gain)

    def set_txvga_gain(self, gain: int) -> None:
        """Set the transmit VGA gain, 0 to 47 dB in 1 dB steps."""
        self._set_gain(TXVGA_GAIN, gain)

    def set_antenna_enable(self, value: int) -> None:
        """Antenna port power control."""
        if not 0 <= value <= 0xFF:
            raise ArgumentError("Antenna enable out of range", str(value))
        self._write_control(Request.ANTENNA_ENABLE, value, 0)

    def set_clkout_enable(self, enable: bool) -> None:
        """Enable CLKOUT. Requires USB API 1.0.3."""
        self.check_api_version(Version.from_bcd(CLKOUT_MIN_VERSION))
        self._write_control(Request.CLKOUT_ENABLE, int(bool(enable)), 0)

    def configure(self, settings: RxSettings) -> None:
        """Apply receive settings in the order the firmware expects."""
        self.set_timeout(settings.timeout_s)
        self.set_sample_rate(settings.sample_rate_hz, settings.divisor)
        if settings.baseband_filter_hz is not None:
            self.set_baseband_filter_bandwidth(settings.baseband_filter_hz)
        self.set_freq(settings.frequency_hz)
        self.set_amp_enable(settings.amp_enable)
        self.set_antenna_enable(settings.antenna_enable)
        self.set_lna_gain(settings.lna_gain)
        self.set_vga_gain(settings.vga_gain)
        logger.info(
            "Configured: %.3f MHz @ %.3f MS/s, LNA %d dB, VGA %d dB",
            settings.frequency_hz / 1e6,
            settings.effective_sample_rate / 1e6,
            settings.lna_gain,
            settings.vga_gain,
        )

    def reset(self) -> HackRfOne:
        """Reset the radio. Requires USB API 1.0.2.

        Returns a new handle on the same USB connection; the device
        itself reboots, so reopening may be needed afterwards.

        Raises:
            VersionError: If the firmware is too old. The handle stays valid.
        """
        self.check_api_version(Version.from_bcd(RESET_MIN_VERSION))
        radio = self._transition(Request.RESET, 0, HackRfOne)
        logger.info("Device reset")
        return radio

    def into_rx_mode(self) -> HackRfOneRx:
        """Change the radio mode to RX.

        This handle is consumed. If the command fails the session is
        lost and the device state is indeterminate.
        """
        return self._set_transceiver_mode(TransceiverMode.RECEIVE, HackRfOneRx)

    def get_device_info(self) -> dict[str, object]:
        """Get device information."""
        board = self.board_id()
        return {
            "board_id": board,
            "board_name": board_name(board),
            "firmware": self.version(),
            "usb_api": str(self.device_version()),
        }


class HackRfOneRx(_HackRfOneBase):
    """HackRF One in receive mode."""

    mode = RxMode

    def rx(self) -> bytes:
        """Receive one MTU of raw sample data.

        This is the single-transfer receive operation (``receive_chunk``
        in the HackRF host protocol; ``rx`` in libhackrf-style APIs).
        Issues a single bulk transfer of up to 128 KiB and returns the
        bytes actually transferred; a short read is not an error. Data
        is interleaved signed 8-bit I/Q pairs, see
        :mod:`hackrfone.dsp.samples`.

        Unlike ``libhackrf`` this does not spawn a sampling thread.
        """
        return self._live().bulk_in(RX_ENDPOINT, RX_TRANSFER_SIZE, self._timeout)

    def stop_rx(self) -> HackRfOne:
        """Stop receiving and return the idle handle."""
        return self._set_transceiver_mode(TransceiverMode.OFF, HackRfOne)

    def close(self) -> None:
        """Turn the transceiver off (best effort) and release the device."""
        if self._transport is None:
            return
        try:
            self._write_control(Request.SET_TRANSCEIVER_MODE, TransceiverMode.OFF, 0)
        except HackRFError as e:
            logger.warning("Failed to stop RX before closing: %s", e)
        super().close()
