"""Tests for HackRF session handles and mode transitions."""

from __future__ import annotations

import copy
from unittest.mock import patch

import pytest

from hackrfone.core.config import RX_ENDPOINT, RX_TRANSFER_SIZE, RxSettings
from hackrfone.core.device import HackRfOne, HackRfOneRx, RxMode, UnknownMode
from hackrfone.core.exceptions import (
    ArgumentError,
    GainError,
    ModeError,
    TransferLengthError,
    USBError,
    VersionError,
)
from hackrfone.core.protocol import Request, TransceiverMode
from hackrfone.core.version import Version

from conftest import FakeTransport


class TestIdentification:
    """Tests for identification reads."""

    def test_board_id(self, radio: HackRfOne) -> None:
        """Test reading the board id."""
        assert radio.board_id() == 2

    def test_version_string(self, radio: HackRfOne) -> None:
        """Test the firmware string is decoded and NUL padding stripped."""
        assert radio.version() == "2021.03.1"

    def test_version_string_lossy(self) -> None:
        """Test invalid UTF-8 is replaced rather than raising."""
        transport = FakeTransport(version_string=b"git-\xff\xfe")
        assert HackRfOne(transport).version().startswith("git-�")

    def test_device_version(self) -> None:
        """Test the descriptor version is decoded."""
        radio = HackRfOne(FakeTransport(device_version=0x0104))
        assert radio.device_version() == Version(1, 0, 4)

    def test_short_read_is_length_error(self, fake_transport: FakeTransport, radio: HackRfOne) -> None:
        """Test a control-in returning fewer bytes fails."""
        fake_transport.in_responses[Request.VERSION_STRING_READ] = b"short"
        with pytest.raises(TransferLengthError) as exc_info:
            radio.version()
        assert exc_info.value.direction == "in"
        assert exc_info.value.actual == 5
        assert exc_info.value.expected == 16

    def test_long_read_is_length_error(self, fake_transport: FakeTransport, radio: HackRfOne) -> None:
        """Test a control-in returning extra bytes fails instead of truncating."""
        fake_transport.in_responses[Request.BOARD_ID_READ] = b"\x02\x00"
        with pytest.raises(TransferLengthError):
            radio.board_id()

    def test_device_info(self, radio: HackRfOne) -> None:
        """Test the info summary."""
        info = radio.get_device_info()
        assert info["board_name"] == "HackRF One"
        assert info["usb_api"] == "1.0.2"


class TestConfiguration:
    """Tests for configuration setters."""

    def test_set_freq(self, fake_transport: FakeTransport, radio: HackRfOne) -> None:
        """Test frequency payload."""
        radio.set_freq(915_000_000)
        direction, _, value, index, data = fake_transport.last(Request.SET_FREQ)
        assert direction == "out"
        assert (value, index) == (0, 0)
        assert data == bytes([0x93, 0x03, 0, 0, 0, 0, 0, 0])

    def test_short_write_is_length_error(self, fake_transport: FakeTransport, radio: HackRfOne) -> None:
        """Test a partial control-out fails."""
        fake_transport.short_write = 4
        with pytest.raises(TransferLengthError) as exc_info:
            radio.set_freq(915_000_000)
        assert exc_info.value.direction == "out"
        assert exc_info.value.expected == 8

    def test_usb_error_surfaces(self, fake_transport: FakeTransport, radio: HackRfOne) -> None:
        """Test transport errors propagate unchanged."""
        fake_transport.fail_requests.add(Request.SET_FREQ)
        with pytest.raises(USBError):
            radio.set_freq(1)

    def test_sample_rate_sets_filter(self, fake_transport: FakeTransport, radio: HackRfOne) -> None:
        """Test setting the sample rate also sets a 75% filter."""
        radio.set_sample_rate(20_000_000, 2)
        assert fake_transport.requests() == [
            Request.SAMPLE_RATE_SET,
            Request.BASEBAND_FILTER_BANDWIDTH_SET,
        ]
        _, _, value, index, _ = fake_transport.last(Request.BASEBAND_FILTER_BANDWIDTH_SET)
        assert value | (index << 16) == 7_500_000
        _, _, _, _, data = fake_transport.last(Request.SAMPLE_RATE_SET)
        assert data == (20_000_000).to_bytes(4, "little") + (2).to_bytes(4, "little")

    def test_filter_override(self, fake_transport: FakeTransport, radio: HackRfOne) -> None:
        """Test explicit bandwidth uses value and index fields with no payload."""
        radio.set_baseband_filter_bandwidth(0x0012_3456)
        _, _, value, index, data = fake_transport.last(Request.BASEBAND_FILTER_BANDWIDTH_SET)
        assert (value, index, data) == (0x3456, 0x0012, b"")

    def test_amp_and_antenna(self, fake_transport: FakeTransport, radio: HackRfOne) -> None:
        """Test flag setters carry their value in the value field."""
        radio.set_amp_enable(True)
        radio.set_antenna_enable(1)
        assert fake_transport.last(Request.AMP_ENABLE)[2] == 1
        assert fake_transport.last(Request.ANTENNA_ENABLE)[2] == 1

    def test_antenna_out_of_range(self, radio: HackRfOne) -> None:
        """Test antenna values must fit one byte."""
        with pytest.raises(ArgumentError):
            radio.set_antenna_enable(256)

    def test_configure_order(self, fake_transport: FakeTransport, radio: HackRfOne) -> None:
        """Test configure applies the override after the automatic filter."""
        settings = RxSettings(
            frequency_hz=433_920_000,
            sample_rate_hz=16_000_000,
            divisor=1,
            baseband_filter_hz=5_000_000,
            timeout_s=0.5,
        )
        radio.configure(settings)
        assert fake_transport.requests()[:4] == [
            Request.SAMPLE_RATE_SET,
            Request.BASEBAND_FILTER_BANDWIDTH_SET,
            Request.BASEBAND_FILTER_BANDWIDTH_SET,
            Request.SET_FREQ,
        ]
        assert radio.timeout == 0.5


class TestGain:
    """Tests for gain setters."""

    def test_lna_masked(self, fake_transport: FakeTransport, radio: HackRfOne) -> None:
        """Test LNA gain is sent masked in the index field."""
        radio.set_lna_gain(20)
        direction, _, value, index, _ = fake_transport.last(Request.SET_LNA_GAIN)
        assert (direction, value, index) == ("in", 0, 16)

    def test_vga_masked(self, fake_transport: FakeTransport, radio: HackRfOne) -> None:
        """Test VGA gain loses its low bit."""
        radio.set_vga_gain(33)
        assert fake_transport.last(Request.SET_VGA_GAIN)[3] == 32

    @pytest.mark.parametrize(
        ("setter", "gain"),
        [("set_lna_gain", 41), ("set_vga_gain", 63), ("set_txvga_gain", 48)],
    )
    def test_above_maximum(self, fake_transport: FakeTransport, radio: HackRfOne, setter: str, gain: int) -> None:
        """Test out of range gain fails before any transfer."""
        with pytest.raises(GainError):
            getattr(radio, setter)(gain)
        assert fake_transport.control_log == []

    @pytest.mark.parametrize(
        ("setter", "gain"),
        [("set_lna_gain", 40), ("set_vga_gain", 62), ("set_txvga_gain", 47)],
    )
    def test_at_maximum(self, radio: HackRfOne, setter: str, gain: int) -> None:
        """Test the maximum itself is accepted."""
        getattr(radio, setter)(gain)

    def test_device_rejects(self) -> None:
        """Test a zero status byte is an argument error."""
        radio = HackRfOne(FakeTransport(gain_status=0))
        with pytest.raises(GainError) as exc_info:
            radio.set_vga_gain(16)
        assert exc_info.value.rejected


class TestVersionGate:
    """Tests for firmware version checks."""

    def test_clkout_too_old(self) -> None:
        """Test clkout on 1.0.2 is refused before sending."""
        transport = FakeTransport(device_version=0x0102)
        radio = HackRfOne(transport)
        with pytest.raises(VersionError) as exc_info:
            radio.set_clkout_enable(True)
        assert exc_info.value.device == Version(1, 0, 2)
        assert exc_info.value.minimum == Version(1, 0, 3)
        assert transport.control_log == []

    def test_clkout_supported(self) -> None:
        """Test clkout on 1.0.3 is sent."""
        transport = FakeTransport(device_version=0x0103)
        HackRfOne(transport).set_clkout_enable(True)
        assert transport.last(Request.CLKOUT_ENABLE)[2] == 1

    def test_gate_boundary(self) -> None:
        """Test the minimum is inclusive and older versions fail."""
        radio = HackRfOne(FakeTransport(device_version=0x0120))
        radio.check_api_version(Version(1, 2, 0))
        old = HackRfOne(FakeTransport(device_version=0x0119))
        with pytest.raises(VersionError) as exc_info:
            old.check_api_version(Version(1, 2, 0))
        assert exc_info.value.device == Version(1, 1, 9)

    def test_minimums_are_bcd_literals(self) -> None:
        """Test the gates sit at 1.0.3 and 1.0.2, not 1.3.0 and 1.2.0."""
        transport = FakeTransport(device_version=0x0103)
        radio = HackRfOne(transport)
        radio.set_clkout_enable(True)
        assert isinstance(radio.reset(), HackRfOne)
        assert Request.CLKOUT_ENABLE in transport.requests("out")
        assert Request.RESET in transport.requests("out")

        with pytest.raises(VersionError) as exc_info:
            HackRfOne(FakeTransport(device_version=0x0101)).reset()
        assert exc_info.value.minimum == Version(1, 0, 2)

    def test_reset(self, fake_transport: FakeTransport, radio: HackRfOne) -> None:
        """Test reset returns a fresh idle handle on the same transport."""
        new_radio = radio.reset()
        assert isinstance(new_radio, HackRfOne)
        assert new_radio is not radio
        assert not radio.is_open
        assert Request.RESET in fake_transport.requests("out")
        assert new_radio.board_id() == 2

    def test_reset_too_old_keeps_handle(self) -> None:
        """Test a refused reset leaves the handle usable."""
        transport = FakeTransport(device_version=0x0101)
        radio = HackRfOne(transport)
        with pytest.raises(VersionError):
            radio.reset()
        assert radio.is_open
        assert radio.board_id() == 2


class TestModeTransitions:
    """Tests for typestate transitions."""

    def test_mode_markers(self) -> None:
        """Test each handle type carries its mode marker."""
        assert HackRfOne.mode is UnknownMode
        assert HackRfOneRx.mode is RxMode

    def test_operation_sets_are_disjoint(self) -> None:
        """Test RX-only and idle-only operations live on separate types."""
        assert not hasattr(HackRfOne, "rx")
        assert not hasattr(HackRfOne, "stop_rx")
        for name in ("set_freq", "set_sample_rate", "set_lna_gain", "into_rx_mode", "reset", "board_id"):
            assert not hasattr(HackRfOneRx, name)
        for name in ("set_timeout", "device_version"):
            assert hasattr(HackRfOne, name)
            assert hasattr(HackRfOneRx, name)

    def test_into_rx_mode(self, fake_transport: FakeTransport, radio: HackRfOne) -> None:
        """Test entering RX sends the receive mode and consumes the handle."""
        radio.set_timeout(0.25)
        rx = radio.into_rx_mode()
        assert isinstance(rx, HackRfOneRx)
        assert rx.timeout == 0.25
        _, _, value, _, _ = fake_transport.last(Request.SET_TRANSCEIVER_MODE)
        assert value == TransceiverMode.RECEIVE
        with pytest.raises(ModeError):
            radio.set_freq(1)

    def test_into_rx_mode_failure_loses_session(self, fake_transport: FakeTransport, radio: HackRfOne) -> None:
        """Test a failed transition releases the device and consumes the handle."""
        fake_transport.fail_requests.add(Request.SET_TRANSCEIVER_MODE)
        with pytest.raises(USBError):
            radio.into_rx_mode()
        assert fake_transport.closed
        assert not radio.is_open

    def test_rx(self, fake_transport: FakeTransport, radio: HackRfOne) -> None:
        """Test one bulk read returns exactly what was transferred."""
        rx = radio.into_rx_mode()
        fake_transport.bulk_chunks.append(b"\x01\x02\x03")
        assert rx.rx() == b"\x01\x02\x03"
        assert fake_transport.bulk_calls == 1

    def test_rx_requests_one_mtu(self, radio: HackRfOne) -> None:
        """Test the bulk read targets the IN endpoint with a 128 KiB limit."""
        rx = radio.into_rx_mode()
        with patch.object(FakeTransport, "bulk_in", return_value=b"") as bulk_in:
            rx.rx()
        bulk_in.assert_called_once_with(RX_ENDPOINT, RX_TRANSFER_SIZE, rx.timeout)

    def test_stop_rx(self, fake_transport: FakeTransport, radio: HackRfOne) -> None:
        """Test stopping sends mode off and returns an idle handle."""
        rx = radio.into_rx_mode()
        idle = rx.stop_rx()
        assert isinstance(idle, HackRfOne)
        _, _, value, _, _ = fake_transport.last(Request.SET_TRANSCEIVER_MODE)
        assert value == TransceiverMode.OFF
        with pytest.raises(ModeError):
            rx.rx()

    def test_timeout_applies_to_later_transfers(self, fake_transport: FakeTransport, radio: HackRfOne) -> None:
        """Test the timeout is used by subsequent transfers only."""
        radio.board_id()
        radio.set_timeout(2.5)
        radio.board_id()
        assert fake_transport.timeouts == [1.0, 2.5]

    def test_invalid_timeout(self, radio: HackRfOne) -> None:
        """Test non-positive timeouts are rejected."""
        with pytest.raises(ArgumentError):
            radio.set_timeout(0)


class TestLifecycle:
    """Tests for opening and closing."""

    def test_context_manager_closes(self, fake_transport: FakeTransport) -> None:
        """Test leaving the context releases the transport."""
        with HackRfOne(fake_transport) as radio:
            radio.board_id()
        assert fake_transport.closed
        assert not radio.is_open

    def test_rx_close_turns_off(self, fake_transport: FakeTransport, radio: HackRfOne) -> None:
        """Test closing an RX handle sends mode off first."""
        with radio.into_rx_mode():
            pass
        assert fake_transport.last(Request.SET_TRANSCEIVER_MODE)[2] == TransceiverMode.OFF
        assert fake_transport.closed

    def test_close_consumed_is_noop(self, fake_transport: FakeTransport, radio: HackRfOne) -> None:
        """Test closing a consumed handle does not touch the new owner."""
        rx = radio.into_rx_mode()
        radio.close()
        assert not fake_transport.closed
        assert rx.is_open

    def test_not_copyable(self, radio: HackRfOne) -> None:
        """Test a handle cannot be duplicated."""
        with pytest.raises(ModeError):
            copy.copy(radio)
        with pytest.raises(ModeError):
            copy.deepcopy(radio)

    def test_open(self, fake_transport: FakeTransport) -> None:
        """Test open wraps the first transport found."""
        with patch("hackrfone.core.device.open_first", return_value=fake_transport):
            radio = HackRfOne.open(timeout=0.5)
        assert radio.timeout == 0.5
        assert radio.device_version() == Version(1, 0, 2)
