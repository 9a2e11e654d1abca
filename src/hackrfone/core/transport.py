"""USB transport for HackRF One built on pyusb.

``HackRfOne`` only talks to the :class:`Transport` protocol, so tests
and alternative backends can stand in for real hardware.
"""

from __future__ import annotations

import logging
from typing import Protocol

import usb.core
import usb.util

from hackrfone.core.config import HACKRF_INTERFACE, HACKRF_ONE_USB_PID, HACKRF_USB_VID
from hackrfone.core.exceptions import DeviceError, DeviceNotFoundError, TransferTimeoutError, USBError

logger = logging.getLogger(__name__)

# bmRequestType: vendor request addressed to the device
VENDOR_IN = 0xC0
VENDOR_OUT = 0x40


class Transport(Protocol):
    """Primitive USB operations needed by a HackRF session."""

    @property
    def device_version(self) -> int:
        """Packed BCD ``bcdDevice`` from the device descriptor."""
        ...

    def control_in(self, request: int, value: int, index: int, length: int, timeout: float) -> bytes: ...

    def control_out(self, request: int, value: int, index: int, data: bytes, timeout: float) -> int: ...

    def bulk_in(self, endpoint: int, max_length: int, timeout: float) -> bytes: ...

    def close(self) -> None: ...


def _timeout_ms(timeout: float) -> int:
    return max(1, int(round(timeout * 1000)))


def _wrap_usb_error(e: Exception) -> USBError:
    errno = getattr(e, "errno", None)
    code = errno if isinstance(errno, int) else -1
    if isinstance(e, usb.core.USBTimeoutError):
        return TransferTimeoutError(code, str(e))
    return USBError(code, str(e))


class UsbTransport:
    """pyusb-backed transport owning one opened, claimed device."""

    def __init__(self, device: usb.core.Device) -> None:
        self._device = device
        self._claimed = False

    @classmethod
    def open(cls, device: usb.core.Device) -> UsbTransport:
        """Configure ``device`` and claim interface 0.

        Raises:
            USBError: If the device cannot be configured or claimed.
        """
        transport = cls(device)
        try:
            if device.get_active_configuration() is None:
                device.set_configuration()
        except usb.core.USBError:
            try:
                device.set_configuration()
            except usb.core.USBError as e:
                raise _wrap_usb_error(e) from e
        try:
            usb.util.claim_interface(device, HACKRF_INTERFACE)
        except usb.core.USBError as e:
            raise _wrap_usb_error(e) from e
        transport._claimed = True
        return transport

    @property
    def device_version(self) -> int:
        return int(self._device.bcdDevice)

    def control_in(self, request: int, value: int, index: int, length: int, timeout: float) -> bytes:
        try:
            data = self._device.ctrl_transfer(
                VENDOR_IN, request, value, index, length, timeout=_timeout_ms(timeout)
            )
        except usb.core.USBError as e:
            raise _wrap_usb_error(e) from e
        return bytes(data)

    def control_out(self, request: int, value: int, index: int, data: bytes, timeout: float) -> int:
        try:
            written = self._device.ctrl_transfer(
                VENDOR_OUT, request, value, index, data, timeout=_timeout_ms(timeout)
            )
        except usb.core.USBError as e:
            raise _wrap_usb_error(e) from e
        return int(written)

    def bulk_in(self, endpoint: int, max_length: int, timeout: float) -> bytes:
        try:
            data = self._device.read(endpoint, max_length, timeout=_timeout_ms(timeout))
        except usb.core.USBError as e:
            raise _wrap_usb_error(e) from e
        return bytes(data)

    def close(self) -> None:
        """Release interface 0 and free backend resources."""
        try:
            if self._claimed:
                usb.util.release_interface(self._device, HACKRF_INTERFACE)
        except usb.core.USBError as e:
            logger.warning("Error releasing interface: %s", e)
        finally:
            self._claimed = False
            usb.util.dispose_resources(self._device)


def find_devices() -> list[usb.core.Device]:
    """Find all attached HackRF One devices by vendor/product id."""
    try:
        found = usb.core.find(find_all=True, idVendor=HACKRF_USB_VID, idProduct=HACKRF_ONE_USB_PID)
    except usb.core.NoBackendError as e:
        raise DeviceError("No libusb backend available", str(e)) from e
    return list(found)


def open_first() -> UsbTransport:
    """Open the first HackRF One that can be configured and claimed.

    Devices that fail to open are skipped.

    Raises:
        DeviceNotFoundError: If no device matched or none could be opened.
    """
    devices = find_devices()
    if not devices:
        raise DeviceNotFoundError(f"no USB device {HACKRF_USB_VID:04x}:{HACKRF_ONE_USB_PID:04x}")

    errors: list[str] = []
    for device in devices:
        try:
            transport = UsbTransport.open(device)
        except USBError as e:
            logger.warning("Skipping device at bus %s address %s: %s", device.bus, device.address, e)
            errors.append(str(e))
            continue
        logger.debug("Claimed device at bus %s address %s", device.bus, device.address)
        return transport

    raise DeviceNotFoundError("; ".join(errors))


def list_devices() -> list[dict[str, str]]:
    """List attached HackRF One devices.

    Returns:
        List of device information dictionaries.
    """
    try:
        devices = find_devices()
    except DeviceError:
        return []

    result: list[dict[str, str]] = []
    for index, device in enumerate(devices):
        try:
            serial = usb.util.get_string(device, device.iSerialNumber) or ""
        except (ValueError, NotImplementedError, OSError):
            serial = ""
        result.append({
            "index": str(index),
            "bus": str(device.bus),
            "address": str(device.address),
            "serial": serial,
            "usb_api": f"0x{int(device.bcdDevice):04x}",
        })
    return result
