"""Core HackRF functionality - sessions, protocol encoding, transport, exceptions."""

from hackrfone.core.config import (
    DEFAULT_TIMEOUT_S,
    HACKRF_ONE_USB_PID,
    HACKRF_USB_VID,
    RX_ENDPOINT,
    RX_TRANSFER_SIZE,
    RxSettings,
)
from hackrfone.core.device import HackRfOne, HackRfOneRx, RxMode, UnknownMode
from hackrfone.core.exceptions import (
    DeviceError,
    DeviceNotFoundError,
    HackRFError,
    USBError,
)
from hackrfone.core.version import Version

__all__ = [
    "HackRfOne",
    "HackRfOneRx",
    "UnknownMode",
    "RxMode",
    "Version",
    "RxSettings",
    "HACKRF_USB_VID",
    "HACKRF_ONE_USB_PID",
    "RX_ENDPOINT",
    "RX_TRANSFER_SIZE",
    "DEFAULT_TIMEOUT_S",
    "HackRFError",
    "DeviceError",
    "DeviceNotFoundError",
    "USBError",
]
