"""hackrfone - Host-side control of the HackRF One software defined radio."""

from hackrfone.core.config import RX_TRANSFER_SIZE, RxSettings
from hackrfone.core.device import HackRfOne, HackRfOneRx, RxMode, UnknownMode
from hackrfone.core.exceptions import (
    ArgumentError,
    DeviceError,
    DeviceNotFoundError,
    GainError,
    HackRFError,
    ModeError,
    TransferLengthError,
    USBError,
    VersionError,
)
from hackrfone.core.version import Version
from hackrfone.dsp.samples import iq_to_cplx_f32, iq_to_cplx_i8

__version__ = "0.1.0"

__all__ = [
    # Device
    "HackRfOne",
    "HackRfOneRx",
    "UnknownMode",
    "RxMode",
    "Version",
    # Config
    "RxSettings",
    "RX_TRANSFER_SIZE",
    # Samples
    "iq_to_cplx_i8",
    "iq_to_cplx_f32",
    # Exceptions
    "HackRFError",
    "DeviceError",
    "DeviceNotFoundError",
    "USBError",
    "TransferLengthError",
    "VersionError",
    "ArgumentError",
    "GainError",
    "ModeError",
]
