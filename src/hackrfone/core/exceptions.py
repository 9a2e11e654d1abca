"""Custom exception hierarchy for HackRF operations."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hackrfone.core.version import Version


class HackRFError(Exception):
    """Base exception for all HackRF-related errors."""

    def __init__(self, message: str, details: str | None = None) -> None:
        self.message = message
        self.details = details
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class DeviceError(HackRFError):
    """Error related to HackRF device operations."""

    pass


class DeviceNotFoundError(DeviceError):
    """No HackRF One found or no matching device could be opened."""

    def __init__(self, details: str | None = None) -> None:
        super().__init__("No HackRF One found", details)


class USBError(DeviceError):
    """USB communication error reported by the transport."""

    def __init__(self, error_code: int, details: str | None = None) -> None:
        self.error_code = error_code
        message = f"USB error (code {error_code})"
        super().__init__(message, details)


class TransferTimeoutError(USBError):
    """A USB transfer did not complete within the session timeout."""

    pass


class TransferLengthError(DeviceError):
    """A control transfer moved a different number of bytes than expected."""

    def __init__(self, direction: str, actual: int, expected: int) -> None:
        self.direction = direction
        self.actual = actual
        self.expected = expected
        message = f"Control transfer ({direction}) length mismatch"
        super().__init__(message, f"got {actual} bytes, expected {expected}")


class VersionError(DeviceError):
    """The device firmware is too old for the requested operation.

    Try updating the firmware on your device.
    """

    def __init__(self, device: Version, minimum: Version) -> None:
        self.device = device
        self.minimum = minimum
        message = f"Unsupported firmware version {device}"
        super().__init__(message, f"requires at least {minimum}")


class ModeError(DeviceError):
    """A handle was used after a mode transition consumed it."""

    pass


class ArgumentError(HackRFError, ValueError):
    """A provided argument was out of range or rejected by the device."""

    pass


class GainError(ArgumentError):
    """Invalid gain setting."""

    def __init__(
        self,
        stage: str,
        gain: int,
        maximum: int,
        rejected: bool = False,
    ) -> None:
        self.stage = stage
        self.gain = gain
        self.maximum = maximum
        self.rejected = rejected
        message = f"Invalid {stage} gain setting: {gain} dB"
        if rejected:
            details = "rejected by device"
        else:
            details = f"maximum is {maximum} dB"
        super().__init__(message, details)


class SignalProcessingError(HackRFError):
    """Error during sample conversion."""

    pass


class RecordingError(HackRFError):
    """Error during signal recording."""

    pass


class SigMFError(RecordingError):
    """Error with SigMF format operations."""

    pass
