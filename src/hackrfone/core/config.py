"""Protocol constants, defaults and receive settings."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

# =============================================================================
# USB Identification
# =============================================================================
HACKRF_USB_VID: int = 0x1D50
HACKRF_ONE_USB_PID: int = 0x6089
HACKRF_INTERFACE: int = 0

# =============================================================================
# Transfers
# =============================================================================
RX_ENDPOINT: int = 0x81  # Bulk IN
RX_TRANSFER_SIZE: int = 128 * 1024  # One MTU per bulk read
DEFAULT_TIMEOUT_S: float = 1.0
VERSION_STRING_LENGTH: int = 16
BOARD_ID_LENGTH: int = 1
GAIN_STATUS_LENGTH: int = 1

# =============================================================================
# Sample Rate / Filter
# =============================================================================
MIN_SAMPLE_RATE: int = 8_000_000
MAX_SAMPLE_RATE: int = 20_000_000
PREFERRED_SAMPLE_RATES: tuple[float, ...] = (8e6, 10e6, 12.5e6, 16e6, 20e6)  # Less jitter
AUTO_FILTER_RATIO: float = 0.75  # Baseband filter = 75% of sample rate

# =============================================================================
# Gain Stages
# =============================================================================
LNA_GAIN_MAX: int = 40  # 8 dB steps
LNA_GAIN_MASK: int = ~0x07 & 0xFFFF
VGA_GAIN_MAX: int = 62  # 2 dB steps
VGA_GAIN_MASK: int = ~0x01 & 0xFFFF
TXVGA_GAIN_MAX: int = 47  # 1 dB steps
DEFAULT_LNA_GAIN: int = 16
DEFAULT_VGA_GAIN: int = 16

# =============================================================================
# Firmware Minimums (packed BCD)
# =============================================================================
CLKOUT_MIN_VERSION: int = 0x0103
RESET_MIN_VERSION: int = 0x0102


class RxSettings(BaseModel):
    """Receive configuration applied by ``HackRfOne.configure``.

    Example:
        >>> settings = RxSettings(frequency_hz=915_000_000, sample_rate_hz=20_000_000, divisor=2)
        >>> settings.effective_sample_rate
        10000000.0
    """

    model_config = ConfigDict(frozen=True)

    frequency_hz: int = Field(default=915_000_000, ge=0, lt=2**64)
    sample_rate_hz: int = Field(default=20_000_000, gt=0, lt=2**32)
    divisor: int = Field(default=2, ge=1, lt=2**32)
    baseband_filter_hz: int | None = Field(default=None, ge=0, lt=2**32)
    lna_gain: int = Field(default=DEFAULT_LNA_GAIN, ge=0, le=LNA_GAIN_MAX)
    vga_gain: int = Field(default=DEFAULT_VGA_GAIN, ge=0, le=VGA_GAIN_MAX)
    amp_enable: bool = False
    antenna_enable: int = Field(default=0, ge=0, le=0xFF)
    timeout_s: float = Field(default=DEFAULT_TIMEOUT_S, gt=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def effective_sample_rate(self) -> float:
        """Sample rate the device applies, in Hz."""
        return self.sample_rate_hz / self.divisor

    @model_validator(mode="after")
    def _check_divisor(self) -> RxSettings:
        if self.divisor > self.sample_rate_hz:
            raise ValueError("divisor must not exceed sample_rate_hz")
        return self
