"""USB API version decoding.

The device descriptor carries the firmware's USB API version in its
``bcdDevice`` field, laid out as ``0xJJMN``: two BCD digits of major
version followed by one nibble each of minor and sub-minor version.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering

from hackrfone.core.exceptions import ArgumentError


@total_ordering
@dataclass(frozen=True)
class Version:
    """Three-part firmware version.

    Example:
        >>> Version.from_bcd(0x0102)
        Version(major=1, minor=0, sub_minor=2)
        >>> Version.from_bcd(0x0102) >= Version(1, 0, 2)
        True
    """

    major: int
    minor: int
    sub_minor: int

    def __post_init__(self) -> None:
        # Field-wise equality and key ordering agree only inside these ranges
        if not 0 <= self.major <= 0xFFFF:
            raise ArgumentError("Major version out of range", str(self.major))
        if not 0 <= self.minor <= 0xFF:
            raise ArgumentError("Minor version out of range", str(self.minor))
        if not 0 <= self.sub_minor <= 0xFF:
            raise ArgumentError("Sub-minor version out of range", str(self.sub_minor))

    @classmethod
    def from_bcd(cls, raw: int) -> Version:
        """Decode a 16-bit packed BCD version.

        Every 16-bit value decodes to some version; nibbles above 9 are
        not rejected.
        """
        raw &= 0xFFFF
        major_tens = (raw >> 12) & 0xF
        major_ones = (raw >> 8) & 0xF
        return cls(
            major=major_tens * 10 + major_ones,
            minor=(raw >> 4) & 0xF,
            sub_minor=raw & 0xF,
        )

    @property
    def key(self) -> int:
        """Composite ordering key ``(major << 16) | (minor << 8) | sub_minor``."""
        return (self.major << 16) | (self.minor << 8) | self.sub_minor

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.key < other.key

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.sub_minor}"
