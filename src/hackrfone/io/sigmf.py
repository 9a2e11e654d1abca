"""SigMF format support for HackRF captures."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Literal

import numpy as np

from hackrfone.core.exceptions import SigMFError
from hackrfone.dsp.samples import bytes_to_complex64

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)

# SigMF data types written or read by this package
SigMFDataType = Literal[
    "ci8",  # Complex int8, native HackRF format
    "cf32_le",  # Complex float32, little-endian
]

# Bytes per complex sample
SAMPLE_SIZE: dict[SigMFDataType, int] = {
    "ci8": 2,
    "cf32_le": 8,
}


@dataclass
class SigMFCapture:
    """SigMF capture segment."""

    sample_start: int = 0
    frequency: float | None = None
    datetime: str | None = None


@dataclass
class SigMFRecording:
    """SigMF recording with metadata.

    Implements the subset of SigMF 1.0 needed to store raw receive
    captures.
    """

    data_path: Path
    meta_path: Path

    # Global metadata
    datatype: SigMFDataType = "ci8"
    sample_rate: float = 0.0
    version: str = "1.0.0"
    description: str = ""
    recorder: str = "hackrfone"
    hw: str = ""

    captures: list[SigMFCapture] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        data: bytes | NDArray[np.int8] | NDArray[np.complex64],
        sample_rate: float,
        center_freq: float,
        output_dir: Path | str,
        basename: str | None = None,
        description: str = "",
        hw: str = "",
    ) -> SigMFRecording:
        """Create a new SigMF recording.

        Raw bytes and int8 arrays are written verbatim as ``ci8``;
        complex arrays are written as ``cf32_le``.

        Args:
            data: Samples to save.
            sample_rate: Effective sample rate in Hz.
            center_freq: Center frequency in Hz.
            output_dir: Directory to save files.
            basename: Base filename (without extension).
            description: Recording description.
            hw: Hardware description for ``core:hw``.

        Returns:
            SigMFRecording instance.
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        if basename is None:
            timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
            basename = f"hackrf_{timestamp}"

        data_path = output_dir / f"{basename}.sigmf-data"
        meta_path = output_dir / f"{basename}.sigmf-meta"

        datatype: SigMFDataType
        if isinstance(data, (bytes, bytearray)):
            payload = bytes(data)
            datatype = "ci8"
        elif np.iscomplexobj(data):
            payload = np.asarray(data, dtype=np.complex64).tobytes()
            datatype = "cf32_le"
        else:
            payload = np.asarray(data, dtype=np.int8).tobytes()
            datatype = "ci8"

        if len(payload) % SAMPLE_SIZE[datatype]:
            raise SigMFError("Incomplete sample in capture data", f"{len(payload)} bytes")

        data_path.write_bytes(payload)
        logger.info(
            "Saved %d samples to %s",
            len(payload) // SAMPLE_SIZE[datatype],
            data_path,
        )

        recording = cls(
            data_path=data_path,
            meta_path=meta_path,
            datatype=datatype,
            sample_rate=sample_rate,
            description=description,
            hw=hw,
        )
        recording.captures.append(
            SigMFCapture(
                sample_start=0,
                frequency=center_freq,
                datetime=datetime.now(timezone.utc).isoformat(),
            )
        )
        recording.save_metadata()

        return recording

    @classmethod
    def load(cls, path: Path | str) -> SigMFRecording:
        """Load a SigMF recording.

        Args:
            path: Path to .sigmf-meta or .sigmf-data file.

        Returns:
            SigMFRecording instance.
        """
        path = Path(path)

        if path.suffix == ".sigmf-data":
            meta_path = path.with_suffix(".sigmf-meta")
            data_path = path
        elif path.suffix == ".sigmf-meta":
            meta_path = path
            data_path = path.with_suffix(".sigmf-data")
        else:
            raise SigMFError(f"Invalid file extension: {path.suffix}")

        if not meta_path.exists():
            raise SigMFError(f"Metadata file not found: {meta_path}")
        if not data_path.exists():
            raise SigMFError(f"Data file not found: {data_path}")

        with open(meta_path) as f:
            metadata = json.load(f)

        global_meta = metadata.get("global", {})
        datatype = global_meta.get("core:datatype", "ci8")
        if datatype not in SAMPLE_SIZE:
            raise SigMFError("Unsupported datatype", datatype)

        recording = cls(
            data_path=data_path,
            meta_path=meta_path,
            datatype=datatype,
            sample_rate=global_meta.get("core:sample_rate", 0.0),
            version=global_meta.get("core:version", "1.0.0"),
            description=global_meta.get("core:description", ""),
            recorder=global_meta.get("core:recorder", ""),
            hw=global_meta.get("core:hw", ""),
        )

        for cap in metadata.get("captures", []):
            recording.captures.append(
                SigMFCapture(
                    sample_start=cap.get("core:sample_start", 0),
                    frequency=cap.get("core:frequency"),
                    datetime=cap.get("core:datetime"),
                )
            )

        return recording

    def to_numpy(self) -> NDArray[np.complex64]:
        """Load samples as a complex64 array."""
        if self.datatype == "ci8":
            return bytes_to_complex64(self.data_path.read_bytes())
        return np.fromfile(self.data_path, dtype=np.complex64)

    def save_metadata(self) -> None:
        """Save metadata to .sigmf-meta file."""
        global_meta: dict[str, object] = {
            "core:datatype": self.datatype,
            "core:sample_rate": self.sample_rate,
            "core:version": self.version,
            "core:description": self.description,
        }
        if self.recorder:
            global_meta["core:recorder"] = self.recorder
        if self.hw:
            global_meta["core:hw"] = self.hw

        captures: list[dict[str, object]] = []
        for cap in self.captures:
            cap_dict: dict[str, object] = {"core:sample_start": cap.sample_start}
            if cap.frequency is not None:
                cap_dict["core:frequency"] = cap.frequency
            if cap.datetime is not None:
                cap_dict["core:datetime"] = cap.datetime
            captures.append(cap_dict)

        metadata = {"global": global_meta, "captures": captures, "annotations": []}
        with open(self.meta_path, "w") as f:
            json.dump(metadata, f, indent=2)

        logger.info("Saved metadata to %s", self.meta_path)

    @property
    def num_samples(self) -> int:
        """Number of complex samples in the data file."""
        return self.data_path.stat().st_size // SAMPLE_SIZE[self.datatype]

    @property
    def duration_seconds(self) -> float:
        """Get recording duration in seconds."""
        if self.sample_rate <= 0:
            return 0.0
        return self.num_samples / self.sample_rate

    @property
    def center_frequency(self) -> float | None:
        """Get center frequency from first capture."""
        if self.captures:
            return self.captures[0].frequency
        return None

    def __repr__(self) -> str:
        return (
            f"SigMFRecording("
            f"path={self.data_path.name}, "
            f"rate={self.sample_rate/1e6:.3f}MHz, "
            f"duration={self.duration_seconds:.2f}s)"
        )
