"""Raw IQ capture to SigMF."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from hackrfone.apps.streamer import RxStreamer
from hackrfone.core.config import RxSettings
from hackrfone.core.device import HackRfOne
from hackrfone.core.exceptions import RecordingError
from hackrfone.core.protocol import board_name
from hackrfone.io.sigmf import SigMFRecording

logger = logging.getLogger(__name__)


@dataclass
class RecordingResult:
    """Result of a capture."""

    path: Path
    duration_seconds: float
    num_samples: int
    sample_rate: float
    center_freq: float
    format: str

    def __repr__(self) -> str:
        return (
            f"Recording({self.path.name}, "
            f"{self.num_samples} samples, "
            f"{self.center_freq/1e6:.3f}MHz)"
        )


@dataclass
class CaptureRecorder:
    """Capture raw HackRF samples to a ``ci8`` SigMF recording.

    Example:
        >>> recorder = CaptureRecorder(RxSettings(frequency_hz=433_920_000))
        >>> result = recorder.record(1_000_000, output_dir="./captures")
    """

    settings: RxSettings = field(default_factory=RxSettings)

    def record(
        self,
        num_samples: int,
        output_dir: Path | str,
        basename: str | None = None,
        description: str = "",
    ) -> RecordingResult:
        """Record ``num_samples`` I/Q pairs.

        Args:
            num_samples: Number of complex samples to capture.
            output_dir: Output directory.
            basename: Base filename (auto-generated if None).
            description: Recording description.

        Returns:
            RecordingResult with file info.
        """
        if num_samples <= 0:
            raise RecordingError("Number of samples must be positive", str(num_samples))

        target = num_samples * 2
        logger.info(
            "Recording %d samples at %.3f MHz...",
            num_samples,
            self.settings.frequency_hz / 1e6,
        )

        radio = HackRfOne.open(self.settings.timeout_s)
        streamer: RxStreamer | None = None
        try:
            radio.configure(self.settings)
            hw = f"{board_name(radio.board_id())} {radio.version()}".strip()

            streamer = RxStreamer(radio.into_rx_mode()).start()
            start_time = time.time()
            buf = bytearray()
            try:
                for chunk in streamer.chunks():
                    buf += chunk
                    if len(buf) >= target:
                        break
            finally:
                streamer.stop()
            actual_duration = time.time() - start_time
        finally:
            if streamer is not None and streamer.radio is not None:
                radio = streamer.radio
            radio.close()

        if len(buf) < target:
            raise RecordingError(
                "Stream ended early",
                f"captured {len(buf) // 2} of {num_samples} samples",
            )

        recording = SigMFRecording.create(
            data=bytes(buf[:target]),
            sample_rate=self.settings.effective_sample_rate,
            center_freq=float(self.settings.frequency_hz),
            output_dir=output_dir,
            basename=basename,
            description=description,
            hw=hw,
        )

        logger.info(
            "Saved recording to %s (%.1f seconds)",
            recording.data_path,
            actual_duration,
        )

        return RecordingResult(
            path=recording.data_path,
            duration_seconds=actual_duration,
            num_samples=num_samples,
            sample_rate=self.settings.effective_sample_rate,
            center_freq=float(self.settings.frequency_hz),
            format="sigmf",
        )
