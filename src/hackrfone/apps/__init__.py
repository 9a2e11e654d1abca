"""Streaming and capture applications."""

from hackrfone.apps.recorder import CaptureRecorder
from hackrfone.apps.streamer import RxStreamer

__all__ = [
    "CaptureRecorder",
    "RxStreamer",
]
