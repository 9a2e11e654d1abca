"""Capture file I/O."""

from hackrfone.io.sigmf import SigMFRecording

__all__ = ["SigMFRecording"]
