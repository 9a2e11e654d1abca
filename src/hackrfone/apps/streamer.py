"""Background receive streaming with cooperative cancellation."""

from __future__ import annotations

import logging
import queue
import threading
from typing import TYPE_CHECKING

import numpy as np

from hackrfone.core.exceptions import DeviceError, HackRFError
from hackrfone.dsp.samples import SampleAssembler

if TYPE_CHECKING:
    from collections.abc import Iterator

    from numpy.typing import NDArray

    from hackrfone.core.device import HackRfOne, HackRfOneRx

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_DEPTH: int = 64  # Chunks buffered between threads (8 MiB)
POLL_INTERVAL_S: float = 0.1


class RxStreamer:
    """Pulls bulk transfers on a dedicated thread.

    The streamer owns the receive-mode handle until :meth:`stop` hands
    back the idle radio. A bulk transfer cannot be aborted mid-flight,
    so stopping sets a flag that the sampling thread checks between
    transfers; ``stop`` therefore waits up to one transfer timeout.

    Example:
        >>> streamer = RxStreamer(radio.into_rx_mode()).start()
        >>> samples = streamer.read_samples(1024 * 1024)
        >>> radio = streamer.stop()
    """

    def __init__(self, radio: HackRfOneRx, queue_depth: int = DEFAULT_QUEUE_DEPTH) -> None:
        self._radio = radio
        self._queue: queue.Queue[bytes] = queue.Queue(maxsize=queue_depth)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._error: HackRFError | None = None
        self._error_delivered = False
        self.radio: HackRfOne | None = None
        self.chunks_received = 0
        self.bytes_received = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def error(self) -> HackRFError | None:
        """Error that ended the sampling thread, if any."""
        return self._error

    def start(self) -> RxStreamer:
        """Spawn the sampling thread."""
        if self._thread is not None:
            raise DeviceError("Streamer already started")
        self._thread = threading.Thread(target=self._run, name="sample", daemon=True)
        self._thread.start()
        logger.debug("Spawned sample thread")
        return self

    def _run(self) -> None:
        try:
            while not self._stop_event.is_set():
                data = self._radio.rx()
                self.chunks_received += 1
                self.bytes_received += len(data)
                if not self._put(data):
                    break
        except HackRFError as e:
            logger.error("Sample thread stopped: %s", e)
            self._error = e

    def _put(self, data: bytes) -> bool:
        while True:
            try:
                self._queue.put(data, timeout=POLL_INTERVAL_S)
                return True
            except queue.Full:
                if self._stop_event.is_set():
                    return False

    def chunks(self) -> Iterator[bytes]:
        """Yield raw buffers until the sampling thread ends.

        Raises:
            HackRFError: The error that ended the sampling thread.
        """
        while True:
            try:
                data = self._queue.get(timeout=POLL_INTERVAL_S)
            except queue.Empty:
                if self._error is not None:
                    self._error_delivered = True
                    raise self._error
                if not self.is_running:
                    return
                continue
            yield data

    def read_samples(self, num_samples: int, scale: float | None = None) -> NDArray[np.complex64]:
        """Collect ``num_samples`` complex samples from the stream.

        Fewer samples are returned only if the stream is stopped first.
        """
        assembler = SampleAssembler(scale)
        blocks: list[NDArray[np.complex64]] = []
        collected = 0
        for chunk in self.chunks():
            block = assembler.feed(chunk)
            blocks.append(block)
            collected += len(block)
            if collected >= num_samples:
                break
        if not blocks:
            return np.zeros(0, dtype=np.complex64)
        return np.concatenate(blocks)[:num_samples]

    def stop(self) -> HackRfOne:
        """Signal the sampling thread, wait for it and leave RX mode.

        The idle handle is also kept in :attr:`radio`, so it can be
        closed when this raises.

        Returns:
            The idle radio handle.

        Raises:
            HackRFError: The error that ended the sampling thread, if
                :meth:`chunks` has not already raised it.
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
            logger.debug("Sample thread joined after %d chunks", self.chunks_received)
        self.radio = self._radio.stop_rx()
        if self._error is not None and not self._error_delivered:
            self._error_delivered = True
            raise self._error
        return self.radio
