#!/usr/bin/env python3
"""Stream samples on a background thread and report signal power.

Mirrors the usual HackRF receive loop: configure while idle, enter RX,
pull buffers on a sample thread, then signal the thread to stop and
return the radio to idle.

Usage:
    python examples/rx_spectrum.py [--freq FREQ_MHZ] [--samples N]

Requirements:
    - HackRF One connected
"""

import argparse
import sys

import numpy as np

from hackrfone import HackRfOne, HackRFError, RxSettings
from hackrfone.apps.streamer import RxStreamer
from hackrfone.dsp.samples import INT8_SCALE


def main() -> int:
    parser = argparse.ArgumentParser(description="Capture samples and print power")
    parser.add_argument(
        "--freq",
        type=float,
        default=915.0,
        help="Center frequency in MHz (default: 915.0)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=1024 * 1024,
        help="Number of samples to capture (default: 1048576)",
    )
    args = parser.parse_args()

    settings = RxSettings(
        frequency_hz=int(args.freq * 1e6),
        sample_rate_hz=20_000_000,
        divisor=2,
        lna_gain=16,
        vga_gain=32,
    )

    try:
        with HackRfOne.open() as radio:
            radio.configure(settings)
            streamer = RxStreamer(radio.into_rx_mode()).start()
            try:
                samples = streamer.read_samples(args.samples, scale=INT8_SCALE)
            finally:
                try:
                    streamer.stop()
                finally:
                    if streamer.radio is not None:
                        streamer.radio.close()
    except KeyboardInterrupt:
        print("\nStopped by user")
        return 0
    except HackRFError as e:
        print(f"Error: {e}")
        return 1

    power_db = 10 * np.log10(np.mean(np.abs(samples) ** 2) + 1e-12)
    print(f"Captured {len(samples)} samples at {args.freq} MHz")
    print(f"Mean power: {power_db:.1f} dBFS")
    return 0


if __name__ == "__main__":
    sys.exit(main())
