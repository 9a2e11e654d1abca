"""CLI entry points for hackrfone."""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from hackrfone.apps.recorder import CaptureRecorder
from hackrfone.core.config import DEFAULT_LNA_GAIN, DEFAULT_VGA_GAIN, RxSettings
from hackrfone.core.device import HackRfOne
from hackrfone.core.exceptions import HackRFError
from hackrfone.core.transport import list_devices


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )


def info() -> None:
    """Device information CLI entry point."""
    parser = argparse.ArgumentParser(
        description="HackRF Info - Show board id and firmware versions"
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List attached devices without opening them",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    args = parser.parse_args()
    setup_logging(args.verbose)

    if args.list:
        devices = list_devices()
        if not devices:
            print("No HackRF One found")
            return
        for dev in devices:
            print(
                f"  [{dev['index']}] bus {dev['bus']} address {dev['address']} "
                f"serial {dev['serial'] or '-'} (USB API {dev['usb_api']})"
            )
        return

    try:
        with HackRfOne.open() as radio:
            details = radio.get_device_info()
    except HackRFError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Board ID: {details['board_id']} ({details['board_name']})")
    print(f"Firmware version: {details['firmware']}")
    print(f"USB API version: {details['usb_api']}")


def rx() -> None:
    """Receive-to-file CLI entry point."""
    parser = argparse.ArgumentParser(
        description="HackRF RX - Capture raw IQ samples to SigMF"
    )
    parser.add_argument(
        "-f",
        "--freq",
        type=float,
        default=915.0,
        help="Center frequency in MHz (default: 915.0)",
    )
    parser.add_argument(
        "-s",
        "--sample-rate",
        type=float,
        default=20.0,
        help="Sample clock in MHz before the divisor (default: 20.0)",
    )
    parser.add_argument(
        "--divisor",
        type=int,
        default=2,
        help="Sample rate divisor (default: 2)",
    )
    parser.add_argument(
        "-b",
        "--bandwidth",
        type=float,
        default=None,
        help="Baseband filter bandwidth in MHz (default: 75%% of sample rate)",
    )
    parser.add_argument(
        "-l",
        "--lna",
        type=int,
        default=DEFAULT_LNA_GAIN,
        help=f"LNA gain in dB, 0-40 step 8 (default: {DEFAULT_LNA_GAIN})",
    )
    parser.add_argument(
        "-g",
        "--vga",
        type=int,
        default=DEFAULT_VGA_GAIN,
        help=f"VGA gain in dB, 0-62 step 2 (default: {DEFAULT_VGA_GAIN})",
    )
    parser.add_argument(
        "--amp",
        action="store_true",
        help="Enable the RF amplifier",
    )
    parser.add_argument(
        "-n",
        "--num-samples",
        type=int,
        default=1024 * 1024,
        help="Number of samples to capture (default: 1048576)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default="./captures",
        help="Output directory (default: ./captures)",
    )
    parser.add_argument(
        "--name",
        type=str,
        default=None,
        help="Base filename (default: timestamped)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    args = parser.parse_args()
    setup_logging(args.verbose)

    try:
        settings = RxSettings(
            frequency_hz=int(args.freq * 1e6),
            sample_rate_hz=int(args.sample_rate * 1e6),
            divisor=args.divisor,
            baseband_filter_hz=int(args.bandwidth * 1e6) if args.bandwidth is not None else None,
            lna_gain=args.lna,
            vga_gain=args.vga,
            amp_enable=args.amp,
        )
    except ValidationError as e:
        print(f"Error: Invalid settings: {e}", file=sys.stderr)
        sys.exit(1)

    print(
        f"HackRF RX - {args.freq} MHz @ "
        f"{settings.effective_sample_rate / 1e6:.3f} MS/s"
    )

    try:
        recorder = CaptureRecorder(settings)
        result = recorder.record(
            args.num_samples,
            output_dir=args.output,
            basename=args.name,
        )
        print(f"Saved: {result.path}")
    except KeyboardInterrupt:
        print("\nStopped")
    except HackRFError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
