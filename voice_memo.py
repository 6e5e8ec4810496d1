#!/usr/bin/env python3
"""
Voice Memo - one button to record, stop, play and stop again.

The button cycles through four actions on a single audio file: record a
memo, stop recording, play it back, stop playback.
"""

import argparse
import sys
from pathlib import Path

# Add package to path
sys.path.insert(0, str(Path(__file__).parent))

from memo_recorder.audio.devices import list_devices
from memo_recorder.config import Config
from memo_recorder.core import RecorderInterface
from memo_recorder.utils import MemoRecorderError, configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Single-button voice memo recorder"
    )

    # Memo file
    parser.add_argument(
        "--output",
        default=None,
        help="Where the memo is stored (default: ~/audiorecorder.wav)",
    )

    # Capture rate
    parser.add_argument(
        "--sample-rate",
        type=int,
        choices=[8000, 16000, 44100, 48000],
        default=16000,
        help="Microphone capture rate in Hz (default: 16000, memos are stored at 8000)",
    )

    # Playback volume
    parser.add_argument(
        "--volume",
        type=float,
        default=1.0,
        help="Playback volume between 0.0 and 1.0 (default: 1.0)",
    )

    # Devices
    parser.add_argument(
        "--input-device",
        type=int,
        default=None,
        help="Input device index (see --list-devices)",
    )
    parser.add_argument(
        "--output-device",
        type=int,
        default=None,
        help="Output device index (see --list-devices)",
    )
    parser.add_argument(
        "--list-devices",
        action="store_true",
        help="List audio devices and exit",
    )

    # Logging
    parser.add_argument(
        "--log-dir",
        default=None,
        help="Also write daily log files to this directory",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging for debugging",
    )

    return parser


def main(argv=None):
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.list_devices:
        try:
            for line in list_devices():
                print(line)
        except MemoRecorderError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        return

    config = Config.from_args(
        output=args.output,
        sample_rate=args.sample_rate,
        volume=args.volume,
        input_device=args.input_device,
        output_device=args.output_device,
        log_dir=args.log_dir,
        verbose=args.verbose,
    )
    configure_logging(
        level=config.logging.level,
        verbose=config.verbose,
        directory=config.logging.directory,
        log_format=config.logging.format,
    )

    interface = RecorderInterface(config)

    try:
        interface.run()
    except KeyboardInterrupt:
        print("\n\n👋 Goodbye!")
    finally:
        interface.cleanup()


if __name__ == "__main__":
    main()
