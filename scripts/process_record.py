#!/usr/bin/env python3
"""
Process one acceleration record from uncorrected to corrected motion.

Typical usage:
  python scripts/process_record.py --input station.txt --dt 0.01
  python scripts/process_record.py --demo --method AIC --output out/

The input file holds one acceleration sample per line (numpy text
format). Processing parameters come from SM_* environment variables or
a local .env file; --method and --units override them.
"""

import logging
import os
import sys

import numpy as np

from strongmotion.config import load_config
from strongmotion.errors import StrongMotionError
from strongmotion.processing.processor import RecordProcessor
from strongmotion.processing.waveform import RecordSource
from strongmotion.simulator.accelerogram import AccelerogramSimulator, RecordConfiguration


def main() -> int:
    import argparse

    parser = argparse.ArgumentParser(description="Correct a strong-motion acceleration record")
    parser.add_argument("--input", help="Text file with one acceleration sample per line")
    parser.add_argument("--dt", type=float, help="Sample interval (seconds)")
    parser.add_argument("--demo", action="store_true", help="Process a synthetic record instead")
    parser.add_argument("--method", choices=["PWD", "AIC"], help="Event onset method")
    parser.add_argument("--units", choices=["cm/s2", "g"], help="Units of the input samples")
    parser.add_argument("--station", default="", help="Station code for corner tables")
    parser.add_argument("--output", help="Directory for the corrected arrays")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.demo and (args.input is None or args.dt is None):
        parser.error("--input and --dt are required unless --demo is given")

    try:
        config = load_config()
        if args.method:
            config.event_onset.method = args.method
        if args.units:
            config.data_units = args.units
        processor = RecordProcessor(config)

        if args.demo:
            record = AccelerogramSimulator(RecordConfiguration(
                drift_offset=0.05, drift_slope=0.02
            )).generate()
            acceleration, dt, source = record.acceleration, record.dt, record.source
        else:
            acceleration = np.loadtxt(args.input, dtype=float, ndmin=1)
            dt = args.dt
            source = RecordSource(station=args.station)

        result = processor.process(acceleration, dt, source)
    except (StrongMotionError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    print("")
    print(f"Processing complete: {result.status.value}")
    print(f"  Samples: {result.sample_count:,} at dt {result.dt} s")
    print(f"  Onset ({result.onset_method}): pick {result.pick_index}, start {result.start_index}")
    print(f"  Corners: {result.lowcut} - {result.highcut} Hz ({result.corner_source})")
    print(f"  Baseline: {result.baseline_type.value}")
    if result.qc_summary:
        print(f"  QC: {result.qc_summary.overall_status.value.upper()} "
              f"({result.qc_summary.passed_checks}/{result.qc_summary.total_checks} passed)")
    print(f"  Peak acc {result.acceleration_stats.peak:.4f} cm/s2, "
          f"vel {result.velocity_stats.peak:.4f} cm/s, "
          f"dis {result.displacement_stats.peak:.4f} cm")
    if result.strong_motion:
        print(f"  {result.strong_motion!r}")

    if args.output and result.sample_count:
        os.makedirs(args.output, exist_ok=True)
        name = source.station or "record"
        for kind in ("acceleration", "velocity", "displacement"):
            values = getattr(result, kind)
            if len(values):
                path = os.path.join(args.output, f"{name}_{kind}.txt")
                np.savetxt(path, values, fmt="%.8e")
                print(f"  Wrote {path}")

    return 0 if result.status.value == "GOOD" else 1


if __name__ == "__main__":
    raise SystemExit(main())
