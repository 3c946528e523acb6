#!/usr/bin/env python3
"""
Enhance File - Run the enhancement pipeline on an audio file

Decodes a file with soundfile, applies the enabled stages and writes the
result next to the input (or to --output) with a JSON stage report.

Usage:
  python tools/enhance_file.py <input_file> [options]
"""

import json
import logging
import sys
from pathlib import Path

import soundfile as sf

# Add project root to path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from logging_config import configure_logging
from spectral_engine import AudioBuffer, EnhancementPipeline, EnhancementSettings, PipelineConfig


def load_settings(args) -> EnhancementSettings:
    """Settings from an optional JSON file, then command-line overrides."""
    data = {}
    if args.settings:
        with open(args.settings) as f:
            data = json.load(f)

    overrides = {
        "noise_reduction": args.noise_reduction,
        "normalization": args.normalization,
        "stereo_enhance": args.stereo,
        "eq_low_db": args.eq_low,
        "eq_mid_db": args.eq_mid,
        "eq_high_db": args.eq_high,
    }
    data.update({k: v for k, v in overrides.items() if v is not None})
    if args.advanced:
        data["use_advanced_processing"] = True
    return EnhancementSettings.from_dict(data)


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Spectral enhancement - denoise, EQ, widen and normalize an audio file"
    )
    parser.add_argument("input_file", help="Input audio file")
    parser.add_argument("--output", "-o", help="Output file path")
    parser.add_argument("--settings", help="JSON file with enhancement settings")
    parser.add_argument("--noise-reduction", type=float, help="Noise reduction 0-100")
    parser.add_argument("--normalization", type=float, help="Normalization 0-100")
    parser.add_argument("--stereo", type=float, help="Stereo enhancement 0-100")
    parser.add_argument("--eq-low", type=float, help="Low band gain in dB")
    parser.add_argument("--eq-mid", type=float, help="Mid band gain in dB")
    parser.add_argument("--eq-high", type=float, help="High band gain in dB")
    parser.add_argument("--advanced", action="store_true", help="Enable advanced processing")
    parser.add_argument("--workers", "-w", type=int, default=1,
                        help="Threads for per-channel processing (default: 1)")
    parser.add_argument("--log-file", help="Also write the log to this file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = parser.parse_args()
    logger = configure_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    input_path = Path(args.input_file)
    if not input_path.exists():
        print(f"Error: Input file not found: {input_path}")
        sys.exit(1)

    if args.output:
        output_path = Path(args.output)
    else:
        output_path = input_path.with_name(f"{input_path.stem}_enhanced.wav")

    try:
        settings = load_settings(args)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    frames, sample_rate = sf.read(str(input_path), dtype="float32", always_2d=True)
    buffer = AudioBuffer.from_frames(frames, sample_rate)
    logger.info(f"Loaded {input_path.name}: {buffer!r}")

    pipeline = EnhancementPipeline(settings, PipelineConfig(max_workers=args.workers))
    result = pipeline.process(buffer)

    sf.write(str(output_path), result.buffer.to_frames(), sample_rate, subtype="PCM_24")

    report = {
        "input_file": str(input_path),
        "output_file": str(output_path),
        "settings": settings.to_dict(),
        **result.to_dict(),
    }
    report_path = output_path.with_suffix(".json")
    with open(report_path, "w") as f:
        json.dump(report, f, indent=2)

    print(f"Output: {output_path}")
    print(f"Stages applied: {', '.join(result.applied_stages) or 'none'}")
    print(f"Processing Time: {result.processing_time:.1f}s")
    print(f"Report saved to: {report_path}")


if __name__ == "__main__":
    main()
