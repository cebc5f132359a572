from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

from meterscan.capture_flow import process_capture
from meterscan.geolocation import ExifPositionProvider, FixedPositionProvider, PositionProvider
from meterscan.ocr.api import dump_enhanced_raster
from meterscan.ocr.base import ExtractionStatus, RawImage
from meterscan.ocr.config import ExtractionConfig
from meterscan.ocr.reader import MeterReader

logger = logging.getLogger(__name__)

EXIT_CODES = {
    ExtractionStatus.SUCCESS: 0,
    ExtractionStatus.NO_MATCH: 1,
    ExtractionStatus.ENGINE_ERROR: 2,
    ExtractionStatus.UNSUPPORTED_ENVIRONMENT: 2,
}


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="meterscan",
        description="Read the digits of a utility meter photo and geotag it.",
    )
    ap.add_argument("image", type=Path, help="Path to the meter photo")
    ap.add_argument("--lat", type=float, default=None, help="Latitude of the capture")
    ap.add_argument("--lon", type=float, default=None, help="Longitude of the capture")
    ap.add_argument("--engine", default=None, help="OCR engine (default: $METERSCAN_ENGINE)")
    ap.add_argument(
        "--debug-dir",
        type=Path,
        default=os.environ.get("METERSCAN_DEBUG_DIR") or None,
        help="Write the preprocessed raster here",
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return ap


def _position_provider(args: argparse.Namespace, raw: RawImage) -> PositionProvider:
    if args.lat is not None or args.lon is not None:
        if args.lat is None or args.lon is None:
            raise SystemExit("--lat and --lon must be given together")
        try:
            return FixedPositionProvider(args.lat, args.lon)
        except ValueError as err:
            raise SystemExit(str(err)) from err
    return ExifPositionProvider(raw)


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    try:
        raw = RawImage.from_path(args.image)
    except OSError as err:
        logger.error("Cannot read %s: %s", args.image, err)
        return 2

    try:
        config = ExtractionConfig.from_env()
        if args.engine:
            config = replace(config, engine=args.engine)
        reader = MeterReader(config=config)
    except ValueError as err:
        logger.error("%s", err)
        return 2

    if args.debug_dir is not None:
        written = dump_enhanced_raster(raw, args.debug_dir, config=config)
        if written is not None:
            logger.info("Debug raster written to %s", written)

    report = process_capture(
        raw,
        position_provider=_position_provider(args, raw),
        reader=reader,
    )

    payload = {"timestamp": datetime.now().isoformat(timespec="seconds"), **report.as_dict()}
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return EXIT_CODES[report.outcome.status]


if __name__ == "__main__":
    sys.exit(main())
