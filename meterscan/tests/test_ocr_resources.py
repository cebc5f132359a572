from __future__ import annotations

import os
import re
from pathlib import Path

import pytesseract
import pytest

from meterscan.ocr.api import extract_meter_digits_from_path
from meterscan.ocr.base import ExtractionStatus
from meterscan.ocr.config import ExtractionConfig

RESOURCES_DIR = Path(__file__).parent / "resources"


def _expected_from_filename(path: Path) -> str:
    m = re.fullmatch(r"(\d+)(?:_.*)?", path.stem)
    if not m:
        raise ValueError(
            f"Resource filename must look like '04821.jpg' or '04821_kitchen.jpg', got: {path.name}"
        )
    return m.group(1)


def _resource_images() -> list[Path]:
    if not RESOURCES_DIR.exists():
        return []
    return sorted(
        p
        for p in RESOURCES_DIR.iterdir()
        if p.is_file() and p.suffix.lower() in {".png", ".jpg", ".jpeg"}
    )


def test_ocr_matches_all_resources() -> None:
    """Run the real Tesseract pipeline over field photos in ``resources/``.

    No photos ship with the package (they are customer meter captures), so this skips
    by default. Drop photos named after their reading, e.g. ``04821.jpg``, into
    ``resources/`` to run it.
    """
    images = _resource_images()
    if not images:
        pytest.skip("No OCR resource images found")
    try:
        pytesseract.get_tesseract_version()
    except pytesseract.TesseractNotFoundError:
        pytest.skip("tesseract is not installed")

    config = ExtractionConfig.from_env()
    debug_dir = os.environ.get("METERSCAN_DEBUG_DIR") or None

    rows: list[tuple[str, str, str, str]] = []
    failed: list[str] = []
    for image_path in images:
        expected = _expected_from_filename(image_path)
        outcome = extract_meter_digits_from_path(image_path, debug_dir=debug_dir, config=config)
        ok = outcome.status is ExtractionStatus.SUCCESS and outcome.digits == expected
        rows.append(("OK" if ok else "FAIL", image_path.name, expected, outcome.digits))
        if not ok:
            failed.append(image_path.name)

    headers = ("STATUS", "IMAGE", "EXPECTED", "ACTUAL")
    widths = [max(len(h), *(len(r[i]) for r in rows)) for i, h in enumerate(headers)]

    def fmt_row(values: tuple[str, str, str, str]) -> str:
        return " | ".join(v.ljust(widths[i]) for i, v in enumerate(values))

    print("")
    print(fmt_row(headers))
    print("-+-".join("-" * w for w in widths))
    for r in rows:
        print(fmt_row(r))
    print(f"Passed: {len(images) - len(failed)} / {len(images)}")
    if failed:
        pytest.fail(f"OCR failed for: {', '.join(failed)}", pytrace=False)
