from __future__ import annotations

import re

# ASCII only: str.isdigit() and \d would also accept e.g. Thai or Arabic-Indic digits.
_DIGIT_RUN = re.compile(r"[0-9]+")
_NON_DIGIT = re.compile(r"[^0-9]")

MIN_RUN_LENGTH = 4


def digit_runs(raw_text: str) -> list[str]:
    """All maximal runs of ASCII digits, in scan order."""
    return _DIGIT_RUN.findall(raw_text or "")


def best_digits(raw_text: str, *, min_run: int = MIN_RUN_LENGTH) -> str:
    """Pick the most plausible meter reading out of raw OCR text.

    Meter readings are usually at least ``min_run`` digits long, so shorter runs are
    treated as noise (timestamps, serial fragments) and the longest long-enough run wins,
    first occurrence on ties. When no run is long enough, every digit in the text is
    concatenated as a best-effort answer, which may be empty.
    """

    candidates = [run for run in digit_runs(raw_text) if len(run) >= min_run]
    if candidates:
        return max(candidates, key=len)
    return _NON_DIGIT.sub("", raw_text or "")
