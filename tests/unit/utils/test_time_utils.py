from __future__ import annotations

import re
from datetime import timezone

from gitvendor.core.utils.time import utc_now, utc_timestamp


def test_utc_now_returns_timezone_aware() -> None:
    assert utc_now().tzinfo == timezone.utc


def test_utc_timestamp_uses_z_suffix_and_seconds() -> None:
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z", utc_timestamp())
