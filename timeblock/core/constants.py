"""Shared scheduling constants.

Defaults for values that config.py lets users override. The trend dead-band
is reused by every trend computation, so it lives here, not inline.
"""

from __future__ import annotations

WORKDAY_BUDGET_HOURS = 8.0

# Relative change between period halves that counts as a real trend (±10%)
TREND_DEAD_BAND = 0.10

# Free-slot search window when the caller gives none
FREE_SLOT_DAY_START_HOUR = 8
FREE_SLOT_DAY_END_HOUR = 18

NEUTRAL_SLOT_SCORE = 1.0

UNCATEGORIZED = "Uncategorized"

# Utilization thresholds for workload recommendations
HEAVY_OVERLOAD_THRESHOLD = 1.2
OVERLOAD_THRESHOLD = 1.0
UNDERLOAD_THRESHOLD = 0.4
REDISTRIBUTION_TARGET_THRESHOLD = 0.6
