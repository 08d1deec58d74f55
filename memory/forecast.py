"""Mastery forecasting from raw word counts.

A fixed heuristic, not a statistical model:

* more than 15 uses  -> mastered, no projected date
* 5 to 15 uses       -> developing, mastered in ceil((16 - count) * 2) days
* fewer than 5 uses  -> emerging, mastered in ceil((16 - count) * 3) days
"""

import math
from datetime import date, timedelta
from typing import List, Mapping, Optional, Tuple

from memory.schema import LEVEL_ORDER, MasteryForecast, MasteryLevel, WordStats

MASTERED_ABOVE = 15
DEVELOPING_FROM = 5
MASTERY_COUNT = 16
DEVELOPING_DAYS_PER_USE = 2
EMERGING_DAYS_PER_USE = 3


def _projected(today: date, count: int, days_per_use: int) -> date:
    return today + timedelta(days=math.ceil((MASTERY_COUNT - count) * days_per_use))


def classify(count: int, today: date) -> Tuple[MasteryLevel, Optional[date]]:
    """Mastery level and projected mastery date for a usage count."""
    if count > MASTERED_ABOVE:
        return "mastered", None
    if count >= DEVELOPING_FROM:
        return "developing", _projected(today, count, DEVELOPING_DAYS_PER_USE)
    return "emerging", _projected(today, count, EMERGING_DAYS_PER_USE)


def forecast(
    word_stats: Mapping[str, WordStats],
    today: Optional[date] = None,
) -> List[MasteryForecast]:
    """Recompute the full forecast for *word_stats*.

    Entries are ordered emerging, developing, mastered; within a level they
    keep the iteration order of *word_stats*.
    """
    today = today or date.today()
    entries = []
    for word, stats in word_stats.items():
        level, due = classify(stats.count, today)
        entries.append(MasteryForecast(word=word, level=level, projected_mastery_date=due))
    return sorted(entries, key=lambda entry: LEVEL_ORDER[entry.level])
