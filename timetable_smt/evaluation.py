# timetable_smt/evaluation.py
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from .decoding import TimetableOutput
from .encoding import FREE_PREFIX, TOOEARLY_LATE_NAME
from .timeslots import SlotGrid


@dataclass
class ScheduleSummary:
    occupancy: np.ndarray        # [día][slot] 1 si hay una lección real
    half_hours_per_day: List[int]
    free_days: List[str]
    earliest: Optional[str]
    latest: Optional[str]
    total_hours: float


def is_lesson_label(label: str) -> bool:
    # Las etiquetas sintéticas no cuentan como clase
    return bool(label) and not label.startswith(FREE_PREFIX) and label != TOOEARLY_LATE_NAME


def summarize(output: TimetableOutput, grid: SlotGrid) -> ScheduleSummary:
    occ = np.zeros((grid.n_days, grid.slots_per_day), dtype=int)
    if output.is_sat:
        for d, row in enumerate(output.schedule):
            for s, label in enumerate(row):
                if is_lesson_label(label):
                    occ[d, s] = 1

    per_day = occ.sum(axis=1)
    free_days = [grid.days[d] for d in range(grid.n_days) if per_day[d] == 0]

    earliest = latest = None
    used_offsets = np.flatnonzero(occ.any(axis=0))
    if used_offsets.size:
        earliest = grid.offset_to_hhmm(int(used_offsets[0]))
        # el último slot ocupado termina media hora después
        latest = grid.offset_to_hhmm(int(used_offsets[-1]) + 1)

    return ScheduleSummary(
        occupancy=occ,
        half_hours_per_day=[int(x) for x in per_day],
        free_days=free_days,
        earliest=earliest,
        latest=latest,
        total_hours=float(occ.sum()) / 2,
    )
