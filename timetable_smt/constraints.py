# timetable_smt/constraints.py
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .encoding import (
    TOOEARLY_LATE,
    TOOEARLY_LATE_NAME,
    WhoIdTable,
    free_day_key,
    free_day_who_id,
    lesson_key,
)
from .model import GenericTimetable, Lesson, Module
from .timeslots import SlotGrid

SlotRange = Tuple[int, int]   # [inicio, fin)


@dataclass(frozen=True)
class Alternative:
    who_id: int
    who_id_key: str
    occupied_ranges: Tuple[SlotRange, ...]

    def slots(self) -> List[int]:
        return [s for start, end in self.occupied_ranges for s in range(start, end)]


@dataclass(frozen=True)
class SlotConstraint:
    """Grupo de alternativas mutuamente excluyentes: se elige exactamente una."""
    alternatives: Tuple[Alternative, ...]
    optional_module: Optional[str] = None   # módulo opcional dueño del grupo

    @property
    def is_forced(self) -> bool:
        return len(self.alternatives) == 1


class SlotConstraintCompiler:
    def __init__(self, gt: GenericTimetable, grid: SlotGrid, who_ids: WhoIdTable):
        self.gt = gt
        self.grid = grid
        self.who_ids = who_ids

    def compile(self) -> List[SlotConstraint]:
        groups: List[SlotConstraint] = []
        for mod in self.gt.modules:
            for lesson_type, lessons in mod.lessons.items():
                groups.append(self.module_lessons_to_slot_constraint(mod, lesson_type, lessons))

        # TODO: límites de carga (min/max_total_workload) sobre módulos opcionales

        # Sintéticas: una sola vez por pasada
        if self.gt.constraints.free_day_active:
            groups.append(self.free_day_slot_constraint())
        if self.gt.constraints.time_window_active:
            window = self.time_window_slot_constraint()
            if window is not None:
                groups.append(window)
        return groups

    def lesson_ranges(self, lesson: Lesson) -> Tuple[SlotRange, ...]:
        return tuple(
            (self.grid.time_to_slot(start, day), self.grid.time_to_slot(end, day))
            for day, start, end in lesson.occurrences()
        )

    def module_lessons_to_slot_constraint(
        self, mod: Module, lesson_type: str, lessons: Sequence[Lesson]
    ) -> SlotConstraint:
        alternatives = []
        for lesson in lessons:
            key = lesson_key(mod.module_id, lesson_type, lesson.lesson_id)
            alternatives.append(Alternative(self.who_ids[key], key, self.lesson_ranges(lesson)))
        return SlotConstraint(
            alternatives=tuple(alternatives),
            optional_module=None if mod.is_compulsory else mod.module_id,
        )

    def window_offsets(self) -> Tuple[int, int]:
        c = self.gt.constraints
        return self.grid.hhmm_to_offset(c.start_time), self.grid.hhmm_to_offset(c.end_time)

    def free_day_slot_constraint(self) -> SlotConstraint:
        """
        Un bloqueo de día completo por cada día salvo el último (un sábado
        libre es demasiado fácil). Si hay ventana horaria activa, el bloqueo
        se recorta a ella; si no, chocaría con TOO_EARLY_OR_LATE.
        """
        if self.grid.n_days < 2:
            raise ValueError(
                f"free_day_active necesita al menos dos días; configurados: {list(self.grid.days)}"
            )
        start_offset, end_offset = 0, self.grid.slots_per_day
        if self.gt.constraints.time_window_active:
            start_offset, end_offset = self.window_offsets()

        alternatives = []
        for day_idx, day in enumerate(self.grid.days[:-1]):
            key = free_day_key(day)
            who_id = free_day_who_id(day_idx)
            self.who_ids.add(key, who_id)
            rng = self.grid.day_range(day_idx, start_offset, end_offset)
            alternatives.append(Alternative(who_id, key, (rng,)))
        return SlotConstraint(alternatives=tuple(alternatives))

    def time_window_slot_constraint(self) -> Optional[SlotConstraint]:
        start_offset, end_offset = self.window_offsets()
        # Ventana igual al día completo: no restringe nada
        if start_offset == 0 and end_offset == self.grid.slots_per_day:
            return None

        self.who_ids.add(TOOEARLY_LATE_NAME, TOOEARLY_LATE)
        ranges: List[SlotRange] = []
        for day_idx in range(self.grid.n_days):
            if start_offset > 0:
                ranges.append(self.grid.day_range(day_idx, 0, start_offset))
            if end_offset < self.grid.slots_per_day:
                ranges.append(self.grid.day_range(day_idx, end_offset))
        return SlotConstraint(
            alternatives=(Alternative(TOOEARLY_LATE, TOOEARLY_LATE_NAME, tuple(ranges)),)
        )
