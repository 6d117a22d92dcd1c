# timetable_smt/model.py
from dataclasses import dataclass, field
from datetime import time
from enum import Enum
from typing import Dict, List, Sequence, Tuple

StartEnd = Tuple[time, time]


class LessonWeek(Enum):
    ALL = "all"
    ODD = "odd"
    EVEN = "even"
    CUSTOM = "custom"   # semanas explícitas en Lesson.weeks


@dataclass(frozen=True)
class Lesson:
    lesson_id: str
    lesson_type: str              # "Lecture", "Tutorial", ...
    start_end_times: Tuple[StartEnd, ...]
    days: Tuple[str, ...]         # alineado por índice con start_end_times
    week_pattern: LessonWeek = LessonWeek.ALL
    weeks: Tuple[int, ...] = ()

    def __post_init__(self):
        # Permitimos listas en la construcción, pero guardamos tuplas
        object.__setattr__(self, "start_end_times", tuple(tuple(p) for p in self.start_end_times))
        object.__setattr__(self, "days", tuple(self.days))
        object.__setattr__(self, "weeks", tuple(self.weeks))
        if len(self.days) != len(self.start_end_times):
            raise ValueError(
                f"Lesson {self.lesson_id}: {len(self.days)} días para "
                f"{len(self.start_end_times)} pares inicio/fin"
            )

    def occurrences(self) -> List[Tuple[str, time, time]]:
        return [(day, start, end) for day, (start, end) in zip(self.days, self.start_end_times)]


@dataclass(frozen=True)
class Module:
    module_id: str
    credit_workload: float
    lessons: Dict[str, Tuple[Lesson, ...]]   # lesson_type -> alternativas, en orden de aparición
    is_compulsory: bool = True

    @classmethod
    def from_lessons(
        cls,
        module_id: str,
        credit_workload: float,
        lessons: Sequence[Lesson],
        is_compulsory: bool = True,
    ) -> "Module":
        """Agrupa las lecciones por tipo conservando el primer orden visto."""
        grouped: Dict[str, List[Lesson]] = {}
        for lesson in lessons:
            grouped.setdefault(lesson.lesson_type, []).append(lesson)
        return cls(
            module_id=module_id,
            credit_workload=credit_workload,
            lessons={k: tuple(v) for k, v in grouped.items()},
            is_compulsory=is_compulsory,
        )

    def lesson_types(self) -> List[str]:
        return list(self.lessons.keys())


def _check_hhmm(value: str) -> str:
    if len(value) != 4 or not value.isdigit():
        raise ValueError(f"Hora '{value}' no tiene formato HHMM")
    return value


@dataclass(frozen=True)
class GlobalConstraints:
    free_day_active: bool = False
    time_window_active: bool = False
    start_time: str = "0800"   # HHMM
    end_time: str = "2200"     # HHMM
    min_total_workload: float = 0
    max_total_workload: float = 30

    def __post_init__(self):
        _check_hhmm(self.start_time)
        _check_hhmm(self.end_time)
        if self.start_time > self.end_time:
            raise ValueError(f"start_time {self.start_time} posterior a end_time {self.end_time}")
        if self.min_total_workload > self.max_total_workload:
            raise ValueError("min_total_workload no puede superar max_total_workload")


@dataclass(frozen=True)
class GenericTimetable:
    modules: Tuple[Module, ...]
    constraints: GlobalConstraints = field(default_factory=GlobalConstraints)

    def __post_init__(self):
        object.__setattr__(self, "modules", tuple(self.modules))

    def total_workload(self, compulsory_only: bool = False) -> float:
        return sum(
            m.credit_workload for m in self.modules
            if m.is_compulsory or not compulsory_only
        )

