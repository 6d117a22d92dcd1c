# timetable_smt/timeslots.py
"""
Índice de medias horas sobre toda la semana:

    idx = day_index * slots_per_day + (hour - start_hour) * 2 + (1 si minutos == 30)

con slots_per_day = (end_hour - start_hour) * 2.
"""
from dataclasses import dataclass
from datetime import time
from typing import Dict, Optional, Tuple

DEFAULT_DAYS: Tuple[str, ...] = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday",
)


class SlotRangeError(ValueError):
    """Hora fuera de la ventana del día o día desconocido."""


@dataclass(frozen=True)
class SlotGrid:
    start_hour: int = 8
    end_hour: int = 22
    days: Tuple[str, ...] = DEFAULT_DAYS

    def __post_init__(self):
        object.__setattr__(self, "days", tuple(d.lower() for d in self.days))
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise ValueError(f"Ventana de horas inválida {self.start_hour}-{self.end_hour}")
        if not self.days:
            raise ValueError("Se necesita al menos un día")

    @property
    def slots_per_day(self) -> int:
        return (self.end_hour - self.start_hour) * 2

    @property
    def n_days(self) -> int:
        return len(self.days)

    def day_index(self, day: str) -> int:
        try:
            return self._day_idxs()[day.lower()]
        except KeyError:
            raise SlotRangeError(f"Día desconocido '{day}'") from None

    def _day_idxs(self) -> Dict[str, int]:
        return {d: i for i, d in enumerate(self.days)}

    def _offset(self, hour: int, minute: int) -> int:
        # Se asume que todas las clases caen entre start_hour y end_hour
        if hour < self.start_hour or hour > self.end_hour:
            raise SlotRangeError(
                f"Hora {hour:02d}:{minute:02d} fuera de la ventana "
                f"{self.start_hour:02d}:00-{self.end_hour:02d}:00"
            )
        if hour == self.end_hour and minute > 0:
            raise SlotRangeError(
                f"Hora {hour:02d}:{minute:02d} termina después de {self.end_hour:02d}:00"
            )
        half_hour_flag = 1 if minute == 30 else 0
        return (hour - self.start_hour) * 2 + half_hour_flag

    def time_to_slot(self, value: time, day: str) -> int:
        return self._offset(value.hour, value.minute) + self.day_index(day) * self.slots_per_day

    def hhmm_to_offset(self, hhmm: str) -> int:
        """Offset dentro del día (lunes) para una hora HHMM como "0830"."""
        return self._offset(int(hhmm[:2]), int(hhmm[2:4]))

    def slot_to_day_offset(self, idx: int) -> Tuple[int, int]:
        return idx // self.slots_per_day, idx % self.slots_per_day

    def offset_to_hhmm(self, offset: int) -> str:
        hour = offset // 2 + self.start_hour
        return f"{hour:02d}{'30' if offset % 2 else '00'}"

    def slot_label(self, idx: int) -> str:
        day, offset = self.slot_to_day_offset(idx)
        return f"{self.days[day]}_{self.offset_to_hhmm(offset)}"

    def day_range(self, day_index: int, start_offset: int = 0, end_offset: Optional[int] = None) -> Tuple[int, int]:
        if end_offset is None:
            end_offset = self.slots_per_day
        base = day_index * self.slots_per_day
        return base + start_offset, base + end_offset

