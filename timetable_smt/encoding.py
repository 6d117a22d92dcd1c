"""
Codifica y decodifica el identificador "who" de 32 bits (con signo):
Módulo(11) | TipoLección(10) | Lección(10)

Los ids reales son siempre >= 0. Los negativos están reservados para
valores sintéticos (casilla libre, día libre, fuera de horario).
"""
from dataclasses import dataclass, field
from typing import Dict, Tuple

from .model import GenericTimetable

LESSON_BITS = 10
LESSON_TYPE_BITS = 10
MODULE_BITS = 11

UNASSIGNED = -1
FREE = -2
TOOEARLY_LATE = -3

FREE_PREFIX = "FREE_"
TOOEARLY_LATE_NAME = "TOO_EARLY_OR_LATE"
KEY_SEP = "__"


class IdOverflowError(ValueError):
    pass


class DuplicateWhoIdError(ValueError):
    pass


def pack_who_id(module_idx: int, lesson_type_idx: int, lesson_idx: int) -> int:
    for name, val, bits in (
        ("módulo", module_idx, MODULE_BITS),
        ("tipo de lección", lesson_type_idx, LESSON_TYPE_BITS),
        ("lección", lesson_idx, LESSON_BITS),
    ):
        if not 0 <= val < (1 << bits):
            raise IdOverflowError(f"Índice de {name} {val} no cabe en {bits} bits")
    return (
        (module_idx << (LESSON_TYPE_BITS + LESSON_BITS))
        | (lesson_type_idx << LESSON_BITS)
        | lesson_idx
    )


def unpack_who_id(who_id: int) -> Tuple[int, int, int]:
    if who_id < 0:
        raise ValueError(f"who_id {who_id} es sintético, no se puede desempaquetar")
    return (
        who_id >> (LESSON_TYPE_BITS + LESSON_BITS),
        (who_id >> LESSON_BITS) & ((1 << LESSON_TYPE_BITS) - 1),
        who_id & ((1 << LESSON_BITS) - 1),
    )


def lesson_key(module_id: str, lesson_type: str, lesson_id: str) -> str:
    return KEY_SEP.join([module_id, lesson_type, lesson_id])


def free_day_who_id(day_index: int) -> int:
    # FREE - día, saltando TOOEARLY_LATE para que no colisionen
    who_id = FREE - day_index
    if who_id <= TOOEARLY_LATE:
        who_id -= 1
    return who_id


def free_day_key(day: str) -> str:
    return FREE_PREFIX + day


@dataclass
class WhoIdTable:
    """Mapa biyectivo clave <-> who_id. Rechaza colisiones al insertar."""
    forward: Dict[str, int] = field(default_factory=dict)
    reverse: Dict[int, str] = field(default_factory=dict)

    def add(self, key: str, who_id: int) -> None:
        if self.forward.get(key) == who_id:
            return
        if key in self.forward:
            raise DuplicateWhoIdError(f"Clave '{key}' ya tiene who_id {self.forward[key]}")
        if who_id in self.reverse:
            raise DuplicateWhoIdError(
                f"who_id {who_id} de '{key}' ya asignado a '{self.reverse[who_id]}'"
            )
        self.forward[key] = who_id
        self.reverse[who_id] = key

    def __getitem__(self, key: str) -> int:
        return self.forward[key]

    def __contains__(self, key: str) -> bool:
        return key in self.forward


def build_who_id_table(gt: GenericTimetable) -> WhoIdTable:
    table = WhoIdTable()
    for module_idx, mod in enumerate(gt.modules):
        for type_idx, lesson_type in enumerate(mod.lessons):
            for lesson_idx, lesson in enumerate(mod.lessons[lesson_type]):
                key = lesson_key(mod.module_id, lesson_type, lesson.lesson_id)
                table.add(key, pack_who_id(module_idx, type_idx, lesson_idx))
    return table
