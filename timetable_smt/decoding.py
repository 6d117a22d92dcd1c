# timetable_smt/decoding.py
"""
Lectura de la salida del solver:

    sat
    (model
      (define-fun h5 () Int 0)
      (define-fun h3 () Int (- 1))
      ...)

y reconstrucción de la tabla día x media hora con las etiquetas de lección.
"""
import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Union

import sexpdata

from .emitter import SLOT_PREFIX
from .encoding import KEY_SEP, UNASSIGNED
from .timeslots import SlotGrid

SExpr = Union[str, int, list]

_SLOT_VAR_RE = re.compile(rf"^{SLOT_PREFIX}(\d+)$")


class ModelParseError(ValueError):
    pass


@dataclass(frozen=True)
class Literal:
    value: int

    def resolve(self) -> int:
        return self.value


@dataclass(frozen=True)
class Negated:
    value: int

    def resolve(self) -> int:
        return -self.value


ModelValue = Union[Literal, Negated]


@dataclass
class TimetableOutput:
    is_sat: bool
    schedule: List[List[str]] = field(default_factory=list)


def _plain(expr):
    if isinstance(expr, list):
        return [_plain(e) for e in expr]
    if isinstance(expr, sexpdata.Symbol):
        return str(expr)
    return expr


def read_sexprs(text: str) -> List[SExpr]:
    """Expresiones de primer nivel de `text`, con los símbolos como str."""
    try:
        # nil/t son nombres válidos en un modelo, no constantes
        exprs = sexpdata.loads(f"({text})", nil=None, true=None)
    except (sexpdata.ExpectClosingBracket, sexpdata.ExpectNothing, ValueError) as e:
        raise ModelParseError(f"Salida del solver mal formada: {e}") from e
    return _plain(exprs)


def parse_value(expr: SExpr) -> ModelValue:
    try:
        if isinstance(expr, (int, str)) and not isinstance(expr, bool):
            return Literal(int(expr))
        if isinstance(expr, list) and len(expr) == 2 and expr[0] == "-" and isinstance(expr[1], (int, str)):
            return Negated(int(expr[1]))
    except ValueError:
        pass
    raise ModelParseError(f"Valor entero no reconocido: {expr!r}")


def parse_model(expr: SExpr) -> Dict[str, int]:
    if not isinstance(expr, list):
        raise ModelParseError(f"Se esperaba un modelo, se obtuvo {expr!r}")
    entries = expr[1:] if expr and expr[0] == "model" else expr

    assignments: Dict[str, int] = {}
    for entry in entries:
        if not (isinstance(entry, list) and len(entry) == 5 and entry[0] == "define-fun"):
            raise ModelParseError(f"Entrada de modelo inesperada: {entry!r}")
        _, name, _args, sort, value = entry
        if sort != "Int":
            continue
        assignments[name] = parse_value(value).resolve()
    return assignments


def slot_assignments(assignments: Mapping[str, int]) -> Dict[int, int]:
    """Sólo las variables de ocupación h<idx>; los selectores se ignoran."""
    slots: Dict[int, int] = {}
    for name, value in assignments.items():
        m = _SLOT_VAR_RE.match(name)
        if m:
            slots[int(m.group(1))] = value
    return slots


def label_for(key: str) -> str:
    return "\n".join(key.split(KEY_SEP))


def decode_model(text: str, grid: SlotGrid, reverse_who_ids: Mapping[int, str]) -> TimetableOutput:
    # Sólo se mira la primera palabra; lo que sigue a unsat no se lee
    head, *rest = text.split(None, 1) or [""]
    if head != "sat":
        return TimetableOutput(is_sat=False, schedule=[])

    exprs = read_sexprs(rest[0] if rest else "")
    if not exprs:
        raise ModelParseError("Salida 'sat' sin modelo")
    assignments = parse_model(exprs[0])

    tt = [["" for _ in range(grid.slots_per_day)] for _ in range(grid.n_days)]
    for idx, who_id in slot_assignments(assignments).items():
        day, offset = grid.slot_to_day_offset(idx)
        if day >= grid.n_days:
            raise ModelParseError(f"Variable {SLOT_PREFIX}{idx} fuera de la semana configurada")
        if who_id == UNASSIGNED:
            continue
        key = reverse_who_ids.get(who_id)
        if key is None:
            # Anomalía local: se deja la celda vacía
            continue
        tt[day][offset] = label_for(key)
    return TimetableOutput(is_sat=True, schedule=tt)
