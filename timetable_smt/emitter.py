# timetable_smt/emitter.py
import random
from typing import Dict, Iterable, List, Optional, Sequence, Set

from .constraints import Alternative, SlotConstraint
from .encoding import UNASSIGNED
from .smtlib import (
    CHECK_SAT,
    EXIT,
    GET_MODEL,
    And,
    Assert,
    AssertSoft,
    DeclareInt,
    Iff,
    Or,
    SetOption,
    Statement,
    render,
    var_eq,
)

SELECTOR_PREFIX = "SL_"
SLOT_PREFIX = "h"


def selector_name(sc: SlotConstraint) -> str:
    return SELECTOR_PREFIX + "_".join(str(a.who_id) for a in sc.alternatives)


def slot_var_name(idx: int) -> str:
    return f"{SLOT_PREFIX}{idx}"


class KeepOrder:
    """Desempate por defecto: texto determinista, alternativas en su orden."""

    def preamble(self) -> List[Statement]:
        return []

    def order(self, alternatives: Sequence[Alternative]) -> List[Alternative]:
        return list(alternatives)


class ShuffleDisjuncts(KeepOrder):
    """
    Permuta el orden de las disyunciones y fija la semilla del solver, para
    obtener otra solución igual de válida en cada ejecución.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed if seed is not None else random.randrange(2 ** 31)
        self._rng = random.Random(self.seed)

    def preamble(self) -> List[Statement]:
        return [SetOption(":smt.random_seed", str(self.seed))]

    def order(self, alternatives: Sequence[Alternative]) -> List[Alternative]:
        shuffled = list(alternatives)
        self._rng.shuffle(shuffled)
        return shuffled


class Smtlib2Emitter:
    """
    Una pasada de compilación. Las variables se declaran de forma perezosa y
    una sola vez; no compartir una instancia entre pasadas concurrentes.
    """

    def __init__(self, tie_break: Optional[KeepOrder] = None):
        self.tie_break = tie_break or KeepOrder()
        self.declared: Set[str] = set()
        self.declarations: List[Statement] = []
        self.assertions: List[Statement] = []
        # módulo opcional -> selectores de sus grupos
        self.optional_groups: Dict[str, List[str]] = {}

    def declare(self, name: str) -> None:
        if name in self.declared:
            return
        self.declared.add(name)
        self.declarations.append(DeclareInt(name))
        # Sesgo: preferir UNASSIGNED salvo que algo obligue a lo contrario
        self.declarations.append(AssertSoft(var_eq(name, UNASSIGNED), weight=1))

    def add_slot_constraint(self, sc: SlotConstraint) -> str:
        if not sc.alternatives:
            raise ValueError("SlotConstraint sin alternativas")
        sel = selector_name(sc)
        self.declare(sel)
        for alt in sc.alternatives:
            for s in alt.slots():
                self.declare(slot_var_name(s))

        if sc.optional_module is not None:
            self.optional_groups.setdefault(sc.optional_module, []).append(sel)

        if sc.is_forced:
            self.assertions.append(Assert(var_eq(sel, sc.alternatives[0].who_id)))
        else:
            ordered = self.tie_break.order(sc.alternatives)
            self.assertions.append(Assert(Or(tuple(var_eq(sel, a.who_id) for a in ordered))))

        for alt in sc.alternatives:
            occupied = And(tuple(var_eq(slot_var_name(s), alt.who_id) for s in alt.slots()))
            self.assertions.append(Assert(Iff(var_eq(sel, alt.who_id), occupied)))
        return sel

    def add_all(self, groups: Iterable[SlotConstraint]) -> None:
        for sc in groups:
            self.add_slot_constraint(sc)

    def statements(self) -> List[Statement]:
        return (
            self.tie_break.preamble()
            + self.declarations
            + self.assertions
            + [CHECK_SAT, GET_MODEL, EXIT]
        )

    def to_smtlib2(self) -> str:
        return render(self.statements())
