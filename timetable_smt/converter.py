# timetable_smt/converter.py
from typing import Dict, List, Optional

from .constraints import SlotConstraint, SlotConstraintCompiler
from .decoding import TimetableOutput, decode_model
from .emitter import KeepOrder, ShuffleDisjuncts, Smtlib2Emitter
from .encoding import build_who_id_table
from .model import GenericTimetable
from .timeslots import SlotGrid


class TimetableSmtlib2Converter:
    """
    Convierte un GenericTimetable a texto SMT-LIB2 y, con las mismas tablas
    de who_id, interpreta la salida de z3 como un horario.
    """

    def __init__(self, timetable: GenericTimetable, grid: SlotGrid):
        self.gt = timetable
        self.grid = grid
        self.who_ids = build_who_id_table(timetable)
        self.slot_constraints: List[SlotConstraint] = []
        self.emitter: Optional[Smtlib2Emitter] = None

    @property
    def who_id_table(self) -> Dict[str, int]:
        return self.who_ids.forward

    @property
    def reverse_who_id_table(self) -> Dict[int, str]:
        return self.who_ids.reverse

    def generate_smtlib2(self, randomize: bool = False, seed: Optional[int] = None,
                         tie_break: Optional[KeepOrder] = None) -> str:
        if tie_break is None:
            tie_break = ShuffleDisjuncts(seed) if randomize else KeepOrder()
        compiler = SlotConstraintCompiler(self.gt, self.grid, self.who_ids)
        self.slot_constraints = compiler.compile()
        # Emisor nuevo por pasada: el conjunto de declaradas no se comparte
        self.emitter = Smtlib2Emitter(tie_break)
        self.emitter.add_all(self.slot_constraints)
        return self.emitter.to_smtlib2()

    def z3_output_to_timetable(self, z3_output: str) -> TimetableOutput:
        return decode_model(z3_output, self.grid, self.who_ids.reverse)
