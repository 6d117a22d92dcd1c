# timetable_smt/solver.py
from dataclasses import dataclass

import z3


class SolverError(RuntimeError):
    pass


@dataclass
class Z3Runner:
    """Resuelve el texto SMT-LIB2 con z3 (Optimize, por las assert-soft) y devuelve su salida."""
    timeout_sec: float = 60.0

    def solve(self, smtlib2: str) -> str:
        opt = z3.Optimize()
        opt.set(timeout=int(self.timeout_sec * 1000))
        try:
            opt.from_string(smtlib2)
            res = opt.check()
        except z3.Z3Exception as e:
            raise SolverError(f"z3 rechazó la consulta: {e}") from e

        if res == z3.unknown:
            raise SolverError(f"z3 no encontró respuesta: {opt.reason_unknown()}")
        if res == z3.unsat:
            return "unsat"
        # sexpr() lista los define-fun sin paréntesis exteriores
        return f"{res}\n({opt.model().sexpr()})"
