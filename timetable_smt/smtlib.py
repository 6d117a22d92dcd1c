# timetable_smt/smtlib.py
"""
Subconjunto de SMT-LIB2 que emitimos, como un AST pequeño y su impresora.

La bicondicional se imprime como (= a b): en SMT-LIB2 la igualdad entre
booleanos es la equivalencia.
"""
from dataclasses import dataclass
from typing import Iterable, List, Tuple, Union


@dataclass(frozen=True)
class IntConst:
    value: int


@dataclass(frozen=True)
class Var:
    name: str


@dataclass(frozen=True)
class Eq:
    left: "Term"
    right: "Term"


@dataclass(frozen=True)
class And:
    args: Tuple["Term", ...]


@dataclass(frozen=True)
class Or:
    args: Tuple["Term", ...]


@dataclass(frozen=True)
class Iff:
    left: "Term"
    right: "Term"


Term = Union[IntConst, Var, Eq, And, Or, Iff]


@dataclass(frozen=True)
class DeclareInt:
    name: str


@dataclass(frozen=True)
class Assert:
    term: Term


@dataclass(frozen=True)
class AssertSoft:
    term: Term
    weight: int = 1
    id: str = "defaultval"


@dataclass(frozen=True)
class SetOption:
    option: str
    value: str


@dataclass(frozen=True)
class Command:
    name: str   # check-sat, get-model, exit


Statement = Union[DeclareInt, Assert, AssertSoft, SetOption, Command]

CHECK_SAT = Command("check-sat")
GET_MODEL = Command("get-model")
EXIT = Command("exit")


def var_eq(name: str, value: int) -> Eq:
    return Eq(Var(name), IntConst(value))


def render_term(t: Term) -> str:
    if isinstance(t, IntConst):
        return str(t.value)
    if isinstance(t, Var):
        return t.name
    if isinstance(t, (Eq, Iff)):
        return f"(= {render_term(t.left)} {render_term(t.right)})"
    if isinstance(t, And):
        if not t.args:
            return "true"
        return "(and " + " ".join(render_term(a) for a in t.args) + ")"
    if isinstance(t, Or):
        if not t.args:
            return "false"
        return "(or " + " ".join(render_term(a) for a in t.args) + ")"
    raise TypeError(f"Término SMT-LIB desconocido: {t!r}")


def render_statement(s: Statement) -> str:
    if isinstance(s, DeclareInt):
        return f"(declare-fun {s.name} () Int)"
    if isinstance(s, Assert):
        return f"(assert {render_term(s.term)})"
    if isinstance(s, AssertSoft):
        return f"(assert-soft {render_term(s.term)} :weight {s.weight} :id {s.id})"
    if isinstance(s, SetOption):
        return f"(set-option {s.option} {s.value})"
    if isinstance(s, Command):
        return f"({s.name})"
    raise TypeError(f"Sentencia SMT-LIB desconocida: {s!r}")


def render(statements: Iterable[Statement]) -> str:
    lines: List[str] = [render_statement(s) for s in statements]
    return "\n".join(lines)
