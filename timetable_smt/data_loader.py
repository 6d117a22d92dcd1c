# timetable_smt/data_loader.py
from datetime import time
from typing import Dict, List, Tuple

import pandas as pd

from .config import SolverConfig
from .model import GenericTimetable, Lesson, LessonWeek, Module

MODULE_COLUMNS = ["module_id", "credit_workload", "is_compulsory"]
LESSON_COLUMNS = ["module_id", "lesson_type", "lesson_id", "day", "start_time", "end_time"]

_TRUE_VALUES = {"1", "true", "yes", "si", "sí", "y", "t"}


def hhmm_to_time(hhmm) -> time:
    text = str(hhmm).strip().zfill(4)
    return time(int(text[:2]), int(text[2:4]))


def _as_bool(val) -> bool:
    if isinstance(val, bool):
        return val
    return str(val).strip().lower() in _TRUE_VALUES


def _week_pattern(val) -> Tuple[LessonWeek, Tuple[int, ...]]:
    if pd.isna(val) or str(val).strip() == "":
        return LessonWeek.ALL, ()
    text = str(val).strip().lower()
    if text in ("all", "odd", "even"):
        return LessonWeek(text), ()
    # Lista explícita de semanas: "1|3|5"
    return LessonWeek.CUSTOM, tuple(int(w) for w in text.split("|") if w)


def _check_columns(df: pd.DataFrame, required: List[str], name: str) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"{name} no tiene las columnas {missing}")


def lessons_from_frame(df: pd.DataFrame) -> Dict[str, List[Lesson]]:
    """
    Filas con la misma (módulo, tipo, id) son ocurrencias de una misma
    lección. Se respeta el orden del archivo.
    """
    _check_columns(df, LESSON_COLUMNS, "lessons.csv")
    df = df.astype({"module_id": str, "lesson_type": str, "lesson_id": str})
    by_module: Dict[str, List[Lesson]] = {}
    for (mod_id, lesson_type, lesson_id), rows in df.groupby(
        ["module_id", "lesson_type", "lesson_id"], sort=False
    ):
        week, weeks = _week_pattern(rows["week"].iloc[0] if "week" in rows.columns else None)
        lesson = Lesson(
            lesson_id=lesson_id,
            lesson_type=lesson_type,
            start_end_times=[
                (hhmm_to_time(r.start_time), hhmm_to_time(r.end_time)) for r in rows.itertuples()
            ],
            days=[str(r.day) for r in rows.itertuples()],
            week_pattern=week,
            weeks=weeks,
        )
        by_module.setdefault(mod_id, []).append(lesson)
    return by_module


def load_timetable(data_dir: str, cfg: SolverConfig) -> GenericTimetable:
    # Horas como texto para no perder el cero inicial ("0830")
    modules_df = pd.read_csv(f"{data_dir}/modules.csv", dtype={"module_id": str})
    lessons_df = pd.read_csv(
        f"{data_dir}/lessons.csv",
        dtype={"module_id": str, "lesson_id": str, "start_time": str, "end_time": str},
    )
    _check_columns(modules_df, MODULE_COLUMNS, "modules.csv")

    lessons = lessons_from_frame(lessons_df)
    modules = []
    for r in modules_df.itertuples():
        mod_lessons = lessons.get(r.module_id)
        if not mod_lessons:
            raise ValueError(f"El módulo {r.module_id} no tiene lecciones en lessons.csv")
        modules.append(
            Module.from_lessons(
                module_id=r.module_id,
                credit_workload=float(r.credit_workload),
                lessons=mod_lessons,
                is_compulsory=_as_bool(r.is_compulsory),
            )
        )
    return GenericTimetable(modules=modules, constraints=cfg.global_constraints())
