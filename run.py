import argparse
import sys
import time
from pathlib import Path

import pandas as pd

from timetable_smt.config import SolverConfig, load_config
from timetable_smt.converter import TimetableSmtlib2Converter
from timetable_smt.data_loader import load_timetable
from timetable_smt.decoding import TimetableOutput
from timetable_smt.evaluation import ScheduleSummary, summarize
from timetable_smt.solver import SolverError, Z3Runner
from timetable_smt.timeslots import SlotGrid


def schedule_to_dataframe(output: TimetableOutput, grid: SlotGrid) -> pd.DataFrame:
    # Filas = medias horas, columnas = días
    index = [grid.offset_to_hhmm(o) for o in range(grid.slots_per_day)]
    data = {
        day: [cell.replace("\n", " ") for cell in row]
        for day, row in zip(grid.days, output.schedule)
    }
    return pd.DataFrame(data, index=index)


def print_schedule(df: pd.DataFrame):
    busy = df[(df != "").any(axis=1)]
    print("\n" + "=" * 80)
    print("HORARIO (sólo medias horas ocupadas)")
    print("=" * 80)
    print(busy.to_string() if not busy.empty else "(vacío)")
    print("=" * 80 + "\n")


def export_outputs(df_schedule: pd.DataFrame, summary: ScheduleSummary, out_dir: Path):
    out_dir.mkdir(parents=True, exist_ok=True)
    df_schedule.to_csv(out_dir / "schedule.csv", index_label="hora")
    rows = [
        {"clave": "horas_totales", "valor": summary.total_hours},
        {"clave": "dias_libres", "valor": "|".join(summary.free_days)},
        {"clave": "inicio", "valor": summary.earliest or ""},
        {"clave": "fin", "valor": summary.latest or ""},
    ]
    pd.DataFrame(rows).to_csv(out_dir / "summary.csv", index=False)


def run(args, cfg: SolverConfig) -> int:
    grid = cfg.slot_grid()
    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    print("Cargando datos...")
    gt = load_timetable(args.data_dir, cfg)
    print(f"Módulos: {len(gt.modules)} | Carga total: {gt.total_workload()} "
          f"(obligatorios: {gt.total_workload(compulsory_only=True)})")

    converter = TimetableSmtlib2Converter(gt, grid)
    query = converter.generate_smtlib2(randomize=cfg.randomize, seed=cfg.seed)
    (out_dir / "query.smt2").write_text(query + "\n", encoding="utf-8")
    print(f"Grupos: {len(converter.slot_constraints)} | "
          f"Variables: {len(converter.emitter.declared)} -> {out_dir / 'query.smt2'}")
    if converter.emitter.optional_groups:
        print(f"Módulos opcionales: {', '.join(converter.emitter.optional_groups)}")
    if args.emit_only:
        return 0

    if args.solver_output:
        z3_output = Path(args.solver_output).read_text(encoding="utf-8")
    else:
        runner = Z3Runner(timeout_sec=cfg.timeout_sec)
        start = time.perf_counter()
        z3_output = runner.solve(query)
        print(f"z3 respondió en {time.perf_counter() - start:.2f}s")
        (out_dir / "solver_output.txt").write_text(z3_output + "\n", encoding="utf-8")

    result = converter.z3_output_to_timetable(z3_output)
    if not result.is_sat:
        print("UNSAT: ningún horario cumple las restricciones")
        return 1

    df_schedule = schedule_to_dataframe(result, grid)
    summary = summarize(result, grid)
    print_schedule(df_schedule)
    print(f"Horas de clase: {summary.total_hours} | Días libres: {', '.join(summary.free_days) or '-'} "
          f"| Inicio: {summary.earliest} | Fin: {summary.latest}")
    export_outputs(df_schedule, summary, out_dir)
    print(f"Se guardaron resultados en {out_dir / 'schedule.csv'} y {out_dir / 'summary.csv'}")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Compila un horario a SMT-LIB2, lo resuelve con z3 y lo decodifica")
    parser.add_argument("--config", default="config.yaml", help="Ruta al archivo de configuración")
    parser.add_argument("--data_dir", default="data", help="Directorio con modules.csv y lessons.csv")
    parser.add_argument("--out_dir", default="outputs", help="Directorio de salida")
    parser.add_argument("--emit-only", action="store_true", help="Sólo escribir query.smt2")
    parser.add_argument("--solver-output", default=None, help="Decodificar una salida de z3 ya existente")
    args = parser.parse_args(argv)

    try:
        cfg = load_config(args.config)
        return run(args, cfg)
    except (ValueError, OSError, SolverError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
