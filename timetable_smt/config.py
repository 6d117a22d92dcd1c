"""
Configuración del compilador de horarios.

Incluye un cargador desde YAML para dejar la ventana horaria, las
restricciones globales por defecto y el solver configurables.
"""
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .model import GlobalConstraints
from .timeslots import DEFAULT_DAYS, SlotGrid


@dataclass
class SolverConfig:
    # Tiempo
    days: List[str] = field(default_factory=lambda: list(DEFAULT_DAYS))
    day_start_hour: int = 8
    day_end_hour: int = 22

    # Restricciones globales
    free_day_active: bool = False
    time_window_active: bool = False
    start_time: str = "0800"
    end_time: str = "2200"
    min_total_workload: float = 0
    max_total_workload: float = 30

    # Desempate entre soluciones equivalentes
    randomize: bool = False
    seed: Optional[int] = None

    # Solver (segundos antes de devolver unknown)
    timeout_sec: float = 60.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SolverConfig":
        merged = asdict(cls())
        for k, v in data.items():
            if k in merged:
                merged[k] = v
        return cls(**merged)

    def slot_grid(self) -> SlotGrid:
        return SlotGrid(start_hour=self.day_start_hour, end_hour=self.day_end_hour, days=tuple(self.days))

    def global_constraints(self) -> GlobalConstraints:
        return GlobalConstraints(
            free_day_active=self.free_day_active,
            time_window_active=self.time_window_active,
            start_time=str(self.start_time).zfill(4),
            end_time=str(self.end_time).zfill(4),
            min_total_workload=self.min_total_workload,
            max_total_workload=self.max_total_workload,
        )


def load_config(path: str = "config.yaml") -> SolverConfig:
    cfg_path = Path(path)
    if not cfg_path.exists():
        return SolverConfig()
    data = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} debe contener un objeto mapeo")
    return SolverConfig.from_dict(data)
