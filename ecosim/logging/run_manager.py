"""
Run output directories for the ecosystem simulator.

Each run gets its own directory under the configured output path:

    {base_dir}/{run_name}/
        config.json    the configuration the run started from
        metrics.csv    one KPI row per sampled tick
        events.log     narrative event stream (when events.to_file is set)
        summary.json   end-of-run totals

The default run name is `{timestamp}_{species}_s{seed}`; a numeric suffix
keeps two runs started in the same second apart.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from ecosim.core.config import SimConfig, save_config
from ecosim.logging.csv_logger import CSVLogger
from ecosim.logging.event_log import EventLog


def _unique_dir(base: Path, name: str) -> Path:
    candidate = base / name
    suffix = 1
    while candidate.exists():
        suffix += 1
        candidate = base / f"{name}_{suffix}"
    return candidate


class RunManager:
    """
    Owns the files of one simulation run.

    Attributes:
        run_dir: This run's directory.
        csv_logger: KPI writer for metrics.csv.
        event_log: EventLog to pass to the engine; writes events.log when
                   file output is enabled.
    """

    def __init__(
        self,
        config: SimConfig,
        base_dir: Optional[str | Path] = None,
        run_name: Optional[str] = None,
    ):
        """
        Create the run directory and its writers.

        Args:
            config: Configuration of the run, saved as config.json.
            base_dir: Parent directory. None = config.run.output_dir.
            run_name: Directory name. None = timestamp, species and seed.
        """
        base = Path(base_dir if base_dir is not None else config.run.output_dir)
        if run_name is None:
            stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.run_dir = _unique_dir(base, f"{stamp}_{config.population.species}_s{config.world.seed}")
        else:
            self.run_dir = base / run_name
        self.run_dir.mkdir(parents=True, exist_ok=True)

        save_config(config, self.config_path)
        self.csv_logger = CSVLogger(self.run_dir / "metrics.csv")
        self.event_log = EventLog(
            history_size=config.events.history_size,
            console=config.events.console,
            file_path=self.run_dir / "events.log" if config.events.to_file else None,
        )

    @property
    def config_path(self) -> Path:
        return self.run_dir / "config.json"

    @property
    def metrics_path(self) -> Path:
        return self.csv_logger.file_path

    @property
    def events_path(self) -> Optional[Path]:
        return self.event_log.file_path

    @property
    def summary_path(self) -> Path:
        return self.run_dir / "summary.json"

    def log_tick(self, kpi_dict: dict) -> None:
        self.csv_logger.log_row(kpi_dict)

    def write_summary(self, summary: dict) -> Path:
        """Write summary.json, replacing any earlier one. Files stay open."""
        self.summary_path.write_text(
            json.dumps(summary, indent=2, ensure_ascii=False), encoding="utf-8"
        )
        return self.summary_path

    def read_summary(self) -> Optional[dict]:
        if not self.summary_path.exists():
            return None
        return json.loads(self.summary_path.read_text(encoding="utf-8"))

    def finalize(self, summary: Optional[dict] = None) -> None:
        """Close metrics.csv and events.log; write the summary if given."""
        self.csv_logger.close()
        self.event_log.close()
        if summary is not None:
            self.write_summary(summary)

    @staticmethod
    def list_runs(base_dir: str | Path) -> list[str]:
        """Sorted names of run directories (those holding a config.json)."""
        base = Path(base_dir)
        if not base.is_dir():
            return []
        return sorted(d.name for d in base.iterdir() if (d / "config.json").is_file())

    def __repr__(self) -> str:
        return f"RunManager(run_dir='{self.run_dir}')"
