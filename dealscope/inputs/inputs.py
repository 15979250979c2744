# dealscope/inputs/inputs.py
"""
Inputs loader for dealscope.

Goals
-----
- Deterministic, file-first inputs with validation via Pydantic.
- Accept a bare AnalysisInput JSON as well as the structured shape that adds
  engine settings and run options.
- Minimal environment-variable overrides for CI/CLI convenience.

Supported JSON shapes
---------------------
1) Bare (root = AnalysisInput)
   {
     "subject": { "property_type": "single-family", "square_feet": 2000 },
     "ai_comps": [ ... ],
     ...
   }

2) Structured (root = AppInputs)
   {
     "analysis": { ... AnalysisInput ... },
     "settings": { ... EngineSettings ... },
     "run": { "out": "valuation_report.md", "scenarios": true }
   }

Environment overrides (optional)
--------------------------------
- DEALSCOPE_OUT                  -> AppInputs.run.out
- DEALSCOPE_SCENARIOS            -> AppInputs.run.scenarios ("0"/"false"/"no" disables)
- DEALSCOPE_AREA_CAP_RATE        -> AppInputs.analysis.area_cap_rate_pct (float, percent)
- DEALSCOPE_CLOSING_COST_PCT     -> AppInputs.settings.default_closing_cost_pct (float)
- DEALSCOPE_RANGE_TIGHTENING_PCT -> AppInputs.settings.range_tightening_pct (float)

Public API
----------
- class InputsLoader:
    - load(path: str | Path | None) -> AppInputs
    - load_json(text: str) -> AppInputs
    - with_overrides(cfg, **kwargs) -> AppInputs (non-destructive copies)
- function load_inputs(path: str | Path | None) -> AppInputs  (convenience)

Notes
-----
- This module *does not* hit the network; all inputs are local.
- Valuation heuristics live in EngineSettings, not in input parsing.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

from pydantic import BaseModel, Field, ValidationError

from dealscope.schemas.models import AnalysisInput, EngineSettings

logger = logging.getLogger(__name__)

_FALSY = {"0", "false", "no", "off"}

# ----------------------------
# Pydantic models for structured inputs
# ----------------------------


class RunOptions(BaseModel):
    """Runtime (non-valuation) options controlling the analysis run."""

    out: str = Field("valuation_report.md", description="Path to write the Markdown report.")
    scenarios: bool = Field(True, description="Include the scenario table in the report.")


class AppInputs(BaseModel):
    """
    Full input payload.

    Attributes:
        analysis: Subject, comps and optional deal terms for one run.
        settings: Valuation / underwriting heuristics.
        run:      Non-valuation runtime options for the current execution.
    """

    analysis: AnalysisInput
    settings: EngineSettings = EngineSettings()
    run: RunOptions = RunOptions()


# ----------------------------
# Loader
# ----------------------------


@dataclass(frozen=True)
class InputsLoader:
    """
    File-first inputs loader with light env overrides.

    Default search (when path=None):
        1) ./data/sample/analysis.json
        2) ./config.json
    """

    env_prefix: str = "DEALSCOPE_"

    # ---------- Public API ----------

    def load(self, path: str | Path | None = None) -> AppInputs:
        p = self._resolve_path(path)
        raw = self._read_json_file(p)
        return self._apply_env_overrides(self._parse_root(self._wrap_bare(raw)))

    def load_json(self, text: str) -> AppInputs:
        """Load inputs from a JSON string (bare or structured shape)."""
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON payload: {e}") from e
        if not isinstance(raw, dict):
            raise ValueError("Inputs JSON root must be an object")
        return self._apply_env_overrides(self._parse_root(self._wrap_bare(raw)))

    def with_overrides(
        self,
        cfg: AppInputs,
        *,
        out: str | None = None,
        scenarios: bool | None = None,
        area_cap_rate_pct: float | None = None,
        closing_cost_pct: float | None = None,
        range_tightening_pct: float | None = None,
    ) -> AppInputs:
        """
        Return a *new* AppInputs with provided non-null overrides applied.
        Does not mutate the original instance.
        """
        run_updates: dict[str, Any] = {}
        if out is not None:
            run_updates["out"] = out
        if scenarios is not None:
            run_updates["scenarios"] = scenarios

        settings_updates: dict[str, Any] = {}
        if closing_cost_pct is not None:
            settings_updates["default_closing_cost_pct"] = closing_cost_pct
        if range_tightening_pct is not None:
            settings_updates["range_tightening_pct"] = range_tightening_pct

        analysis_updates: dict[str, Any] = {}
        if area_cap_rate_pct is not None:
            analysis_updates["area_cap_rate_pct"] = area_cap_rate_pct

        return self._merge(cfg, run_updates, settings_updates, analysis_updates)

    # ---------- Internals ----------

    def _resolve_path(self, path: str | Path | None) -> Path:
        if path is not None:
            p = Path(path)
            if not p.exists():
                raise FileNotFoundError(f"Inputs file not found: {p}")
            return p

        for candidate in (Path("data/sample/analysis.json"), Path("config.json")):
            if candidate.exists():
                return candidate
        raise FileNotFoundError(
            "No inputs path provided and no default inputs found. Looked for ./data/sample/analysis.json and ./config.json."
        )

    def _read_json_file(self, p: Path) -> dict[str, Any]:
        if p.suffix.lower() != ".json":
            raise ValueError(f"Unsupported inputs format for {p.name}; only .json is supported.")
        try:
            json_file = json.loads(p.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {p}: {e}") from e
        if not isinstance(json_file, dict):
            raise ValueError(f"Inputs JSON root must be an object in {p}")
        return cast(dict[str, Any], json_file)

    def _wrap_bare(self, raw: dict[str, Any]) -> dict[str, Any]:
        """A root with `subject` (and no `analysis`) is a bare AnalysisInput."""
        if "analysis" in raw:
            return raw
        return {"analysis": raw}

    def _parse_root(self, data: dict[str, Any]) -> AppInputs:
        try:
            return AppInputs.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Inputs validation failed:\n{e}") from e

    def _env_float(self, name: str) -> float | None:
        value = os.getenv(f"{self.env_prefix}{name}")
        if not value:
            return None
        try:
            return float(value)
        except ValueError:
            logger.warning("Ignoring non-numeric %s%s=%r", self.env_prefix, name, value)
            return None

    def _apply_env_overrides(self, cfg: AppInputs) -> AppInputs:
        """
        Apply light, optional overrides from environment variables.
        """
        prefix = self.env_prefix
        out = os.getenv(f"{prefix}OUT") or None
        scenarios_raw = os.getenv(f"{prefix}SCENARIOS")
        scenarios = scenarios_raw.strip().lower() not in _FALSY if scenarios_raw else None

        return self.with_overrides(
            cfg,
            out=out,
            scenarios=scenarios,
            area_cap_rate_pct=self._env_float("AREA_CAP_RATE"),
            closing_cost_pct=self._env_float("CLOSING_COST_PCT"),
            range_tightening_pct=self._env_float("RANGE_TIGHTENING_PCT"),
        )

    def _merge(
        self,
        cfg: AppInputs,
        run_updates: dict[str, Any],
        settings_updates: dict[str, Any],
        analysis_updates: dict[str, Any],
    ) -> AppInputs:
        updates: dict[str, Any] = {}
        if run_updates:
            updates["run"] = cfg.run.model_copy(update=run_updates)
        if analysis_updates:
            updates["analysis"] = cfg.analysis.model_copy(update=analysis_updates)
        if settings_updates:
            # Re-validate so bounds on the heuristics still hold.
            try:
                updates["settings"] = EngineSettings.model_validate({**cfg.settings.model_dump(), **settings_updates})
            except ValidationError as e:
                raise ValueError(f"Settings override rejected:\n{e}") from e
        if not updates:
            return cfg
        return cfg.model_copy(update=updates)


# ----------------------------
# Convenience function
# ----------------------------


def load_inputs(path: str | Path | None = None) -> AppInputs:
    """Convenience wrapper for one-shot callers."""
    return InputsLoader().load(path)
