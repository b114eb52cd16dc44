"""YAML config loader — parses, interpolates env vars, validates, and emits observer events."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from qbank_eval.config.domain.config import AppConfig
from qbank_eval.config.domain.observer import ConfigObserver
from qbank_eval.config.infrastructure.env_interpolation import (
    collect_missing_vars,
    interpolate,
)
from qbank_eval.config.infrastructure.errors import (
    ConfigLoadError,
    ConfigValidationError,
    MissingEnvVarsError,
)


class YamlConfigLoader:
    """Loads, interpolates, validates, and returns an AppConfig from a YAML file."""

    def __init__(self, observer: ConfigObserver) -> None:
        self._observer = observer

    def load(self, path: Path) -> AppConfig:
        """
        Load, interpolate, validate, and return an AppConfig from a YAML file.

        Raises:
            ConfigLoadError: if the file does not exist or is not valid YAML.
            MissingEnvVarsError: if any ${ENV_VAR} references are unset (all collected first).
            ConfigValidationError: if the schema is violated or the evaluation
                references a pipeline that is not configured.
        """
        raw = _parse_yaml(path=path)
        missing = collect_missing_vars(raw)
        if missing:
            raise MissingEnvVarsError(missing)
        cfg = _build_config(resolved=interpolate(raw))
        _check_pipeline_refs(cfg=cfg)
        _emit_warnings(cfg=cfg, observer=self._observer)
        self._observer.config_loaded(name=cfg.name, version=cfg.version)
        return cfg


def _parse_yaml(path: Path) -> Any:
    if not path.exists():
        raise ConfigLoadError(path=path)
    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise ConfigLoadError(path=path, reason=f"invalid YAML ({exc})") from exc
    if not isinstance(raw, dict):
        raise ConfigLoadError(path=path, reason="top-level mapping expected")
    return raw


def _build_config(resolved: Any) -> AppConfig:
    try:
        return AppConfig.model_validate(resolved)
    except ValidationError as exc:
        raise ConfigValidationError(str(exc)) from exc


def _check_pipeline_refs(cfg: AppConfig) -> None:
    """Raise ConfigValidationError listing ALL unknown pipeline references."""
    defined = set(cfg.generation.pipelines)
    unknown = [name for name in cfg.evaluation.pipelines if name not in defined]
    if unknown:
        detail = "; ".join(
            f"evaluation references unknown pipeline '{name}'" for name in unknown
        )
        raise ConfigValidationError(detail)


def _emit_warnings(cfg: AppConfig, observer: ConfigObserver) -> None:
    if not cfg.scoring.enabled:
        observer.config_scoring_disabled()
    elif cfg.scoring.temperature > 0.0:
        observer.config_scoring_temperature_warning(cfg.scoring.temperature)
