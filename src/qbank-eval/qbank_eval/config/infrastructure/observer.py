"""Structlog implementation of the ConfigObserver port."""

import structlog


class StructlogConfigObserver:
    """Delegates config domain events to structlog.

    Satisfies the ConfigObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def config_loaded(self, name: str, version: str) -> None:
        self._log.info("config.loaded", name=name, version=version)

    def config_scoring_temperature_warning(self, temperature: float) -> None:
        self._log.warning(
            "config.scoring_temperature_warning",
            temperature=temperature,
            message="Scoring temperature > 0.0 may produce non-deterministic scores",
        )

    def config_scoring_disabled(self) -> None:
        self._log.warning(
            "config.scoring_disabled",
            message="AI scoring disabled; results carry rule-based scores only",
        )
