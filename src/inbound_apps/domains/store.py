"""JSON-file persistence for the domain setup wizard.

The file holds exactly two keys, ``inbound_current_step`` and
``inbound_domain_data``, so a restarted wizard resumes where it left off.
Anything unreadable (broken JSON, a domain entry that does not validate, a
step outside 1-4) is treated as corrupt: the file is removed and the wizard
starts again at step 1.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from inbound_apps.domain.models import DomainData
from inbound_apps.domain.types import WizardStep

logger = structlog.get_logger()

STEP_KEY = "inbound_current_step"
DOMAIN_DATA_KEY = "inbound_domain_data"


@dataclass(frozen=True)
class WizardState:
    step: WizardStep = WizardStep.ADD_DOMAIN
    domain: DomainData | None = None


class CorruptStateError(ValueError):
    """Raised internally when the stored wizard state cannot be trusted."""


def _decode(raw: dict[str, Any]) -> WizardState:
    step_value = raw.get(STEP_KEY, int(WizardStep.ADD_DOMAIN))
    if isinstance(step_value, bool) or not isinstance(step_value, int | str):
        raise CorruptStateError(f"step has type {type(step_value).__name__}")
    try:
        step = WizardStep(int(step_value))
    except ValueError as exc:
        raise CorruptStateError(f"step {step_value!r} out of range") from exc

    domain_value = raw.get(DOMAIN_DATA_KEY)
    domain = None
    if domain_value is not None:
        try:
            domain = DomainData.model_validate(domain_value)
        except PydanticValidationError as exc:
            raise CorruptStateError("domain entry does not validate") from exc

    if domain is None and step != WizardStep.ADD_DOMAIN:
        raise CorruptStateError(f"step {int(step)} without domain data")
    return WizardState(step=step, domain=domain)


class WizardStateStore:
    """Load and save ``WizardState`` in a small JSON file.

    Args:
        path: Location of the state file; parent directories are created on
            first save.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> WizardState:
        """Return the saved state, or a fresh step-1 state.

        A corrupt file is deleted before the fresh state is returned.
        """
        if not self._path.exists():
            return WizardState()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict):
                raise CorruptStateError("state file is not a JSON object")
            return _decode(raw)
        except (ValueError, UnicodeDecodeError) as exc:
            # CorruptStateError and json.JSONDecodeError are both ValueErrors.
            logger.warning("Discarding corrupt wizard state", path=str(self._path), error=str(exc))
            self.clear()
            return WizardState()

    def save(self, state: WizardState) -> None:
        """Persist *state*, replacing the file atomically."""
        payload: dict[str, Any] = {
            STEP_KEY: int(state.step),
            DOMAIN_DATA_KEY: state.domain.model_dump(by_alias=True, mode="json")
            if state.domain is not None
            else None,
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        os.replace(tmp_path, self._path)

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)
