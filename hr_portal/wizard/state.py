"""Serializable wizard state.

A ``WizardSnapshot`` is everything needed to rebuild a wizard session, and
``to_dict()`` output is plain JSON so it can be written to the draft cache.
Dates inside step values are tagged so they come back as ``date`` objects.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

_DATE_TAG = "$date"


class WizardStep(str, Enum):
    EMPLOYMENT = "employment"
    SALARY = "salary"
    LOCATION = "location"
    CONTRACT = "contract"
    REVIEW = "review"
    COMMITTED = "committed"


# Steps that edit one payload section each, in form order.
SECTION_STEPS = (WizardStep.EMPLOYMENT, WizardStep.SALARY, WizardStep.LOCATION, WizardStep.CONTRACT)


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return {_DATE_TAG: value.isoformat()}
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(v) for v in value]
    return value


def _decode(value: Any) -> Any:
    if isinstance(value, dict):
        if set(value) == {_DATE_TAG}:
            return date.fromisoformat(value[_DATE_TAG])
        return {k: _decode(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_decode(v) for v in value]
    return value


@dataclass
class StepState:
    values: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
    completed: bool = False
    dirty: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "values": _encode(self.values),
            "errors": dict(self.errors),
            "completed": self.completed,
            "dirty": self.dirty,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StepState":
        return cls(
            values=_decode(data.get("values") or {}),
            errors=dict(data.get("errors") or {}),
            completed=bool(data.get("completed")),
            dirty=bool(data.get("dirty")),
        )


@dataclass
class WizardSnapshot:
    mode: str
    employee_id: int | None
    employment_id: int | None
    current_step: WizardStep
    steps: dict[WizardStep, StepState]
    saved_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "employee_id": self.employee_id,
            "employment_id": self.employment_id,
            "current_step": self.current_step.value,
            "steps": {step.value: state.to_dict() for step, state in self.steps.items()},
            "saved_at": self.saved_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WizardSnapshot":
        steps = {step: StepState() for step in SECTION_STEPS}
        for name, state in (data.get("steps") or {}).items():
            steps[WizardStep(name)] = StepState.from_dict(state)
        return cls(
            mode=data.get("mode", "create"),
            employee_id=data.get("employee_id"),
            employment_id=data.get("employment_id"),
            current_step=WizardStep(data.get("current_step", WizardStep.EMPLOYMENT.value)),
            steps=steps,
            saved_at=data.get("saved_at"),
        )
