"""Multi-step employment wizard.

The wizard walks ``employment -> salary -> [location] -> [contract] -> review
-> committed``. Which optional steps appear depends on the organization's
field policy and on the employment type, and is recomputed whenever either of
them changes. Nothing reaches the backend before ``commit()``; in-progress
work is kept in the local draft cache instead.
"""
from __future__ import annotations

import copy
import logging
from datetime import datetime
from typing import Any, Callable

from ..core import current_user
from ..core.api_employment import SubmissionRejected, api_employment
from ..core.database import utcnow
from ..core.events import wizard_events
from ..core.field_policy import FieldPolicy
from .drafts import DraftCache, DraftCacheError
from .state import SECTION_STEPS, StepState, WizardSnapshot, WizardStep

logger = logging.getLogger(__name__)

MODES = ("create", "update", "supersede")
REQUIRED_MESSAGE = "This field is required"


class StepIncompleteError(Exception):
    """``advance()`` was called with required fields left empty."""

    def __init__(self, step: WizardStep, missing: list[str]):
        super().__init__(f"{step.value}: missing {', '.join(missing)}")
        self.step = step
        self.missing = missing


class WizardStateError(Exception):
    """The requested transition is not allowed from the current state."""


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _positive(value: Any) -> bool:
    try:
        return float(value) > 0
    except (TypeError, ValueError):
        return False


class EmploymentWizard:
    def __init__(
        self,
        policy: FieldPolicy,
        *,
        mode: str = "create",
        employee_id: int | None = None,
        employment_id: int | None = None,
        user_id: str | None = None,
        gateway=None,
        drafts: DraftCache | None = None,
        events=None,
        clock: Callable[[], datetime] = utcnow,
    ):
        if mode not in MODES:
            raise ValueError(f"Unknown wizard mode: {mode}")
        if mode == "create" and employee_id is None:
            raise ValueError("A new employment record needs an employee_id")
        if mode != "create" and employment_id is None:
            raise ValueError(f"Mode {mode!r} needs an employment_id")

        self.policy = policy
        self.mode = mode
        self.employee_id = employee_id
        self.employment_id = employment_id
        self.user_id = user_id or current_user.user_id()
        self.gateway = gateway if gateway is not None else api_employment
        self.drafts = drafts if drafts is not None else DraftCache()
        self.events = events if events is not None else wizard_events
        self.clock = clock

        self.steps: dict[WizardStep, StepState] = {step: StepState() for step in SECTION_STEPS}
        self.current_step = WizardStep.EMPLOYMENT
        self.review_errors: dict[str, str] = {}
        self.committed_aggregate: dict[str, Any] | None = None
        self.cancelled = False

    # ------------------------------------------------------------------
    # Session entry points
    # ------------------------------------------------------------------

    @classmethod
    def start(cls, policy: FieldPolicy, employee_id: int, *, resume: bool = True, **kwargs) -> "EmploymentWizard":
        """New employment record for ``employee_id``, picking up a stored draft if any."""
        wizard = cls(policy, mode="create", employee_id=employee_id, **kwargs)
        if resume:
            wizard.resume()
        return wizard

    @classmethod
    def edit_existing(
        cls,
        policy: FieldPolicy,
        aggregate: dict[str, Any],
        *,
        mode: str = "supersede",
        resume: bool = True,
        **kwargs,
    ) -> "EmploymentWizard":
        """Seed a session from a stored aggregate as returned by the backend.

        The default ``supersede`` mode appends a new record on commit and
        leaves the source untouched; ``update`` edits it in place.
        """
        if mode == "create":
            raise ValueError("edit_existing needs mode 'update' or 'supersede'")
        wizard = cls(
            policy,
            mode=mode,
            employee_id=aggregate.get("employee_id"),
            employment_id=aggregate["id"],
            **kwargs,
        )
        sources = {
            WizardStep.EMPLOYMENT: aggregate,
            WizardStep.SALARY: aggregate.get("salary"),
            WizardStep.LOCATION: aggregate.get("location"),
            WizardStep.CONTRACT: aggregate.get("current_contract"),
        }
        for step, source in sources.items():
            if not source:
                continue
            known = policy.known_fields.get(step.value, ())
            wizard.steps[step].values = {k: copy.deepcopy(v) for k, v in source.items() if k in known}
        if resume:
            wizard.resume()
        return wizard

    @property
    def record_key(self) -> str:
        if self.mode == "supersede":
            return f"supersede-{self.employment_id}"
        if self.mode == "update":
            return str(self.employment_id)
        return f"new-{self.employee_id}"

    # ------------------------------------------------------------------
    # Step list
    # ------------------------------------------------------------------

    @property
    def organization(self) -> str | None:
        return self.steps[WizardStep.EMPLOYMENT].values.get("organization")

    @property
    def employment_type(self) -> str | None:
        org = self.organization
        if not self.policy.is_field_visible(org, "employment", "employment_type"):
            return self.policy.defaults_for_hidden(org, "employment").get("employment_type")
        return self.steps[WizardStep.EMPLOYMENT].values.get("employment_type")

    def available_steps(self) -> list[WizardStep]:
        steps = [WizardStep.EMPLOYMENT, WizardStep.SALARY]
        if self.policy.is_section_visible(self.organization, "location"):
            steps.append(WizardStep.LOCATION)
        if self.employment_type == "Contract":
            steps.append(WizardStep.CONTRACT)
        steps.append(WizardStep.REVIEW)
        return steps

    def _recompute_steps(self) -> None:
        if self.current_step in self.available_steps():
            return
        # The current step disappeared: fall back to the nearest earlier one.
        order = list(WizardStep)
        available = self.available_steps()
        earlier = [s for s in available if order.index(s) < order.index(self.current_step)]
        self._move_to(earlier[-1] if earlier else WizardStep.EMPLOYMENT)

    def _move_to(self, step: WizardStep) -> None:
        if step != self.current_step:
            self.current_step = step
            self.events.step_changed.emit(step.value)

    def _check_open(self) -> None:
        if self.current_step == WizardStep.COMMITTED:
            raise WizardStateError("This wizard session has already been committed")

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def set_field(self, section: WizardStep | str, name: str, value: Any) -> None:
        self._check_open()
        step = WizardStep(section)
        if step not in SECTION_STEPS:
            raise ValueError(f"{step.value} has no editable fields")
        if name not in self.policy.known_fields.get(step.value, ()):
            raise ValueError(f"Unknown {step.value} field: {name}")

        state = self.steps[step]
        state.values[name] = value
        state.errors.pop(name, None)
        state.dirty = True
        state.completed = False
        if step == WizardStep.EMPLOYMENT and name in ("organization", "employment_type"):
            self._recompute_steps()

    def update_step(self, section: WizardStep | str, values: dict[str, Any]) -> None:
        for name, value in values.items():
            self.set_field(section, name, value)

    def required_for(self, step: WizardStep) -> tuple[str, ...]:
        if step not in SECTION_STEPS:
            return ()
        return self.policy.required_fields(self.organization, step.value)

    def missing_fields(self, step: WizardStep) -> list[str]:
        values = self.steps[step].values if step in self.steps else {}
        missing = [name for name in self.required_for(step) if _is_blank(values.get(name))]
        if (
            step == WizardStep.SALARY
            and "basic_salary" in missing
            and self.employment_type == "Daily Wager"
            and _positive(values.get("daily_wage_rate"))
        ):
            missing.remove("basic_salary")
        return missing

    def validate_step(self, step: WizardStep | None = None) -> dict[str, str]:
        step = step or self.current_step
        if step not in SECTION_STEPS:
            return {}
        errors = {name: REQUIRED_MESSAGE for name in self.missing_fields(step)}
        self.steps[step].errors = dict(errors)
        return errors

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def advance(self) -> WizardStep:
        self._check_open()
        if self.current_step == WizardStep.REVIEW:
            raise WizardStateError("Use commit() to leave the review step")

        errors = self.validate_step(self.current_step)
        if errors:
            raise StepIncompleteError(self.current_step, list(errors))
        self.steps[self.current_step].completed = True

        available = self.available_steps()
        self._move_to(available[available.index(self.current_step) + 1])
        return self.current_step

    def back(self) -> WizardStep:
        self._check_open()
        available = self.available_steps()
        index = available.index(self.current_step)
        if index > 0:
            self._move_to(available[index - 1])
        return self.current_step

    def is_reachable(self, step: WizardStep) -> bool:
        available = self.available_steps()
        if step not in available:
            return False
        before = available[: available.index(step)]
        return all(self.steps[s].completed for s in before)

    def go_to(self, step: WizardStep | str) -> WizardStep:
        self._check_open()
        step = WizardStep(step)
        if not self.is_reachable(step):
            raise WizardStateError(f"Step {step.value} is not reachable yet")
        self._move_to(step)
        return self.current_step

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def assemble_payload(self) -> dict[str, Any]:
        available = self.available_steps()
        payload = dict(self.steps[WizardStep.EMPLOYMENT].values)
        if self.mode == "create":
            payload["employee_id"] = self.employee_id
        payload["salary"] = dict(self.steps[WizardStep.SALARY].values)
        if WizardStep.LOCATION in available and self.steps[WizardStep.LOCATION].values:
            payload["location"] = dict(self.steps[WizardStep.LOCATION].values)
        if WizardStep.CONTRACT in available:
            payload["contract"] = dict(self.steps[WizardStep.CONTRACT].values)
        return payload

    def commit(self) -> dict[str, Any]:
        """Send the assembled payload; the draft is cleared only on success."""
        self._check_open()
        if self.current_step != WizardStep.REVIEW:
            raise WizardStateError("commit() is only allowed from the review step")

        payload = self.assemble_payload()
        try:
            if self.mode == "create":
                result = self.gateway.create(payload)
            elif self.mode == "update":
                result = self.gateway.update(self.employment_id, payload)
            else:
                result = self.gateway.supersede(self.employment_id, payload)
        except SubmissionRejected as exc:
            self._route_issues(exc.issues)
            raise

        logger.info("Committed %s employment for record %s", self.mode, self.record_key)
        self.committed_aggregate = result
        self.discard_draft()
        for state in self.steps.values():
            state.dirty = False
        self._move_to(WizardStep.COMMITTED)
        self.events.employment_committed.emit(result)
        return result

    def _route_issues(self, issues: list[dict[str, Any]]) -> None:
        for state in self.steps.values():
            state.errors = {}
        self.review_errors = {}

        available = self.available_steps()
        failing: set[WizardStep] = set()
        for issue in issues:
            section = issue.get("section")
            field_name = issue.get("field") or ""
            message = issue.get("message") or "Invalid value"
            step = WizardStep(section) if section in {s.value for s in SECTION_STEPS} else None
            if step in available:
                self.steps[step].errors[field_name] = message
                self.steps[step].completed = False
                failing.add(step)
            else:
                self.review_errors[field_name] = message

        for step in available:
            if step in failing:
                self._move_to(step)
                break

    # ------------------------------------------------------------------
    # Drafts
    # ------------------------------------------------------------------

    @property
    def is_dirty(self) -> bool:
        return any(state.dirty for state in self.steps.values())

    def snapshot(self) -> WizardSnapshot:
        return WizardSnapshot(
            mode=self.mode,
            employee_id=self.employee_id,
            employment_id=self.employment_id,
            current_step=self.current_step,
            steps=copy.deepcopy(self.steps),
            saved_at=self.clock().isoformat(),
        )

    def autosave(self) -> bool:
        """Persist a snapshot when there are unsaved edits. Never raises."""
        if not self.is_dirty or self.current_step == WizardStep.COMMITTED:
            return False
        data = self.snapshot().to_dict()
        try:
            self.drafts.save(self.user_id, self.record_key, data)
        except DraftCacheError as exc:
            logger.warning("Auto-save of draft %s failed: %s", self.record_key, exc)
            self.events.draft_save_failed.emit(self.record_key, str(exc))
            return False
        for state in self.steps.values():
            state.dirty = False
        self.events.draft_saved.emit(self.record_key)
        return True

    def on_navigate_away(self) -> bool:
        return self.autosave()

    def resume(self) -> bool:
        """Rebuild every step from the stored draft, if one exists."""
        try:
            data = self.drafts.load(self.user_id, self.record_key)
        except DraftCacheError as exc:
            logger.warning("Could not read draft %s: %s", self.record_key, exc)
            return False
        if data is None:
            return False

        snapshot = WizardSnapshot.from_dict(data)
        self.steps = snapshot.steps
        for state in self.steps.values():
            state.dirty = False
        self.current_step = snapshot.current_step
        self._recompute_steps()
        logger.info("Resumed draft %s at step %s", self.record_key, self.current_step.value)
        return True

    def discard_draft(self) -> bool:
        try:
            return self.drafts.discard(self.user_id, self.record_key)
        except DraftCacheError as exc:
            logger.warning("Could not discard draft %s: %s", self.record_key, exc)
            return False

    def cancel(self, discard_draft: bool = False) -> None:
        """Leave the session. Pending edits are kept as a draft unless discarded."""
        if discard_draft:
            self.discard_draft()
        else:
            self.autosave()
        self.cancelled = True
