"""Employment workflow engine.

Takes a composite payload from the client, shapes it with the organization
field policy, validates it and hands it to the aggregate store. Contract
lifecycle operations (renewal, probation extension, confirmation and
termination) live here as well.
"""
from __future__ import annotations

import calendar
import logging
from datetime import date, timedelta
from typing import Any, Callable

from ..errors import FieldIssue, ValidationError
from ..models import Contract, Employment
from ..policy import KNOWN_FIELDS
from ..schemas import CONTRACT_TYPES, EmploymentPayload, RenewalRequest
from .aggregate_store import EmploymentAggregateStore
from .validation import apply_policy, collect_issues

logger = logging.getLogger(__name__)

MODES = ("create", "update", "supersede")


def add_months(start: date, months: int) -> date:
    """Shift ``start`` by whole months, clamping to the end of shorter months."""

    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def edit_marker(employment_id: int, on: date) -> str:
    return f"[Edited from record ID {employment_id} on {on.isoformat()}]"


def snapshot_sections(employment: Employment) -> dict[str, Any]:
    """Section form of a stored aggregate, used as the base for edits."""

    def columns(row, section: str) -> dict[str, Any] | None:
        if row is None:
            return None
        return {name: getattr(row, name) for name in KNOWN_FIELDS[section]}

    base = columns(employment, "employment")
    base["employee_id"] = employment.employee_id
    return {
        "employment": base,
        "salary": columns(employment.salary, "salary"),
        "location": columns(employment.location, "location"),
        "contract": columns(employment.current_contract, "contract"),
    }


def overlay(base: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for name in ("employment", "salary", "location", "contract"):
        stored, incoming = base.get(name), changes.get(name)
        if incoming is None:
            merged[name] = dict(stored) if stored is not None else None
        else:
            merged[name] = {**(stored or {}), **incoming}
    return merged


class EmploymentWorkflow:
    """Validates and commits employment aggregates for one request."""

    def __init__(
        self,
        store: EmploymentAggregateStore,
        clock: Callable[[], date] = date.today,
        probation_months: int = 3,
    ):
        self.store = store
        self.clock = clock
        self.probation_months = probation_months

    # ------------------------------------------------------------------
    # Aggregate submission
    # ------------------------------------------------------------------
    async def submit(
        self,
        payload: EmploymentPayload,
        mode: str = "create",
        employment_id: int | None = None,
    ) -> Employment:
        """Validate ``payload`` and write it in ``mode``.

        ``create`` inserts a new aggregate. ``update`` overlays the payload on
        the stored aggregate and rewrites it in place. ``supersede`` keeps
        the stored aggregate untouched and records the edit as a new
        employment that points back at it.
        """

        if mode not in MODES:
            raise ValueError(f"Unknown submit mode: {mode}")
        if mode != "create" and employment_id is None:
            raise ValueError(f"{mode} requires an employment id")

        today = self.clock()
        if mode == "create":
            sections = apply_policy(payload.to_sections())
        else:
            existing = await self.store.get_aggregate(employment_id)
            if await self.store.is_superseded(employment_id):
                verb = "edited" if mode == "update" else "superseded again"
                raise ValidationError.single(
                    "employment",
                    "supersedes_id",
                    f"Employment {employment_id} has been superseded and cannot be {verb}",
                )
            changes = payload.to_sections(exclude_unset=True)
            changes["employment"].pop("employee_id", None)
            sections = apply_policy(overlay(snapshot_sections(existing), changes))

        if mode == "supersede":
            employment = sections["employment"]
            employment["supersedes_id"] = employment_id
            remarks = (employment.get("remarks") or "").strip()
            marker = edit_marker(employment_id, today)
            employment["remarks"] = f"{remarks}\n\n{marker}" if remarks else marker

        issues = collect_issues(sections, today)
        if issues:
            raise ValidationError(issues)

        if mode == "update":
            return await self.store.update_employment_aggregate(employment_id, sections)
        result = await self.store.create_employment_aggregate(sections)
        if mode == "supersede":
            logger.info("Employment %s superseded by %s", employment_id, result.id)
        return result

    # ------------------------------------------------------------------
    # Contract lifecycle
    # ------------------------------------------------------------------
    async def contract_history(self, employment_id: int) -> list[Contract]:
        return await self.store.contract_history(employment_id)

    async def renew_contract(self, old_contract_id: int, renewal: RenewalRequest) -> Contract:
        """Replace a contract with a successor that continues the chain."""

        old = await self.store.get_contract(old_contract_id)
        today = self.clock()
        issues: list[FieldIssue] = []

        if old.is_renewed or old.contract_status == "Renewed":
            issues.append(FieldIssue("contract", "is_renewed", "Contract has already been renewed"))
        if old.contract_status == "Terminated" or old.confirmation_status == "Terminated":
            issues.append(
                FieldIssue("contract", "contract_status", "A terminated contract cannot be renewed")
            )
        if renewal.start_date <= old.start_date:
            issues.append(
                FieldIssue(
                    "contract",
                    "start_date",
                    f"Renewal must start after the current contract start ({old.start_date.isoformat()})",
                )
            )
        if renewal.end_date is not None and renewal.end_date < renewal.start_date:
            issues.append(FieldIssue("contract", "end_date", "end_date cannot be before start_date"))

        contract_type = renewal.contract_type or old.contract_type
        if contract_type not in CONTRACT_TYPES:
            issues.append(
                FieldIssue("contract", "contract_type", f"'{contract_type}' is not a contract type")
            )

        new_values: dict[str, Any] = {
            "contract_type": contract_type,
            "contract_number": renewal.contract_number,
            "start_date": renewal.start_date,
            "end_date": renewal.end_date,
            "renewal_reason": renewal.renewal_reason,
            "renewal_notes": renewal.renewal_notes,
            "renewal_count": (old.renewal_count or 0) + 1,
            "is_renewed": False,
            "contract_status": "Active",
        }
        if renewal.reset_probation:
            probation_start = renewal.probation_start or renewal.start_date
            probation_end = renewal.probation_end or add_months(probation_start, self.probation_months)
            if probation_end < probation_start:
                issues.append(
                    FieldIssue("contract", "probation_end", "probation_end cannot be before probation_start")
                )
            new_values.update(
                probation_start=probation_start,
                probation_end=probation_end,
                confirmation_status="In Progress",
            )
        else:
            new_values.update(
                confirmation_status="Confirmed",
                confirmation_date=renewal.confirmation_date or today,
            )

        if issues:
            raise ValidationError(issues)

        old_changes: dict[str, Any] = {"is_renewed": True, "contract_status": "Renewed"}
        if renewal.renewal_notes:
            old_changes["renewal_notes"] = renewal.renewal_notes
        # The successor is the only contract of the chain left running: the
        # predecessor ends before the renewal starts and no later than today.
        closing = min(renewal.start_date - timedelta(days=1), today)
        if old.end_date is not None:
            closing = min(closing, old.end_date)
        old_changes["end_date"] = max(closing, old.start_date)

        return await self.store.renew_contract(old_contract_id, old_changes, new_values)

    async def extend_probation(
        self, contract_id: int, new_probation_end: date, reason: str | None = None
    ) -> Contract:
        contract = await self.store.get_contract(contract_id)
        issues = _closed_contract_issues(contract)
        floor = contract.probation_end or contract.probation_start or contract.start_date
        if new_probation_end <= floor:
            issues.append(
                FieldIssue(
                    "contract",
                    "probation_end",
                    f"Extended probation must end after {floor.isoformat()}",
                )
            )
        if issues:
            raise ValidationError(issues)

        changes = {
            "probation_end": new_probation_end,
            "probation_extended": True,
            "probation_extension_reason": reason,
            "confirmation_status": "Extended",
        }
        if contract.probation_start is None:
            changes["probation_start"] = contract.start_date
        logger.info("Extending probation of contract %s to %s", contract_id, new_probation_end)
        return await self.store.save_contract(contract_id, changes)

    async def confirm_contract(
        self,
        contract_id: int,
        confirmation_date: date | None = None,
        performance_rating: str | None = None,
    ) -> Contract:
        contract = await self.store.get_contract(contract_id)
        issues = _closed_contract_issues(contract)
        if issues:
            raise ValidationError(issues)

        changes: dict[str, Any] = {
            "confirmation_status": "Confirmed",
            "confirmation_date": confirmation_date or self.clock(),
        }
        if performance_rating is not None:
            changes["performance_rating"] = performance_rating
        logger.info("Confirming contract %s", contract_id)
        return await self.store.save_contract(contract_id, changes)

    async def terminate_contract(
        self,
        contract_id: int,
        termination_date: date | None = None,
        reason: str | None = None,
    ) -> Contract:
        contract = await self.store.get_contract(contract_id)
        issues = _closed_contract_issues(contract)
        termination_date = termination_date or self.clock()
        if termination_date < contract.start_date:
            issues.append(
                FieldIssue("contract", "termination_date", "Termination cannot precede the contract start")
            )
        if issues:
            raise ValidationError(issues)

        logger.info("Terminating contract %s on %s", contract_id, termination_date)
        return await self.store.save_contract(
            contract_id,
            {
                "termination_date": termination_date,
                "termination_reason": reason,
                "contract_status": "Terminated",
                "confirmation_status": "Terminated",
            },
        )


def _closed_contract_issues(contract: Contract) -> list[FieldIssue]:
    if contract.contract_status == "Terminated" or contract.confirmation_status == "Terminated":
        return [FieldIssue("contract", "contract_status", "Contract has been terminated")]
    if contract.is_renewed or contract.contract_status == "Renewed":
        return [FieldIssue("contract", "is_renewed", "Contract has been renewed; act on its successor")]
    return []
