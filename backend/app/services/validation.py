"""Policy application and rule checks for employment aggregates.

The functions here work on the section form of a payload::

    {"employment": {...}, "salary": {...} | None,
     "location": {...} | None, "contract": {...} | None}

``apply_policy`` normalises a payload for its organization and
``collect_issues`` returns every rule violation instead of stopping at the
first one.
"""
from __future__ import annotations

from datetime import date
from typing import Any

from ..errors import FieldIssue
from ..policy import (
    ORGANIZATIONS,
    SECTIONS,
    location_types,
    policy_for,
    required_fields,
)
from ..schemas import (
    CONFIRMATION_STATUSES,
    CONTRACT_TYPES,
    EMPLOYMENT_STATUSES,
    EMPLOYMENT_TYPES,
    FILER_STATUSES,
    PAYMENT_MODES,
    PAYROLL_STATUSES,
)

Sections = dict[str, Any]

BANK_FIELDS = ("bank_name_primary", "bank_account_primary", "bank_branch_code")
AMOUNT_FIELDS = (
    "basic_salary",
    "medical_allowance",
    "house_rent",
    "conveyance_allowance",
    "other_allowances",
    "daily_wage_rate",
)

# Values used when a non-nullable column arrives empty.
COLUMN_FALLBACKS: dict[str, dict[str, Any]] = {
    "employment": {
        "employment_type": "Regular",
        "employment_status": "active",
        "filer_status": "non_filer",
        "is_on_probation": False,
    },
    "salary": {
        "medical_allowance": 0.0,
        "house_rent": 0.0,
        "conveyance_allowance": 0.0,
        "other_allowances": 0.0,
        "payment_mode": "Bank Transfer",
        "payroll_status": "Active",
        "bonus_eligible": False,
    },
    "location": {},
    "contract": {"confirmation_status": "In Progress"},
}


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def apply_policy(sections: Sections) -> Sections:
    """Return a copy of ``sections`` shaped by the organization's field policy.

    Hidden fields are overwritten with the organization defaults, hidden
    sections are dropped, and the contract section only survives for
    contract employment. Applying it twice yields the same result.
    """

    employment = dict(sections.get("employment") or {})
    policy = policy_for(employment.get("organization"))

    shaped: Sections = {}
    for name in SECTIONS:
        values = employment if name == "employment" else sections.get(name)
        if name != "employment" and not policy.section(name).is_section_visible:
            shaped[name] = None
            continue
        if values is None:
            shaped[name] = None
            continue
        merged = dict(values)
        merged.update(policy.defaults[name])
        for key, fallback in COLUMN_FALLBACKS[name].items():
            if merged.get(key) is None:
                merged[key] = fallback
        shaped[name] = merged

    if shaped["employment"].get("employment_type") != "Contract":
        shaped["contract"] = None
    return shaped


def collect_issues(sections: Sections, today: date) -> list[FieldIssue]:
    """Check a policy-shaped payload and return every issue found."""

    employment = sections["employment"] or {}
    organization = employment.get("organization")
    policy = policy_for(organization)
    issues: list[FieldIssue] = []

    def visible(section: str, name: str) -> bool:
        return policy.section(section).is_visible(name)

    def add(section: str, name: str, message: str) -> None:
        issues.append(FieldIssue(section, name, message))

    # employment -----------------------------------------------------------
    if is_blank(employment.get("employee_id")):
        add("employment", "employee_id", "An employee must be selected")
    for name in required_fields(organization, "employment"):
        if is_blank(employment.get(name)):
            add("employment", name, "This field is required")

    if not is_blank(organization) and organization not in ORGANIZATIONS:
        add("employment", "organization", f"Unknown organization '{organization}'")
    _check_choice(issues, "employment", "employment_type", employment, EMPLOYMENT_TYPES)
    _check_choice(issues, "employment", "filer_status", employment, FILER_STATUSES)
    _check_choice(issues, "employment", "employment_status", employment, EMPLOYMENT_STATUSES)
    _check_range(issues, "employment", employment, "effective_from", "effective_till")

    if (
        visible("employment", "is_on_probation")
        and visible("employment", "probation_end_date")
        and employment.get("is_on_probation")
    ):
        probation_end = employment.get("probation_end_date")
        if probation_end is None:
            add("employment", "probation_end_date", "Probation end date is required while on probation")
        elif probation_end <= today:
            add("employment", "probation_end_date", "Probation end date must be in the future")

    # salary ---------------------------------------------------------------
    salary = sections.get("salary")
    if salary is None:
        add("salary", "basic_salary", "Salary details are required")
    else:
        _check_salary(issues, salary, employment.get("employment_type"), visible)

    # location -------------------------------------------------------------
    location = sections.get("location")
    if location is not None:
        for name in required_fields(organization, "location"):
            if is_blank(location.get(name)):
                add("location", name, "This field is required")
        location_type = location.get("type")
        if not is_blank(location_type) and location_type not in location_types(organization):
            add("location", "type", f"Location type '{location_type}' is not used by {policy.code}")

    # contract -------------------------------------------------------------
    if employment.get("employment_type") == "Contract":
        contract = sections.get("contract")
        if contract is None:
            for name in required_fields(organization, "contract"):
                add("contract", name, "Contract details are required for contract employment")
        else:
            for name in required_fields(organization, "contract"):
                if is_blank(contract.get(name)):
                    add("contract", name, "This field is required")
            _check_choice(issues, "contract", "contract_type", contract, CONTRACT_TYPES)
            _check_choice(issues, "contract", "confirmation_status", contract, CONFIRMATION_STATUSES)
            _check_range(issues, "contract", contract, "start_date", "end_date")
            _check_range(issues, "contract", contract, "probation_start", "probation_end")

    return issues


def _check_salary(issues: list[FieldIssue], salary: dict[str, Any], employment_type, visible) -> None:
    for name in AMOUNT_FIELDS:
        amount = salary.get(name)
        if amount is not None and amount < 0:
            issues.append(FieldIssue("salary", name, "Amount cannot be negative"))

    basic = salary.get("basic_salary") or 0
    if employment_type == "Daily Wager":
        rate = salary.get("daily_wage_rate") or 0
        if basic <= 0 and rate <= 0:
            issues.append(
                FieldIssue(
                    "salary",
                    "basic_salary",
                    "Either basic salary or daily wage rate must be greater than zero",
                )
            )
    elif salary.get("basic_salary") is None:
        issues.append(FieldIssue("salary", "basic_salary", "This field is required"))
    elif basic <= 0:
        issues.append(FieldIssue("salary", "basic_salary", "Basic salary must be greater than zero"))

    _check_choice(issues, "salary", "payment_mode", salary, PAYMENT_MODES)
    _check_choice(issues, "salary", "payroll_status", salary, PAYROLL_STATUSES)
    _check_range(issues, "salary", salary, "salary_effective_from", "salary_effective_till")

    bank_fields = [name for name in BANK_FIELDS if visible("salary", name)]
    provided = [name for name in bank_fields if not is_blank(salary.get(name))]
    if provided and len(provided) != len(bank_fields):
        for name in bank_fields:
            if name not in provided:
                issues.append(
                    FieldIssue("salary", name, "Bank name, account number and branch code go together")
                )


def _check_choice(issues, section: str, name: str, values: dict[str, Any], choices) -> None:
    value = values.get(name)
    if not is_blank(value) and value not in choices:
        issues.append(FieldIssue(section, name, f"'{value}' is not one of {', '.join(choices)}"))


def _check_range(issues, section: str, values: dict[str, Any], start: str, end: str) -> None:
    begin, finish = values.get(start), values.get(end)
    if begin is not None and finish is not None and finish < begin:
        issues.append(FieldIssue(section, end, f"{end} cannot be before {start}"))
