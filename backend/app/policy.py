"""Per-organization field visibility policy.

Each organization decides which employment-form fields it uses. The policy is
resolved once per organization into an immutable ``OrganizationPolicy`` and
queried through a handful of pure functions that are cheap enough to call on
every field render:

    is_field_visible("MBWO", "salary", "house_rent")  # False
    is_section_visible("MBWO", "location")            # False
    defaults_for_hidden("MBWO")["employment_type"]    # "Regular"

Unknown organization codes resolve to the permissive policy (everything
visible). The policy governs form convenience, not access control.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping

ALL = "all"

SECTIONS = ("employment", "salary", "location", "contract")

ORGANIZATIONS: dict[str, str] = {
    "MBWO": "Model Bazaar Welfare Organization",
    "PMBMC": "Punjab Model Bazaars Management Company",
    "PSBA": "Punjab Sahulat Bazaars Authority",
}

KNOWN_FIELDS: dict[str, tuple[str, ...]] = {
    "employment": (
        "organization",
        "department_id",
        "designation_id",
        "employment_type",
        "effective_from",
        "effective_till",
        "role_tag",
        "reporting_officer_id",
        "office_location",
        "scale_grade",
        "medical_fitness_report_pdf",
        "filer_status",
        "filer_active_status",
        "employment_status",
        "is_on_probation",
        "probation_end_date",
        "remarks",
    ),
    "salary": (
        "basic_salary",
        "medical_allowance",
        "house_rent",
        "conveyance_allowance",
        "other_allowances",
        "daily_wage_rate",
        "payment_mode",
        "bank_name_primary",
        "bank_account_primary",
        "bank_branch_code",
        "bank_name_secondary",
        "bank_account_secondary",
        "salary_effective_from",
        "salary_effective_till",
        "bonus_eligible",
        "payroll_status",
    ),
    "location": ("district", "city", "bazaar_name", "type", "full_address"),
    "contract": (
        "contract_type",
        "contract_number",
        "start_date",
        "end_date",
        "probation_start",
        "probation_end",
        "confirmation_status",
        "confirmation_date",
        "renewal_notes",
    ),
}

# Fields a visible section cannot be submitted without. Hidden fields are
# dropped from this list per organization, see ``required_fields``.
REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    "employment": (
        "organization",
        "department_id",
        "designation_id",
        "employment_type",
        "effective_from",
        "role_tag",
    ),
    "salary": ("basic_salary",),
    "location": ("district", "city", "type"),
    "contract": ("contract_type", "start_date", "end_date"),
}

HIDDEN_FIELD_DEFAULTS: dict[str, Any] = {
    "employment_type": "Regular",
    "employment_status": "active",
    "filer_status": "non_filer",
    "is_on_probation": False,
    "medical_allowance": 0.0,
    "house_rent": 0.0,
    "conveyance_allowance": 0.0,
    "other_allowances": 0.0,
    "payment_mode": "Bank Transfer",
    "payroll_status": "Active",
    "bonus_eligible": False,
}

DEFAULT_LOCATION_TYPES = ("HEAD_OFFICE", "BAZAAR")


@dataclass(frozen=True)
class SectionPolicy:
    """Visibility of one form section for one organization."""

    section: str
    visible_all: bool
    listed: frozenset[str]
    hidden: frozenset[str]

    @classmethod
    def build(
        cls, section: str, visible: str | Iterable[str], hidden: Iterable[str] = ()
    ) -> "SectionPolicy":
        known = frozenset(KNOWN_FIELDS[section])
        hidden_set = frozenset(hidden)
        if visible == ALL:
            unknown = hidden_set - known
            if unknown:
                raise ValueError(f"{section}: unknown hidden fields {sorted(unknown)}")
            return cls(section, True, frozenset(), hidden_set)

        listed = frozenset(visible)
        unknown = (listed | hidden_set) - known
        if unknown:
            raise ValueError(f"{section}: unknown fields {sorted(unknown)}")
        overlap = listed & hidden_set
        if overlap:
            raise ValueError(f"{section}: fields both visible and hidden {sorted(overlap)}")
        # A listed section hides everything it does not list.
        return cls(section, False, listed, known - listed)

    def is_visible(self, field_name: str) -> bool:
        if self.visible_all:
            return field_name not in self.hidden
        return field_name in self.listed

    @property
    def is_section_visible(self) -> bool:
        return self.visible_all or bool(self.listed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "visible": ALL if self.visible_all else sorted(self.listed),
            "hidden": sorted(self.hidden),
        }


@dataclass(frozen=True)
class OrganizationPolicy:
    """Resolved field policy for a single organization code."""

    code: str
    name: str
    sections: Mapping[str, SectionPolicy]
    location_types: tuple[str, ...] = DEFAULT_LOCATION_TYPES
    defaults: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        defaults = {
            section: MappingProxyType(
                {
                    name: HIDDEN_FIELD_DEFAULTS.get(name)
                    for name in KNOWN_FIELDS[section]
                    if not self.sections[section].is_visible(name)
                }
            )
            for section in SECTIONS
        }
        object.__setattr__(self, "defaults", MappingProxyType(defaults))

    def section(self, name: str) -> SectionPolicy:
        try:
            return self.sections[name]
        except KeyError as exc:
            raise ValueError(f"Unknown form section: {name}") from exc

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "sections": {name: sec.to_dict() for name, sec in self.sections.items()},
            "required": {
                name: [f for f in REQUIRED_FIELDS[name] if self.sections[name].is_visible(f)]
                for name in SECTIONS
            },
            "defaults": {name: dict(values) for name, values in self.defaults.items()},
            "location_types": list(self.location_types),
        }


def _policy(code: str, location_types: tuple[str, ...] = DEFAULT_LOCATION_TYPES, **sections) -> OrganizationPolicy:
    resolved = {}
    for section in SECTIONS:
        visible, hidden = sections.get(section, (ALL, ()))
        resolved[section] = SectionPolicy.build(section, visible, hidden)
    return OrganizationPolicy(
        code=code,
        name=ORGANIZATIONS.get(code, code),
        sections=MappingProxyType(resolved),
        location_types=location_types,
    )


_POLICIES: Mapping[str, OrganizationPolicy] = MappingProxyType(
    {
        "MBWO": _policy(
            "MBWO",
            employment=(
                ["organization", "designation_id", "effective_from", "effective_till", "remarks"],
                (),
            ),
            salary=(["basic_salary"], ()),
            location=([], ()),
        ),
        "PMBMC": _policy(
            "PMBMC",
            employment=(
                [
                    "organization",
                    "department_id",
                    "designation_id",
                    "employment_type",
                    "role_tag",
                    "effective_from",
                    "effective_till",
                    "medical_fitness_report_pdf",
                    "filer_status",
                    "filer_active_status",
                    "is_on_probation",
                    "probation_end_date",
                    "remarks",
                ],
                (),
            ),
            salary=(
                [
                    "basic_salary",
                    "medical_allowance",
                    "house_rent",
                    "conveyance_allowance",
                    "other_allowances",
                ],
                (),
            ),
        ),
        "PSBA": _policy(
            "PSBA",
            location_types=("HEAD_QUARTER", "SAHULAT_BAZAAR"),
            employment=(ALL, ["office_location"]),
        ),
    }
)

PERMISSIVE_POLICY = _policy(
    "DEFAULT",
    location_types=DEFAULT_LOCATION_TYPES + ("HEAD_QUARTER", "SAHULAT_BAZAAR"),
)


def policy_for(organization: str | None) -> OrganizationPolicy:
    """Return the resolved policy for ``organization`` (permissive if unknown)."""

    if not organization:
        return PERMISSIVE_POLICY
    return _POLICIES.get(organization.strip().upper(), PERMISSIVE_POLICY)


def is_field_visible(organization: str | None, section: str, field_name: str) -> bool:
    return policy_for(organization).section(section).is_visible(field_name)


def is_section_visible(organization: str | None, section: str) -> bool:
    return policy_for(organization).section(section).is_section_visible


def defaults_for_hidden(organization: str | None, section: str | None = None) -> dict[str, Any]:
    """Default values for the fields ``organization`` hides.

    With ``section`` the map covers that section only, otherwise it is the
    flat union over all sections.
    """

    policy = policy_for(organization)
    if section is not None:
        policy.section(section)
        return dict(policy.defaults[section])
    merged: dict[str, Any] = {}
    for name in SECTIONS:
        merged.update(policy.defaults[name])
    return merged


def required_fields(organization: str | None, section: str) -> tuple[str, ...]:
    visible = policy_for(organization).section(section)
    return tuple(f for f in REQUIRED_FIELDS[section] if visible.is_visible(f))


def location_types(organization: str | None) -> tuple[str, ...]:
    return policy_for(organization).location_types


def export_field_policy() -> dict[str, Any]:
    """JSON-ready policy table handed to clients through the form options."""

    return {
        "known_fields": {name: list(fields) for name, fields in KNOWN_FIELDS.items()},
        "organizations": {code: policy.to_dict() for code, policy in _POLICIES.items()},
        "fallback": PERMISSIVE_POLICY.to_dict(),
    }
