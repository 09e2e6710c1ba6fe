"""Pydantic schemas used across the backend API."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

EMPLOYMENT_TYPES = ("Regular", "Contract", "Probation", "Internship", "Daily Wager")
CONTRACT_TYPES = (
    "Contractual",
    "Daily Wager",
    "Consultant",
    "Project Based",
    "Seasonal",
    "Part Time",
)
CONFIRMATION_STATUSES = ("Confirmed", "Extended", "In Progress", "Terminated")
CONTRACT_STATUSES = ("Active", "Completed", "Terminated", "Renewed")
PAYMENT_MODES = ("Bank Transfer", "Cheque", "Cash")
PAYROLL_STATUSES = ("Active", "Suspended", "Stopped")
FILER_STATUSES = ("filer", "non_filer")
EMPLOYMENT_STATUSES = ("active", "inactive", "resigned", "terminated", "retired")

CNIC_PATTERN = r"^\d{5}-\d{7}-\d$"


# ---------------------------------------------------------------------------
# Employee identity
# ---------------------------------------------------------------------------


class EmployeeBase(BaseModel):
    """Shared properties for employee operations."""

    cnic: str = Field(pattern=CNIC_PATTERN)
    full_name: str = Field(min_length=1)
    father_or_husband_name: str = ""
    mobile_number: str = ""
    email: str = ""


class EmployeeCreate(EmployeeBase):
    """Employee payload for creation."""


class EmployeeRead(EmployeeBase):
    """Employee representation returned by the API."""

    id: int
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Composite employment payload
# ---------------------------------------------------------------------------


class SalaryPayload(BaseModel):
    basic_salary: float | None = None
    medical_allowance: float | None = None
    house_rent: float | None = None
    conveyance_allowance: float | None = None
    other_allowances: float | None = None
    daily_wage_rate: float | None = None
    payment_mode: str | None = None
    bank_name_primary: str | None = None
    bank_account_primary: str | None = None
    bank_branch_code: str | None = None
    bank_name_secondary: str | None = None
    bank_account_secondary: str | None = None
    salary_effective_from: date | None = None
    salary_effective_till: date | None = None
    bonus_eligible: bool | None = None
    payroll_status: str | None = None

    model_config = {"extra": "ignore"}


class LocationPayload(BaseModel):
    district: str | None = None
    city: str | None = None
    bazaar_name: str | None = None
    type: str | None = None
    full_address: str | None = None

    model_config = {"extra": "ignore"}


class ContractPayload(BaseModel):
    contract_type: str | None = None
    contract_number: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    probation_start: date | None = None
    probation_end: date | None = None
    confirmation_status: str | None = None
    confirmation_date: date | None = None
    renewal_notes: str | None = None

    model_config = {"extra": "ignore"}


class EmploymentPayload(BaseModel):
    """One employment stint with its optional salary, location and contract.

    Every field is optional at this layer; the workflow engine decides what
    is required for the submitting organization and reports all problems at
    once.
    """

    employee_id: int | None = None
    organization: str | None = None
    department_id: int | None = None
    designation_id: int | None = None
    employment_type: str | None = None
    effective_from: date | None = None
    effective_till: date | None = None
    role_tag: str | None = None
    reporting_officer_id: str | None = None
    office_location: str | None = None
    scale_grade: str | None = None
    medical_fitness_report_pdf: str | None = None
    filer_status: str | None = None
    filer_active_status: str | None = None
    employment_status: str | None = None
    is_on_probation: bool | None = None
    probation_end_date: date | None = None
    remarks: str | None = None

    salary: SalaryPayload | None = None
    location: LocationPayload | None = None
    contract: ContractPayload | None = None

    model_config = {"extra": "ignore"}

    def to_sections(self, exclude_unset: bool = False) -> dict[str, dict[str, Any] | None]:
        """Split the payload into ``employment``/``salary``/``location``/``contract`` dicts.

        Sub-sections that were not supplied come back as ``None``.
        """

        data = self.model_dump(exclude_unset=exclude_unset)
        sections: dict[str, dict[str, Any] | None] = {}
        for name in ("salary", "location", "contract"):
            sections[name] = data.pop(name, None)
        sections["employment"] = data
        return sections


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------


class DepartmentRead(BaseModel):
    id: int
    name: str
    code: str
    description: str = ""

    model_config = {"from_attributes": True}


class DesignationRead(BaseModel):
    id: int
    title: str
    department_id: int
    level: int = 1

    model_config = {"from_attributes": True}


class SalaryRead(BaseModel):
    id: int
    basic_salary: float
    medical_allowance: float
    house_rent: float
    conveyance_allowance: float
    other_allowances: float
    daily_wage_rate: float | None = None
    payment_mode: str
    bank_name_primary: str | None = None
    bank_account_primary: str | None = None
    bank_branch_code: str | None = None
    bank_name_secondary: str | None = None
    bank_account_secondary: str | None = None
    salary_effective_from: date | None = None
    salary_effective_till: date | None = None
    bonus_eligible: bool
    payroll_status: str

    model_config = {"from_attributes": True}


class LocationRead(BaseModel):
    id: int
    district: str | None = None
    city: str | None = None
    bazaar_name: str | None = None
    type: str
    full_address: str | None = None

    model_config = {"from_attributes": True}


class ContractRead(BaseModel):
    id: int
    employment_id: int
    contract_type: str
    contract_number: str | None = None
    start_date: date
    end_date: date | None = None
    probation_start: date | None = None
    probation_end: date | None = None
    probation_extended: bool
    probation_extension_reason: str | None = None
    confirmation_status: str
    confirmation_date: date | None = None
    is_renewed: bool
    renewal_from_contract_id: int | None = None
    renewal_reason: str | None = None
    renewal_notes: str | None = None
    renewal_count: int
    termination_date: date | None = None
    termination_reason: str | None = None
    performance_rating: str | None = None
    contract_status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class EmploymentRead(BaseModel):
    """Full employment aggregate as returned by the API."""

    id: int
    employee_id: int
    organization: str
    department_id: int | None = None
    designation_id: int | None = None
    employment_type: str
    effective_from: date | None = None
    effective_till: date | None = None
    is_current: bool
    role_tag: str | None = None
    reporting_officer_id: str | None = None
    office_location: str | None = None
    scale_grade: str | None = None
    medical_fitness_report_pdf: str | None = None
    filer_status: str
    filer_active_status: str | None = None
    employment_status: str
    is_on_probation: bool
    probation_end_date: date | None = None
    remarks: str | None = None
    supersedes_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    department: DepartmentRead | None = None
    designation: DesignationRead | None = None
    salary: SalaryRead | None = None
    location: LocationRead | None = None
    contracts: list[ContractRead] = Field(default_factory=list)
    current_contract: ContractRead | None = None

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Contract lifecycle requests
# ---------------------------------------------------------------------------


class RenewalRequest(BaseModel):
    """Terms of the contract that replaces an existing one."""

    start_date: date
    end_date: date | None = None
    contract_type: str | None = None
    contract_number: str | None = None
    renewal_reason: str | None = None
    renewal_notes: str | None = None
    reset_probation: bool = False
    probation_start: date | None = None
    probation_end: date | None = None
    confirmation_date: date | None = None


class ProbationExtensionRequest(BaseModel):
    new_probation_end: date
    reason: str | None = None


class ConfirmationRequest(BaseModel):
    confirmation_date: date | None = None
    performance_rating: str | None = None


class TerminationRequest(BaseModel):
    termination_date: date | None = None
    reason: str | None = None


# ---------------------------------------------------------------------------
# Form options
# ---------------------------------------------------------------------------


class OrganizationOption(BaseModel):
    code: str
    name: str


class FormOptions(BaseModel):
    """Everything a client needs to render the employment wizard."""

    organizations: list[OrganizationOption]
    employment_types: list[str]
    contract_types: list[str]
    confirmation_statuses: list[str]
    contract_statuses: list[str]
    payment_modes: list[str]
    payroll_statuses: list[str]
    filer_statuses: list[str]
    employment_statuses: list[str]
    location_types: dict[str, list[str]]
    departments: list[DepartmentRead]
    designations: list[DesignationRead]
    field_policy: dict[str, Any]
