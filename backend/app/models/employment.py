"""Employment aggregate: the stint row plus its salary, location and contracts."""
from __future__ import annotations

from datetime import date

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin
from .employee import Employee
from .reference import Department, Designation


class Employment(TimestampMixin, Base):
    """One employment stint of an employee with one organization."""

    __tablename__ = "employments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employees.id", ondelete="RESTRICT"), index=True
    )
    organization: Mapped[str] = mapped_column(String, index=True)
    department_id: Mapped[int | None] = mapped_column(ForeignKey("departments.id"), nullable=True)
    designation_id: Mapped[int | None] = mapped_column(ForeignKey("designations.id"), nullable=True)
    employment_type: Mapped[str] = mapped_column(String, default="Regular")
    effective_from: Mapped[date | None] = mapped_column(Date, nullable=True)
    effective_till: Mapped[date | None] = mapped_column(Date, nullable=True)
    role_tag: Mapped[str | None] = mapped_column(String, nullable=True)
    reporting_officer_id: Mapped[str | None] = mapped_column(String, nullable=True)
    office_location: Mapped[str | None] = mapped_column(String, nullable=True)
    scale_grade: Mapped[str | None] = mapped_column(String, nullable=True)
    medical_fitness_report_pdf: Mapped[str | None] = mapped_column(String, nullable=True)
    filer_status: Mapped[str] = mapped_column(String, default="non_filer")
    filer_active_status: Mapped[str | None] = mapped_column(String, nullable=True)
    employment_status: Mapped[str] = mapped_column(String, default="active")
    is_on_probation: Mapped[bool] = mapped_column(Boolean, default=False)
    probation_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    supersedes_id: Mapped[int | None] = mapped_column(
        ForeignKey("employments.id", ondelete="SET NULL"), nullable=True, unique=True
    )

    employee: Mapped[Employee] = relationship()
    department: Mapped[Department | None] = relationship()
    designation: Mapped[Designation | None] = relationship()
    salary: Mapped[EmploymentSalary | None] = relationship(
        back_populates="employment", uselist=False, cascade="all, delete-orphan"
    )
    location: Mapped[EmploymentLocation | None] = relationship(
        back_populates="employment", uselist=False, cascade="all, delete-orphan"
    )
    contracts: Mapped[list[Contract]] = relationship(
        back_populates="employment",
        cascade="all, delete-orphan",
        order_by="Contract.start_date",
    )

    __table_args__ = (
        CheckConstraint(
            "effective_till IS NULL OR effective_from IS NULL OR effective_till >= effective_from",
            name="effective_range",
        ),
    )

    @property
    def is_current(self) -> bool:
        return self.effective_till is None

    @property
    def current_contract(self) -> Contract | None:
        heads = [c for c in self.contracts if c.is_chain_head]
        if not heads:
            return None
        return max(heads, key=lambda c: (c.start_date or date.min, c.id or 0))


class EmploymentSalary(Base):
    __tablename__ = "employment_salaries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employment_id: Mapped[int] = mapped_column(
        ForeignKey("employments.id", ondelete="CASCADE"), unique=True
    )
    basic_salary: Mapped[float] = mapped_column(Float, default=0.0)
    medical_allowance: Mapped[float] = mapped_column(Float, default=0.0)
    house_rent: Mapped[float] = mapped_column(Float, default=0.0)
    conveyance_allowance: Mapped[float] = mapped_column(Float, default=0.0)
    other_allowances: Mapped[float] = mapped_column(Float, default=0.0)
    daily_wage_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    bank_name_primary: Mapped[str | None] = mapped_column(String, nullable=True)
    bank_account_primary: Mapped[str | None] = mapped_column(String, nullable=True)
    bank_branch_code: Mapped[str | None] = mapped_column(String, nullable=True)
    bank_name_secondary: Mapped[str | None] = mapped_column(String, nullable=True)
    bank_account_secondary: Mapped[str | None] = mapped_column(String, nullable=True)
    payment_mode: Mapped[str] = mapped_column(String, default="Bank Transfer")
    salary_effective_from: Mapped[date | None] = mapped_column(Date, nullable=True)
    salary_effective_till: Mapped[date | None] = mapped_column(Date, nullable=True)
    bonus_eligible: Mapped[bool] = mapped_column(Boolean, default=False)
    payroll_status: Mapped[str] = mapped_column(String, default="Active")

    employment: Mapped[Employment] = relationship(back_populates="salary")

    __table_args__ = (
        CheckConstraint("basic_salary >= 0", name="basic_salary_non_negative"),
    )


class EmploymentLocation(Base):
    __tablename__ = "employment_locations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employment_id: Mapped[int] = mapped_column(
        ForeignKey("employments.id", ondelete="CASCADE"), unique=True
    )
    district: Mapped[str | None] = mapped_column(String, nullable=True)
    city: Mapped[str | None] = mapped_column(String, nullable=True)
    bazaar_name: Mapped[str | None] = mapped_column(String, nullable=True)
    type: Mapped[str] = mapped_column(String, default="HEAD_OFFICE")
    full_address: Mapped[str | None] = mapped_column(Text, nullable=True)

    employment: Mapped[Employment] = relationship(back_populates="location")


class Contract(TimestampMixin, Base):
    """One link of a contractual employment's renewal chain."""

    __tablename__ = "contracts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employment_id: Mapped[int] = mapped_column(
        ForeignKey("employments.id", ondelete="CASCADE"), index=True
    )
    contract_type: Mapped[str] = mapped_column(String)
    contract_number: Mapped[str | None] = mapped_column(String, nullable=True)
    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    probation_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    probation_end: Mapped[date | None] = mapped_column(Date, nullable=True)
    probation_extended: Mapped[bool] = mapped_column(Boolean, default=False)
    probation_extension_reason: Mapped[str | None] = mapped_column(String, nullable=True)
    confirmation_status: Mapped[str] = mapped_column(String, default="In Progress")
    confirmation_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_renewed: Mapped[bool] = mapped_column(Boolean, default=False)
    renewal_from_contract_id: Mapped[int | None] = mapped_column(
        ForeignKey("contracts.id", ondelete="SET NULL"), nullable=True, unique=True
    )
    renewal_reason: Mapped[str | None] = mapped_column(String, nullable=True)
    renewal_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    renewal_count: Mapped[int] = mapped_column(Integer, default=0)
    termination_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    termination_reason: Mapped[str | None] = mapped_column(String, nullable=True)
    performance_rating: Mapped[str | None] = mapped_column(String, nullable=True)
    contract_status: Mapped[str] = mapped_column(String, default="Active")

    employment: Mapped[Employment] = relationship(back_populates="contracts")
    renewed_from: Mapped[Contract | None] = relationship(remote_side=[id])

    __table_args__ = (
        CheckConstraint("end_date IS NULL OR end_date >= start_date", name="contract_range"),
    )

    @property
    def is_chain_head(self) -> bool:
        return not self.is_renewed and self.contract_status != "Renewed"
