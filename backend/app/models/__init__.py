"""SQLAlchemy models exposed by the backend."""
from .base import Base
from .employee import Employee
from .employment import Contract, Employment, EmploymentLocation, EmploymentSalary
from .reference import Department, Designation

__all__ = [
    "Base",
    "Contract",
    "Department",
    "Designation",
    "Employee",
    "Employment",
    "EmploymentLocation",
    "EmploymentSalary",
]
