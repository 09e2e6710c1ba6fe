"""Departments, designations and the option lists behind the employment form."""
from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import NotFoundError
from ..models import Department, Designation
from ..policy import ORGANIZATIONS, export_field_policy, location_types
from ..schemas import (
    CONFIRMATION_STATUSES,
    CONTRACT_STATUSES,
    CONTRACT_TYPES,
    EMPLOYMENT_STATUSES,
    EMPLOYMENT_TYPES,
    FILER_STATUSES,
    PAYMENT_MODES,
    PAYROLL_STATUSES,
    DepartmentRead,
    DesignationRead,
    FormOptions,
    OrganizationOption,
)

logger = logging.getLogger(__name__)

DEFAULT_DEPARTMENTS = (
    ("Engineering", "ENG", "Engineering and Technical Services"),
    ("IT", "IT", "Information Technology"),
    ("HR", "HR", "Human Resources"),
    ("Administration", "ADMIN", "Administrative Services"),
    ("Finance", "FIN", "Finance and Accounts"),
    ("Legal", "LEGAL", "Legal Affairs"),
    ("Operations", "OPS", "Operations Management"),
)

DEFAULT_DESIGNATIONS = {
    "ENG": (
        "Junior Engineer",
        "Assistant Engineer",
        "Engineer",
        "Senior Engineer",
        "Assistant Manager",
        "Manager",
        "Deputy Director Engineering",
    ),
    "IT": ("Software Developer", "Senior Software Developer", "IT Manager"),
    "HR": ("HR Officer", "Senior HR Officer", "HR Manager"),
    "ADMIN": ("Administrative Officer", "Senior Administrative Officer", "Administrative Manager"),
    "FIN": ("Accounts Officer", "Senior Accounts Officer", "Finance Manager"),
    "LEGAL": ("Legal Officer", "Senior Legal Officer", "Legal Manager"),
    "OPS": ("Operations Officer", "Senior Operations Officer", "Operations Manager"),
}


async def seed_reference_data(session: AsyncSession) -> bool:
    """Insert the default departments and designations into empty tables.

    Returns ``True`` when rows were written.
    """

    async with session.begin():
        count = await session.scalar(select(func.count()).select_from(Department))
        if count:
            return False
        for name, code, description in DEFAULT_DEPARTMENTS:
            department = Department(name=name, code=code, description=description)
            session.add(department)
            await session.flush()
            for level, title in enumerate(DEFAULT_DESIGNATIONS.get(code, ()), start=1):
                session.add(Designation(title=title, department_id=department.id, level=level))
    logger.info("Seeded %d departments with their designations", len(DEFAULT_DEPARTMENTS))
    return True


async def designations_for_department(session: AsyncSession, department_id: int) -> list[Designation]:
    async with session.begin():
        if await session.get(Department, department_id) is None:
            raise NotFoundError(f"Department {department_id} not found")
        result = await session.execute(
            select(Designation)
            .where(Designation.department_id == department_id)
            .order_by(Designation.level, Designation.title)
        )
        return list(result.scalars().all())


async def build_form_options(session: AsyncSession) -> FormOptions:
    async with session.begin():
        departments = (await session.execute(select(Department).order_by(Department.name))).scalars().all()
        designations = (
            await session.execute(select(Designation).order_by(Designation.title))
        ).scalars().all()

    return FormOptions(
        organizations=[OrganizationOption(code=code, name=name) for code, name in ORGANIZATIONS.items()],
        employment_types=list(EMPLOYMENT_TYPES),
        contract_types=list(CONTRACT_TYPES),
        confirmation_statuses=list(CONFIRMATION_STATUSES),
        contract_statuses=list(CONTRACT_STATUSES),
        payment_modes=list(PAYMENT_MODES),
        payroll_statuses=list(PAYROLL_STATUSES),
        filer_statuses=list(FILER_STATUSES),
        employment_statuses=list(EMPLOYMENT_STATUSES),
        location_types={code: list(location_types(code)) for code in ORGANIZATIONS},
        departments=[DepartmentRead.model_validate(dept) for dept in departments],
        designations=[DesignationRead.model_validate(des) for des in designations],
        field_policy=export_field_policy(),
    )
