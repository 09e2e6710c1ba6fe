"""Employee identity endpoints for the FastAPI backend."""
from typing import Sequence

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..dependencies import get_db_session
from ..models import Employee
from ..schemas import EmployeeCreate, EmployeeRead

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("/", response_model=list[EmployeeRead])
async def list_employees(session: AsyncSession = Depends(get_db_session)) -> Sequence[Employee]:
    """Return all employees ordered by name."""

    result = await session.execute(select(Employee).order_by(Employee.full_name))
    return list(result.scalars().all())


@router.get("/{employee_id}", response_model=EmployeeRead)
async def get_employee(employee_id: int, session: AsyncSession = Depends(get_db_session)) -> Employee:
    employee = await session.get(Employee, employee_id)
    if employee is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
    return employee


@router.post("/", response_model=EmployeeRead, status_code=status.HTTP_201_CREATED)
async def create_employee(
    payload: EmployeeCreate,
    session: AsyncSession = Depends(get_db_session),
) -> Employee:
    """Create an employee identity record."""

    duplicate = await session.execute(select(Employee).where(Employee.cnic == payload.cnic))
    if duplicate.scalar_one_or_none() is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="An employee with this CNIC already exists")

    employee = Employee(
        cnic=payload.cnic,
        full_name=payload.full_name,
        father_or_husband_name=payload.father_or_husband_name,
        mobile_number=payload.mobile_number,
        email=payload.email,
    )
    session.add(employee)
    await session.commit()
    await session.refresh(employee)
    return employee
