"""Test fixtures for the backend."""
import os
from datetime import date
from pathlib import Path
from typing import Any, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_backend.db")
os.environ.setdefault("SEED_REFERENCE_DATA", "false")

from app import models  # noqa: E402
from app.database import AsyncSessionLocal, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.services.aggregate_store import EmploymentAggregateStore  # noqa: E402
from app.services.reference_data import seed_reference_data  # noqa: E402
from app.services.workflow import EmploymentWorkflow  # noqa: E402

test_db_path = Path("test_backend.db")

FIXED_TODAY = date(2024, 6, 1)


@pytest.fixture(scope="session", autouse=True)
def remove_test_database():
    """Delete the SQLite file once the run is over."""

    yield
    if test_db_path.exists():
        test_db_path.unlink()


@pytest_asyncio.fixture
async def db() -> None:
    """Fresh schema with seeded departments and designations for every test."""

    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.drop_all)
        await conn.run_sync(models.Base.metadata.create_all)
    async with AsyncSessionLocal() as session:
        await seed_reference_data(session)
    yield


@pytest_asyncio.fixture
async def client(db) -> AsyncClient:
    """Provide an HTTP client for integration tests."""

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture
async def store(db) -> EmploymentAggregateStore:
    async with AsyncSessionLocal() as session:
        yield EmploymentAggregateStore(session)


@pytest_asyncio.fixture
async def workflow(store) -> EmploymentWorkflow:
    return EmploymentWorkflow(store, clock=lambda: FIXED_TODAY)


@pytest_asyncio.fixture
async def reference_ids(db) -> dict[str, int]:
    """Ids of a department and designations used across tests."""

    async with AsyncSessionLocal() as session:
        eng = (await session.execute(select(models.Department).where(models.Department.code == "ENG"))).scalar_one()
        hr = (await session.execute(select(models.Department).where(models.Department.code == "HR"))).scalar_one()
        engineer = (
            await session.execute(select(models.Designation).where(models.Designation.title == "Engineer"))
        ).scalar_one()
        hr_officer = (
            await session.execute(select(models.Designation).where(models.Designation.title == "HR Officer"))
        ).scalar_one()
        return {
            "department_id": eng.id,
            "designation_id": engineer.id,
            "hr_department_id": hr.id,
            "hr_designation_id": hr_officer.id,
        }


@pytest_asyncio.fixture
async def employee_id(db) -> int:
    async with AsyncSessionLocal() as session:
        employee = models.Employee(
            cnic="35202-1234567-1",
            full_name="Ahmed Ali Khan",
            father_or_husband_name="Muhammad Ali Khan",
            mobile_number="+92-300-1234567",
        )
        session.add(employee)
        await session.commit()
        return employee.id


@pytest.fixture
def make_payload(employee_id, reference_ids) -> Callable[..., dict[str, Any]]:
    """Factory for JSON-ready employment payloads (PSBA regular staff by default)."""

    def factory(**overrides: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "employee_id": employee_id,
            "organization": "PSBA",
            "department_id": reference_ids["department_id"],
            "designation_id": reference_ids["designation_id"],
            "employment_type": "Regular",
            "effective_from": "2024-01-01",
            "role_tag": "Site Engineer",
            "salary": {
                "basic_salary": 85000,
                "house_rent": 20000,
                "bank_name_primary": "HBL",
                "bank_account_primary": "0123456789",
                "bank_branch_code": "0456",
            },
            "location": {"district": "lahore", "city": "lahore_city", "type": "HEAD_QUARTER"},
        }
        payload.update(overrides)
        return payload

    return factory


@pytest.fixture
def row_count() -> Callable:
    """Count rows of a model through a fresh session."""

    async def count(model) -> int:
        async with AsyncSessionLocal() as session:
            result = await session.execute(select(model))
            return len(result.scalars().all())

    return count
