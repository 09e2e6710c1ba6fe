"""Reusable FastAPI dependencies."""
from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .database import get_session
from .services.aggregate_store import EmploymentAggregateStore
from .services.workflow import EmploymentWorkflow


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields an AsyncSession."""
    async for session in get_session():
        yield session


def get_store(session: AsyncSession = Depends(get_db_session)) -> EmploymentAggregateStore:
    return EmploymentAggregateStore(session)


def get_workflow(store: EmploymentAggregateStore = Depends(get_store)) -> EmploymentWorkflow:
    """Workflow engine bound to the request's store."""

    settings = get_settings()
    return EmploymentWorkflow(store, probation_months=settings.default_probation_months)
