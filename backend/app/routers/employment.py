"""Employment aggregate and contract lifecycle endpoints."""
from typing import Sequence

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..dependencies import get_db_session, get_store, get_workflow
from ..models import Contract, Designation, Employment
from ..schemas import (
    ConfirmationRequest,
    ContractRead,
    DesignationRead,
    EmploymentPayload,
    EmploymentRead,
    FormOptions,
    ProbationExtensionRequest,
    RenewalRequest,
    TerminationRequest,
)
from ..services import reference_data
from ..services.aggregate_store import EmploymentAggregateStore
from ..services.workflow import EmploymentWorkflow

router = APIRouter(prefix="/employment", tags=["employment"])


@router.post("/", response_model=EmploymentRead, status_code=status.HTTP_201_CREATED)
async def create_employment(
    payload: EmploymentPayload,
    workflow: EmploymentWorkflow = Depends(get_workflow),
) -> Employment:
    """Validate and store a new employment with its salary, location and contract."""

    return await workflow.submit(payload, mode="create")


@router.get("/form-options", response_model=FormOptions)
async def get_form_options(session: AsyncSession = Depends(get_db_session)) -> FormOptions:
    """Option lists and the organization field policy for the employment form."""

    return await reference_data.build_form_options(session)


@router.get("/designations/{department_id}", response_model=list[DesignationRead])
async def get_designations(
    department_id: int, session: AsyncSession = Depends(get_db_session)
) -> Sequence[Designation]:
    return await reference_data.designations_for_department(session, department_id)


@router.get("/employee/{employee_id}", response_model=list[EmploymentRead])
async def list_employee_history(
    employee_id: int, store: EmploymentAggregateStore = Depends(get_store)
) -> Sequence[Employment]:
    """Employment history of one employee, oldest first."""

    return await store.list_for_employee(employee_id)


@router.post("/contracts/{contract_id}/renew", response_model=ContractRead, status_code=status.HTTP_201_CREATED)
async def renew_contract(
    contract_id: int,
    renewal: RenewalRequest,
    workflow: EmploymentWorkflow = Depends(get_workflow),
) -> Contract:
    return await workflow.renew_contract(contract_id, renewal)


@router.post("/contracts/{contract_id}/extend-probation", response_model=ContractRead)
async def extend_probation(
    contract_id: int,
    request: ProbationExtensionRequest,
    workflow: EmploymentWorkflow = Depends(get_workflow),
) -> Contract:
    return await workflow.extend_probation(contract_id, request.new_probation_end, request.reason)


@router.post("/contracts/{contract_id}/confirm", response_model=ContractRead)
async def confirm_contract(
    contract_id: int,
    request: ConfirmationRequest,
    workflow: EmploymentWorkflow = Depends(get_workflow),
) -> Contract:
    return await workflow.confirm_contract(contract_id, request.confirmation_date, request.performance_rating)


@router.post("/contracts/{contract_id}/terminate", response_model=ContractRead)
async def terminate_contract(
    contract_id: int,
    request: TerminationRequest,
    workflow: EmploymentWorkflow = Depends(get_workflow),
) -> Contract:
    return await workflow.terminate_contract(contract_id, request.termination_date, request.reason)


@router.get("/{employment_id}", response_model=EmploymentRead)
async def get_employment(
    employment_id: int, store: EmploymentAggregateStore = Depends(get_store)
) -> Employment:
    return await store.get_aggregate(employment_id)


@router.put("/{employment_id}", response_model=EmploymentRead)
async def update_employment(
    employment_id: int,
    payload: EmploymentPayload,
    workflow: EmploymentWorkflow = Depends(get_workflow),
) -> Employment:
    """Apply an in-place edit; fields left out of the payload keep their stored values."""

    return await workflow.submit(payload, mode="update", employment_id=employment_id)


@router.post("/{employment_id}/supersede", response_model=EmploymentRead, status_code=status.HTTP_201_CREATED)
async def supersede_employment(
    employment_id: int,
    payload: EmploymentPayload,
    workflow: EmploymentWorkflow = Depends(get_workflow),
) -> Employment:
    """Record an edit as a new employment that points back at the original."""

    return await workflow.submit(payload, mode="supersede", employment_id=employment_id)


@router.delete("/{employment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_employment(
    employment_id: int, store: EmploymentAggregateStore = Depends(get_store)
) -> Response:
    await store.delete_employment_aggregate(employment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{employment_id}/contracts", response_model=list[ContractRead])
async def get_contract_history(
    employment_id: int, workflow: EmploymentWorkflow = Depends(get_workflow)
) -> Sequence[Contract]:
    return await workflow.contract_history(employment_id)
