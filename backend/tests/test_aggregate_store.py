"""Tests for transactional persistence of employment aggregates."""
from datetime import date

import pytest

from app.database import AsyncSessionLocal
from app.errors import NotFoundError, PersistenceError, ReferentialError, ValidationError
from app.models import Contract, Employment, EmploymentLocation, EmploymentSalary
from app.schemas import EmploymentPayload
from app.services.aggregate_store import EmploymentAggregateStore
from app.services.validation import apply_policy
from app.services.workflow import EmploymentWorkflow


def shaped(payload: dict) -> dict:
    return apply_policy(EmploymentPayload(**payload).to_sections())


def contract_payload(make_payload, **contract):
    terms = {"contract_type": "Contractual", "start_date": "2024-01-01", "end_date": "2024-12-31"}
    terms.update(contract)
    return make_payload(employment_type="Contract", contract=terms)


@pytest.mark.asyncio
async def test_create_writes_every_sub_record(store, make_payload) -> None:
    employment = await store.create_employment_aggregate(shaped(contract_payload(make_payload)))

    assert employment.id is not None
    assert employment.is_current
    assert employment.salary.basic_salary == 85000
    assert employment.location.type == "HEAD_QUARTER"
    assert employment.designation.title == "Engineer"
    assert [c.contract_type for c in employment.contracts] == ["Contractual"]
    assert employment.current_contract.confirmation_status == "In Progress"


@pytest.mark.asyncio
async def test_failed_contract_insert_rolls_back_whole_aggregate(store, make_payload, row_count) -> None:
    # Bypasses validation so the contract row trips the database CHECK constraint.
    sections = shaped(contract_payload(make_payload, start_date="2024-06-01", end_date="2024-01-01"))

    with pytest.raises(PersistenceError) as excinfo:
        await store.create_employment_aggregate(sections)

    assert excinfo.value.retryable
    for model in (Employment, EmploymentSalary, EmploymentLocation, Contract):
        assert await row_count(model) == 0


@pytest.mark.asyncio
async def test_failed_salary_insert_rolls_back_whole_aggregate(store, make_payload, row_count) -> None:
    # Bypasses validation so the salary row trips the database CHECK constraint.
    sections = shaped(make_payload(salary={"basic_salary": -5}))

    with pytest.raises(PersistenceError):
        await store.create_employment_aggregate(sections)

    for model in (Employment, EmploymentSalary, EmploymentLocation):
        assert await row_count(model) == 0


@pytest.mark.asyncio
async def test_missing_references_raise_referential_error(store, make_payload, row_count) -> None:
    with pytest.raises(ReferentialError) as excinfo:
        await store.create_employment_aggregate(shaped(make_payload(designation_id=9999)))

    assert [issue.field for issue in excinfo.value.issues] == ["designation_id"]
    assert await row_count(Employment) == 0


@pytest.mark.asyncio
async def test_designation_must_belong_to_department(store, make_payload, reference_ids) -> None:
    payload = make_payload(designation_id=reference_ids["hr_designation_id"])

    with pytest.raises(ReferentialError):
        await store.create_employment_aggregate(shaped(payload))


@pytest.mark.asyncio
async def test_update_upserts_dependents(store, make_payload) -> None:
    created = await store.create_employment_aggregate(shaped(make_payload(location=None)))
    assert created.location is None

    sections = shaped(
        make_payload(
            salary={"basic_salary": 90000, "bank_name_primary": "HBL", "bank_account_primary": "1", "bank_branch_code": "2"},
            location={"district": "multan", "city": "multan_city", "type": "SAHULAT_BAZAAR"},
        )
    )
    updated = await store.update_employment_aggregate(created.id, sections)

    assert updated.salary.id == created.salary.id
    assert updated.salary.basic_salary == 90000
    assert updated.location.type == "SAHULAT_BAZAAR"


@pytest.mark.asyncio
async def test_unconfirmed_contract_is_edited_in_place(store, make_payload, row_count) -> None:
    created = await store.create_employment_aggregate(shaped(contract_payload(make_payload)))

    updated = await store.update_employment_aggregate(
        created.id, shaped(contract_payload(make_payload, end_date="2025-06-30"))
    )

    assert await row_count(Contract) == 1
    assert updated.current_contract.end_date == date(2025, 6, 30)


@pytest.mark.asyncio
async def test_confirmed_contract_terms_require_renewal(store, make_payload) -> None:
    created = await store.create_employment_aggregate(
        shaped(contract_payload(make_payload, confirmation_status="Confirmed"))
    )

    with pytest.raises(ValidationError) as excinfo:
        await store.update_employment_aggregate(
            created.id, shaped(contract_payload(make_payload, confirmation_status="Confirmed", end_date="2025-12-31"))
        )

    assert [(issue.section, issue.field) for issue in excinfo.value.issues] == [("contract", "end_date")]
    # The aggregate returned before the rolled-back write is still readable.
    assert created.current_contract.end_date == date(2024, 12, 31)
    reloaded = await store.get_aggregate(created.id)
    assert reloaded.current_contract.end_date == date(2024, 12, 31)


@pytest.mark.asyncio
async def test_history_is_ordered_by_effective_date(store, make_payload, employee_id) -> None:
    later = await store.create_employment_aggregate(shaped(make_payload(effective_from="2023-05-01")))
    earlier = await store.create_employment_aggregate(
        shaped(make_payload(effective_from="2020-01-01", effective_till="2023-04-30"))
    )

    history = await store.list_for_employee(employee_id)

    assert [e.id for e in history] == [earlier.id, later.id]
    assert [e.is_current for e in history] == [False, True]


@pytest.mark.asyncio
async def test_delete_cascades_to_dependents(store, make_payload, row_count) -> None:
    created = await store.create_employment_aggregate(shaped(contract_payload(make_payload)))

    await store.delete_employment_aggregate(created.id)

    for model in (Employment, EmploymentSalary, EmploymentLocation, Contract):
        assert await row_count(model) == 0
    with pytest.raises(NotFoundError):
        await store.get_aggregate(created.id)


@pytest.mark.asyncio
async def test_concurrent_updates_are_last_writer_wins(store, make_payload) -> None:
    created = await store.create_employment_aggregate(shaped(make_payload()))

    async with AsyncSessionLocal() as first_session, AsyncSessionLocal() as second_session:
        first = EmploymentWorkflow(EmploymentAggregateStore(first_session))
        second = EmploymentWorkflow(EmploymentAggregateStore(second_session))
        # Both editors opened the record before either saved; nothing detects the overlap.
        await first.store.get_aggregate(created.id)
        await second.store.get_aggregate(created.id)

        await first.submit(EmploymentPayload(salary={"basic_salary": 95000}), "update", created.id)
        await second.submit(EmploymentPayload(salary={"basic_salary": 70000}), "update", created.id)

    final = await store.get_aggregate(created.id)
    assert final.salary.basic_salary == 70000
