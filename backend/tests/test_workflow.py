"""Tests for the employment workflow engine and the contract lifecycle."""
from datetime import date

import pytest

from app.errors import NotFoundError, ValidationError
from app.models import Contract, Employment
from app.schemas import EmploymentPayload, RenewalRequest
from app.services.workflow import add_months


def contract_employment(make_payload, **contract):
    terms = {"contract_type": "Contractual", "start_date": "2024-01-01", "end_date": "2024-12-31"}
    terms.update(contract)
    return EmploymentPayload(**make_payload(employment_type="Contract", contract=terms))


@pytest.mark.parametrize(
    "start,months,expected",
    [
        (date(2024, 1, 15), 3, date(2024, 4, 15)),
        (date(2024, 11, 30), 3, date(2025, 2, 28)),
        (date(2024, 1, 31), 1, date(2024, 2, 29)),
    ],
)
def test_add_months_clamps_to_month_end(start, months, expected) -> None:
    assert add_months(start, months) == expected


@pytest.mark.asyncio
async def test_submit_rejects_with_all_issues(workflow, make_payload, row_count) -> None:
    payload = EmploymentPayload(**make_payload(role_tag=None, salary={"basic_salary": 0}))

    with pytest.raises(ValidationError) as excinfo:
        await workflow.submit(payload)

    fields = {(issue.section, issue.field) for issue in excinfo.value.issues}
    assert {("employment", "role_tag"), ("salary", "basic_salary")} <= fields
    assert await row_count(Employment) == 0


@pytest.mark.asyncio
async def test_unknown_submit_mode_is_a_programming_error(workflow, make_payload) -> None:
    with pytest.raises(ValueError):
        await workflow.submit(EmploymentPayload(**make_payload()), mode="upsert")
    with pytest.raises(ValueError):
        await workflow.submit(EmploymentPayload(**make_payload()), mode="update")


@pytest.mark.asyncio
async def test_update_overlays_stored_values(workflow, make_payload) -> None:
    created = await workflow.submit(EmploymentPayload(**make_payload()))

    updated = await workflow.submit(
        EmploymentPayload(role_tag="Senior Site Engineer"), mode="update", employment_id=created.id
    )

    assert updated.role_tag == "Senior Site Engineer"
    assert updated.salary.basic_salary == 85000
    assert updated.location.city == "lahore_city"


@pytest.mark.asyncio
async def test_update_of_missing_employment_is_not_found(workflow) -> None:
    with pytest.raises(NotFoundError):
        await workflow.submit(EmploymentPayload(role_tag="x"), mode="update", employment_id=404)


@pytest.mark.asyncio
async def test_supersede_appends_a_new_record(workflow, make_payload, employee_id, row_count) -> None:
    original = await workflow.submit(EmploymentPayload(**make_payload(remarks="Joined head office")))

    successor = await workflow.submit(
        EmploymentPayload(salary={"basic_salary": 99000}), mode="supersede", employment_id=original.id
    )

    assert successor.id != original.id
    assert successor.supersedes_id == original.id
    assert successor.employee_id == employee_id
    assert successor.salary.basic_salary == 99000
    assert successor.remarks == f"Joined head office\n\n[Edited from record ID {original.id} on 2024-06-01]"
    assert await row_count(Employment) == 2

    untouched = await workflow.store.get_aggregate(original.id)
    assert untouched.salary.basic_salary == 85000
    assert untouched.remarks == "Joined head office"
    assert await workflow.store.is_superseded(original.id)


@pytest.mark.asyncio
async def test_superseded_record_is_immutable(workflow, make_payload) -> None:
    original = await workflow.submit(EmploymentPayload(**make_payload()))
    await workflow.submit(EmploymentPayload(), mode="supersede", employment_id=original.id)

    with pytest.raises(ValidationError):
        await workflow.submit(EmploymentPayload(role_tag="late edit"), mode="update", employment_id=original.id)
    with pytest.raises(ValidationError):
        await workflow.submit(EmploymentPayload(), mode="supersede", employment_id=original.id)


@pytest.mark.asyncio
async def test_renewal_chain_integrity(workflow, make_payload, row_count) -> None:
    employment = await workflow.submit(contract_employment(make_payload, confirmation_status="Confirmed"))
    first = employment.current_contract

    second = await workflow.renew_contract(
        first.id,
        RenewalRequest(start_date=date(2024, 11, 1), end_date=date(2025, 10, 31), renewal_notes="Good year"),
    )
    workflow.clock = lambda: date(2025, 3, 1)
    third = await workflow.renew_contract(
        second.id,
        RenewalRequest(start_date=date(2025, 11, 1), end_date=date(2026, 10, 31), reset_probation=True),
    )

    history = await workflow.contract_history(employment.id)
    assert [c.id for c in history] == [first.id, second.id, third.id]

    old, middle, head = history
    assert old.is_renewed and old.contract_status == "Renewed"
    # Renewed ahead of expiry: the predecessor closes on the renewal day.
    assert old.end_date == date(2024, 6, 1)
    assert middle.end_date == date(2025, 3, 1)
    assert old.renewal_notes == "Good year"
    assert middle.renewal_from_contract_id == old.id
    assert middle.renewal_count == 1
    assert middle.contract_type == "Contractual"
    assert middle.confirmation_status == "Confirmed"
    assert middle.confirmation_date == date(2024, 6, 1)
    assert head.renewal_from_contract_id == middle.id
    assert head.renewal_count == 2
    assert not head.is_renewed
    assert head.confirmation_status == "In Progress"
    assert (head.probation_start, head.probation_end) == (date(2025, 11, 1), date(2026, 2, 1))

    # Every renewed row has exactly one successor.
    successors = [c.renewal_from_contract_id for c in history if c.renewal_from_contract_id]
    assert sorted(successors) == sorted(c.id for c in history if c.is_renewed)
    # Exactly one contract of the chain is still running.
    running = [c.id for c in history if c.end_date is None or c.end_date > date(2025, 3, 1)]
    assert running == [head.id]

    reloaded = await workflow.store.get_aggregate(employment.id)
    assert reloaded.current_contract.id == head.id
    assert await row_count(Contract) == 3


@pytest.mark.asyncio
async def test_early_renewal_leaves_one_running_contract(workflow, make_payload) -> None:
    employment = await workflow.submit(contract_employment(make_payload))
    first = employment.current_contract

    successor = await workflow.renew_contract(
        first.id, RenewalRequest(start_date=date(2025, 1, 1), end_date=date(2025, 12, 31))
    )

    history = await workflow.contract_history(employment.id)
    running = [c.id for c in history if c.end_date is None or c.end_date > date(2024, 6, 1)]
    assert running == [successor.id]
    assert history[0].end_date == date(2024, 6, 1)


@pytest.mark.asyncio
async def test_renewal_guards(workflow, make_payload) -> None:
    employment = await workflow.submit(contract_employment(make_payload))
    contract = employment.current_contract

    with pytest.raises(ValidationError) as excinfo:
        await workflow.renew_contract(contract.id, RenewalRequest(start_date=date(2023, 12, 1)))
    assert excinfo.value.issues[0].field == "start_date"

    await workflow.renew_contract(contract.id, RenewalRequest(start_date=date(2025, 1, 1)))
    with pytest.raises(ValidationError):
        await workflow.renew_contract(contract.id, RenewalRequest(start_date=date(2025, 6, 1)))


@pytest.mark.asyncio
async def test_terminated_contract_cannot_be_renewed(workflow, make_payload) -> None:
    employment = await workflow.submit(contract_employment(make_payload))
    contract = employment.current_contract

    terminated = await workflow.terminate_contract(contract.id, date(2024, 5, 15), "Restructuring")
    assert terminated.contract_status == "Terminated"
    assert terminated.confirmation_status == "Terminated"
    assert terminated.termination_reason == "Restructuring"

    with pytest.raises(ValidationError):
        await workflow.renew_contract(contract.id, RenewalRequest(start_date=date(2025, 1, 1)))


@pytest.mark.asyncio
async def test_probation_extension_and_confirmation(workflow, make_payload) -> None:
    employment = await workflow.submit(
        contract_employment(make_payload, probation_start="2024-01-01", probation_end="2024-03-31")
    )
    contract = employment.current_contract

    extended = await workflow.extend_probation(contract.id, date(2024, 6, 30), "Needs more time on site")
    assert extended.probation_end == date(2024, 6, 30)
    assert extended.probation_extended
    assert extended.confirmation_status == "Extended"

    with pytest.raises(ValidationError):
        await workflow.extend_probation(contract.id, date(2024, 5, 1))

    confirmed = await workflow.confirm_contract(contract.id, performance_rating="Excellent")
    assert confirmed.confirmation_status == "Confirmed"
    assert confirmed.confirmation_date == date(2024, 6, 1)
    assert confirmed.performance_rating == "Excellent"


@pytest.mark.asyncio
async def test_contract_operations_on_missing_contract(workflow) -> None:
    with pytest.raises(NotFoundError):
        await workflow.confirm_contract(12345)
    with pytest.raises(NotFoundError):
        await workflow.contract_history(12345)
