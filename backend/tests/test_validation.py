"""Rule checks and policy shaping of employment payloads."""
from datetime import date

import pytest

from app.schemas import EmploymentPayload
from app.services.validation import apply_policy, collect_issues

TODAY = date(2024, 6, 1)


def sections_for(**fields):
    payload = {
        "employee_id": 1,
        "organization": "PSBA",
        "department_id": 1,
        "designation_id": 3,
        "employment_type": "Regular",
        "effective_from": "2024-01-01",
        "role_tag": "Site Engineer",
        "salary": {"basic_salary": 85000},
        "location": {"district": "lahore", "city": "lahore_city", "type": "HEAD_QUARTER"},
    }
    payload.update(fields)
    return apply_policy(EmploymentPayload(**payload).to_sections())


def issue_keys(sections):
    return {(issue.section, issue.field) for issue in collect_issues(sections, TODAY)}


def test_valid_payload_has_no_issues() -> None:
    assert collect_issues(sections_for(), TODAY) == []


@pytest.mark.parametrize("organization", ["MBWO", "PMBMC", "PSBA", "UNKNOWN"])
def test_policy_application_is_idempotent(organization) -> None:
    once = sections_for(
        organization=organization,
        employment_type="Contract",
        salary={"basic_salary": 50000, "house_rent": 9000, "bank_name_primary": "UBL"},
        contract={"contract_type": "Contractual", "start_date": "2024-01-01", "end_date": "2024-12-31"},
    )
    assert apply_policy(once) == once


def test_hidden_fields_take_organization_defaults() -> None:
    sections = sections_for(
        organization="MBWO",
        employment_type="Contract",
        is_on_probation=True,
        salary={"basic_salary": 40000, "house_rent": 12000, "payment_mode": "Cash"},
        contract={"contract_type": "Contractual", "start_date": "2024-01-01", "end_date": "2024-12-31"},
    )

    employment = sections["employment"]
    assert employment["employment_type"] == "Regular"
    assert employment["department_id"] is None
    assert employment["role_tag"] is None
    assert employment["is_on_probation"] is False
    assert sections["salary"]["house_rent"] == 0
    assert sections["salary"]["payment_mode"] == "Bank Transfer"
    assert sections["location"] is None
    assert sections["contract"] is None


def test_daily_wager_accepts_rate_without_basic_salary() -> None:
    sections = sections_for(employment_type="Daily Wager", salary={"basic_salary": 0, "daily_wage_rate": 1500})
    assert ("salary", "basic_salary") not in issue_keys(sections)


def test_daily_wager_needs_basic_salary_or_rate() -> None:
    sections = sections_for(employment_type="Daily Wager", salary={"basic_salary": 0, "daily_wage_rate": 0})
    assert ("salary", "basic_salary") in issue_keys(sections)


def test_regular_staff_need_positive_basic_salary() -> None:
    sections = sections_for(salary={"basic_salary": 0, "daily_wage_rate": 1500})
    assert ("salary", "basic_salary") in issue_keys(sections)


def test_negative_amounts_are_rejected() -> None:
    sections = sections_for(salary={"basic_salary": 50000, "medical_allowance": -10})
    assert ("salary", "medical_allowance") in issue_keys(sections)


def test_partial_bank_details_flag_missing_members() -> None:
    sections = sections_for(salary={"basic_salary": 50000, "bank_name_primary": "HBL"})
    keys = issue_keys(sections)

    assert ("salary", "bank_account_primary") in keys
    assert ("salary", "bank_branch_code") in keys
    assert ("salary", "bank_name_primary") not in keys


def test_bank_rule_ignores_hidden_bank_fields() -> None:
    sections = sections_for(
        organization="PMBMC",
        salary={"basic_salary": 50000, "bank_name_primary": "HBL"},
        location={"district": "lahore", "city": "lahore_city", "type": "BAZAAR"},
    )
    assert not any(section == "salary" for section, _ in issue_keys(sections))


def test_probation_end_must_be_in_the_future() -> None:
    past = sections_for(is_on_probation=True, probation_end_date="2024-05-01")
    future = sections_for(is_on_probation=True, probation_end_date="2024-09-01")

    assert ("employment", "probation_end_date") in issue_keys(past)
    assert ("employment", "probation_end_date") not in issue_keys(future)


def test_probation_rule_skipped_when_organization_hides_it() -> None:
    sections = sections_for(
        organization="MBWO", is_on_probation=True, probation_end_date="2020-01-01", salary={"basic_salary": 30000}
    )
    assert ("employment", "probation_end_date") not in issue_keys(sections)


def test_contract_dates_must_be_ordered() -> None:
    sections = sections_for(
        employment_type="Contract",
        contract={
            "contract_type": "Contractual",
            "start_date": "2024-06-01",
            "end_date": "2024-01-01",
            "probation_start": "2024-06-01",
            "probation_end": "2024-05-01",
        },
    )
    keys = issue_keys(sections)

    assert ("contract", "end_date") in keys
    assert ("contract", "probation_end") in keys


def test_contract_employment_requires_contract_details() -> None:
    keys = issue_keys(sections_for(employment_type="Contract"))
    assert {("contract", "contract_type"), ("contract", "start_date"), ("contract", "end_date")} <= keys


def test_every_issue_is_reported_at_once() -> None:
    sections = sections_for(
        organization="PSBA",
        role_tag=None,
        employment_type="Freelance",
        effective_till="2023-01-01",
        salary={"basic_salary": -5, "payment_mode": "Barter"},
        location={"district": "lahore", "city": "lahore_city", "type": "BAZAAR"},
    )
    keys = issue_keys(sections)

    assert {
        ("employment", "role_tag"),
        ("employment", "employment_type"),
        ("employment", "effective_till"),
        ("salary", "basic_salary"),
        ("salary", "payment_mode"),
        ("location", "type"),
    } <= keys


def test_unknown_organization_is_an_issue() -> None:
    assert ("employment", "organization") in issue_keys(sections_for(organization="ACME"))
