"""Integration tests for the employee API."""
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_create_list_and_fetch_employee(client: AsyncClient) -> None:
    """An identity record can be created, listed and fetched by id."""

    employee_payload = {
        "cnic": "35202-7654321-3",
        "full_name": "Ayesha Siddiqui",
        "father_or_husband_name": "Kamran Siddiqui",
        "mobile_number": "+92-321-7654321",
        "email": "ayesha@example.com",
    }
    create_response = await client.post("/employees/", json=employee_payload)
    assert create_response.status_code == 201
    employee_data = create_response.json()
    assert employee_data["cnic"] == "35202-7654321-3"

    list_response = await client.get("/employees/")
    assert list_response.status_code == 200
    employees = list_response.json()
    assert len(employees) == 1
    assert employees[0]["full_name"] == "Ayesha Siddiqui"

    fetched = await client.get(f"/employees/{employee_data['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["email"] == "ayesha@example.com"


@pytest.mark.asyncio
async def test_duplicate_cnic_is_rejected(client: AsyncClient) -> None:
    payload = {"cnic": "35202-1111111-1", "full_name": "First Holder"}
    assert (await client.post("/employees/", json=payload)).status_code == 201

    response = await client.post("/employees/", json={**payload, "full_name": "Second Holder"})
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_malformed_cnic_reports_field_issue(client: AsyncClient) -> None:
    response = await client.post("/employees/", json={"cnic": "3520212345671", "full_name": "No Dashes"})

    assert response.status_code == 422
    issues = response.json()["detail"]["issues"]
    assert [issue["field"] for issue in issues] == ["cnic"]


@pytest.mark.asyncio
async def test_unknown_employee_returns_404(client: AsyncClient) -> None:
    response = await client.get("/employees/999")
    assert response.status_code == 404
