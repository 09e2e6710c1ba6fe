from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

import requests

from .. import config

logger = logging.getLogger(__name__)


class EmploymentAPIError(Exception):
    """Raised for employment API problems (4xx/5xx, bad payloads, etc.)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        issues: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.issues = list(issues or [])

    @property
    def retryable(self) -> bool:
        return False


class SubmissionRejected(EmploymentAPIError):
    """The backend refused the payload (422); ``issues`` holds per-field errors."""


class InvalidSelection(EmploymentAPIError):
    """A referenced employee, department or designation does not exist (400)."""


class RetryableSubmissionError(EmploymentAPIError):
    """Storage or network failure; the same payload may be resubmitted."""

    @property
    def retryable(self) -> bool:
        return True


_session = requests.Session()


def _jsonable(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def _error_from_response(resp: requests.Response) -> EmploymentAPIError:
    try:
        body = resp.json()
    except ValueError:
        body = None

    detail = body.get("detail") if isinstance(body, dict) else None
    issues: List[Dict[str, Any]] = []
    retryable = False
    if isinstance(detail, dict):
        message = str(detail.get("message") or resp.reason or "Request failed")
        issues = [i for i in detail.get("issues") or [] if isinstance(i, dict)]
        retryable = bool(detail.get("retryable"))
    elif detail:
        message = str(detail)
    else:
        message = resp.text or resp.reason or f"HTTP {resp.status_code}"

    status = resp.status_code
    if status == 422:
        return SubmissionRejected(message, status, issues)
    if status == 400:
        return InvalidSelection(message, status, issues)
    if retryable or status == 503:
        return RetryableSubmissionError(message, status, issues)
    return EmploymentAPIError(message, status, issues)


def _request(method: str, path: str, **kwargs) -> requests.Response:
    """
    Internal helper to send a request and translate the backend error body.
    """
    url = f"{config.api_base_url()}{path}"
    if "json" in kwargs:
        kwargs["json"] = _jsonable(kwargs["json"])

    try:
        resp = _session.request(
            method,
            url,
            headers={"Accept": "application/json"},
            timeout=config.request_timeout(),
            **kwargs,
        )
    except requests.RequestException as exc:
        raise RetryableSubmissionError(f"Unable to reach backend at {url}: {exc}") from exc

    if resp.status_code >= 400:
        error = _error_from_response(resp)
        logger.info("%s %s failed with %s: %s", method, path, resp.status_code, error.message)
        raise error
    return resp


class EmploymentAPI:
    """
    Employment endpoints used by the wizard and the CLI.

    Every method returns plain dicts decoded from the JSON response.
    """

    # ---------- reference data ----------

    def form_options(self) -> Dict[str, Any]:
        return _request("GET", "/employment/form-options").json()

    def designations(self, department_id: int) -> List[Dict[str, Any]]:
        return _request("GET", f"/employment/designations/{department_id}").json()

    # ---------- employees ----------

    def list_employees(self) -> List[Dict[str, Any]]:
        return _request("GET", "/employees/").json()

    def get_employee(self, employee_id: int) -> Dict[str, Any]:
        return _request("GET", f"/employees/{employee_id}").json()

    def create_employee(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return _request("POST", "/employees/", json=payload).json()

    # ---------- employment aggregate ----------

    def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return _request("POST", "/employment/", json=payload).json()

    def get(self, employment_id: int) -> Dict[str, Any]:
        return _request("GET", f"/employment/{employment_id}").json()

    def update(self, employment_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        return _request("PUT", f"/employment/{employment_id}", json=payload).json()

    def supersede(self, employment_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        return _request("POST", f"/employment/{employment_id}/supersede", json=payload).json()

    def delete(self, employment_id: int) -> None:
        _request("DELETE", f"/employment/{employment_id}")

    def history(self, employee_id: int) -> List[Dict[str, Any]]:
        return _request("GET", f"/employment/employee/{employee_id}").json()

    # ---------- contracts ----------

    def contracts(self, employment_id: int) -> List[Dict[str, Any]]:
        return _request("GET", f"/employment/{employment_id}/contracts").json()

    def renew_contract(self, contract_id: int, renewal: Dict[str, Any]) -> Dict[str, Any]:
        return _request("POST", f"/employment/contracts/{contract_id}/renew", json=renewal).json()

    def extend_probation(
        self, contract_id: int, new_probation_end: date | str, reason: Optional[str] = None
    ) -> Dict[str, Any]:
        body = {"new_probation_end": new_probation_end, "reason": reason}
        return _request("POST", f"/employment/contracts/{contract_id}/extend-probation", json=body).json()

    def confirm_contract(
        self,
        contract_id: int,
        confirmation_date: date | str | None = None,
        performance_rating: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = {"confirmation_date": confirmation_date, "performance_rating": performance_rating}
        return _request("POST", f"/employment/contracts/{contract_id}/confirm", json=body).json()

    def terminate_contract(
        self,
        contract_id: int,
        termination_date: date | str | None = None,
        reason: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = {"termination_date": termination_date, "reason": reason}
        return _request("POST", f"/employment/contracts/{contract_id}/terminate", json=body).json()


# Shared instance imported by the wizard and the CLI.
api_employment = EmploymentAPI()
