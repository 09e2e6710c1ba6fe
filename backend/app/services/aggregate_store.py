"""Transactional persistence for employment aggregates.

An aggregate is one ``Employment`` row plus its salary, location and
contract rows. Every write runs inside a single transaction: the employment
row is flushed first, then the dependent rows. Any failure rolls the whole
unit back, so a caller never sees an employment without the sub-records it
was submitted with.

Concurrent updates to the same employment are last-writer-wins.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable

from sqlalchemy import delete, exists, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from ..errors import FieldIssue, NotFoundError, PersistenceError, ReferentialError, ValidationError
from ..models import (
    Contract,
    Department,
    Designation,
    Employee,
    Employment,
    EmploymentLocation,
    EmploymentSalary,
)

logger = logging.getLogger(__name__)

# Contract columns that define the agreed terms; once a contract is confirmed
# these change only through renewal.
CONTRACT_TERMS = ("contract_type", "start_date", "end_date", "probation_start", "probation_end")


def _aggregate_query():
    return (
        select(Employment)
        .options(
            joinedload(Employment.salary),
            joinedload(Employment.location),
            joinedload(Employment.department),
            joinedload(Employment.designation),
            selectinload(Employment.contracts),
        )
        .execution_options(populate_existing=True)
    )


def _assign(row: Any, values: dict[str, Any]) -> None:
    for key, value in values.items():
        setattr(row, key, value)


def _non_null(values: dict[str, Any]) -> dict[str, Any]:
    # Column defaults apply to omitted values on insert.
    return {key: value for key, value in values.items() if value is not None}


class EmploymentAggregateStore:
    """Owns reads and writes of employment aggregates for one session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def get_aggregate(self, employment_id: int) -> Employment:
        async with self.session.begin():
            return await self._load(employment_id)

    async def list_for_employee(self, employee_id: int) -> list[Employment]:
        """Employment history of one employee, oldest first."""

        async with self.session.begin():
            result = await self.session.execute(
                _aggregate_query()
                .where(Employment.employee_id == employee_id)
                .order_by(Employment.effective_from, Employment.id)
            )
            return list(result.unique().scalars().all())

    async def is_superseded(self, employment_id: int) -> bool:
        async with self.session.begin():
            return await self._is_superseded(employment_id)

    async def get_contract(self, contract_id: int) -> Contract:
        async with self.session.begin():
            return await self._contract(contract_id)

    async def contract_history(self, employment_id: int) -> list[Contract]:
        async with self.session.begin():
            if await self.session.get(Employment, employment_id) is None:
                raise NotFoundError(f"Employment {employment_id} not found")
            result = await self.session.execute(
                select(Contract)
                .where(Contract.employment_id == employment_id)
                .order_by(Contract.start_date, Contract.id)
                .execution_options(populate_existing=True)
            )
            return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Aggregate writes
    # ------------------------------------------------------------------
    async def create_employment_aggregate(self, sections: dict[str, Any]) -> Employment:
        """Insert an employment with its salary, location and contract in one transaction."""

        values = dict(sections["employment"])
        await self._precheck(values)

        try:
            async with self._write():
                await self._check_references(values)
                employment = Employment(**_non_null(values))
                self.session.add(employment)
                await self.session.flush()

                if sections.get("salary") is not None:
                    self.session.add(
                        EmploymentSalary(employment_id=employment.id, **_non_null(sections["salary"]))
                    )
                if sections.get("location") is not None:
                    self.session.add(
                        EmploymentLocation(employment_id=employment.id, **_non_null(sections["location"]))
                    )
                if sections.get("contract") is not None:
                    self.session.add(
                        Contract(employment_id=employment.id, **_non_null(sections["contract"]))
                    )
                await self.session.flush()
                employment_id = employment.id
        except SQLAlchemyError as exc:
            logger.error("Rolled back employment create for employee %s: %s", values.get("employee_id"), exc)
            raise PersistenceError("Could not save the employment record", exc) from exc

        logger.info(
            "Created employment %s for employee %s (%s)",
            employment_id,
            values.get("employee_id"),
            values.get("organization"),
        )
        return await self.get_aggregate(employment_id)

    async def update_employment_aggregate(self, employment_id: int, sections: dict[str, Any]) -> Employment:
        """Update an employment and upsert its dependents in one transaction."""

        values = dict(sections["employment"])
        await self._precheck(values)

        try:
            async with self._write():
                employment = await self.session.get(Employment, employment_id)
                if employment is None:
                    raise NotFoundError(f"Employment {employment_id} not found")
                await self._check_references(values)
                _assign(employment, values)
                await self.session.flush()

                if sections.get("salary") is not None:
                    await self._upsert_one_to_one(EmploymentSalary, employment_id, sections["salary"])
                if sections.get("location") is not None:
                    await self._upsert_one_to_one(EmploymentLocation, employment_id, sections["location"])
                if sections.get("contract") is not None:
                    await self._apply_contract(employment_id, sections["contract"])
                await self.session.flush()
        except SQLAlchemyError as exc:
            logger.error("Rolled back update of employment %s: %s", employment_id, exc)
            raise PersistenceError("Could not save the employment record", exc) from exc

        logger.info("Updated employment %s", employment_id)
        return await self.get_aggregate(employment_id)

    async def delete_employment_aggregate(self, employment_id: int) -> None:
        """Delete an employment; salary, location and contracts cascade."""

        try:
            async with self._write():
                if await self.session.get(Employment, employment_id) is None:
                    raise NotFoundError(f"Employment {employment_id} not found")
                await self.session.execute(delete(Employment).where(Employment.id == employment_id))
        except SQLAlchemyError as exc:
            logger.error("Rolled back delete of employment %s: %s", employment_id, exc)
            raise PersistenceError("Could not delete the employment record", exc) from exc
        self.session.expunge_all()
        logger.info("Deleted employment %s", employment_id)

    # ------------------------------------------------------------------
    # Contract writes
    # ------------------------------------------------------------------
    async def renew_contract(
        self,
        old_contract_id: int,
        old_changes: dict[str, Any],
        new_values: dict[str, Any],
    ) -> Contract:
        """Close ``old_contract_id`` and insert its successor atomically."""

        try:
            async with self._write():
                old = await self._contract(old_contract_id)
                if old.is_renewed:
                    raise ValidationError.single(
                        "contract", "is_renewed", f"Contract {old_contract_id} has already been renewed"
                    )
                _assign(old, old_changes)
                await self.session.flush()

                successor = Contract(
                    employment_id=old.employment_id,
                    renewal_from_contract_id=old.id,
                    **_non_null(new_values),
                )
                self.session.add(successor)
                await self.session.flush()
                await self.session.refresh(successor)
        except SQLAlchemyError as exc:
            logger.error("Rolled back renewal of contract %s: %s", old_contract_id, exc)
            raise PersistenceError("Could not renew the contract", exc) from exc

        logger.info(
            "Renewed contract %s as %s (renewal #%s)",
            old_contract_id,
            successor.id,
            successor.renewal_count,
        )
        return successor

    async def save_contract(self, contract_id: int, changes: dict[str, Any]) -> Contract:
        try:
            async with self._write():
                contract = await self._contract(contract_id)
                _assign(contract, changes)
                await self.session.flush()
                await self.session.refresh(contract)
        except SQLAlchemyError as exc:
            logger.error("Rolled back update of contract %s: %s", contract_id, exc)
            raise PersistenceError("Could not save the contract", exc) from exc
        return contract

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _write(self):
        # Instances handed out earlier are detached first, so a rollback of this
        # transaction cannot expire them under their holders.
        self.session.expunge_all()
        return self.session.begin()

    async def _load(self, employment_id: int) -> Employment:
        result = await self.session.execute(_aggregate_query().where(Employment.id == employment_id))
        employment = result.unique().scalar_one_or_none()
        if employment is None:
            raise NotFoundError(f"Employment {employment_id} not found")
        return employment

    async def _contract(self, contract_id: int) -> Contract:
        result = await self.session.execute(
            select(Contract).where(Contract.id == contract_id).execution_options(populate_existing=True)
        )
        contract = result.scalar_one_or_none()
        if contract is None:
            raise NotFoundError(f"Contract {contract_id} not found")
        return contract

    async def _is_superseded(self, employment_id: int) -> bool:
        result = await self.session.execute(
            select(exists().where(Employment.supersedes_id == employment_id))
        )
        return bool(result.scalar())

    async def _precheck(self, values: dict[str, Any]) -> None:
        async with self.session.begin():
            await self._check_references(values)

    async def _check_references(self, values: dict[str, Any]) -> None:
        issues: list[FieldIssue] = []

        employee_id = values.get("employee_id")
        if "employee_id" in values and (
            employee_id is None or await self.session.get(Employee, employee_id) is None
        ):
            issues.append(FieldIssue("employment", "employee_id", f"Employee {employee_id} does not exist"))

        department_id = values.get("department_id")
        if department_id is not None and await self.session.get(Department, department_id) is None:
            issues.append(
                FieldIssue("employment", "department_id", f"Department {department_id} does not exist")
            )

        designation_id = values.get("designation_id")
        if designation_id is not None:
            designation = await self.session.get(Designation, designation_id)
            if designation is None:
                issues.append(
                    FieldIssue("employment", "designation_id", f"Designation {designation_id} does not exist")
                )
            elif department_id is not None and designation.department_id != department_id:
                issues.append(
                    FieldIssue(
                        "employment",
                        "designation_id",
                        f"Designation {designation_id} does not belong to department {department_id}",
                    )
                )

        if issues:
            raise ReferentialError("Referenced records do not exist", issues)

    async def _upsert_one_to_one(self, model, employment_id: int, values: dict[str, Any]) -> None:
        result = await self.session.execute(select(model).where(model.employment_id == employment_id))
        row = result.scalar_one_or_none()
        if row is None:
            self.session.add(model(employment_id=employment_id, **_non_null(values)))
        else:
            _assign(row, values)

    async def _current_contract(self, employment_id: int) -> Contract | None:
        result = await self.session.execute(
            select(Contract)
            .where(
                Contract.employment_id == employment_id,
                Contract.is_renewed.is_(False),
                Contract.contract_status != "Renewed",
            )
            .order_by(Contract.start_date.desc(), Contract.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _apply_contract(self, employment_id: int, values: dict[str, Any]) -> None:
        current = await self._current_contract(employment_id)
        if current is None:
            self.session.add(Contract(employment_id=employment_id, **_non_null(values)))
            return
        if current.confirmation_status == "In Progress":
            _assign(current, values)
            return

        changed = _changed_terms(current, values, CONTRACT_TERMS)
        if changed:
            raise ValidationError(
                [
                    FieldIssue(
                        "contract",
                        name,
                        "Terms of a confirmed contract cannot be edited; renew the contract instead",
                    )
                    for name in changed
                ]
            )
        _assign(current, {k: v for k, v in values.items() if k not in CONTRACT_TERMS})


def _changed_terms(row: Any, values: dict[str, Any], names: Iterable[str]) -> list[str]:
    return [name for name in names if name in values and getattr(row, name) != values[name]]
