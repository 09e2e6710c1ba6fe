import pytest
from PySide6.QtCore import QCoreApplication

from app.policy import export_field_policy
from hr_portal.core.events import _WizardEvents
from hr_portal.core.field_policy import FieldPolicy
from hr_portal.wizard.controller import EmploymentWizard
from hr_portal.wizard.drafts import DraftCache


class StubGateway:
    """Stands in for ``api_employment`` and records every submission."""

    def __init__(self):
        self.calls = []
        self.error = None
        self.result = {"id": 101, "employee_id": 7, "is_current": True}

    def _call(self, name, *args):
        self.calls.append((name, *args))
        if self.error is not None:
            raise self.error
        return dict(self.result)

    def create(self, payload):
        return self._call("create", payload)

    def update(self, employment_id, payload):
        return self._call("update", employment_id, payload)

    def supersede(self, employment_id, payload):
        return self._call("supersede", employment_id, payload)


class OfflineGateway:
    """Fails the test if the wizard tries to reach the backend."""

    def __getattr__(self, name):
        raise AssertionError(f"backend contacted: {name}")


@pytest.fixture(scope="session")
def qt_app():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def field_policy():
    return FieldPolicy.from_payload({"field_policy": export_field_policy()})


@pytest.fixture
def drafts(tmp_path):
    return DraftCache(f"sqlite:///{(tmp_path / 'drafts.db').as_posix()}")


@pytest.fixture
def gateway():
    return StubGateway()


@pytest.fixture
def offline_gateway():
    return OfflineGateway()


@pytest.fixture
def events(qt_app):
    return _WizardEvents()


@pytest.fixture
def signals(events):
    received = {"saved": [], "failed": [], "steps": [], "committed": []}
    events.draft_saved.connect(lambda key: received["saved"].append(key))
    events.draft_save_failed.connect(lambda key, msg: received["failed"].append((key, msg)))
    events.step_changed.connect(lambda step: received["steps"].append(step))
    events.employment_committed.connect(lambda aggregate: received["committed"].append(aggregate))
    return received


@pytest.fixture
def make_wizard(field_policy, gateway, drafts, events):
    def factory(employee_id=7, **kwargs):
        kwargs.setdefault("user_id", "clerk")
        kwargs.setdefault("gateway", gateway)
        kwargs.setdefault("drafts", drafts)
        kwargs.setdefault("events", events)
        return EmploymentWizard.start(field_policy, employee_id, **kwargs)

    return factory
