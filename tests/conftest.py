"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from workflow_support import FrozenClock, RecordingAuditor, RecordingNotifier, build_engine, build_org_store


@pytest.fixture(scope="session")
def app():
    """Create FastAPI application for testing."""
    from leaveflow.main import create_app

    return create_app()


@pytest.fixture(scope="function")
def settings():
    """Create settings instance for testing."""
    from leaveflow.core.config import Settings

    return Settings(environment="testing")


@pytest.fixture
def store():
    return build_org_store()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def auditor():
    return RecordingAuditor()


@pytest.fixture
def engine(store, clock, notifier, auditor):
    return build_engine(store, clock=clock, notifier=notifier, auditor=auditor)


@pytest.fixture
def client(app, store, clock, notifier, auditor):
    """Test client with the engine and delegation service backed by the in-memory store."""
    from leaveflow.services.audit import AuditLogger
    from leaveflow.services.delegation import DelegationService, get_delegation_service
    from leaveflow.services.workflow import get_leave_approval_engine

    engine = build_engine(store, clock=clock, notifier=notifier, auditor=auditor)
    delegations = DelegationService(store, AuditLogger(), clock=clock)
    app.dependency_overrides[get_leave_approval_engine] = lambda: engine
    app.dependency_overrides[get_delegation_service] = lambda: delegations
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
