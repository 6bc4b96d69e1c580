"""Pytest configuration and shared fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from policy_engine.domain.models import Base, Employee, EmployeeManager, Organization, Team


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (deselect with '-m \"not integration\"')"
    )


@pytest.fixture
def db_session():
    """Create in-memory database session for testing."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def directory(db_session):
    """
    Two organizations with teams, employees and manager relations.

    Org 1 (Europe/Berlin): team 10 Support, team 11 Sales (inactive)
      100 Anna (team 10), 101 Ben (no team), 102 Clara (team 10, manager),
      103 Dan (admin, no team), 104 Eve (inactive)
    Org 2: team 20, employee 200
    """
    db_session.add_all([
        Organization(id=1, name="Acme", timezone="Europe/Berlin"),
        Organization(id=2, name="Globex", timezone=None),
    ])
    db_session.add_all([
        Team(id=10, organization_id=1, name="Support", is_active=True),
        Team(id=11, organization_id=1, name="Sales", is_active=False),
        Team(id=20, organization_id=2, name="Ops", is_active=True),
    ])
    db_session.add_all([
        Employee(id=100, organization_id=1, team_id=10, first_name="Anna", last_name="Adams", role="employee"),
        Employee(id=101, organization_id=1, team_id=None, first_name="Ben", last_name="Brown", role="employee"),
        Employee(id=102, organization_id=1, team_id=10, first_name="Clara", last_name="Cole", role="manager"),
        Employee(id=103, organization_id=1, team_id=None, first_name="Dan", last_name="Diaz", role="admin"),
        Employee(id=104, organization_id=1, team_id=10, first_name="Eve", last_name="Evans", role="employee",
                 is_active=False),
        Employee(id=200, organization_id=2, team_id=20, first_name="Gus", last_name="Green", role="employee"),
    ])
    db_session.add_all([
        EmployeeManager(employee_id=100, manager_id=102, is_primary=True),
        EmployeeManager(employee_id=100, manager_id=103, is_primary=False),
        EmployeeManager(employee_id=101, manager_id=103, is_primary=False),
        EmployeeManager(employee_id=101, manager_id=102, is_primary=False),
    ])
    db_session.commit()
    return db_session
