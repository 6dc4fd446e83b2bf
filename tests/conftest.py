# tests/conftest.py: shared test fixtures
import os
from types import SimpleNamespace

# Use an in-memory SQLite database and keep mail in memory
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["MAIL_BACKEND"] = "memory"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-only-min-32-chars"

import pytest

from worktrack.database import Base, SessionLocal, engine, init_db
from worktrack.models import (
    AccessLevel,
    Company,
    Customer,
    EmailAddress,
    Project,
    ProjectPermission,
    Task,
    TaskUser,
    User,
)
from worktrack.services.mailer import notifications
from worktrack.utils.security import hash_password


@pytest.fixture(scope="function")
def db():
    init_db()
    session = SessionLocal()
    notifications.outbox.clear()
    yield session
    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=engine)


def make_user(db, company, name, email, access_level_id=AccessLevel.PUBLIC, **kwargs):
    user = User(
        company=company,
        name=name,
        email=email,
        hashed_password=hash_password("secret"),
        access_level_id=access_level_id,
        **kwargs
    )
    user.email_addresses.append(EmailAddress(email=email, default=True))
    db.add(user)
    return user


@pytest.fixture
def world(db):
    """
    Acme with one project and one task.

    ann (private level) owns the task, bob (public level) and cara (private
    level) watch it. All three may see unwatched tasks of the project.
    """
    company = Company(name="Acme")
    customer = Customer(company=company, name="Globex")
    project = Project(company=company, customer=customer, name="Website")

    ann = make_user(db, company, "Ann Author", "ann@example.com", AccessLevel.PRIVATE)
    bob = make_user(db, company, "Bob Public", "bob@example.com", AccessLevel.PUBLIC)
    cara = make_user(db, company, "Cara Watcher", "cara@example.com", AccessLevel.PRIVATE)

    for user in (ann, bob, cara):
        project.permissions.append(ProjectPermission(user=user, can_see_unwatched=True))

    task = Task(company=company, project=project, name="Fix login", description="Users can't log in")
    task.add_user(ann, TaskUser.OWNER)
    task.add_user(bob, TaskUser.WATCHER)
    task.add_user(cara, TaskUser.WATCHER)

    db.add_all([company, customer, project, task])
    db.commit()

    return SimpleNamespace(
        company=company,
        customer=customer,
        project=project,
        task=task,
        ann=ann,
        bob=bob,
        cara=cara,
    )


@pytest.fixture
def recalculations(monkeypatch):
    """Records the id of every task whose worked minutes get recalculated"""
    calls = []
    original = Task.recalculate_worked_minutes

    def spy(self, exclude=()):
        calls.append(self.id)
        return original(self, exclude)

    monkeypatch.setattr(Task, "recalculate_worked_minutes", spy)
    return calls
