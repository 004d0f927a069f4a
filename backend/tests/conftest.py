from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")


import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from leave_portal.db.base import Base
from leave_portal.db.session import get_db
from leave_portal.main import app
from leave_portal.models.enums import Role
from leave_portal.models.user import User


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def _make_user(db, *, name: str, email: str, role: Role, department: str | None, student_id: str | None = None) -> User:
    user = User(
        name=name,
        email=email,
        hashed_password="not-used",
        role=role,
        department=department,
        student_id=student_id,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def student(db) -> User:
    return _make_user(
        db,
        name="Asha Student",
        email="asha@example.com",
        role=Role.STUDENT,
        department="Computer Science",
        student_id="CS2021001",
    )


@pytest.fixture()
def other_student(db) -> User:
    return _make_user(
        db,
        name="Ravi Student",
        email="ravi@example.com",
        role=Role.STUDENT,
        department="Mechanical",
        student_id="ME2021007",
    )


@pytest.fixture()
def faculty(db) -> User:
    return _make_user(db, name="Dr. Faculty", email="faculty@example.com", role=Role.FACULTY, department="Computer Science")


@pytest.fixture()
def admin(db) -> User:
    return _make_user(db, name="Admin User", email="admin@example.com", role=Role.ADMIN, department=None)


@pytest.fixture()
def client(db):
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    client_instance = TestClient(app)
    try:
        yield client_instance
    finally:
        client_instance.close()
        app.dependency_overrides.clear()
