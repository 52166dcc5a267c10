from __future__ import annotations

import os
from typing import Any

import pytest
from fastapi.testclient import TestClient

from app.core.config import get_settings
from app.core.security import create_token
from app.main import app
from app.services.repository import (
    COMPANY_FIELD_ALIASES,
    JOB_FIELD_ALIASES,
    USER_FIELD_ALIASES,
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryUnauthorizedError,
    RepositoryUnavailableError,
    RepositoryValidationError,
    get_repository,
)
from app.services.sql import sql_for_partial_update


class FakeJoblyRepository:
    def __init__(self) -> None:
        self.available = True
        self.find_companies_calls: list[dict[str, Any]] = []
        self.find_jobs_calls: list[dict[str, Any]] = []
        self.update_calls: list[tuple[str, Any, dict[str, Any]]] = []
        self.companies: dict[str, dict[str, Any]] = {
            handle: {
                "handle": handle,
                "name": name,
                "description": f"Desc{name}",
                "numEmployees": num_employees,
                "logoUrl": f"http://{handle}.img",
            }
            for handle, name, num_employees in (
                ("c1", "C1", 1),
                ("c2", "C2", 2),
                ("c3", "C3", 3),
                ("m1", "Microsoft", 10),
            )
        }
        self.jobs: dict[int, dict[str, Any]] = {
            job_id: {
                "id": job_id,
                "title": title,
                "salary": salary,
                "equity": equity,
                "companyHandle": company_handle,
            }
            for job_id, title, salary, equity, company_handle in (
                (1, "J1", 1, 0.1, "c1"),
                (2, "J2", 2, 0.2, "c2"),
                (3, "J3", 3, 0.0, "c3"),
                (4, "Data Engineer", 150, 0.15, "m1"),
            )
        }
        self.users: dict[str, dict[str, Any]] = {
            username: {
                "username": username,
                "firstName": f"{username.upper()}F",
                "lastName": f"{username.upper()}L",
                "email": f"{username}@user.com",
                "isAdmin": is_admin,
                "password": f"password-{username}",
            }
            for username, is_admin in (("u1", False), ("u2", False), ("a1", True))
        }
        self.applications: set[tuple[str, int]] = set()

    async def ping(self) -> None:
        self._check_available()

    async def create_company(self, **data: Any) -> dict[str, Any]:
        self._check_available()
        if data["handle"] in self.companies:
            raise RepositoryConflictError(f"Duplicate company: {data['handle']}")
        self._check_name_free(data["name"])
        company = {
            "handle": data["handle"],
            "name": data["name"],
            "description": data["description"],
            "numEmployees": data["num_employees"],
            "logoUrl": data["logo_url"],
        }
        self.companies[company["handle"]] = company
        return dict(company)

    async def find_companies(self, **filters: Any) -> list[dict[str, Any]]:
        self._check_available()
        self.find_companies_calls.append(filters)
        rows = sorted(self.companies.values(), key=lambda row: row["name"])
        return [dict(row) for row in rows]

    async def get_company(self, handle: str) -> dict[str, Any]:
        company = self._company_or_raise(handle)
        jobs = [
            {key: job[key] for key in ("id", "title", "salary", "equity")}
            for job in sorted(self.jobs.values(), key=lambda row: row["id"])
            if job["companyHandle"] == handle
        ]
        return {**company, "jobs": jobs}

    async def update_company(self, handle: str, data: dict[str, Any]) -> dict[str, Any]:
        sql_for_partial_update(data, COMPANY_FIELD_ALIASES)
        self.update_calls.append(("company", handle, dict(data)))
        company = self._company_or_raise(handle)
        if "name" in data and data["name"] != company["name"]:
            self._check_name_free(data["name"])
        company.update(data)
        return dict(company)

    async def remove_company(self, handle: str) -> None:
        self._company_or_raise(handle)
        del self.companies[handle]

    async def create_job(self, **data: Any) -> dict[str, Any]:
        self._check_available()
        for job in self.jobs.values():
            if job["title"] == data["title"] and job["companyHandle"] == data["company_handle"]:
                raise RepositoryConflictError(f"Duplicate job: {data['title']} at company {data['company_handle']}")
        if data["company_handle"] not in self.companies:
            raise RepositoryValidationError(f"No company: {data['company_handle']}")
        job_id = max(self.jobs, default=0) + 1
        job = {
            "id": job_id,
            "title": data["title"],
            "salary": data["salary"],
            "equity": data["equity"],
            "companyHandle": data["company_handle"],
        }
        self.jobs[job_id] = job
        return dict(job)

    async def find_jobs(self, **filters: Any) -> list[dict[str, Any]]:
        self._check_available()
        self.find_jobs_calls.append(filters)
        rows = sorted(self.jobs.values(), key=lambda row: row["title"])
        return [dict(row) for row in rows]

    async def get_job(self, job_id: int | str) -> dict[str, Any]:
        return dict(self._job_or_raise(job_id))

    async def update_job(self, job_id: int | str, data: dict[str, Any]) -> dict[str, Any]:
        sql_for_partial_update(data, JOB_FIELD_ALIASES)
        self.update_calls.append(("job", job_id, dict(data)))
        job = self._job_or_raise(job_id)
        if "companyHandle" in data and data["companyHandle"] not in self.companies:
            raise RepositoryValidationError(f"No company: {data['companyHandle']}")
        job.update(data)
        return dict(job)

    async def remove_job(self, job_id: int | str) -> None:
        job = self._job_or_raise(job_id)
        del self.jobs[job["id"]]

    async def register_user(self, **data: Any) -> dict[str, Any]:
        self._check_available()
        if data["username"] in self.users:
            raise RepositoryConflictError(f"Duplicate username: {data['username']}")
        user = {
            "username": data["username"],
            "firstName": data["first_name"],
            "lastName": data["last_name"],
            "email": data["email"],
            "isAdmin": data["is_admin"],
            "password": data["password"],
        }
        self.users[user["username"]] = user
        return self._public_user(user)

    async def authenticate_user(self, username: str, password: str) -> dict[str, Any]:
        self._check_available()
        user = self.users.get(username)
        if user is None or user["password"] != password:
            raise RepositoryUnauthorizedError("Invalid username/password")
        return self._public_user(user)

    async def find_users(self) -> list[dict[str, Any]]:
        self._check_available()
        return [self._public_user(user) for _, user in sorted(self.users.items())]

    async def get_user(self, username: str) -> dict[str, Any]:
        user = self._user_or_raise(username)
        jobs = sorted(job_id for applicant, job_id in self.applications if applicant == username)
        return {**self._public_user(user), "jobs": jobs}

    async def update_user(self, username: str, data: dict[str, Any]) -> dict[str, Any]:
        sql_for_partial_update(data, USER_FIELD_ALIASES)
        self.update_calls.append(("user", username, dict(data)))
        user = self._user_or_raise(username)
        user.update(data)
        return self._public_user(user)

    async def remove_user(self, username: str) -> None:
        self._user_or_raise(username)
        del self.users[username]

    async def apply_to_job(self, username: str, job_id: int | str) -> None:
        job = self._job_or_raise(job_id)
        self._user_or_raise(username)
        key = (username, job["id"])
        if key in self.applications:
            raise RepositoryConflictError(f"{username} already applied to job {job_id}")
        self.applications.add(key)

    def _check_available(self) -> None:
        if not self.available:
            raise RepositoryUnavailableError("database unavailable")

    def _check_name_free(self, name: str) -> None:
        if any(company["name"] == name for company in self.companies.values()):
            raise RepositoryConflictError(f"Duplicate company name: {name}")

    def _company_or_raise(self, handle: str) -> dict[str, Any]:
        self._check_available()
        company = self.companies.get(handle)
        if company is None:
            raise RepositoryNotFoundError(f"No company: {handle}")
        return company

    def _job_or_raise(self, job_id: int | str) -> dict[str, Any]:
        self._check_available()
        job = None
        if isinstance(job_id, int) or (job_id.isascii() and job_id.isdigit()):
            job = self.jobs.get(int(job_id))
        if job is None:
            raise RepositoryNotFoundError(f"No job: {job_id}")
        return job

    def _user_or_raise(self, username: str) -> dict[str, Any]:
        self._check_available()
        user = self.users.get(username)
        if user is None:
            raise RepositoryNotFoundError(f"No user: {username}")
        return user

    @staticmethod
    def _public_user(user: dict[str, Any]) -> dict[str, Any]:
        return {key: value for key, value in user.items() if key != "password"}


def bearer(username: str, *, is_admin: bool = False) -> dict[str, str]:
    token = create_token({"username": username, "isAdmin": is_admin})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("JOBLY_BCRYPT_ROUNDS", "4")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_repo() -> FakeJoblyRepository:
    return FakeJoblyRepository()


@pytest.fixture
def client(fake_repo: FakeJoblyRepository) -> TestClient:
    app.dependency_overrides[get_repository] = lambda: fake_repo

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def u1_headers() -> dict[str, str]:
    return bearer("u1")


@pytest.fixture
def a1_headers() -> dict[str, str]:
    return bearer("a1", is_admin=True)


@pytest.fixture(scope="session")
def database_url() -> str:
    url = os.getenv("JOBLY_DATABASE_URL") or os.getenv("DATABASE_URL")
    if not url:
        pytest.skip("integration tests require JOBLY_DATABASE_URL or DATABASE_URL")
    return url


@pytest.fixture
def auth_headers():
    return bearer
