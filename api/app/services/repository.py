from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from functools import lru_cache
from typing import Any

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc

from app.core.config import get_settings
from app.core.security import hash_password, verify_password
from app.services.errors import (
    RepositoryConflictError,
    RepositoryError,
    RepositoryNotFoundError,
    RepositoryUnauthorizedError,
    RepositoryUnavailableError,
    RepositoryValidationError,
)
from app.services.sql import sql_for_partial_update

__all__ = [
    "PostgresRepository",
    "RepositoryConflictError",
    "RepositoryError",
    "RepositoryNotFoundError",
    "RepositoryUnauthorizedError",
    "RepositoryUnavailableError",
    "RepositoryValidationError",
    "get_repository",
]

# API field name -> column name; fields missing here share the column name.
COMPANY_FIELD_ALIASES = {"numEmployees": "num_employees", "logoUrl": "logo_url"}
JOB_FIELD_ALIASES = {"companyHandle": "company_handle"}
USER_FIELD_ALIASES = {"firstName": "first_name", "lastName": "last_name", "isAdmin": "is_admin"}

COMPANY_COLUMNS = "handle, name, description, num_employees, logo_url"
JOB_COLUMNS = "id, title, salary, equity, company_handle"
USER_COLUMNS = "username, first_name, last_name, email, is_admin"


class PostgresRepository:
    def __init__(
        self,
        database_url: str | None,
        min_pool_size: int,
        max_pool_size: int,
    ) -> None:
        self.database_url = database_url
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self._pool: asyncpg.Pool | None = None

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def ping(self) -> None:
        pool = await self._get_pool()
        await pool.fetchval("select 1")

    # Companies

    async def create_company(
        self,
        *,
        handle: str,
        name: str,
        description: str,
        num_employees: int | None = None,
        logo_url: str | None = None,
    ) -> dict[str, Any]:
        pool = await self._get_pool()
        duplicate = await pool.fetchrow("select handle from companies where handle = $1", handle)
        if duplicate:
            raise RepositoryConflictError(f"Duplicate company: {handle}")

        try:
            row = await pool.fetchrow(
                f"""
                insert into companies (handle, name, description, num_employees, logo_url)
                values ($1, $2, $3, $4, $5)
                returning {COMPANY_COLUMNS}
                """,
                handle,
                name,
                description,
                num_employees,
                logo_url,
            )
        except pg_exc.UniqueViolationError as exc:
            raise RepositoryConflictError(f"Duplicate company name: {name}") from exc
        return self._company_row_to_dict(row)

    async def find_companies(
        self,
        *,
        min_employees: int | None = None,
        max_employees: int | None = None,
        name_like: str | None = None,
    ) -> list[dict[str, Any]]:
        """List companies, narrowed by every filter that is not None (AND-ed), ordered by name."""
        pool = await self._get_pool()
        conditions: list[str] = []
        params: list[Any] = []

        def bind(value: Any) -> str:
            params.append(value)
            return f"${len(params)}"

        if min_employees is not None:
            conditions.append(f"num_employees >= {bind(min_employees)}")
        if max_employees is not None:
            conditions.append(f"num_employees <= {bind(max_employees)}")
        if name_like is not None:
            conditions.append(f"name ilike {bind(f'%{name_like}%')}")

        query = f"select {COMPANY_COLUMNS} from companies"
        if conditions:
            query += " where " + " and ".join(conditions)
        query += " order by name"

        rows = await pool.fetch(query, *params)
        return [self._company_row_to_dict(row) for row in rows]

    async def get_company(self, handle: str) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(f"select {COMPANY_COLUMNS} from companies where handle = $1", handle)
        if not row:
            raise RepositoryNotFoundError(f"No company: {handle}")

        company = self._company_row_to_dict(row)
        job_rows = await pool.fetch(
            """
            select id, title, salary, equity
            from jobs
            where company_handle = $1
            order by id
            """,
            handle,
        )
        company["jobs"] = [
            {
                "id": job_row["id"],
                "title": job_row["title"],
                "salary": job_row["salary"],
                "equity": self._coerce_float(job_row["equity"]),
            }
            for job_row in job_rows
        ]
        return company

    async def update_company(self, handle: str, data: Mapping[str, Any]) -> dict[str, Any]:
        update = sql_for_partial_update(data, COMPANY_FIELD_ALIASES)
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                update companies
                set {update.set_clause}
                where handle = {update.next_placeholder}
                returning {COMPANY_COLUMNS}
                """,
                *update.values,
                handle,
            )
        except pg_exc.UniqueViolationError as exc:
            raise RepositoryConflictError(f"Duplicate company name: {data.get('name')}") from exc
        if not row:
            raise RepositoryNotFoundError(f"No company: {handle}")
        return self._company_row_to_dict(row)

    async def remove_company(self, handle: str) -> None:
        pool = await self._get_pool()
        row = await pool.fetchrow("delete from companies where handle = $1 returning handle", handle)
        if not row:
            raise RepositoryNotFoundError(f"No company: {handle}")

    # Jobs

    async def create_job(
        self,
        *,
        title: str,
        salary: int | None,
        equity: float | None,
        company_handle: str,
    ) -> dict[str, Any]:
        pool = await self._get_pool()
        duplicate = await pool.fetchrow(
            "select id from jobs where title = $1 and company_handle = $2",
            title,
            company_handle,
        )
        if duplicate:
            raise RepositoryConflictError(f"Duplicate job: {title} at company {company_handle}")

        try:
            row = await pool.fetchrow(
                f"""
                insert into jobs (title, salary, equity, company_handle)
                values ($1, $2, $3, $4)
                returning {JOB_COLUMNS}
                """,
                title,
                salary,
                self._coerce_numeric(equity),
                company_handle,
            )
        except pg_exc.ForeignKeyViolationError as exc:
            raise RepositoryValidationError(f"No company: {company_handle}") from exc
        return self._job_row_to_dict(row)

    async def find_jobs(
        self,
        *,
        min_salary: int | None = None,
        has_equity: bool | None = None,
        title_like: str | None = None,
    ) -> list[dict[str, Any]]:
        """List jobs ordered by title.

        ``has_equity`` only narrows when true: False and None both leave equity unfiltered.
        """
        pool = await self._get_pool()
        conditions: list[str] = []
        params: list[Any] = []

        def bind(value: Any) -> str:
            params.append(value)
            return f"${len(params)}"

        if min_salary is not None:
            conditions.append(f"salary >= {bind(min_salary)}")
        if has_equity:
            conditions.append("equity > 0")
        if title_like is not None:
            conditions.append(f"title ilike {bind(f'%{title_like}%')}")

        query = f"select {JOB_COLUMNS} from jobs"
        if conditions:
            query += " where " + " and ".join(conditions)
        query += " order by title"

        rows = await pool.fetch(query, *params)
        return [self._job_row_to_dict(row) for row in rows]

    async def get_job(self, job_id: int | str) -> dict[str, Any]:
        normalized_id = self._require_job_id(job_id)
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(f"select {JOB_COLUMNS} from jobs where id = $1", normalized_id)
        except asyncpg.DataError as exc:
            raise RepositoryNotFoundError(f"No job: {job_id}") from exc
        if not row:
            raise RepositoryNotFoundError(f"No job: {job_id}")
        return self._job_row_to_dict(row)

    async def update_job(self, job_id: int | str, data: Mapping[str, Any]) -> dict[str, Any]:
        payload = dict(data)
        if "equity" in payload:
            payload["equity"] = self._coerce_numeric(payload["equity"])
        update = sql_for_partial_update(payload, JOB_FIELD_ALIASES)
        normalized_id = self._require_job_id(job_id)
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                update jobs
                set {update.set_clause}
                where id = {update.next_placeholder}
                returning {JOB_COLUMNS}
                """,
                *update.values,
                normalized_id,
            )
        except pg_exc.ForeignKeyViolationError as exc:
            raise RepositoryValidationError(f"No company: {payload.get('companyHandle')}") from exc
        except asyncpg.DataError as exc:
            raise RepositoryNotFoundError(f"No job: {job_id}") from exc
        if not row:
            raise RepositoryNotFoundError(f"No job: {job_id}")
        return self._job_row_to_dict(row)

    async def remove_job(self, job_id: int | str) -> None:
        normalized_id = self._require_job_id(job_id)
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow("delete from jobs where id = $1 returning id", normalized_id)
        except asyncpg.DataError as exc:
            raise RepositoryNotFoundError(f"No job: {job_id}") from exc
        if not row:
            raise RepositoryNotFoundError(f"No job: {job_id}")

    # Users

    async def register_user(
        self,
        *,
        username: str,
        password: str,
        first_name: str,
        last_name: str,
        email: str,
        is_admin: bool = False,
    ) -> dict[str, Any]:
        pool = await self._get_pool()
        duplicate = await pool.fetchrow("select username from users where username = $1", username)
        if duplicate:
            raise RepositoryConflictError(f"Duplicate username: {username}")

        row = await pool.fetchrow(
            f"""
            insert into users (username, password, first_name, last_name, email, is_admin)
            values ($1, $2, $3, $4, $5, $6)
            returning {USER_COLUMNS}
            """,
            username,
            hash_password(password),
            first_name,
            last_name,
            email,
            bool(is_admin),
        )
        return self._user_row_to_dict(row)

    async def authenticate_user(self, username: str, password: str) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"select {USER_COLUMNS}, password from users where username = $1",
            username,
        )
        if row and verify_password(password, row["password"]):
            return self._user_row_to_dict(row)
        raise RepositoryUnauthorizedError("Invalid username/password")

    async def find_users(self) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        rows = await pool.fetch(f"select {USER_COLUMNS} from users order by username")
        return [self._user_row_to_dict(row) for row in rows]

    async def get_user(self, username: str) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(f"select {USER_COLUMNS} from users where username = $1", username)
        if not row:
            raise RepositoryNotFoundError(f"No user: {username}")

        user = self._user_row_to_dict(row)
        application_rows = await pool.fetch(
            "select job_id from applications where username = $1 order by job_id",
            username,
        )
        user["jobs"] = [application_row["job_id"] for application_row in application_rows]
        return user

    async def update_user(self, username: str, data: Mapping[str, Any]) -> dict[str, Any]:
        payload = dict(data)
        if payload.get("password") is not None:
            payload["password"] = hash_password(payload["password"])
        update = sql_for_partial_update(payload, USER_FIELD_ALIASES)
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            update users
            set {update.set_clause}
            where username = {update.next_placeholder}
            returning {USER_COLUMNS}
            """,
            *update.values,
            username,
        )
        if not row:
            raise RepositoryNotFoundError(f"No user: {username}")
        return self._user_row_to_dict(row)

    async def remove_user(self, username: str) -> None:
        pool = await self._get_pool()
        row = await pool.fetchrow("delete from users where username = $1 returning username", username)
        if not row:
            raise RepositoryNotFoundError(f"No user: {username}")

    async def apply_to_job(self, username: str, job_id: int | str) -> None:
        normalized_id = self._require_job_id(job_id)
        pool = await self._get_pool()
        try:
            job_row = await pool.fetchrow("select id from jobs where id = $1", normalized_id)
        except asyncpg.DataError as exc:
            raise RepositoryNotFoundError(f"No job: {job_id}") from exc
        if not job_row:
            raise RepositoryNotFoundError(f"No job: {job_id}")
        user_row = await pool.fetchrow("select username from users where username = $1", username)
        if not user_row:
            raise RepositoryNotFoundError(f"No user: {username}")

        try:
            await pool.execute(
                "insert into applications (job_id, username) values ($1, $2)",
                normalized_id,
                username,
            )
        except pg_exc.UniqueViolationError as exc:
            raise RepositoryConflictError(f"{username} already applied to job {job_id}") from exc

    async def _get_pool(self) -> asyncpg.Pool:
        if not self.database_url:
            raise RepositoryUnavailableError("JOBLY_DATABASE_URL is required")

        if self._pool is not None:
            return self._pool

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self.database_url,
                min_size=self.min_pool_size,
                max_size=self.max_pool_size,
                command_timeout=15,
            )
            return self._pool
        except Exception as exc:  # pragma: no cover - depends on environment
            raise RepositoryUnavailableError("database unavailable") from exc

    @staticmethod
    def _company_row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        return {
            "handle": row["handle"],
            "name": row["name"],
            "description": row["description"],
            "numEmployees": row["num_employees"],
            "logoUrl": row["logo_url"],
        }

    @classmethod
    def _job_row_to_dict(cls, row: asyncpg.Record) -> dict[str, Any]:
        return {
            "id": row["id"],
            "title": row["title"],
            "salary": row["salary"],
            "equity": cls._coerce_float(row["equity"]),
            "companyHandle": row["company_handle"],
        }

    @staticmethod
    def _user_row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        return {
            "username": row["username"],
            "firstName": row["first_name"],
            "lastName": row["last_name"],
            "email": row["email"],
            "isAdmin": bool(row["is_admin"]),
        }

    @classmethod
    def _require_job_id(cls, job_id: int | str) -> int:
        normalized = cls._coerce_int(job_id)
        if normalized is None:
            raise RepositoryNotFoundError(f"No job: {job_id}")
        return normalized

    @staticmethod
    def _coerce_int(value: Any) -> int | None:
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, str) and not (value.isascii() and value.isdigit()):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _coerce_float(value: Any) -> float | None:
        if value is None:
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _coerce_numeric(value: Any) -> Decimal | None:
        # numeric columns bind as Decimal.
        if value is None:
            return None
        return Decimal(str(value))


@lru_cache
def get_repository() -> PostgresRepository:
    settings = get_settings()
    return PostgresRepository(
        database_url=settings.database_url,
        min_pool_size=settings.database_pool_min_size,
        max_pool_size=settings.database_pool_max_size,
    )
