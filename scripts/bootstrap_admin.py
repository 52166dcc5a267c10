#!/usr/bin/env python3
"""Emit deterministic SQL that grants or revokes Jobly admin rights."""

from __future__ import annotations

import argparse


def _quote_sql(value: str) -> str:
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


def render_sql(*, username: str | None, email: str | None, revoke: bool) -> str:
    flag = "false" if revoke else "true"

    if username:
        target_where = f"username = {_quote_sql(username)}"
    else:
        assert email is not None
        target_where = f"email = {_quote_sql(email)}"

    return f"""-- Jobly admin bootstrap SQL
-- Run this in a privileged Postgres session against the Jobly database.

update users
set is_admin = {flag}
where {target_where}
returning username, is_admin;
"""


def main() -> None:
    parser = argparse.ArgumentParser(description="Emit SQL to grant (or revoke) Jobly admin rights.")
    identity_group = parser.add_mutually_exclusive_group(required=True)
    identity_group.add_argument("--username", help="users.username to update")
    identity_group.add_argument("--email", help="users.email to update")
    parser.add_argument(
        "--revoke",
        action="store_true",
        help="Clear is_admin instead of setting it",
    )
    args = parser.parse_args()

    print(render_sql(username=args.username, email=args.email, revoke=args.revoke))


if __name__ == "__main__":
    main()
