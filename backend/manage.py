"""Management commands for the salon backend."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

import click

from salon.core.security import VALID_ROLES, create_principal_token
from salon.db.session import create_tables as create_all_tables

logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@click.group()
def cli() -> None:
    """Entry point for management commands."""


@cli.command("create-tables")
def create_tables() -> None:
    """Create every table (and the slot/attendance unique indexes) if missing."""
    create_all_tables()
    logging.info("Database tables created.")


@cli.command("issue-token")
@click.option("--user-id", type=int, required=True, help="Principal user id (sub).")
@click.option(
    "--role",
    type=click.Choice(VALID_ROLES),
    default="customer",
    show_default=True,
    help="Role carried by the token.",
)
@click.option(
    "--hours",
    type=int,
    default=None,
    help="Lifetime in hours. Defaults to the JWT_EXPIRATION_HOURS setting.",
)
def issue_token(user_id: int, role: str, hours: Optional[int]) -> None:
    """Print a bearer token for calling the API as the given principal."""
    if user_id <= 0:
        raise click.BadParameter("must be a positive integer", param_hint="--user-id")
    expires = timedelta(hours=hours) if hours else None
    click.echo(create_principal_token(user_id, role, expires))


if __name__ == "__main__":
    cli()
