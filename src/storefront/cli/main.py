"""Storefront CLI — operator tasks that should not be HTTP endpoints.

Usage:
    storefront init-db                                    # Create tables
    storefront create-admin --email a@b.co --name Ada     # Prompts for password
    storefront serve                                      # Run the API with uvicorn
"""

import asyncio
import sys

import click

from storefront.config import load_settings
from storefront.db.engine import build_engine, build_session_factory
from storefront.db.models import Base
from storefront.errors import ConfigurationError, Conflict
from storefront.services.user_service import UserService


def _settings():
    try:
        return load_settings()
    except ConfigurationError as e:
        click.secho(f"Configuration error: {e}", fg="red", err=True)
        sys.exit(1)


async def _init_db(database_url: str) -> None:
    engine = build_engine(database_url)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()


async def _create_admin(
    database_url: str, email: str, name: str, password: str, rounds: int
) -> str:
    engine = build_engine(database_url)
    try:
        async with build_session_factory(engine)() as db:
            user = await UserService(db, bcrypt_rounds=rounds).create_user(
                email=email, name=name, password=password, role="admin"
            )
            await db.commit()
            return str(user.id)
    finally:
        await engine.dispose()


@click.group()
def cli():
    """Storefront operator commands."""


@cli.command("init-db")
def init_db():
    """Create all database tables."""
    settings = _settings()
    asyncio.run(_init_db(settings.database_url))
    click.secho("Tables created", fg="green")


@cli.command("create-admin")
@click.option("--email", required=True)
@click.option("--name", required=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
def create_admin(email: str, name: str, password: str):
    """Create an administrator account."""
    if len(password) < 8:
        click.secho("Password must be at least 8 characters", fg="red", err=True)
        sys.exit(1)
    settings = _settings()
    try:
        user_id = asyncio.run(
            _create_admin(settings.database_url, email, name, password, settings.bcrypt_rounds)
        )
    except Conflict as e:
        click.secho(f"Error: {e.message}", fg="red", err=True)
        sys.exit(1)
    click.secho(f"Admin created: {user_id}", fg="green")


@cli.command()
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(reload: bool):
    """Run the API server."""
    import uvicorn

    settings = _settings()
    uvicorn.run(
        "storefront.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=reload,
    )


if __name__ == "__main__":
    cli()
