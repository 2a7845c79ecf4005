"""CLI tools for form builder administration."""

import click

from app.core.security import create_session_token
from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.services import user_service


@click.group()
def cli():
    """Form builder CLI tools."""
    pass


@cli.command()
def init_db():
    """
    Create all tables from the ORM metadata.

    Example:
        python -m app.cli init-db
    """
    import app.db.models  # noqa: F401  (registers tables on Base.metadata)

    Base.metadata.create_all(bind=engine)
    click.echo("✓ Database tables created")


@cli.command()
@click.option("--email", required=True, help="Creator email address")
@click.option("--name", required=True, help="Display name shown on public forms")
def create_user(email: str, name: str):
    """
    Create a form creator account.

    Example:
        python -m app.cli create-user --email "maker@example.com" --name "Form Maker"
    """
    db = SessionLocal()
    try:
        user = user_service.create_user(db, email, name)
        click.echo(f"✓ Created user: {user.email}")
        click.echo(f"  ID: {user.id}")
    except ValueError as e:
        db.rollback()
        click.echo(f"❌ {e}")
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email to issue a session token for")
def issue_token(email: str):
    """
    Print a session token for API access (Authorization: Bearer <token>).

    Example:
        python -m app.cli issue-token --email "maker@example.com"
    """
    db = SessionLocal()
    try:
        user = user_service.get_user_by_email(db, email)
        if not user:
            click.echo(f"❌ User not found: {email}")
            return
        if not user.is_active:
            click.echo(f"❌ User is disabled: {email}")
            return
        click.echo(create_session_token(user.id, user.token_version))
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email to revoke sessions for")
def revoke_sessions(email: str):
    """
    Revoke all sessions for a user by bumping their token_version.

    Example:
        python -m app.cli revoke-sessions --email "user@example.com"
    """
    db = SessionLocal()
    try:
        user = user_service.get_user_by_email(db, email)
        if not user:
            click.echo(f"❌ User not found: {email}")
            return
        old_version = user.token_version
        user_service.revoke_all_sessions(db, user.id)
        db.refresh(user)
        click.echo(f"✓ Revoked all sessions for {email}")
        click.echo(f"  Token version: {old_version} → {user.token_version}")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
