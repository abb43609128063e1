"""
Command line helpers for running SALAK.

.. code-block:: bash

   $ salak generate-secret
   Jq3v...
   $ JWT_SECRET=Jq3v... salak issue-token 6f1c2a9e-... --email ann@example.org
   eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...

Use the token in requests with ``Authorization: Bearer <token>``. The user's
profile row is created on first use.
"""
import secrets
from datetime import timedelta
from typing import Optional

import click

from . import config, tokens
from .db import create_tables, make_engine


@click.group()
def cli() -> None:
    """SALAK administration."""


@cli.command('init-db')
@click.option('--database-url', default=config.DATABASE_URL, show_default=True)
def init_db(database_url: str) -> None:
    """Create any missing tables."""
    create_tables(make_engine(database_url))
    click.echo("Tables created.")


@cli.command('generate-secret')
@click.option('--length', default=48, show_default=True, help='Bytes of randomness.')
def generate_secret(length: int) -> None:
    """Print a random secret for JWT_SECRET or API_KEY_ENCRYPTION_SECRET."""
    click.echo(secrets.token_urlsafe(length))


@cli.command('issue-token')
@click.argument('user_id')
@click.option('--email', default=None, help='Email claim to include.')
@click.option('--hours', default=24, show_default=True, help='Validity period.')
@click.option('--secret', envvar='JWT_SECRET', default=None,
              help='Signing secret, defaults to $JWT_SECRET.')
def issue_token(user_id: str, email: Optional[str], hours: int,
                secret: Optional[str]) -> None:
    """Generate a self-issued token for dev/testing purposes."""
    if not secret:
        raise click.UsageError("JWT_SECRET is not set; pass --secret or set it in the environment.")
    click.echo(tokens.issue(user_id, secret, email=email, expires_in=timedelta(hours=hours)))
