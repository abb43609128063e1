"""Special pytest fixture configuration file.

This file automatically provides all fixtures defined in it to all
pytest tests in this directory and sub directories.

See https://docs.pytest.org/en/6.2.x/fixture.html#conftest-py-sharing-fixtures-across-multiple-files
"""
import pytest

from fastapi.testclient import TestClient

from salak import tokens
from salak.credentials import CredentialStore
from salak.db import create_tables, make_engine, make_session_factory
from salak.main import create_app
from salak.profiles import ProfileStore


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'salak-test.db'}"


@pytest.fixture
def engine(database_url):
    engine = make_engine(database_url)
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def profiles(session_factory):
    return ProfileStore(session_factory)


@pytest.fixture
def credentials(session_factory):
    return CredentialStore(session_factory)


@pytest.fixture
def secret():
    return "testing_secret_for_self_issued_tokens_0123456789"


@pytest.fixture
def master_secret():
    return "testing_master_secret_for_the_api_key_vault"


@pytest.fixture
def app(database_url, secret, master_secret):
    return create_app(
        setup_logging=False,
        DATABASE_URL=database_url,
        JWT_SECRET=secret,
        API_KEY_ENCRYPTION_SECRET=master_secret,
        SUPABASE_URL="",
        SUPABASE_ANON_KEY="",
        CORS_ORIGINS="http://localhost:3000",
    )


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def user_token(secret):
    return tokens.issue("11111111-2222-3333-4444-555555555555", secret,
                        email="skunk@example.org")


@pytest.fixture
def auth_headers(user_token):
    return {"Authorization": f"Bearer {user_token}"}
