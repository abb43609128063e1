"""Configuration for the SALAK service.

Values are read from the environment when this module is imported.
:func:`salak.main.create_app` accepts keyword overrides for any of them.
"""

import os

SUPABASE_URL = os.environ.get('SUPABASE_URL', '')
"""Base URL of the hosted identity provider, e.g. ``https://abc.supabase.co``."""

SUPABASE_ANON_KEY = os.environ.get('SUPABASE_ANON_KEY', '')
"""Public (anon) key sent as ``apikey`` when introspecting session tokens."""

IDENTITY_TIMEOUT = float(os.environ.get('IDENTITY_TIMEOUT', '10'))
"""Seconds to wait on the identity provider before giving up on that path."""

JWT_SECRET = os.environ.get('JWT_SECRET', '')
"""Signing secret for self-issued tokens. Empty disables that path."""

API_KEY_ENCRYPTION_SECRET = os.environ.get('API_KEY_ENCRYPTION_SECRET', '')
"""Master secret for the API-key vault. Never used directly as a cipher key."""

DATABASE_URL = os.environ.get('DATABASE_URL', 'sqlite:///./salak.db')
ECHO_SQL = os.environ.get('ECHO_SQL', '').lower() in ('1', 'true', 'yes')

CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'http://localhost:3000')
"""Comma separated list of allowed origins."""

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
