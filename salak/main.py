import logging
from typing import Any, Callable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config
from .app_logging import setup_logger
from .db import create_tables, make_engine, make_session_factory
from .profiles import ProfileStore
from .resolver import AuthResolver
from .routes.api_keys import router as api_keys_router
from .routes.authentication import router as auth_router
from .verifiers import HostedSessionVerifier, SelfIssuedTokenVerifier

CONFIG_KEYS = (
    'SUPABASE_URL',
    'SUPABASE_ANON_KEY',
    'IDENTITY_TIMEOUT',
    'JWT_SECRET',
    'API_KEY_ENCRYPTION_SECRET',
    'DATABASE_URL',
    'ECHO_SQL',
    'CORS_ORIGINS',
    'LOG_LEVEL',
)


def create_app(setup_logging: bool = True, **overrides: Any) -> FastAPI:
    """Build the app.

    Settings come from :mod:`salak.config`; any of them can be overridden by
    keyword, e.g. ``create_app(JWT_SECRET="...", DATABASE_URL="sqlite://")``.
    """
    settings = {key: getattr(config, key) for key in CONFIG_KEYS}
    unknown = set(overrides) - set(CONFIG_KEYS)
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
    settings.update(overrides)

    if setup_logging:
        setup_logger(settings['LOG_LEVEL'])
    logger = logging.getLogger(__name__)

    if not settings['JWT_SECRET']:
        logger.warning("JWT_SECRET is not set, self-issued tokens will not be accepted")
    if not settings['SUPABASE_URL'] or not settings['SUPABASE_ANON_KEY']:
        logger.warning("SUPABASE_URL or SUPABASE_ANON_KEY is not set, hosted sessions will not be accepted")
    if not settings['API_KEY_ENCRYPTION_SECRET']:
        logger.warning("API_KEY_ENCRYPTION_SECRET is not set, API keys cannot be stored")

    engine = make_engine(settings['DATABASE_URL'], echo=settings['ECHO_SQL'])
    create_tables(engine)
    session_factory = make_session_factory(engine)

    resolver = AuthResolver(
        verifiers=[
            HostedSessionVerifier(settings['SUPABASE_URL'], settings['SUPABASE_ANON_KEY'],
                                  timeout=settings['IDENTITY_TIMEOUT']),
            SelfIssuedTokenVerifier(settings['JWT_SECRET']),
        ],
        profiles=ProfileStore(session_factory),
    )

    app = FastAPI(
        title="SALAK",
        db_engine=engine,
        session_factory=session_factory,
        auth_resolver=resolver,
        **settings,
    )

    origins = [origin.strip() for origin in settings['CORS_ORIGINS'].split(",") if origin.strip()]
    logger.info("cors origins: %s", ",".join(origins))
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(api_keys_router)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Errors go out as ``{"error": message}``."""
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code,
                            headers=getattr(exc, "headers", None))

    @app.middleware("http")
    async def apply_response_headers(request: Request, call_next: Callable) -> Response:
        """Prevent UI redress attacks."""
        response: Response = await call_next(request)
        response.headers['X-Frame-Options'] = 'SAMEORIGIN'
        return response

    @app.get("/health")
    async def health() -> dict:
        return {"status": "healthy"}

    return app
