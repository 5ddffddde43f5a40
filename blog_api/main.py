import logging
import time
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException
from .auth import TokenService
from .config import Settings, load_settings
from .core import configure_logging, database_startup, observe_request
from .models import Database
from .passwords import PasswordHasher
from .responses import error
from .routes import router

logger = logging.getLogger('blog_api')

CORS_HEADERS = [
    'Content-Type', 'Content-Length', 'Accept-Encoding', 'X-CSRF-Token', 'Authorization',
    'accept', 'origin', 'Cache-Control', 'X-Requested-With',
]


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = '.'.join(str(p) for p in err.get('loc', ())[1:])
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get('msg')))
    return 'Invalid request data: ' + '; '.join(parts)


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings)

    app = FastAPI(title="Blog API", version="0.1.0")
    app.state.settings = settings
    app.state.db = database or Database(settings.database_url, echo=settings.sql_echo and not settings.is_production)
    app.state.tokens = TokenService(settings)
    app.state.hasher = PasswordHasher(settings.bcrypt_rounds)

    @app.middleware('http')
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        logger.info({'msg': 'request_start', 'method': request.method, 'path': request.url.path})
        try:
            response = await call_next(request)
        except Exception:
            # the real cause stays in the server log, the client gets a generic 500
            logger.exception({'msg': 'request_failed', 'method': request.method, 'path': request.url.path})
            response = JSONResponse(status_code=500, content=error('Internal server error'))
        elapsed = time.perf_counter() - started
        route = getattr(request.scope.get('route'), 'path', request.url.path)
        observe_request(request.method, route, response.status_code, elapsed)
        logger.info({'msg': 'request_end', 'status': response.status_code, 'duration_ms': round(elapsed * 1000, 2)})
        return response

    # added last so it wraps everything, error responses included
    app.add_middleware(
        CORSMiddleware,
        allow_origins=['*'],
        allow_credentials=True,
        allow_methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'],
        allow_headers=CORS_HEADERS,
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content=error(str(exc.detail)), headers=getattr(exc, 'headers', None))

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=error(_validation_message(exc)))

    app.include_router(router, prefix="/api")

    @app.get('/healthz')
    async def healthz():
        return {'status': 'ok'}

    @app.get('/metrics', include_in_schema=False)
    async def metrics():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.on_event("startup")
    async def startup():
        await database_startup(app.state.db, settings)
        logger.info({'msg': 'app_started', 'environment': settings.environment})

    @app.on_event("shutdown")
    async def shutdown():
        await app.state.db.dispose()

    return app
