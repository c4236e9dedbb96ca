from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from .admin.moderation import ensure_admin_settings
from .admin.routes import router as admin_router
from .auth.routes import router as auth_router
from .core import config
from .core.database import engine, Base, SessionLocal
from .core.errors import AppError
from .portfolio.routes import router as portfolio_router, categories_router
from .storage.gateway import StorageGateway
from .storage.routes import router as files_router, admin_router as admin_storage_router
from .user.crud import ensure_admin_user
from .user.routes import router as user_router
import logging
import time

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.DEBUG else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

HTTP_ERROR_KINDS = {
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    409: "conflict",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables and seed the settings singleton and bootstrap admin
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error creating database tables: {str(e)}")
        raise

    db = SessionLocal()
    try:
        ensure_admin_settings(db)
        ensure_admin_user(db)
        app.state.storage.load_active_config(db)
    finally:
        db.close()

    logger.info(f"Design AI backend started, API prefix {config.API_PREFIX}")
    yield
    logger.info("Design AI backend shutting down")


app = FastAPI(title="Design AI Portfolio Backend", lifespan=lifespan)
app.state.storage = StorageGateway()

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
    logger.info(f"{request.method} {request.url.path} - {response.status_code} ({elapsed_ms}ms)")
    return response


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.kind, "detail": exc.detail}
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    detail = "Invalid request format"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        detail = f"{location}: {first.get('msg')}" if location else first.get("msg", detail)
    return JSONResponse(
        status_code=400,
        content={"error": "bad_request", "detail": detail}
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    kind = HTTP_ERROR_KINDS.get(exc.status_code, "bad_request" if exc.status_code < 500 else "internal")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": kind, "detail": str(exc.detail)}
    )


# Exception handler for generic exceptions
@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={"error": "internal", "detail": "Internal server error"}
    )


# Health check endpoint
@app.get("/health")
def health_check():
    return {"status": "healthy", "storage_initialized": app.state.storage.is_initialized}


# Include routers
app.include_router(auth_router, prefix=config.API_PREFIX)
app.include_router(user_router, prefix=config.API_PREFIX)
app.include_router(portfolio_router, prefix=config.API_PREFIX)
app.include_router(categories_router, prefix=config.API_PREFIX)
app.include_router(files_router, prefix=config.API_PREFIX)
app.include_router(admin_router, prefix=config.API_PREFIX)
app.include_router(admin_storage_router, prefix=config.API_PREFIX)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=config.PORT, reload=config.DEBUG, log_level="info")
