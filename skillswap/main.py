from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from .api.v1.api import router as api_router
from .core.config import get_settings
from .core.database import SessionLocal, init_db
from .core.exceptions import SkillSwapError
from .services.skill_service import SkillService
import logging
from dotenv import load_dotenv
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

# Load environment variables
load_dotenv()

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables and seed the skill catalogue
    logger.info(f"Starting up in {settings.environment} environment")
    init_db()

    if settings.seed_default_skills:
        db = SessionLocal()
        try:
            SkillService(db).seed_defaults()
        finally:
            db.close()

    yield

    logger.info("Shutting down")


app = FastAPI(
    title=settings.app_name,
    description="""
    API for the SkillSwap skill bartering marketplace.

    ## Authentication

    1. Register with `/api/v1/users/register`.
    2. Log in with `/api/v1/users/login` using your email as the username.
    3. Click the "Authorize" button at the top of this page and paste the token.
    """,
    version="1.0.0",
    debug=settings.debug,
    lifespan=lifespan,
    swagger_ui_parameters={
        "persistAuthorization": True,
        "displayRequestDuration": True,
        "docExpansion": "none",
    }
)

# Configure CORS
# Default origins for development
origins = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
    settings.frontend_url,
]

logger.debug(f"CORS origins: {origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router)


# Custom OpenAPI schema
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )

    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "bearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "Enter the token without the 'Bearer' prefix"
        }
    }

    public_paths = ("/login", "/register", "/search", "/system-messages/", "/skills/", "/skills/by-category")
    for path, operations in openapi_schema.get("paths", {}).items():
        if path in ("/", "/health") or path.endswith(public_paths):
            continue
        for method in operations:
            if method != "parameters":
                operations[method]["security"] = [{"bearerAuth": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi


@app.get("/")
async def root():
    return {"message": f"Welcome to the {settings.app_name}", "environment": settings.environment}


@app.get("/health")
async def health_check():
    return {"status": "healthy", "environment": settings.environment}


@app.exception_handler(SkillSwapError)
async def skillswap_exception_handler(request: Request, exc: SkillSwapError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# Add exception handler for validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    error_messages = []
    for error in exc.errors():
        error_messages.append({
            "loc": list(error.get("loc", [])),
            "msg": error.get("msg"),
            "type": error.get("type"),
        })

    return JSONResponse(
        status_code=422,
        content={"detail": error_messages}
    )
