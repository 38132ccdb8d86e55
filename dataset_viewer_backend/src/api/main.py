from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError

from src.core.config import get_settings
from src.core.errors import DatasetViewerError
from src.routers import health, datasets, s3_proxy
from src.services.byte_fetchers import close_http_session

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    close_http_session()


app = FastAPI(
    title="Dataset Viewer Backend",
    description="APIs for dataset discovery, storage proxying, and dataset version checks.",
    version="0.1.0",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "health", "description": "Service health"},
        {"name": "datasets", "description": "Dataset listing and version compatibility"},
        {"name": "storage", "description": "Object-storage proxy"},
    ],
)

# Install CORS middleware early so that OPTIONS preflight is handled
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Domain errors carry their own status; body shape is {"error": message}
@app.exception_handler(DatasetViewerError)
async def dataset_viewer_error_handler(request: Request, exc: DatasetViewerError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

# Ensure standard HTTP exceptions pass through (do not override FastAPI/Starlette defaults)
@app.exception_handler(StarletteHTTPException)
async def http_exception_passthrough(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

# Do not treat validation errors from OPTIONS as 500s; keep default 422 for non-OPTIONS requests
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    if request.method.upper() == "OPTIONS":
        return JSONResponse(status_code=204, content=None)
    return JSONResponse(status_code=422, content={"detail": exc.errors()})

# Catch-all for truly unhandled exceptions only
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    return JSONResponse(status_code=500, content={"error": "Internal server error"})

# Routers
app.include_router(health.router)
app.include_router(datasets.router)
app.include_router(s3_proxy.router)
