from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from ..core.logging import setup_logging
from ..core.config import settings
from ..core.errors import InvalidStatusTransition, InvoiceNotFound, OcrServiceError, PersistenceError
from ..services.fee_calculator import InvalidExtensionError
from .routers import financing, health, invoice

logger = setup_logging()
app = FastAPI(title="Fortus Buyer Portal")


# Add custom exception handler for validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Validation error: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(OcrServiceError)
async def ocr_error_handler(request: Request, exc: OcrServiceError):
    logger.error(f"OCR failed: {exc.message}")
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"error": exc.message})


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    logger.error(f"Persistence failed: {exc.message}")
    content = {"error": exc.message}
    if exc.extraction is not None:
        # The document was read; only saving failed
        content["parsed"] = exc.extraction.to_wire()
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


@app.exception_handler(InvoiceNotFound)
async def not_found_handler(request: Request, exc: InvoiceNotFound):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": exc.message})


@app.exception_handler(InvalidStatusTransition)
async def transition_error_handler(request: Request, exc: InvalidStatusTransition):
    logger.warning(f"Rejected status change: {exc.message}")
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"error": exc.message})


@app.exception_handler(InvalidExtensionError)
async def extension_error_handler(request: Request, exc: InvalidExtensionError):
    return JSONResponse(status_code=422, content={"error": str(exc)})


# Configure CORS to allow frontend access
# CORS_ORIGINS can be set in .env as comma-separated list
allowed_origins = [origin.strip() for origin in settings.cors_origins.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(invoice.router)
app.include_router(financing.router)
