"""
FastAPI application - Main entry point
"""

from dotenv import load_dotenv

load_dotenv()

import logging
from datetime import datetime

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from palworks.api.dependencies import api_key_protection
from palworks.api.endpoints.contracts import contracts_api
from palworks.api.endpoints.payments import payments_api
from palworks.api.endpoints.pricing import pricing_api
from palworks.api.services import Services, get_services
from palworks.checkout.flow import CheckoutError, ContractNotFoundError
from palworks.controllers.contract_controller import ContractNotEditableError
from palworks.error_handler import ErrorHandler
from palworks.forms.validation import FormValidationError
from palworks.integrations.contracts.payments import PaymentProcessorError
from palworks.integrations.policy.response_wrappers import IntegrationResponseError
from palworks.utils.config_loader import UnknownContractTypeError

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="PalWorks Vertragsgenerator API",
    description="Rental contract generator with addon pricing and checkout",
    version="1.0.0",
    dependencies=[Depends(api_key_protection)],  # protect everything by default
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

error_handler = ErrorHandler()

app.include_router(pricing_api, prefix="/api/v1")
app.include_router(contracts_api, prefix="/api/v1")
app.include_router(payments_api, prefix="/api/v1/payments")


# ============================================================================
# ERROR MAPPING
# ============================================================================

@app.exception_handler(FormValidationError)
async def form_validation_error_handler(request: Request, exc: FormValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": {"error": "validation_error", "message": exc.message, "field_errors": exc.field_errors}},
    )


@app.exception_handler(UnknownContractTypeError)
async def unknown_contract_type_handler(request: Request, exc: UnknownContractTypeError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ContractNotFoundError)
async def contract_not_found_handler(request: Request, exc: ContractNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(CheckoutError)
async def checkout_error_handler(request: Request, exc: CheckoutError):
    return JSONResponse(status_code=400, content={"detail": {"message": exc.message, "reason": exc.reason}})


@app.exception_handler(ContractNotEditableError)
async def contract_not_editable_handler(request: Request, exc: ContractNotEditableError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(PaymentProcessorError)
async def payment_processor_error_handler(request: Request, exc: PaymentProcessorError):
    return JSONResponse(
        status_code=status.HTTP_402_PAYMENT_REQUIRED,
        content={"detail": {"message": exc.message, "code": exc.code}},
    )


@app.exception_handler(IntegrationResponseError)
async def integration_response_error_handler(request: Request, exc: IntegrationResponseError):
    return JSONResponse(
        status_code=502,
        content={"detail": {"message": str(exc), "stage": "partner_response_validation", "payload": exc.payload}},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    payload = error_handler.handle_exception(exc, context={"path": request.url.path, "method": request.method})
    return JSONResponse(status_code=500, content={"detail": payload})


# ============================================================================
# ENDPOINTS
# ============================================================================

@app.get("/", tags=["Health"])
async def root():
    """Health check endpoint."""
    return {"service": "PalWorks Vertragsgenerator API", "status": "healthy", "version": "1.0.0", "timestamp": datetime.now().isoformat()}


@app.get("/health", tags=["Health"])
async def health_check(services: Services = Depends(get_services)):
    """Detailed health check (database, cache, addon catalogue)."""
    return {
        "status": "healthy",
        "database": {"postgres": "connected", "redis": services.cache.ping()},
        "catalogue": {
            ct: (services.catalogue.state(ct).value if services.catalogue.state(ct) else "not_loaded")
            for ct in services.config.contract_types
        },
        "timestamp": datetime.now().isoformat(),
    }


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup"""
    logger.info("Starting PalWorks Vertragsgenerator API...")
    services = get_services()

    try:
        services.db.create_tables()
        logger.info("Database tables initialized")
    except Exception as e:
        logger.error("Error initializing database: %s", e)

    if services.cache.ping():
        logger.info("Redis connection successful")
    else:
        logger.warning("Redis connection failed")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info("Shutting down PalWorks Vertragsgenerator API...")
