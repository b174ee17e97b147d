"""
Face Authentication API

Face-based identity enrollment and verification powered by DeepFace,
with PostgreSQL for descriptor storage.

Endpoints:
- POST /register - Enroll a username from a face image
- POST /login - Verify a face image against enrolled identities
- POST /identities - Enroll a precomputed descriptor
- POST /identities/verify - Verify a precomputed descriptor
- GET /identities - List enrolled identities
- DELETE /identities/{identity_id} - Delete an identity
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, UploadFile, Form, HTTPException, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from faceauth.config import (
    API_TITLE,
    API_DESCRIPTION,
    API_VERSION,
    LOG_LEVEL,
    FACE_RECOGNITION_MODEL,
    FACE_DETECTOR_BACKEND,
    MATCH_THRESHOLD,
    MATCH_POLICY
)
from faceauth.schemas import (
    EnrollRequest,
    EnrollResponse,
    VerifyRequest,
    VerifyResponse,
    RegisterResponse,
    LoginResponse,
    IdentityRecord,
    IdentityList,
    DeleteResponse,
    ErrorResponse
)
from faceauth.database import async_session_maker, init_db, close_db
from faceauth.exceptions import (
    FaceAuthError,
    InvalidInput,
    ExtractionFailure,
    StoreUnavailable,
    ModelNotInitialized
)
from faceauth.face_service import ModelHandle, DescriptorExtractor
from faceauth.matching import MatchEngine
from faceauth.services import EnrollmentService, VerificationService
from faceauth.store import DescriptorStore
from faceauth.uploads import staged_upload

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Process-wide collaborators
model_handle = ModelHandle()
descriptor_store = DescriptorStore(async_session_maker)
match_engine = MatchEngine()


def get_store() -> DescriptorStore:
    return descriptor_store


def get_extractor() -> DescriptorExtractor:
    return DescriptorExtractor(model_handle)


def get_enrollment_service(store: DescriptorStore = Depends(get_store)) -> EnrollmentService:
    return EnrollmentService(store)


def get_verification_service(store: DescriptorStore = Depends(get_store)) -> VerificationService:
    return VerificationService(store, match_engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("Starting Face Authentication API...")
    logger.info(f"Model: {FACE_RECOGNITION_MODEL}")
    logger.info(f"Detector: {FACE_DETECTOR_BACKEND}")
    logger.info(f"Match policy: {MATCH_POLICY} (threshold {MATCH_THRESHOLD})")

    await init_db()
    await run_in_threadpool(model_handle.initialize)

    yield

    # Shutdown
    await close_db()
    logger.info("Shutting down Face Authentication API...")


# Create FastAPI app
app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    lifespan=lifespan
)


@app.get("/health")
async def health_check(store: DescriptorStore = Depends(get_store)):
    """Health check endpoint."""
    try:
        db_count = await store.count()
        db_status = "healthy"
    except StoreUnavailable as e:
        logger.error(f"Database health check failed: {e}")
        db_count = 0
        db_status = "unhealthy"

    return {
        "status": "healthy" if db_status == "healthy" and model_handle.is_initialized else "degraded",
        "model_loaded": model_handle.is_initialized,
        "database_status": db_status,
        "total_identities": db_count
    }


# ============================================================================
# IMAGE ENDPOINTS
# ============================================================================
@app.post(
    "/register",
    response_model=RegisterResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        422: {"model": ErrorResponse, "description": "No face detected"},
        503: {"model": ErrorResponse, "description": "Store unavailable"}
    },
    summary="Register a username with a face image"
)
async def register(
    image: UploadFile = File(..., description="Face image file"),
    username: str = Form(..., description="Username to enroll"),
    extractor: DescriptorExtractor = Depends(get_extractor),
    service: EnrollmentService = Depends(get_enrollment_service)
):
    """Extract the descriptor of the uploaded face and enroll it under username."""
    async with staged_upload(image) as image_path:
        descriptor = await run_in_threadpool(extractor.extract, image_path)

    identity_id = await service.enroll(username, descriptor)

    return RegisterResponse(
        id=identity_id,
        name=username.strip(),
        message="User registered successfully"
    )


@app.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        401: {"model": LoginResponse, "description": "Face not recognized"},
        422: {"model": ErrorResponse, "description": "No face detected"},
        503: {"model": ErrorResponse, "description": "Store unavailable"}
    },
    summary="Log in with a face image"
)
async def login(
    image: UploadFile = File(..., description="Face image to verify"),
    extractor: DescriptorExtractor = Depends(get_extractor),
    service: VerificationService = Depends(get_verification_service)
):
    """Verify the uploaded face against all enrolled identities."""
    async with staged_upload(image) as image_path:
        descriptor = await run_in_threadpool(extractor.extract, image_path)

    result = await service.verify(descriptor)

    if not result.matched:
        return JSONResponse(
            status_code=401,
            content=LoginResponse(matched=False, message="Face not recognized").model_dump()
        )

    return LoginResponse(matched=True, name=result.name, message="Login successful")


# ============================================================================
# DESCRIPTOR ENDPOINTS
# ============================================================================
@app.post(
    "/identities",
    response_model=EnrollResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        503: {"model": ErrorResponse, "description": "Store unavailable"}
    },
    summary="Enroll a precomputed descriptor"
)
async def enroll_identity(
    request: EnrollRequest,
    service: EnrollmentService = Depends(get_enrollment_service)
):
    """Enroll a name with an already extracted descriptor."""
    identity_id = await service.enroll(request.name, request.descriptor)
    return EnrollResponse(id=identity_id)


@app.post(
    "/identities/verify",
    response_model=VerifyResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        503: {"model": ErrorResponse, "description": "Store unavailable"}
    },
    summary="Verify a precomputed descriptor"
)
async def verify_identity(
    request: VerifyRequest,
    service: VerificationService = Depends(get_verification_service)
):
    """Match an already extracted descriptor against enrolled identities."""
    result = await service.verify(request.descriptor)
    return VerifyResponse(matched=result.matched, name=result.name)


@app.get(
    "/identities",
    response_model=IdentityList,
    summary="List enrolled identities"
)
async def list_identities(store: DescriptorStore = Depends(get_store)):
    """List all enrolled identities in store order."""
    identities = await store.list_all()
    return IdentityList(
        total_count=len(identities),
        identities=[
            IdentityRecord(id=i.id, name=i.name, created_at=i.created_at)
            for i in identities
        ]
    )


@app.delete(
    "/identities/{identity_id}",
    response_model=DeleteResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Identity not found"}
    },
    summary="Delete an identity"
)
async def delete_identity(
    identity_id: str,
    store: DescriptorStore = Depends(get_store)
):
    """Delete an enrolled identity by its ID."""
    existing = await store.get(identity_id)
    if existing is None or not await store.delete(identity_id):
        raise HTTPException(
            status_code=404,
            detail=f"Identity with ID '{identity_id}' not found"
        )

    return DeleteResponse(
        success=True,
        message=f"Successfully deleted identity '{existing.name}'",
        deleted_id=identity_id
    )


# Exception handlers
ERROR_STATUS_CODES = {
    InvalidInput: 400,
    ExtractionFailure: 422,
    StoreUnavailable: 503,
    ModelNotInitialized: 503,
}


@app.exception_handler(FaceAuthError)
async def face_auth_exception_handler(request, exc: FaceAuthError):
    """Translate core errors into JSON error responses."""
    status_code = next(
        (code for cls, code in ERROR_STATUS_CODES.items() if isinstance(exc, cls)),
        500
    )
    logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={
            "error": type(exc).__name__,
            "detail": exc.message
        }
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    """Custom HTTP exception handler."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "HTTPException",
            "detail": exc.detail
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """General exception handler."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "InternalServerError",
            "detail": "An unexpected error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
