from fastapi import FastAPI, Depends, HTTPException, status, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional, List
import os
import sys

# Add the parent directory to sys.path to resolve shared imports
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "../../../")))

from shared.utils import (
    get_db_client, settings, pwd_context, stringify_ids,
    SuccessResponse, ErrorResponse, HealthResponse,
    AppException, NotFoundException,
)
from shared.logging_config import setup_logging, RequestLoggingMiddleware
from shared.security_config import SecurityHeadersMiddleware

from app.accounts import AccountLifecycleCoordinator, DeletionState
from app.credentials import CredentialStore
from app.errors import DirectoryError, StoreFailure
from app.freelancers import ProfileRepository, PUBLIC_PROJECTION
from app.reviews import ReviewLedger
from app.surveys import SurveyRecorder
from app.schemas import (
    FreelancerCreate, FreelancerUpdate, FreelancerResponse, FreelancerCreated, DeleteFreelancer,
    LoginRequest, ChangePasswordRequest,
    ReviewCreate, ReviewResponse, ReviewCreated,
)

# Setup Logging
logger = setup_logging(settings.SERVICE_NAME, settings.LOG_LEVEL)

# --- Composition Root ---

async def init_services(app: FastAPI, client, hasher=pwd_context):
    """Wire the repositories onto one shared store client."""
    app.mongodb_client = client
    app.mongodb = client[settings.MONGO_DBNAME]

    credentials = CredentialStore(app.mongodb, hasher=hasher)
    profiles = ProfileRepository(app.mongodb, credentials)
    reviews = ReviewLedger(app.mongodb)
    surveys = SurveyRecorder(app.mongodb)

    # Indexes; the unique username index backs the registration check
    await credentials.ensure_indexes()
    await profiles.ensure_indexes()
    await reviews.ensure_indexes()

    app.state.accounts = AccountLifecycleCoordinator(credentials, profiles, reviews, surveys)

@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_services(app, get_db_client())
    yield
    app.mongodb_client.close()

app = FastAPI(title="Wedding Freelancer Directory", lifespan=lifespan)

# Security Setup
app.add_middleware(SecurityHeadersMiddleware)

# Middleware
app.add_middleware(RequestLoggingMiddleware, service_name=settings.SERVICE_NAME)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Error Handlers ---

@app.exception_handler(DirectoryError)
async def directory_error_handler(request: Request, exc: DirectoryError):
    message = exc.public_message if isinstance(exc, StoreFailure) else exc.message
    return JSONResponse(status_code=exc.status_code, content=ErrorResponse(error=message).model_dump())

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(error="Invalid request", details=details).model_dump(),
    )

@app.exception_handler(Exception)
async def unclassified_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error", extra={"path": request.url.path}, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error=StoreFailure.public_message).model_dump(),
    )

# --- Dependencies ---

def get_accounts(request: Request) -> AccountLifecycleCoordinator:
    return request.app.state.accounts

def to_freelancer_response(doc: dict) -> FreelancerResponse:
    return FreelancerResponse(**stringify_ids(doc))

# --- Endpoints ---

# Freelancers
@app.get("/freelancers", response_model=List[FreelancerResponse])
async def list_freelancers(
    type: Optional[str] = None,
    specialized: Optional[List[str]] = Query(None),
    search: Optional[str] = None,
    min_rate: Optional[int] = Query(None, alias="minRate", ge=0),
    max_rate: Optional[int] = Query(None, alias="maxRate", ge=0),
    rate_unit: Optional[str] = Query(None, alias="rateUnit"),
    accounts: AccountLifecycleCoordinator = Depends(get_accounts),
):
    criteria = ProfileRepository.build_search_criteria(
        freelancer_type=type,
        specialized=specialized,
        search=search,
        min_rate=min_rate,
        max_rate=max_rate,
        rate_unit=rate_unit,
    )
    docs = await accounts.profiles.get(criteria, PUBLIC_PROJECTION)
    return [to_freelancer_response(doc) for doc in docs]

@app.get("/freelancer/{freelancer_id}", response_model=FreelancerResponse)
async def get_freelancer(freelancer_id: str, accounts: AccountLifecycleCoordinator = Depends(get_accounts)):
    doc = await accounts.profiles.get_by_id(freelancer_id, PUBLIC_PROJECTION)
    if not doc:
        raise NotFoundException("Freelancer not found")
    return to_freelancer_response(doc)

@app.post("/freelancer", response_model=FreelancerCreated, status_code=status.HTTP_201_CREATED)
async def create_freelancer(freelancer: FreelancerCreate, accounts: AccountLifecycleCoordinator = Depends(get_accounts)):
    freelancer_id = await accounts.create_freelancer(freelancer.model_dump(mode="json", exclude_none=True))
    return FreelancerCreated(freelancer_id=str(freelancer_id))

@app.put("/freelancer/{freelancer_id}", response_model=SuccessResponse[dict])
async def update_freelancer(
    freelancer_id: str,
    freelancer: FreelancerUpdate,
    accounts: AccountLifecycleCoordinator = Depends(get_accounts),
):
    outcome = await accounts.update_freelancer(freelancer_id, freelancer.model_dump(mode="json", exclude_none=True))
    if not outcome.matched:
        raise AppException(detail=f"Freelancer {freelancer_id} not found")

    message = "Freelancer profile updated" if outcome.modified else "No changes made to freelancer profile"
    return SuccessResponse(data={"id": freelancer_id, "modified": outcome.modified}, message=message)

@app.delete("/freelancer/{freelancer_id}", response_model=SuccessResponse[dict])
async def delete_freelancer(
    freelancer_id: str,
    body: DeleteFreelancer,
    accounts: AccountLifecycleCoordinator = Depends(get_accounts),
):
    result = await accounts.delete_account(
        freelancer_id,
        reason=body.reason_to_leave,
        password=body.password,
        additional_info=body.additional_info,
    )
    if result.state == DeletionState.NOT_FOUND:
        raise AppException(detail=f"Freelancer {freelancer_id} not found")
    if result.state == DeletionState.UNAUTHORIZED:
        raise AppException(detail="Unable to delete freelancer. Password verification failed")
    if not result.success:
        raise AppException(detail="Unable to delete freelancer")

    return SuccessResponse(
        data={"id": freelancer_id, "reviewsDeleted": result.reviews_deleted},
        message="Freelancer deleted successfully",
    )

# Login
@app.post("/login", response_model=FreelancerResponse, response_model_exclude_none=True)
async def login(credentials: LoginRequest, accounts: AccountLifecycleCoordinator = Depends(get_accounts)):
    doc = await accounts.login(credentials.username, credentials.password)
    return to_freelancer_response(doc)

@app.put("/change-password", response_model=SuccessResponse[dict])
async def change_password(body: ChangePasswordRequest, accounts: AccountLifecycleCoordinator = Depends(get_accounts)):
    changed = await accounts.change_password(body.username, body.current_password, body.new_password)
    if not changed:
        raise AppException(detail="Unable to change password")
    return SuccessResponse(data={"username": body.username}, message="Password changed successfully")

# Reviews
@app.get("/freelancer/{freelancer_id}/reviews", response_model=List[ReviewResponse])
async def list_reviews(freelancer_id: str, accounts: AccountLifecycleCoordinator = Depends(get_accounts)):
    docs = await accounts.reviews.list_for_profile(freelancer_id)
    return [ReviewResponse(**doc) for doc in docs]

@app.post("/freelancer/{freelancer_id}/review", response_model=ReviewCreated, status_code=status.HTTP_201_CREATED)
async def add_review(
    freelancer_id: str,
    review: ReviewCreate,
    accounts: AccountLifecycleCoordinator = Depends(get_accounts),
):
    # Reviews are only accepted for listed freelancers
    if await accounts.profiles.get_by_id(freelancer_id, {"_id": 1}) is None:
        raise NotFoundException("Freelancer not found")
    review_id = await accounts.reviews.add_review(freelancer_id, review.model_dump(exclude_none=True))
    return ReviewCreated(review_id=str(review_id))

@app.get("/health", response_model=HealthResponse)
async def health_check():
    db_status = "unhealthy"
    try:
        await app.mongodb_client.admin.command('ping')
        db_status = "connected"
    except Exception:
        db_status = "disconnected"

    if db_status != "connected":
        logger.error(f"Health Check Failed: DB={db_status}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service Unhealthy"
        )

    return HealthResponse(
        service=settings.SERVICE_NAME,
        status="healthy",
        timestamp=datetime.utcnow(),
        version="1.0.0",
        database=db_status
    )

if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
