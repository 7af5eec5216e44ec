"""
FastAPI main application for the Book Catalog API.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from http import HTTPStatus
from typing import List, Optional

import structlog
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from catalog_api.auth import AuthGate, require_identity
from catalog_api.config import config
from catalog_api.database import DatabaseManager
from catalog_api.errors import CatalogError
from catalog_api.models import (
    Book,
    BookCreateRequest,
    BookFilterRequest,
    BookMutationResponse,
    BookUpdateRequest,
    ErrorResponse,
    HealthResponse,
    Identity,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    TokenRequest,
    TokenResponse,
)
from catalog_api.passwords import BcryptPasswordHasher
from catalog_api.repositories import BookRepository, UserRepository
from catalog_api.services import AccountService, BookService
from catalog_api.tokens import TokenService
from utilities.logger import setup_logging

logger = structlog.get_logger(__name__)


def configure_services(
    app: FastAPI,
    users: UserRepository,
    books: BookRepository,
    database: Optional[DatabaseManager] = None,
) -> None:
    """Build the auth components and services and attach them to app.state."""
    hasher = BcryptPasswordHasher(rounds=config.bcrypt_rounds)
    tokens = TokenService(
        config.secret_key,
        algorithm=config.algorithm,
        ttl=timedelta(seconds=config.access_token_ttl_seconds),
    )
    app.state.database = database
    app.state.token_service = tokens
    app.state.auth_gate = AuthGate(tokens)
    app.state.account_service = AccountService(users, hasher, tokens)
    app.state.book_service = BookService(books)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.log_file,
        debug=config.debug,
    )
    logger.info("Starting Book Catalog API")
    if config.secret_key_generated:
        logger.warning("No SECRET_KEY configured; using a random key for this debug run")

    database = DatabaseManager(config.mongodb_url, config.mongodb_database)
    try:
        await database.connect()
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise

    configure_services(app, database.users, database.books, database)

    yield

    logger.info("Shutting down Book Catalog API")
    await database.disconnect()


app = FastAPI(
    title=config.api_title,
    description="""
    A simple API for managing books.

    ## Authentication

    Register with `POST /api/register`, then log in with `POST /api/login` to
    receive a token valid for one hour. Protected endpoints expect that token
    in the JSON request body:

    ```
    {"token": "<your token>", ...}
    ```
    """,
    version=config.api_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=config.cors_allow_credentials,
    allow_methods=config.cors_allow_methods,
    allow_headers=config.cors_allow_headers,
)


# Exception handlers
def _error_response(
    status_code: int,
    error: str,
    detail: Optional[str] = None,
    errors: Optional[list] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    body = ErrorResponse(error=error, detail=detail, errors=errors, status_code=status_code)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    """Handle errors raised by the service layer."""
    headers = None
    if exc.status_code == HTTPStatus.UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    if exc.status_code >= HTTPStatus.INTERNAL_SERVER_ERROR:
        logger.error("Request failed", error=exc.message, path=request.url.path)
    return _error_response(int(exc.status_code), exc.message, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as 400 with per-field messages."""
    errors = []
    for error in exc.errors():
        location = error.get("loc", ())
        errors.append({
            "location": str(location[0]) if location else "body",
            "param": ".".join(str(part) for part in location[1:]),
            "msg": error.get("msg", "Invalid value"),
        })
    return _error_response(status.HTTP_400_BAD_REQUEST, "Validation failed", errors=errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        detail=str(exc) if config.debug else None,
    )


# Service dependencies
def get_account_service(request: Request) -> AccountService:
    return request.app.state.account_service


def get_book_service(request: Request) -> BookService:
    return request.app.state.book_service


# Health check endpoint (no authentication required)
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint."""
    database: Optional[DatabaseManager] = getattr(request.app.state, "database", None)
    db_status = "unavailable"
    if database is not None:
        health_info = await database.health_check()
        db_status = health_info.get("status", "unknown")

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=config.api_version,
        database_status=db_status,
    )


# Account endpoints
@app.post(
    "/api/register",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Accounts"],
)
async def register(payload: RegisterRequest, accounts: AccountService = Depends(get_account_service)):
    """Register a new user with a username (3+ characters) and password (6+ characters)."""
    await accounts.register(payload)
    return MessageResponse(message="User registered successfully")


@app.post("/api/login", response_model=TokenResponse, tags=["Accounts"])
async def login(payload: LoginRequest, accounts: AccountService = Depends(get_account_service)):
    """Log in and receive a bearer token valid for one hour."""
    token = await accounts.login(payload)
    return TokenResponse(token=token)


# Books endpoints
@app.post(
    "/api/books",
    response_model=BookMutationResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Books"],
)
async def create_book(
    payload: BookCreateRequest,
    identity: Identity = Depends(require_identity),
    books: BookService = Depends(get_book_service),
):
    """Create a new book entry. Authenticated users only."""
    book = await books.create(payload)
    return BookMutationResponse(message="Book created successfully", book=book)


@app.patch("/api/books/{book_id}", response_model=BookMutationResponse, tags=["Books"])
async def update_book(
    book_id: str,
    payload: BookUpdateRequest,
    identity: Identity = Depends(require_identity),
    books: BookService = Depends(get_book_service),
):
    """
    Update a book entry. Authenticated users only.

    Only the fields present in the body are changed.
    """
    book = await books.update(book_id, payload)
    return BookMutationResponse(message="Book updated successfully", book=book)


@app.delete("/api/books/{book_id}", response_model=BookMutationResponse, tags=["Books"])
async def delete_book(
    book_id: str,
    identity: Identity = Depends(require_identity),
    books: BookService = Depends(get_book_service),
    payload: Optional[TokenRequest] = None,
):
    """Delete a book entry. Authenticated users only."""
    book = await books.delete(book_id)
    return BookMutationResponse(message="Book deleted successfully", book=book)


@app.post("/api/books/getAll", response_model=List[Book], tags=["Books"])
async def get_all_books(
    identity: Identity = Depends(require_identity),
    books: BookService = Depends(get_book_service),
    payload: Optional[TokenRequest] = None,
):
    """Retrieve a list of all books. Authenticated users only."""
    return await books.list_all()


@app.post("/api/books/filter", response_model=List[Book], tags=["Books"])
async def filter_books(
    identity: Identity = Depends(require_identity),
    books: BookService = Depends(get_book_service),
    payload: Optional[BookFilterRequest] = None,
):
    """
    Filter books by author or publication year. Authenticated users only.

    - **author**: case-insensitive substring of the author name
    - **publicationYear**: exact publication year
    """
    return await books.filter(payload or BookFilterRequest())


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "catalog_api.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="info"
    )
