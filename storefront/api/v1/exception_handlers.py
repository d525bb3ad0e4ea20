"""Exception handlers to translate domain exceptions to HTTP responses."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from storefront.domain.exceptions import (
    AccountLocked,
    AuthException,
    CategoryDeletionBlocked,
    CategoryException,
    CategoryNotFound,
    CircularCategoryReference,
    DomainException,
    DuplicateSku,
    ImageException,
    ImageLimitExceeded,
    InsufficientPermissions,
    InvalidCategoryReference,
    InvalidCredentials,
    InvalidImage,
    InvalidImageOrder,
    InvalidParentCategory,
    InvalidProductPrice,
    ProductAlreadyDeleted,
    ProductException,
    ProductImageNotFound,
    ProductNotFound,
    SlugConflict,
    StorageUnavailable,
)
from storefront.utils.logger import get_logger


logger = get_logger("exception_handlers")


class DomainExceptionHandler:
    """Centralized handler for domain exceptions."""

    EXCEPTION_STATUS_MAP = {
        # Category exceptions
        CategoryNotFound: status.HTTP_404_NOT_FOUND,
        CircularCategoryReference: status.HTTP_400_BAD_REQUEST,
        InvalidParentCategory: status.HTTP_400_BAD_REQUEST,
        CategoryDeletionBlocked: status.HTTP_409_CONFLICT,

        # Product exceptions
        ProductNotFound: status.HTTP_404_NOT_FOUND,
        DuplicateSku: status.HTTP_409_CONFLICT,
        ProductAlreadyDeleted: status.HTTP_409_CONFLICT,
        InvalidCategoryReference: status.HTTP_400_BAD_REQUEST,
        InvalidProductPrice: status.HTTP_400_BAD_REQUEST,
        SlugConflict: status.HTTP_409_CONFLICT,

        # Image exceptions
        ProductImageNotFound: status.HTTP_404_NOT_FOUND,
        InvalidImage: status.HTTP_400_BAD_REQUEST,
        ImageLimitExceeded: status.HTTP_400_BAD_REQUEST,
        InvalidImageOrder: status.HTTP_400_BAD_REQUEST,
        StorageUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,

        # Auth exceptions
        InvalidCredentials: status.HTTP_401_UNAUTHORIZED,
        AccountLocked: status.HTTP_423_LOCKED,
        InsufficientPermissions: status.HTTP_403_FORBIDDEN,
    }

    BASE_EXCEPTION_STATUS_MAP = {
        CategoryException: status.HTTP_400_BAD_REQUEST,
        ProductException: status.HTTP_400_BAD_REQUEST,
        ImageException: status.HTTP_400_BAD_REQUEST,
        AuthException: status.HTTP_401_UNAUTHORIZED,
    }

    @classmethod
    def status_for(cls, exc: DomainException) -> int:
        status_code = cls.EXCEPTION_STATUS_MAP.get(type(exc))
        if status_code is None:
            for base_type, base_status in cls.BASE_EXCEPTION_STATUS_MAP.items():
                if isinstance(exc, base_type):
                    return base_status
            return status.HTTP_500_INTERNAL_SERVER_ERROR
        return status_code

    @classmethod
    def to_response(cls, exc: DomainException) -> JSONResponse:
        """Convert a domain exception to a JSON error body."""
        headers = None
        if isinstance(exc, InvalidCredentials):
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(
            status_code=cls.status_for(exc),
            content={
                "detail": exc.message,
                "error_code": exc.error_code,
                "type": exc.__class__.__name__,
            },
            headers=headers,
        )


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    logger.info(f"{request.method} {request.url.path} rejected: {exc.error_code}")
    return DomainExceptionHandler.to_response(exc)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Never leak internals to the client
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "type": "UnexpectedError"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
