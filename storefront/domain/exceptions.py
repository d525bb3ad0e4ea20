"""Domain exceptions that represent business rule violations."""

from typing import Optional


class DomainException(Exception):
    """Base exception for all domain-related errors."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


# Category Domain Exceptions
class CategoryException(DomainException):
    """Base exception for category-related errors."""


class CategoryNotFound(CategoryException):
    """Category not found in the system."""

    def __init__(self, identifier: str):
        super().__init__(
            f"Category not found: {identifier}", "CATEGORY_NOT_FOUND"
        )


class CircularCategoryReference(CategoryException):
    """Parent assignment would make a category its own ancestor."""

    def __init__(self, category_id: str, parent_id: str):
        self.category_id = category_id
        self.parent_id = parent_id
        super().__init__(
            "Cannot set parent: would create circular reference",
            "CIRCULAR_REFERENCE",
        )


class InvalidParentCategory(CategoryException):
    """Referenced parent category does not exist."""

    def __init__(self, parent_id: str):
        super().__init__(
            f"Invalid parent category ID: {parent_id}", "INVALID_PARENT"
        )


class CategoryDeletionBlocked(CategoryException):
    """Category still holds active products."""

    def __init__(self, reason: str, product_count: int):
        self.product_count = product_count
        super().__init__(reason, "CATEGORY_HAS_PRODUCTS")


# Product Domain Exceptions
class ProductException(DomainException):
    """Base exception for product-related errors."""


class ProductNotFound(ProductException):
    """Product not found or soft-deleted."""

    def __init__(self, identifier: str):
        super().__init__(
            f"Product not found: {identifier}", "PRODUCT_NOT_FOUND"
        )


class DuplicateSku(ProductException):
    """Another product already uses this SKU."""

    def __init__(self, sku: str):
        super().__init__(
            f'Product with SKU "{sku}" already exists', "DUPLICATE_SKU"
        )


class ProductAlreadyDeleted(ProductException):
    """Soft delete requested twice."""

    def __init__(self, product_id: str):
        super().__init__(
            f"Product already deleted: {product_id}", "PRODUCT_ALREADY_DELETED"
        )


class SlugConflict(DomainException):
    """Slug taken by a concurrent write."""

    def __init__(self, slug: str):
        super().__init__(
            f"A record with slug \"{slug}\" already exists", "SLUG_CONFLICT"
        )


class InvalidCategoryReference(ProductException):
    """Product points at a category that does not exist."""

    def __init__(self, category_id: str):
        super().__init__(
            f"Category does not exist: {category_id}", "INVALID_CATEGORY"
        )


class InvalidProductPrice(ProductException):
    def __init__(self, reason: str):
        super().__init__(reason, "INVALID_PRICE")


# Image Domain Exceptions
class ImageException(DomainException):
    """Base exception for product image errors."""


class ProductImageNotFound(ImageException):
    def __init__(self, image_id: str):
        super().__init__(
            f"Image not found: {image_id}", "IMAGE_NOT_FOUND"
        )


class InvalidImage(ImageException):
    """Uploaded image failed validation."""

    def __init__(self, reason: str, index: Optional[int] = None):
        self.index = index
        prefix = f"Image {index}: " if index is not None else ""
        super().__init__(f"{prefix}{reason}", "INVALID_IMAGE")


class ImageLimitExceeded(ImageException):
    def __init__(self, limit: int, scope: str = "product"):
        self.limit = limit
        super().__init__(
            f"At most {limit} images are allowed per {scope}", "IMAGE_LIMIT_EXCEEDED"
        )


class InvalidImageOrder(ImageException):
    def __init__(self, reason: str):
        super().__init__(f"Invalid image order: {reason}", "INVALID_IMAGE_ORDER")


class StorageUnavailable(ImageException):
    def __init__(self):
        super().__init__(
            "Image upload service is not configured", "STORAGE_UNAVAILABLE"
        )


# Auth Domain Exceptions
class AuthException(DomainException):
    """Base exception for authentication errors."""


class InvalidCredentials(AuthException):
    """Invalid login credentials."""

    def __init__(self):
        super().__init__("Invalid credentials provided", "INVALID_CREDENTIALS")


class AccountLocked(AuthException):
    """Too many failed logins."""

    def __init__(self):
        super().__init__(
            "Account is temporarily locked. Try again later.", "ACCOUNT_LOCKED"
        )


class InsufficientPermissions(AuthException):
    """User lacks required role."""

    def __init__(self, action: str):
        super().__init__(
            f"Insufficient permissions for action: {action}",
            "INSUFFICIENT_PERMISSIONS",
        )
