from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from storefront.core.constants import SKU_PATTERN, ProductStatus, SortDirection
from storefront.schemas.category_schema import CategorySchema, CategorySummary
from storefront.schemas.pagination_schema import PageMeta
from storefront.schemas.product_image_schema import ProductImageSchema


MAX_PRICE = Decimal("99999999.99")


def _check_price(v: Optional[Decimal], label: str) -> Optional[Decimal]:
    if v is None:
        return v
    if v <= 0:
        raise ValueError(f"{label} must be greater than 0")
    if v > MAX_PRICE:
        raise ValueError(f"{label} exceeds maximum allowed value")
    if v.as_tuple().exponent < -2:
        raise ValueError(f"{label} must have at most 2 decimal places")
    return v


class InventoryOut(BaseModel):
    quantity: int
    reserved_quantity: int
    available: int
    low_stock_threshold: int
    in_stock: bool
    low_stock: bool

    model_config = ConfigDict(from_attributes=True)


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    short_description: Optional[str] = Field(None, max_length=255)
    price: Decimal
    compare_at_price: Optional[Decimal] = None
    cost_price: Optional[Decimal] = None
    category_id: Optional[str] = None
    status: ProductStatus = ProductStatus.DRAFT
    featured: bool = False
    seo_title: Optional[str] = Field(None, max_length=60)
    seo_description: Optional[str] = Field(None, max_length=160)

    @field_validator("name", "description", "short_description", "seo_title", "seo_description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        return _check_price(v, "Price")

    @field_validator("compare_at_price")
    @classmethod
    def validate_compare_at_price(cls, v):
        return _check_price(v, "Compare at price")

    @field_validator("cost_price")
    @classmethod
    def validate_cost_price(cls, v):
        return _check_price(v, "Cost price")

    @model_validator(mode="after")
    def compare_at_above_price(self):
        if self.compare_at_price is not None and self.compare_at_price <= self.price:
            raise ValueError("Compare at price must be greater than regular price")
        return self


class ProductCreate(ProductBase):
    sku: str = Field(..., min_length=1, max_length=100, pattern=SKU_PATTERN)
    initial_quantity: int = Field(0, ge=0)
    low_stock_threshold: int = Field(10, ge=0)

    @field_validator("sku", mode="before")
    @classmethod
    def strip_sku(cls, v):
        return v.strip() if isinstance(v, str) else v


class ProductUpdate(BaseModel):
    """Partial update. SKU cannot change after creation."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    short_description: Optional[str] = Field(None, max_length=255)
    price: Optional[Decimal] = None
    compare_at_price: Optional[Decimal] = None
    cost_price: Optional[Decimal] = None
    category_id: Optional[str] = None
    status: Optional[ProductStatus] = None
    featured: Optional[bool] = None
    seo_title: Optional[str] = Field(None, max_length=60)
    seo_description: Optional[str] = Field(None, max_length=160)

    model_config = ConfigDict(extra="forbid")

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        return _check_price(v, "Price")

    @field_validator("compare_at_price")
    @classmethod
    def validate_compare_at_price(cls, v):
        return _check_price(v, "Compare at price")

    @field_validator("cost_price")
    @classmethod
    def validate_cost_price(cls, v):
        return _check_price(v, "Cost price")

    @model_validator(mode="after")
    def compare_at_above_price(self):
        if (
            self.price is not None
            and self.compare_at_price is not None
            and self.compare_at_price <= self.price
        ):
            raise ValueError("Compare at price must be greater than regular price")
        return self


class ProductOut(BaseModel):
    id: str
    sku: str
    name: str
    slug: str
    short_description: Optional[str] = None
    price: Decimal
    compare_at_price: Optional[Decimal] = None
    status: ProductStatus
    featured: bool
    category_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    primary_image: Optional[ProductImageSchema.Out] = None
    in_stock: bool = False
    low_stock: bool = False

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_product(cls, product) -> "ProductOut":
        out = cls.model_validate(product)
        primary = next((i for i in product.images if i.is_primary), None)
        if primary is None and product.images:
            primary = product.images[0]
        if primary is not None:
            out.primary_image = ProductImageSchema.Out.model_validate(primary)
        if product.inventory is not None:
            out.in_stock = product.inventory.in_stock
            out.low_stock = product.inventory.low_stock
        return out


class ProductDetail(ProductOut):
    description: Optional[str] = None
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    category: Optional[CategorySummary] = None
    images: List[ProductImageSchema.Out] = []
    inventory: Optional[InventoryOut] = None


class ProductAdminDetail(ProductDetail):
    cost_price: Optional[Decimal] = None
    deleted_at: Optional[datetime] = None


class ProductPage(BaseModel):
    items: List[ProductOut]
    pagination: PageMeta


class ProductQuery(BaseModel):
    page: int = Field(1, ge=1, le=1000)
    limit: int = Field(20, ge=1, le=100)
    search: Optional[str] = Field(None, max_length=200)
    category_id: Optional[str] = None
    include_descendants: bool = False
    featured: Optional[bool] = None
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    sort_by: str = Field("created_at", pattern="^(name|price|created_at|updated_at|featured)$")
    sort_order: SortDirection = SortDirection.DESC

    @model_validator(mode="after")
    def price_range(self):
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise ValueError("min_price cannot exceed max_price")
        return self


class AdminProductQuery(ProductQuery):
    status: Optional[ProductStatus] = None
    include_deleted: bool = False


class CategoryProductsQuery(BaseModel):
    page: int = Field(1, ge=1, le=1000)
    limit: int = Field(20, ge=1, le=100)
    sort_by: str = Field("featured", pattern="^(name|price|created_at|featured)$")
    sort_order: SortDirection = SortDirection.DESC


class CategoryView(BaseModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    sort_order: int = 0
    parent_id: Optional[str] = None
    parent: Optional[CategorySummary] = None
    children: List[CategorySchema.Out] = []
    path: List[CategorySummary] = []


class CategoryStorefront(BaseModel):
    """Public category page: the category, its neighbourhood and one page of products."""

    category: CategoryView
    products: List[ProductOut]
    pagination: PageMeta
