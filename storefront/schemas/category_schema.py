from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from storefront.core.constants import SLUG_PATTERN, SortDirection
from storefront.schemas.pagination_schema import PageMeta


class CategorySummary(BaseModel):
    id: str
    name: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


class CategorySchema:
    class Create(BaseModel):
        name: str = Field(..., min_length=1, max_length=100)
        slug: Optional[str] = Field(None, min_length=1, max_length=100, pattern=SLUG_PATTERN)
        description: Optional[str] = Field(None, max_length=1000)
        image_url: Optional[str] = Field(None, max_length=500)
        sort_order: int = Field(0, ge=0, le=999999)
        parent_id: Optional[str] = None

        @field_validator("name", "description", mode="before")
        @classmethod
        def strip_text(cls, v):
            return v.strip() if isinstance(v, str) else v

        @field_validator("image_url")
        @classmethod
        def validate_image_url(cls, v):
            if v is not None and not v.startswith(("http://", "https://")):
                raise ValueError("Invalid image URL")
            return v

    # Slug is fixed at creation so public URLs stay stable
    class Update(BaseModel):
        name: Optional[str] = Field(None, min_length=1, max_length=100)
        description: Optional[str] = Field(None, max_length=1000)
        image_url: Optional[str] = Field(None, max_length=500)
        sort_order: Optional[int] = Field(None, ge=0, le=999999)
        parent_id: Optional[str] = None

        model_config = ConfigDict(extra="forbid")

        @field_validator("name", "description", mode="before")
        @classmethod
        def strip_text(cls, v):
            return v.strip() if isinstance(v, str) else v

    class Out(BaseModel):
        id: str
        name: str
        slug: str
        description: Optional[str] = None
        image_url: Optional[str] = None
        sort_order: int = 0
        parent_id: Optional[str] = None
        created_at: Optional[datetime] = None
        updated_at: Optional[datetime] = None
        product_count: Optional[int] = None

        model_config = ConfigDict(from_attributes=True)

    class TreeNode(Out):
        children: List["CategorySchema.TreeNode"] = []

    class FlatNode(Out):
        depth: int

    class ProductBrief(BaseModel):
        id: str
        name: str
        slug: str
        price: float
        status: str

        model_config = ConfigDict(from_attributes=True)

    class Detail(Out):
        parent: Optional[CategorySummary] = None
        children: List["CategorySchema.Out"] = []
        products: List["CategorySchema.ProductBrief"] = []
        child_count: int = 0
        path: List[CategorySummary] = []

    class Page(BaseModel):
        items: List["CategorySchema.Out"]
        pagination: PageMeta

    class Descendants(BaseModel):
        category_id: str
        descendant_ids: List[str]
        product_count: int

    class Deleted(BaseModel):
        id: str
        name: str
        children_moved: int

    class AdminQuery(BaseModel):
        page: int = Field(1, ge=1, le=1000)
        limit: int = Field(100, ge=1, le=100)
        search: Optional[str] = Field(None, max_length=200)
        parent_id: Optional[str] = None
        include_children: bool = False
        # With include_children: pre-order list with depth instead of nesting
        flatten: bool = False
        sort_by: str = Field("sort_order", pattern="^(name|sort_order|created_at|updated_at)$")
        sort_order: SortDirection = SortDirection.ASC

        @property
        def root_only(self) -> bool:
            return self.parent_id in ("root", "null")


CategorySchema.TreeNode.model_rebuild()
CategorySchema.Detail.model_rebuild()
CategorySchema.Page.model_rebuild()
