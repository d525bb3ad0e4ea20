from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ProductImageSchema:
    class Upload(BaseModel):
        data: str = Field(..., min_length=1, description="data:<mime>;base64,<payload>")
        alt_text: Optional[str] = Field(None, max_length=255)
        is_primary: bool = False

    class UploadBatch(BaseModel):
        images: List["ProductImageSchema.Upload"] = Field(..., min_length=1)

        @model_validator(mode="after")
        def single_primary(self):
            if sum(1 for image in self.images if image.is_primary) > 1:
                raise ValueError("Only one image can be marked as primary")
            return self

    class Update(BaseModel):
        alt_text: Optional[str] = Field(None, max_length=255)
        is_primary: Optional[bool] = None

    class Reorder(BaseModel):
        image_ids: List[str] = Field(..., min_length=1)

    class Out(BaseModel):
        id: str
        product_id: str
        url: str
        alt_text: Optional[str] = None
        sort_order: int
        is_primary: bool
        created_at: Optional[datetime] = None

        model_config = ConfigDict(from_attributes=True)


ProductImageSchema.UploadBatch.model_rebuild()
