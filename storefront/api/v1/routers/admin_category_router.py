from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from storefront.api.v1.dependencies import get_uow, require_admin
from storefront.domain.unit_of_work import UnitOfWork
from storefront.models.user_model import User
from storefront.schemas.category_schema import CategorySchema
from storefront.services.category_service import CategoryService
from storefront.utils.logger import get_logger

logger = get_logger("admin_category_router")


class AdminCategoryRouter:
    def __init__(self):
        self.router = APIRouter(
            prefix="/admin/categories",
            tags=["Admin Categories"],
            dependencies=[Depends(require_admin)],
        )
        self._register()

    def _register(self):
        self.router.get("/", response_model=None)(self._list_categories)
        self.router.post("/", response_model=CategorySchema.Out, status_code=status.HTTP_201_CREATED)(
            self._create_category
        )
        self.router.get("/{category_id}", response_model=CategorySchema.Detail)(self._get_category)
        self.router.put("/{category_id}", response_model=CategorySchema.Out)(self._update_category)
        self.router.delete("/{category_id}", response_model=CategorySchema.Deleted)(self._delete_category)
        self.router.get("/{category_id}/descendants", response_model=CategorySchema.Descendants)(
            self._descendants
        )

    async def _list_categories(
        self,
        query: Annotated[CategorySchema.AdminQuery, Query()],
        uow: UnitOfWork = Depends(get_uow),
    ):
        logger.info("Listing categories for admin")
        return CategoryService(uow).list_admin(query)

    async def _create_category(
        self,
        payload: CategorySchema.Create,
        uow: UnitOfWork = Depends(get_uow),
        current: User = Depends(require_admin),
    ):
        logger.info(f"Creating category {payload.name}")
        return CategoryService(uow).create(payload, current)

    async def _get_category(self, category_id: str, uow: UnitOfWork = Depends(get_uow)):
        logger.info(f"Getting category {category_id}")
        return CategoryService(uow).get_detail(category_id)

    async def _update_category(
        self,
        category_id: str,
        payload: CategorySchema.Update,
        uow: UnitOfWork = Depends(get_uow),
        current: User = Depends(require_admin),
    ):
        logger.info(f"Updating category {category_id}")
        return CategoryService(uow).update(category_id, payload, current)

    async def _delete_category(
        self,
        category_id: str,
        uow: UnitOfWork = Depends(get_uow),
        current: User = Depends(require_admin),
    ):
        logger.info(f"Deleting category {category_id}")
        return CategoryService(uow).delete(category_id, current)

    async def _descendants(self, category_id: str, uow: UnitOfWork = Depends(get_uow)):
        logger.info(f"Getting descendants of category {category_id}")
        return CategoryService(uow).descendants(category_id)


admin_category_router = AdminCategoryRouter().router
