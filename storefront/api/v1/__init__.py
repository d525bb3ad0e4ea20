from fastapi import APIRouter
from storefront.api.v1.routers.admin_category_router import admin_category_router
from storefront.api.v1.routers.admin_product_router import admin_product_router
from storefront.api.v1.routers.auth_router import auth_router
from storefront.api.v1.routers.category_router import category_router
from storefront.api.v1.routers.product_router import product_router

api_router = APIRouter()

api_router.include_router(auth_router)
api_router.include_router(category_router)
api_router.include_router(product_router)
api_router.include_router(admin_category_router)
api_router.include_router(admin_product_router)
