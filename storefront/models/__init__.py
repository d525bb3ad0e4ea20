# Import order matters: Category is referenced by Product
from storefront.models.user_model import User
from storefront.models.category_model import Category
from storefront.models.product_model import Inventory, Product, ProductImage

__all__ = [
    "User",
    "Category",
    "Product",
    "ProductImage",
    "Inventory",
]
