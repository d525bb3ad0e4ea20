import inspect

from storefront.domain.repositories.base import IRepository
from storefront.domain.repositories.category_repository import CategoryRepository
from storefront.models.category_model import Category


class TestSQLAlchemyRepository:
    def test_interface_is_what_services_use(self):
        abstract = {
            name
            for name, member in inspect.getmembers(IRepository)
            if getattr(member, "__isabstractmethod__", False)
        }
        assert abstract == {"add", "get", "exists", "delete", "flush"}

    def test_crud_round(self, db_session):
        repo = CategoryRepository(db_session)
        category = repo.add(Category(name="Boots", slug="boots"))
        repo.flush()

        assert repo.get(category.id) is category
        assert repo.exists(category.id)
        assert repo.get(None) is None

        repo.delete(category)
        repo.flush()
        assert not repo.exists(category.id)
