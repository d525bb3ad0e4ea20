from fastapi import APIRouter, Depends, Request
from fastapi.security import OAuth2PasswordRequestForm

from storefront.api.v1.dependencies import get_uow
from storefront.core.auth import auth_manager
from storefront.core.config import settings
from storefront.domain.unit_of_work import UnitOfWork
from storefront.middlewares.rate_limit import limiter
from storefront.models.user_model import User
from storefront.schemas.auth_schema import Token, UserOut
from storefront.services.auth_service import AuthService
from storefront.utils.logger import get_logger

logger = get_logger("auth_router")


class AuthRouter:
    def __init__(self):
        self.router = APIRouter(prefix="/auth", tags=["Auth"])
        self._register()

    def _register(self):
        self.router.post("/token", response_model=Token)(
            limiter.limit(settings.rate_limit.login_limit)(self._login)
        )
        self.router.get("/me", response_model=UserOut)(self._me)

    async def _login(
        self,
        request: Request,
        form_data: OAuth2PasswordRequestForm = Depends(),
        uow: UnitOfWork = Depends(get_uow),
    ):
        # OAuth2 form field is "username"; accounts are keyed by email
        logger.info("Login attempt")
        return AuthService(uow).login(form_data.username, form_data.password)

    async def _me(self, current: User = Depends(auth_manager.get_current_user)):
        return current


auth_router = AuthRouter().router
