"""Username/password authentication against a caller-supplied verifier."""
import logging

from fastapi import Request

from ..strategy_name import StrategyName
from ..types import LocalPasswordFn, LocalStrategyOptions, StrategyResult
from .base import AuthStrategy, StrategyFactory, read_params

logger = logging.getLogger(__name__)


class LocalPasswordStrategy(AuthStrategy):
    name = StrategyName.LOCAL
    verify: LocalPasswordFn

    async def authenticate(self, request: Request) -> StrategyResult:
        params = await read_params(request)
        username = params.get(self.options.username_field)
        password = params.get(self.options.password_field)
        if not username or not password:
            return StrategyResult.fail("Missing credentials", status_code=400)

        user = await self.call_verify(request, username, password)
        if not user:
            logger.info("Local login rejected for %s", username)
            return StrategyResult.fail("Invalid credentials")
        return StrategyResult.success(user)


class LocalPasswordStrategyFactory(StrategyFactory):
    strategy_class = LocalPasswordStrategy
    options_model = LocalStrategyOptions
