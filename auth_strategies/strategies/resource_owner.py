"""OAuth2 resource owner password credentials grant.

Client credentials come from the request body or from an HTTP Basic
``Authorization`` header; user credentials always come from the body.
"""
import logging

from fastapi import Request

from ..strategy_name import StrategyName
from ..types import ResourceOwnerPasswordFn, ResourceOwnerPasswordOptions, StrategyResult
from .base import AuthStrategy, StrategyFactory, parse_basic_authorization, read_params

logger = logging.getLogger(__name__)


class ResourceOwnerPasswordStrategy(AuthStrategy):
    name = StrategyName.OAUTH2_RESOURCE_OWNER_GRANT
    verify: ResourceOwnerPasswordFn

    async def authenticate(self, request: Request) -> StrategyResult:
        params = await read_params(request)
        client_id = params.get("client_id")
        client_secret = params.get("client_secret")
        if not client_id:
            basic = parse_basic_authorization(request)
            if basic:
                client_id, client_secret = basic

        username = params.get("username")
        password = params.get("password")
        if not client_id or not username or not password:
            return StrategyResult.fail("Missing credentials", status_code=400)

        user = await self.call_verify(request, client_id, client_secret, username, password)
        if not user:
            logger.info("Resource owner grant rejected for client %s", client_id)
            return StrategyResult.fail("Invalid credentials")
        return StrategyResult.success(user)


class ResourceOwnerPasswordStrategyFactory(StrategyFactory):
    strategy_class = ResourceOwnerPasswordStrategy
    options_model = ResourceOwnerPasswordOptions
