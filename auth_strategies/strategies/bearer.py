"""Bearer token authentication (RFC 6750 header, body or query token)."""
import logging
from typing import Optional

from fastapi import Request

from ..strategy_name import StrategyName
from ..tokens import token_fingerprint
from ..types import BearerFn, BearerStrategyOptions, StrategyResult
from .base import AuthStrategy, StrategyFactory, read_body_params

logger = logging.getLogger(__name__)


class BearerStrategy(AuthStrategy):
    name = StrategyName.BEARER
    verify: BearerFn

    def _challenge(self, error: Optional[str] = None) -> str:
        parts = [f'realm="{self.options.realm}"']
        if self.options.scopes:
            parts.append(f'scope="{" ".join(self.options.scopes)}"')
        if error:
            parts.append(f'error="{error}"')
        return "Bearer " + ", ".join(parts)

    async def _extract_token(self, request: Request) -> Optional[str]:
        header = request.headers.get("authorization")
        if header:
            scheme, _, credentials = header.partition(" ")
            if scheme.lower() == "bearer" and credentials.strip():
                return credentials.strip()
        body = await read_body_params(request)
        if body.get("access_token"):
            return body["access_token"]
        return request.query_params.get("access_token") or None

    async def authenticate(self, request: Request) -> StrategyResult:
        token = await self._extract_token(request)
        if not token:
            return StrategyResult.fail("Missing bearer token", challenge=self._challenge())

        user = await self.call_verify(request, token)
        if not user:
            logger.debug("Bearer token %s rejected on %s", token_fingerprint(token), request.url.path)
            return StrategyResult.fail("Invalid bearer token", challenge=self._challenge("invalid_token"))
        return StrategyResult.success(user)


class BearerStrategyFactory(StrategyFactory):
    strategy_class = BearerStrategy
    options_model = BearerStrategyOptions
