"""
FastAPI integration.

Endpoints declare their authentication with the ``authenticate`` decorator;
an ``Authenticator`` dependency reads that metadata for the matched endpoint,
resolves the strategy and runs it against the request.

    authenticator = Authenticator(resolver)

    @app.get("/me")
    @authenticate(StrategyName.BEARER, verifier="bearer.verifier")
    def me(user = Depends(authenticator)):
        return user
"""
import logging
from typing import Any, Callable, Optional, TypeVar

from fastapi import HTTPException, Request, Response

from .errors import AuthStrategyError
from .resolver import AuthStrategyResolver
from .strategy_name import StrategyName
from .types import AuthenticationMetadata, ResultStatus

logger = logging.getLogger(__name__)

METADATA_ATTR = "__auth_metadata__"

F = TypeVar("F", bound=Callable[..., Any])


def authenticate(strategy: StrategyName | str, options: Any = None, verifier: Optional[str] = None) -> Callable[[F], F]:
    """Attach authentication metadata to an endpoint function."""
    metadata = AuthenticationMetadata(strategy=strategy, options=options, verifier=verifier)

    def decorator(fn: F) -> F:
        setattr(fn, METADATA_ATTR, metadata)
        return fn

    return decorator


def get_metadata(endpoint: Any) -> Optional[AuthenticationMetadata]:
    return getattr(endpoint, METADATA_ATTR, None)


class Authenticator:
    """Dependency returning the authenticated principal, or None on public endpoints."""

    def __init__(self, resolver: AuthStrategyResolver):
        self.resolver = resolver

    async def __call__(self, request: Request, response: Response) -> Any:
        metadata = get_metadata(request.scope.get("endpoint"))
        try:
            strategy = await self.resolver.resolve(metadata)
        except AuthStrategyError as exc:
            logger.error("Authentication misconfigured for %s: %s", request.url.path, exc)
            raise HTTPException(status_code=500, detail=str(exc))
        if strategy is None:
            return None

        result = await strategy.authenticate(request)
        if result.status is ResultStatus.SUCCESS:
            for key, value in (result.headers or {}).items():
                response.headers.append(key, value)
            request.state.user = result.user
            return result.user
        if result.status is ResultStatus.REDIRECT:
            headers = dict(result.headers or {}, Location=result.redirect_url)
            raise HTTPException(status_code=result.status_code, headers=headers)

        headers = {"WWW-Authenticate": result.challenge} if result.challenge else None
        logger.info("Authentication failed on %s via %s: %s", request.url.path, strategy.name.value, result.message)
        raise HTTPException(status_code=result.status_code, detail=result.message, headers=headers)
