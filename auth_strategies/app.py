from contextlib import asynccontextmanager
import logging
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Request

from .config import Settings, configure_logging, load_settings, provider_options
from .middleware import Authenticator, authenticate
from .resolver import AuthStrategyResolver
from .strategies import default_factories
from .strategy_name import StrategyName
from .tokens import JWTBearerVerifier
from .verifiers import VerifierRegistry

logger = logging.getLogger(__name__)

LOCAL_VERIFIER = "local.verifier"
BEARER_VERIFIER = "bearer.verifier"
RESOURCE_OWNER_VERIFIER = "resource-owner.verifier"

PROVIDER_PATHS = {
    StrategyName.GOOGLE_OAUTH2: "google",
    StrategyName.AZURE_AD: "azure",
    StrategyName.KEYCLOAK: "keycloak",
    StrategyName.INSTAGRAM_OAUTH2: "instagram",
}


def provider_verifier_id(name: StrategyName) -> str:
    return f"{name.value}.verifier"


def principal_subject(principal: Any) -> str:
    """Best-effort subject identifier for a verifier's principal."""
    if isinstance(principal, dict):
        for key in ('sub', 'id', 'username', 'email'):
            if principal.get(key):
                return str(principal[key])
    for attr in ('id', 'username'):
        value = getattr(principal, attr, None)
        if value:
            return str(value)
    return str(principal)


def _login_response(request: Request, principal: Any) -> Dict[str, Any]:
    issuer: Optional[JWTBearerVerifier] = request.app.state.token_issuer
    if issuer is None:
        raise HTTPException(status_code=503, detail="Token issuing is not configured")
    return {
        "access_token": issuer.create_token(principal_subject(principal)),
        "token_type": "bearer",
        "expires_in": issuer.expiry_seconds,
    }


def create_app(settings: Settings | None = None, verifiers: VerifierRegistry | None = None) -> FastAPI:
    """Build the FastAPI service.

    ``verifiers`` supplies the callbacks for local logins, the resource owner
    grant and federated providers. The bearer verifier is registered from
    ``jwt_secret`` unless one is already present.
    """
    settings = settings or load_settings()
    if verifiers is None:
        verifiers = VerifierRegistry()

    token_issuer = None
    if settings.jwt_secret:
        token_issuer = JWTBearerVerifier(
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expiry_seconds=settings.jwt_expiry_seconds,
            issuer=settings.jwt_issuer,
        )
        if not verifiers.is_registered(BEARER_VERIFIER):
            verifiers.register(BEARER_VERIFIER, token_issuer)

    resolver = AuthStrategyResolver(default_factories(), verifiers)
    authenticator = Authenticator(resolver)

    @asynccontextmanager
    async def lifespan(app_instance: FastAPI):
        """Manage application lifecycle (startup and shutdown events)."""
        configure_logging(settings)
        logger.info("Starting auth_strategies service (verifiers: %s)", ", ".join(verifiers.list_verifiers()) or "none")
        yield
        logger.info("Shutdown event completed")

    app = FastAPI(title="auth_strategies", description="Per-endpoint authentication strategies", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.verifiers = verifiers
    app.state.resolver = resolver
    app.state.token_issuer = token_issuer

    @app.get("/health", tags=["health"])
    def health() -> Dict[str, Any]:
        return {"status": "ok"}

    @app.post("/auth/login", tags=["auth"])
    @authenticate(StrategyName.LOCAL, verifier=LOCAL_VERIFIER)
    def login(request: Request, user: Any = Depends(authenticator)):
        return _login_response(request, user)

    @app.post("/auth/token", tags=["auth"])
    @authenticate(StrategyName.OAUTH2_RESOURCE_OWNER_GRANT, verifier=RESOURCE_OWNER_VERIFIER)
    def token(request: Request, user: Any = Depends(authenticator)):
        return _login_response(request, user)

    @app.get("/me", tags=["auth"])
    @authenticate(StrategyName.BEARER, options={"realm": settings.bearer_realm}, verifier=BEARER_VERIFIER)
    def me(user: Any = Depends(authenticator)):
        return {"user": user}

    for name, options in provider_options(settings).items():
        _add_provider_routes(app, authenticator, name, options)

    return app


def _add_provider_routes(app: FastAPI, authenticator: Authenticator, name: StrategyName, options: Dict[str, Any]) -> None:
    path = PROVIDER_PATHS[name]

    # login and callback share one strategy: no ``code`` means redirect
    @authenticate(name, options=options, verifier=provider_verifier_id(name))
    def provider_login(request: Request, user: Any = Depends(authenticator)):
        return _login_response(request, user)

    app.add_api_route(f"/auth/{path}/login", provider_login, methods=["GET"], tags=["auth"], name=f"{path}_login")
    # POST for providers answering with response_mode=form_post
    app.add_api_route(f"/auth/{path}/callback", provider_login, methods=["GET", "POST"], tags=["auth"], name=f"{path}_callback")
    logger.debug("Registered %s login routes under /auth/%s", name.value, path)


def main():
    import uvicorn

    settings = load_settings()
    configure_logging(settings)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
