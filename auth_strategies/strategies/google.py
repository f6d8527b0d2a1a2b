"""Google OAuth 2.0 / OpenID Connect login."""
from typing import Any, Dict

from ..strategy_name import StrategyName
from ..types import GoogleAuthFn, GoogleOAuth2Options
from .base import StrategyFactory
from .oauth2 import OAuth2CodeStrategy

GOOGLE_AUTHORIZATION_ENDPOINT = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_ENDPOINT = "https://openidconnect.googleapis.com/v1/userinfo"


class GoogleOAuth2Strategy(OAuth2CodeStrategy):
    name = StrategyName.GOOGLE_OAUTH2
    verify: GoogleAuthFn
    options: GoogleOAuth2Options

    async def endpoints(self) -> Dict[str, str]:
        return {
            "authorization_endpoint": GOOGLE_AUTHORIZATION_ENDPOINT,
            "token_endpoint": GOOGLE_TOKEN_ENDPOINT,
            "userinfo_endpoint": GOOGLE_USERINFO_ENDPOINT,
        }

    def authorization_params(self) -> Dict[str, Any]:
        params = {}
        if self.options.access_type:
            params["access_type"] = self.options.access_type
        if self.options.prompt:
            params["prompt"] = self.options.prompt
        return params


class GoogleAuthStrategyFactory(StrategyFactory):
    strategy_class = GoogleOAuth2Strategy
    options_model = GoogleOAuth2Options
