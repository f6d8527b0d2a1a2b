"""Instagram Basic Display OAuth 2.0 login."""
from typing import Any, Dict

from authlib.integrations.httpx_client import AsyncOAuth2Client

from ..strategy_name import StrategyName
from ..types import InstagramAuthFn, InstagramOAuth2Options
from .base import StrategyFactory
from .oauth2 import OAuth2CodeStrategy, json_body

INSTAGRAM_AUTHORIZATION_ENDPOINT = "https://api.instagram.com/oauth/authorize"
INSTAGRAM_TOKEN_ENDPOINT = "https://api.instagram.com/oauth/access_token"
INSTAGRAM_PROFILE_ENDPOINT = "https://graph.instagram.com/me"


class InstagramOAuth2Strategy(OAuth2CodeStrategy):
    name = StrategyName.INSTAGRAM_OAUTH2
    verify: InstagramAuthFn
    options: InstagramOAuth2Options

    # Instagram only accepts client credentials in the form body
    token_endpoint_auth_method = "client_secret_post"
    use_pkce = False

    async def endpoints(self) -> Dict[str, str]:
        return {
            "authorization_endpoint": INSTAGRAM_AUTHORIZATION_ENDPOINT,
            "token_endpoint": INSTAGRAM_TOKEN_ENDPOINT,
            "userinfo_endpoint": INSTAGRAM_PROFILE_ENDPOINT,
        }

    async def fetch_profile(self, client: AsyncOAuth2Client, token: Dict[str, Any], endpoints: Dict[str, str]) -> Dict[str, Any]:
        resp = await client.get(
            endpoints["userinfo_endpoint"],
            params={"fields": self.options.profile_fields, "access_token": token.get("access_token")},
            withhold_token=True,
        )
        resp.raise_for_status()
        return json_body(resp)


class InstagramAuthStrategyFactory(StrategyFactory):
    strategy_class = InstagramOAuth2Strategy
    options_model = InstagramOAuth2Options
