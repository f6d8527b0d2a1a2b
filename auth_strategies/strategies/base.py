"""
Base classes for authentication strategies and their factories.

A strategy is built per authentication attempt from validated options and a
verify callback, then ``authenticate(request)`` extracts credentials from the
request and hands them to the callback.
"""
import base64
import binascii
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Optional, Tuple, Type

from fastapi import Request

from ..errors import VerifierNotConfiguredError
from ..strategy_name import StrategyName
from ..types import GenericAuthFn, StrategyOptions, StrategyResult

logger = logging.getLogger(__name__)

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


class AuthStrategy(ABC):
    name: ClassVar[StrategyName]

    def __init__(self, options: StrategyOptions, verify: GenericAuthFn):
        self.options = options
        self.verify = verify

    @abstractmethod
    async def authenticate(self, request: Request) -> StrategyResult:
        """Authenticate ``request`` and report success, failure or a redirect."""

    async def call_verify(self, request: Request, *args: Any) -> Any:
        """Invoke the verify callback, awaiting it when it is a coroutine."""
        if self.options.pass_request_to_callback:
            args = (request,) + args
        result = self.verify(*args)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name.value}>"


class StrategyFactory:
    """Callable building one strategy type from ``(options, verifier)``.

    ``default_verifier`` is used when the caller passes no verifier.
    """
    strategy_class: ClassVar[Type[AuthStrategy]]
    options_model: ClassVar[Type[StrategyOptions]]

    def __init__(self, default_verifier: Optional[GenericAuthFn] = None):
        self.default_verifier = default_verifier

    def __call__(self, options: Any, verifier: Optional[GenericAuthFn] = None) -> AuthStrategy:
        verify = verifier if verifier is not None else self.default_verifier
        if verify is None:
            raise VerifierNotConfiguredError(self.strategy_class.name)
        validated = self.options_model.model_validate(options if options is not None else {})
        return self.strategy_class(validated, verify)


async def read_body_params(request: Request) -> Dict[str, Any]:
    """Return JSON or form body parameters, or an empty dict."""
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type == "application/json":
        try:
            data = await request.json()
        except ValueError:
            logger.debug("Ignoring malformed JSON body on %s", request.url.path)
            return {}
        return data if isinstance(data, dict) else {}
    if content_type in _FORM_CONTENT_TYPES:
        form = await request.form()
        return {k: v for k, v in form.items() if isinstance(v, str)}
    return {}


async def read_params(request: Request) -> Dict[str, Any]:
    """Query parameters overlaid with body parameters."""
    params: Dict[str, Any] = dict(request.query_params)
    params.update(await read_body_params(request))
    return params


def parse_basic_authorization(request: Request) -> Optional[Tuple[str, str]]:
    """Decode an ``Authorization: Basic`` header into ``(user, password)``."""
    header = request.headers.get("authorization")
    if not header:
        return None
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "basic" or not value:
        return None
    try:
        decoded = base64.b64decode(value.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    user, sep, password = decoded.partition(":")
    if not sep:
        return None
    return user, password
