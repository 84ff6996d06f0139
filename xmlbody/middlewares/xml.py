"""XML body parsing middleware.

:class:`XmlBodyInterceptor` holds the parsing rules and knows nothing about
Robyn: it works on a :class:`RequestContext` and reports its outcome through
a ``proceed`` callback. :class:`XmlBodyParserMiddleware` plugs it into a Robyn
application.
"""

import re
from collections.abc import Callable
from functools import partial
from typing import Any

import orjson
from robyn import Request, Response

from xmlbody.core.exceptions import (
    BodyParserError,
    EmptyBodyError,
    MalformedBodyError,
    UnsupportedCharsetError,
)
from xmlbody.core.logger import LogIcon, logger
from xmlbody.middlewares.base import BaseMiddleware
from xmlbody.models.core import RequestContext, XmlBodyParserConfig
from xmlbody.parsers.content_type import (
    get_content_type_pattern,
    matches_content_type,
    split_content_type,
)
from xmlbody.parsers.xml import PARSE_ERRORS, XmlParser, parse_xml

Proceed = Callable[..., None]

# Set on the Robyn request once a body parser has consumed the body.
BODY_PARSED_HEADER = "x-body-parsed"

DEFAULT_CHARSET = "utf-8"


class XmlBodyInterceptor:
    """Parses XML request bodies into mappings for downstream handlers."""

    __slots__ = ("_config", "_parser")

    def __init__(self, config: XmlBodyParserConfig, parser: XmlParser | None = None) -> None:
        self._config = config
        self._parser = parser or partial(parse_xml, **config.xml_options)

    @property
    def config(self) -> XmlBodyParserConfig:
        return self._config

    @property
    def content_type_pattern(self) -> re.Pattern[str]:
        """Pattern in effect: the configured one, else the process-wide one."""
        return self._config.content_type or get_content_type_pattern()

    def matches(self, content_type: str | None) -> bool:
        return matches_content_type(content_type, self.content_type_pattern)

    async def __call__(self, context: RequestContext, proceed: Proceed) -> None:
        if context.body_consumed:
            logger.debug("Body already consumed, skipping", icon=LogIcon.SKIP)
            proceed()
            return

        if not self.matches(context.content_type):
            logger.debug("Content-type not XML, skipping", icon=LogIcon.SKIP, content_type=context.content_type)
            proceed()
            return

        context.body_consumed = True
        try:
            raw = await context.read_body()
        except Exception as ex:
            logger.warning("Failed reading request body", icon=LogIcon.NETWORK, error=str(ex))
            proceed(ex)
            return

        try:
            context.body = self.parse(raw, context.content_type)
        except BodyParserError as err:
            logger.warning(
                "Rejected XML body",
                icon=LogIcon.VALIDATION,
                status_code=err.status_code,
                error=str(err),
            )
            proceed(err)
            return

        logger.debug("Parsed XML body", icon=LogIcon.XML, size=len(raw))
        proceed()

    def parse(self, raw: bytes, content_type: str | None = None) -> Any:
        """Decode, trim and parse a raw body, raising a :class:`BodyParserError` on rejection.

        A zero-length body is rejected before decoding, so it answers 411 whatever
        its charset. Whitespace-only bodies are only known after decoding.
        """
        if not raw:
            raise EmptyBodyError("Request body is empty")

        _, params = split_content_type(content_type or "")
        charset = params.get("charset") or DEFAULT_CHARSET

        try:
            text = raw.decode(charset)
        except LookupError as ex:
            raise UnsupportedCharsetError(f"Unsupported charset: {charset}") from ex
        except UnicodeDecodeError as ex:
            raise MalformedBodyError(f"Body is not valid {charset}") from ex

        if self._config.trim:
            text = text.strip()
        if not text:
            raise EmptyBodyError("Request body is empty")

        try:
            return self._parser(text)
        except PARSE_ERRORS as ex:
            raise MalformedBodyError(f"Invalid XML: {ex}") from ex


def xml_body_parser(
    config: XmlBodyParserConfig | None = None,
    *,
    parser: XmlParser | None = None,
    **options: Any,
) -> XmlBodyInterceptor:
    """Create an XML body interceptor.

    Either pass a config object or its fields as keyword options::

        xml_body_parser(trim=False)
        xml_body_parser(XmlBodyParserConfig(xml_options={"force_list": ("item",)}))
    """
    if config is None:
        config = XmlBodyParserConfig(**options)
    elif options:
        raise TypeError("Pass either a config object or keyword options, not both")
    return XmlBodyInterceptor(config, parser=parser)


async def read_request_body(request: Request) -> bytes:
    """Return the Robyn request body as bytes."""
    match request.body:
        case None:
            return b""
        case bytes() as body:
            return body
        # Robyn hands out valid UTF-8 bodies as str
        case str() as body:
            return body.encode(DEFAULT_CHARSET)
        case body:
            return bytes(body)


def parsed_body(request: Request) -> Any:
    """Return the body parsed by :class:`XmlBodyParserMiddleware`, or ``{}`` when it was not parsed.

    Covers requests the middleware skipped: no or non-XML content-type, a route
    outside its endpoints, or a client-sent ``x-body-parsed`` header over raw text.
    """
    if request.headers.get(BODY_PARSED_HEADER) != "xml":
        return {}
    try:
        return orjson.loads(request.body)
    except orjson.JSONDecodeError:
        return {}


class XmlBodyParserMiddleware(BaseMiddleware):
    """Robyn middleware replacing XML request bodies with their JSON-encoded parsed form.

    Handlers then read the body as a dict or pydantic model through
    :class:`xmlbody.core.router.Router`. Rejected bodies are answered here with a
    JSON error response carrying the error's status code.
    """

    def __init__(
        self,
        endpoints: frozenset[str] | list[str] | None = None,
        config: XmlBodyParserConfig | None = None,
        parser: XmlParser | None = None,
    ) -> None:
        super().__init__(endpoints)
        self.interceptor = xml_body_parser(config, parser=parser)

    async def before(self, request: Request) -> Request | Response:
        context = RequestContext(
            content_type=request.headers.get("content-type"),
            read_body=partial(read_request_body, request),
            body_consumed=bool(request.headers.get(BODY_PARSED_HEADER)),
        )
        was_consumed = context.body_consumed
        outcome: list[BaseException | None] = []

        def proceed(error: BaseException | None = None) -> None:
            outcome.append(error)

        await self.interceptor(context, proceed)

        match outcome:
            case [None] if context.body_consumed and not was_consumed:
                request.body = orjson.dumps(context.body).decode()
                request.headers.set(BODY_PARSED_HEADER, "xml")
                return request
            case [None]:
                return request
            case [BodyParserError() as err]:
                return Response(
                    status_code=err.status_code,
                    headers={"content-type": "application/json"},
                    description=orjson.dumps(err.to_dict()).decode(),
                )
            case [BaseException() as err]:
                raise err
            case _:
                raise RuntimeError(f"Body interceptor called proceed {len(outcome)} times")
