"""Tests for the framework-agnostic XML body interceptor."""

import re
from unittest.mock import AsyncMock, MagicMock

import pytest

from xmlbody.core.exceptions import EmptyBodyError, MalformedBodyError, UnsupportedCharsetError
from xmlbody.middlewares.xml import XmlBodyInterceptor, xml_body_parser
from xmlbody.models.core import RequestContext, XmlBodyParserConfig
from xmlbody.parsers.content_type import set_content_type_pattern


def make_context(raw: bytes = b"", content_type: str | None = "application/xml", **kwargs) -> RequestContext:
    return RequestContext(content_type=content_type, read_body=AsyncMock(return_value=raw), **kwargs)


async def run(interceptor: XmlBodyInterceptor, context: RequestContext) -> MagicMock:
    """Run the interceptor and check it proceeded exactly once."""
    proceed = MagicMock()
    await interceptor(context, proceed)
    proceed.assert_called_once()
    return proceed


def error_of(proceed: MagicMock) -> BaseException | None:
    args = proceed.call_args.args
    return args[0] if args else None


# -----------------------------------------------------------------------------
# Factory Tests
# -----------------------------------------------------------------------------


class TestFactory:
    """Tests for xml_body_parser factory."""

    def test_defaults(self) -> None:
        interceptor = xml_body_parser()
        assert interceptor.config.trim is True
        assert interceptor.config.content_type is None

    def test_keyword_options(self) -> None:
        assert xml_body_parser(trim=False).config.trim is False

    def test_config_object(self) -> None:
        config = XmlBodyParserConfig(trim=False)
        assert xml_body_parser(config).config is config

    def test_config_and_options_conflict(self) -> None:
        with pytest.raises(TypeError):
            xml_body_parser(XmlBodyParserConfig(), trim=False)


# -----------------------------------------------------------------------------
# Skip Tests
# -----------------------------------------------------------------------------


class TestSkip:
    """Tests for requests the interceptor must leave alone."""

    async def test_no_content_type(self, items_xml: str) -> None:
        """Verify a body without content-type is not parsed."""
        context = make_context(items_xml.encode(), content_type=None)

        proceed = await run(xml_body_parser(), context)

        assert error_of(proceed) is None
        assert context.body is None
        assert context.body_consumed is False
        context.read_body.assert_not_awaited()

    async def test_non_xml_content_type(self) -> None:
        context = make_context(b'{"a": 1}', content_type="application/json")

        proceed = await run(xml_body_parser(), context)

        assert error_of(proceed) is None
        context.read_body.assert_not_awaited()

    async def test_already_consumed(self, items_xml: str) -> None:
        """Verify a body parsed by a previous component stays untouched."""
        context = make_context(items_xml.encode(), body="fake data", body_consumed=True)

        proceed = await run(xml_body_parser(), context)

        assert error_of(proceed) is None
        assert context.body == "fake data"
        context.read_body.assert_not_awaited()


# -----------------------------------------------------------------------------
# Parse Tests
# -----------------------------------------------------------------------------


class TestParse:
    """Tests for matching requests."""

    async def test_parses_vendor_xml(self, items_xml: str, item_list: dict) -> None:
        context = make_context(items_xml.encode(), content_type="application/vendor-spec+xml")

        proceed = await run(xml_body_parser(), context)

        assert error_of(proceed) is None
        assert context.body == item_list
        assert context.body_consumed is True

    async def test_replaces_previous_body(self, items_xml: str, item_list: dict) -> None:
        context = make_context(items_xml.encode(), body={"stale": True})
        await run(xml_body_parser(), context)
        assert context.body == item_list

    async def test_ignores_charset_suffix(self, items_xml: str, item_list: dict) -> None:
        context = make_context(items_xml.encode(), content_type="text/xml; charset=utf-8")
        await run(xml_body_parser(), context)
        assert context.body == item_list

    async def test_decodes_declared_charset(self) -> None:
        context = make_context("<name>Zoë</name>".encode("latin-1"), content_type="text/xml; charset=latin-1")

        proceed = await run(xml_body_parser(), context)

        assert error_of(proceed) is None
        assert context.body == {"name": "Zoë"}

    async def test_xml_options_forwarded(self) -> None:
        interceptor = xml_body_parser(xml_options={"force_list": ("item",)})
        context = make_context(b"<list><item>only</item></list>")

        await run(interceptor, context)

        assert context.body == {"list": {"item": ["only"]}}

    async def test_custom_parser(self) -> None:
        parser = MagicMock(return_value={"parsed": True})
        context = make_context(b"  <a/>  ")

        await run(xml_body_parser(parser=parser), context)

        parser.assert_called_once_with("<a/>")
        assert context.body == {"parsed": True}

    async def test_custom_parser_errors_are_not_swallowed(self) -> None:
        """Verify non-parse errors from a parser propagate."""
        parser = MagicMock(side_effect=RuntimeError("bug"))
        context = make_context(b"<a/>")

        with pytest.raises(RuntimeError, match="bug"):
            await xml_body_parser(parser=parser)(context, MagicMock())


# -----------------------------------------------------------------------------
# Error Tests
# -----------------------------------------------------------------------------


class TestErrors:
    """Tests for rejected bodies."""

    async def test_null_body_is_411(self) -> None:
        context = make_context(b"")

        error = error_of(await run(xml_body_parser(), context))

        assert isinstance(error, EmptyBodyError)
        assert error.status_code == 411
        assert context.body is None

    async def test_empty_body_with_unknown_charset_is_411(self) -> None:
        """Verify a zero-length body is rejected before its charset is looked up."""
        context = make_context(b"", content_type="application/xml; charset=klingon")

        error = error_of(await run(xml_body_parser(), context))

        assert isinstance(error, EmptyBodyError)
        assert error.status_code == 411

    async def test_whitespace_body_is_411(self) -> None:
        error = error_of(await run(xml_body_parser(), make_context(b"   ")))
        assert isinstance(error, EmptyBodyError)

    async def test_whitespace_body_without_trim_reaches_parser(self) -> None:
        """Verify trim=False hands whitespace to the parser, which rejects it."""
        error = error_of(await run(xml_body_parser(trim=False), make_context(b"   ")))
        assert isinstance(error, MalformedBodyError)

    async def test_invalid_xml_is_400(self) -> None:
        context = make_context(b"<xml>this is invalid", content_type="application/vendor-spec+xml")

        error = error_of(await run(xml_body_parser(), context))

        assert isinstance(error, MalformedBodyError)
        assert error.status_code == 400
        assert error.cause is not None
        assert context.body is None

    async def test_parser_value_error_is_400(self) -> None:
        parser = MagicMock(side_effect=ValueError("nope"))
        error = error_of(await run(xml_body_parser(parser=parser), make_context(b"<a/>")))
        assert isinstance(error, MalformedBodyError)
        assert isinstance(error.__cause__, ValueError)

    async def test_undecodable_body_is_400(self) -> None:
        error = error_of(await run(xml_body_parser(), make_context(b"<a>\xff\xfe</a>")))
        assert isinstance(error, MalformedBodyError)

    async def test_unknown_charset_is_415(self) -> None:
        context = make_context(b"<a/>", content_type="application/xml; charset=klingon")

        error = error_of(await run(xml_body_parser(), context))

        assert isinstance(error, UnsupportedCharsetError)
        assert error.status_code == 415

    async def test_transport_error_forwarded_unchanged(self) -> None:
        failure = ConnectionResetError("client went away")
        context = RequestContext(content_type="application/xml", read_body=AsyncMock(side_effect=failure))

        error = error_of(await run(xml_body_parser(), context))

        assert error is failure
        assert context.body_consumed is True


# -----------------------------------------------------------------------------
# Content-type pattern Tests
# -----------------------------------------------------------------------------


class TestContentTypePattern:
    """Tests for per-instance and process-wide pattern overrides."""

    async def test_config_pattern(self, items_xml: str, item_list: dict) -> None:
        interceptor = xml_body_parser(content_type=re.compile(r"custom/mime", re.IGNORECASE))

        skipped = make_context(items_xml.encode(), content_type="application/xml")
        await run(interceptor, skipped)
        parsed = make_context(items_xml.encode(), content_type="custom/mime")
        await run(interceptor, parsed)

        assert skipped.body is None
        assert parsed.body == item_list

    async def test_process_wide_pattern(self, items_xml: str, item_list: dict) -> None:
        """Verify an override applies to interceptors created before it."""
        interceptor = xml_body_parser()
        set_content_type_pattern(re.compile(r"custom/mime", re.IGNORECASE))

        skipped = make_context(items_xml.encode(), content_type="application/xml")
        await run(interceptor, skipped)
        parsed = make_context(items_xml.encode(), content_type="custom/mime")
        await run(interceptor, parsed)

        assert skipped.body is None
        assert parsed.body == item_list

    async def test_config_pattern_wins_over_process_wide(self, items_xml: str) -> None:
        set_content_type_pattern(r"custom/mime")
        interceptor = xml_body_parser(content_type=re.compile(r"^other/xml$"))

        context = make_context(items_xml.encode(), content_type="custom/mime")
        await run(interceptor, context)

        assert context.body is None
