"""Core models for request/response handling."""

import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

BodyReader = Callable[[], Awaitable[bytes]]


class BodyType(StrEnum):
    """Body content type classification for request parsing."""

    PYDANTIC = "pydantic"
    JSONABLE = "jsonable"
    RAW = "raw"


@dataclass(slots=True)
class RequestContext:
    """What a body parser sees of a request.

    ``body_consumed`` is set by the first body parser that takes ownership of
    the body; later parsers leave the request alone.
    """

    content_type: str | None
    read_body: BodyReader
    body: Any = None
    body_consumed: bool = False


class XmlBodyParserConfig(BaseModel):
    """Options for the XML body interceptor.

    ``content_type`` overrides the process-wide pattern for this interceptor
    only. Pass a compiled pattern to keep its flags; strings compile as-is.
    ``xml_options`` go straight to ``xmltodict.parse``.
    """

    model_config = ConfigDict(frozen=True)

    trim: bool = True
    content_type: re.Pattern[str] | None = None
    xml_options: dict[str, Any] = Field(default_factory=dict)
