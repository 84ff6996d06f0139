"""Default XML-to-object parser, backed by xmltodict.

Any callable taking the decoded body text and returning the parsed structure
can replace it. Parsers signal malformed input by raising ``ValueError`` or
:class:`xml.parsers.expat.ExpatError`.
"""

from collections.abc import Callable
from typing import Any
from xml.parsers.expat import ExpatError

import xmltodict

XmlParser = Callable[[str], Any]

PARSE_ERRORS: tuple[type[Exception], ...] = (ExpatError, ValueError)


def parse_xml(text: str, **options: Any) -> dict[str, Any]:
    """Parse an XML document into a dict.

    ``options`` are passed to :func:`xmltodict.parse` (``force_list``,
    ``process_namespaces``, ``attr_prefix``...). Entity declarations stay
    disabled unless ``disable_entities=False`` is passed explicitly.
    """
    options.setdefault("disable_entities", True)
    return xmltodict.parse(text, **options)
