"""Test fixtures for robyn-xml-bodyparser unit tests."""

from dataclasses import dataclass, field

import pytest

from xmlbody.parsers.content_type import set_content_type_pattern


# -----------------------------------------------------------------------------
# Mock classes for Robyn Request
# -----------------------------------------------------------------------------


@dataclass
class MockHeaders:
    """Mock Headers object for Robyn Request. Keys are case-insensitive."""

    _data: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._data = {k.lower(): v for k, v in self._data.items()}

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._data.get(key.lower(), default)

    def set(self, key: str, value: str) -> None:
        self._data[key.lower()] = value

    def __getitem__(self, key: str) -> str:
        return self._data[key.lower()]

    def __setitem__(self, key: str, value: str) -> None:
        self._data[key.lower()] = value


@dataclass
class MockUrl:
    """Mock Url object for Robyn Request."""

    path: str = "/"


@dataclass
class MockRequest:
    """Mock Request object for Robyn."""

    body: str | bytes = ""
    headers: MockHeaders = field(default_factory=MockHeaders)
    method: str = "POST"
    path: str = "/"

    @property
    def url(self) -> MockUrl:
        return MockUrl(path=self.path)


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def items_xml() -> str:
    return "<list><item>item1</item><item>item2</item><item>item3</item></list>"


@pytest.fixture
def item_list() -> dict:
    return {"list": {"item": ["item1", "item2", "item3"]}}


@pytest.fixture(autouse=True)
def reset_content_type_pattern():
    """Restore the process-wide content-type pattern after each test."""
    yield
    set_content_type_pattern(None)


@pytest.fixture
def make_mock_request():
    """Factory fixture to create mock requests."""

    def _make(
        body: str | bytes = "",
        content_type: str | None = None,
        method: str = "POST",
        path: str = "/",
        **headers: str,
    ) -> MockRequest:
        data = {k.replace("_", "-"): v for k, v in headers.items()}
        if content_type is not None:
            data["content-type"] = content_type
        return MockRequest(body=body, headers=MockHeaders(data), method=method, path=path)

    return _make
