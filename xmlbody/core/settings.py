"""Unified settings for robyn-xml-bodyparser."""

import importlib.metadata
import tomllib
from pathlib import Path
from typing import ClassVar, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


def read_pyproject(pyproject_path: Path) -> dict:
    """Read pyproject.toml into a dict."""
    if not pyproject_path.exists():
        return {}
    with pyproject_path.open("rb") as file_handle:
        return tomllib.load(file_handle)


def get_version(name: str) -> str:
    """Get version from the installed package metadata."""
    try:
        return importlib.metadata.version(name)
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0"


class Settings(BaseSettings):
    """Unified settings for the XML body parser service."""

    DEBUG: bool = True
    ENVIRONMENT: Literal["DEV", "PROD"] = "DEV"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # ClassVar to prevent Pydantic from trying to load from env
    BASE_DIR: ClassVar[Path] = Path(__file__).parent.parent.parent
    PROJECT: ClassVar[dict] = read_pyproject(BASE_DIR / "pyproject.toml")
    API_NAME: ClassVar[str] = PROJECT.get("project", {}).get("name", "robyn-xml-bodyparser")
    API_DESCRIPTION: ClassVar[str] = PROJECT.get("project", {}).get("description", "XML body parser for Robyn")
    API_VERSION: ClassVar[str] = get_version(API_NAME)

    # Server
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # XML body parsing
    XML_BODY_TRIM: bool = True
    XML_CONTENT_TYPE_PATTERN: str | None = None
    XML_BODY_ROUTES: list[str] = []

    @property
    def api_url(self) -> str:
        return f"http://{self.API_HOST}:{self.API_PORT}"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()  # type: ignore
