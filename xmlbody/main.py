"""robyn-xml-bodyparser - XML request bodies for Robyn handlers."""

from robyn import Robyn

from xmlbody.api.echo import router as echo_router
from xmlbody.api.health import router as health_router
from xmlbody.core.logger import LogIcon, logger
from xmlbody.core.settings import settings as st
from xmlbody.middlewares.base import MiddlewareHandler
from xmlbody.middlewares.xml import XmlBodyParserMiddleware
from xmlbody.models.core import XmlBodyParserConfig
from xmlbody.parsers.content_type import set_content_type_pattern

app = Robyn(__file__)

# Routers
app.include_router(health_router)
app.include_router(echo_router)

# Process-wide pattern: only safe to change before the server starts
if st.XML_CONTENT_TYPE_PATTERN:
    pattern = set_content_type_pattern(st.XML_CONTENT_TYPE_PATTERN)
    logger.info("XML content-type pattern overridden", icon=LogIcon.CONFIG, pattern=pattern.pattern)

# Middlewares
middlewares = MiddlewareHandler(app)
middlewares.register(
    XmlBodyParserMiddleware(
        endpoints=st.XML_BODY_ROUTES,
        config=XmlBodyParserConfig(trim=st.XML_BODY_TRIM),
    )
)


def main() -> None:
    logger.info(f"Starting {st.API_NAME}", icon=LogIcon.START, host=st.API_HOST, port=st.API_PORT)
    app.start(host=st.API_HOST, port=st.API_PORT)


if __name__ == "__main__":
    main()
