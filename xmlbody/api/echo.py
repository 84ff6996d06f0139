"""Echo endpoints returning the request body as parsed by the XML middleware."""

from robyn import Request

from xmlbody.core.router import Router
from xmlbody.middlewares.xml import parsed_body

router = Router(__file__, prefix="/echo")


@router.get("/")
async def echo_query(request: Request) -> dict:
    return parsed_body(request)


@router.post("/")
async def echo(request: Request) -> dict:
    return parsed_body(request)
