"""Router handing parsed request bodies to handlers as dicts or pydantic models.

Bodies arrive as JSON text: either sent as JSON by the client or re-encoded by
:class:`xmlbody.middlewares.xml.XmlBodyParserMiddleware` after XML parsing.
"""

import inspect
from collections.abc import Callable
from functools import wraps
from typing import Any

import orjson
from pydantic import BaseModel, ValidationError
from robyn import Request, Response, SubRouter, status_codes
from robyn.robyn import HttpMethod
from robyn.types import Body

from xmlbody.core.logger import LogIcon, logger
from xmlbody.models.core import BodyType

JSON_HEADERS = {"content-type": "application/json"}


def parse_endpoint_signature(sig: inspect.Signature) -> dict[str, tuple[BodyType, type | None]]:
    """Find the body parameters of a handler signature."""
    parsed: dict[str, tuple[BodyType, type | None]] = {}

    for name, param in sig.parameters.items():
        annotation = param.annotation

        match annotation:
            case type() if issubclass(annotation, BaseModel):
                parsed[name] = (BodyType.PYDANTIC, type(annotation.__name__, (annotation, Body), {}))
            case type() if issubclass(annotation, Body):
                parsed[name] = (BodyType.JSONABLE, annotation)
            case type() if annotation is dict:
                parsed[name] = (BodyType.JSONABLE, None)
            case type() if annotation in (str, bytes):
                parsed[name] = (BodyType.RAW, None)
            case _ if name == "body":
                parsed[name] = (BodyType.JSONABLE, None)

    return parsed


def _unprocessable(error: str, detail: Any) -> Response:
    logger.warning("Request body rejected", icon=LogIcon.VALIDATION, error=error)
    return Response(
        status_code=status_codes.HTTP_422_UNPROCESSABLE_ENTITY,
        headers=dict(JSON_HEADERS),
        description=orjson.dumps({"error": error, "detail": detail}).decode(),
    )


def parse_request_body(
    body_config: dict[str, tuple[BodyType, type | None]],
    kwargs: dict[str, Any],
) -> Response | None:
    """Parse JSON/Pydantic body parameters in place. Returns an error Response on failure."""
    for param_name, (body_type, model_cls) in body_config.items():
        if param_name not in kwargs:
            continue
        raw = kwargs[param_name]
        if not isinstance(raw, (str, bytes)):
            continue

        match body_type:
            case BodyType.PYDANTIC if model_cls:
                try:
                    kwargs[param_name] = model_cls.model_validate_json(raw)  # type: ignore[union-attr]
                except ValidationError as ex:
                    return _unprocessable("validation_error", orjson.loads(ex.json()))
            case BodyType.JSONABLE if not raw:
                kwargs[param_name] = {}
            case BodyType.JSONABLE:
                try:
                    kwargs[param_name] = orjson.loads(raw)
                except orjson.JSONDecodeError as ex:
                    return _unprocessable("invalid_json", str(ex))
            case BodyType.RAW:
                pass
    return None


def parse_response(result: Any) -> Response:
    """Convert handler result to Response."""
    match result:
        case Response():
            return result
        case BaseModel():
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers=dict(JSON_HEADERS),
                description=result.model_dump_json(),
            )
        case dict() | list():
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers=dict(JSON_HEADERS),
                description=orjson.dumps(result).decode(),
            )
        case _:
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={},
                description=str(result),
            )


HTTP_METHODS = (
    HttpMethod.GET,
    HttpMethod.POST,
    HttpMethod.PUT,
    HttpMethod.DELETE,
    HttpMethod.PATCH,
)


def _create_method_wrapper(original_method: Callable) -> Callable:
    @wraps(original_method)
    def method_wrapper(*args, **kwargs) -> Callable:
        decorator = original_method(*args, **kwargs)

        def handler_decorator(handler: Callable) -> Callable:
            sig = inspect.signature(handler)
            body_config = parse_endpoint_signature(sig)
            has_request_param = "request" in sig.parameters

            @wraps(handler)
            async def wrapped_handler(request: Request, **h_kwargs):
                if error := parse_request_body(body_config, h_kwargs):
                    return error

                # Pass request to handler only if it declared it
                if has_request_param:
                    h_kwargs["request"] = request

                result = await handler(**h_kwargs)
                return parse_response(result)

            # Build signature: always include request for Robyn injection
            new_params = [inspect.Parameter("request", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=Request)]
            for name, param in sig.parameters.items():
                if name == "request":
                    continue
                if name in body_config:
                    new_params.append(param.replace(annotation=body_config[name][1] or Body))
                else:
                    new_params.append(param)

            wrapped_handler.__signature__ = sig.replace(parameters=new_params)  # type: ignore[attr-defined]
            return decorator(wrapped_handler)

        return handler_decorator

    return method_wrapper


class Router(SubRouter):
    """SubRouter with automatic body parsing and response handling."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._wrap_methods()

    def _wrap_methods(self) -> None:
        """Wrap HTTP methods with parsing logic."""
        for method in HTTP_METHODS:
            method_name = str(method).split(".")[-1].lower()
            if hasattr(self, method_name):
                setattr(self, method_name, _create_method_wrapper(getattr(self, method_name)))
