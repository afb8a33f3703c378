"""
Request parameter helpers shared by the route modules.

Handlers read their inputs here, after the caller dependency has run, so an
unauthenticated request is rejected before its body is looked at.
"""

from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from starlette.requests import Request

from companion_api.exceptions import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


async def read_json(request: Request) -> Dict[str, Any]:
    """
    Decode a JSON object body; an empty body is `{}`.

    Raises:
        ValidationError for malformed JSON or a non-object document.
    """
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        data = await request.json()
    except ValueError:
        raise ValidationError("Invalid JSON body")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


async def read_params(request: Request) -> Dict[str, Any]:
    """
    Merged inputs for read handlers that accept GET and POST.

    Query parameters win over JSON body fields of the same name. Form and
    other non-JSON bodies are ignored.
    """
    params: Dict[str, Any] = {}
    content_type = request.headers.get("content-type", "")
    if request.method == "POST" and "application/json" in content_type:
        params.update(await read_json(request))
    params.update(request.query_params)
    return params


def parse_model(model: Type[ModelT], data: Dict[str, Any]) -> ModelT:
    """Validate `data` against `model`, reporting the first problem as a 400."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        message = first.get("msg", "Invalid request body")
        raise ValidationError(
            f"Invalid field '{field}': {message}" if field else message,
            field=field,
        )


def flag(value: Any) -> bool:
    """`true` (any case) or a JSON true."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true" if value is not None else False


def int_param(params: Dict[str, Any], name: str, default: int, minimum: int = 0) -> int:
    """Integer parameter with a default; non-numeric or too small is a 400."""
    raw: Optional[Any] = params.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"Parameter '{name}' must be an integer", field=name)
    if value < minimum:
        raise ValidationError(f"Parameter '{name}' must be at least {minimum}", field=name)
    return value
