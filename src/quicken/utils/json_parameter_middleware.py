"""JSON parameter conversion for FastMCP tools.

Some MCP clients send list and dict arguments as JSON strings. The
json_convert decorator parses those strings according to the tool's type
hints before the tool body runs, so `file_paths: list[str] | None` accepts
both `["a.ts"]` and `'["a.ts"]'`.
"""

import functools
import inspect
import json
import logging
import types
from collections.abc import Callable
from typing import Any, TypeVar, get_args, get_origin, get_type_hints

logger = logging.getLogger(__name__)

COLLECTION_TYPES = (list, dict, set, tuple)

F = TypeVar("F", bound=Callable[..., Any])


def _collection_origin(expected_type: Any) -> type | None:
    origin = get_origin(expected_type) or expected_type
    return origin if origin in COLLECTION_TYPES else None


def _coerce(parsed: Any, collection: type, param_name: str) -> Any:
    if collection is dict:
        if isinstance(parsed, dict):
            return parsed
    elif isinstance(parsed, list):
        return parsed if collection is list else collection(parsed)
    raise ValueError(f"Parameter '{param_name}' must be a {collection.__name__}, got {type(parsed).__name__} from JSON")


def convert_value(value: Any, expected_type: Any, param_name: str) -> Any:
    """
    Convert one argument to the expected type, parsing JSON strings when needed.

    Raises:
        ValueError: If a string cannot be read as the expected collection
    """
    if value is None or not isinstance(value, str):
        return value

    if get_origin(expected_type) is types.UnionType:
        members = [member for member in get_args(expected_type) if member is not type(None)]
        # A plain string stays a string when the union allows it
        if str in members:
            stripped = value.strip()
            if not stripped.startswith(("[", "{")):
                return value
        last_error = None
        for member in members:
            if _collection_origin(member) is None:
                continue
            try:
                return convert_value(value, member, param_name)
            except ValueError as e:
                last_error = e
        if last_error is not None and str not in members:
            raise last_error
        return value

    collection = _collection_origin(expected_type)
    if collection is None:
        return value

    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in parameter '{param_name}': {e}") from e

    logger.debug(f"Converted {param_name} from JSON string to {type(parsed).__name__}")
    return _coerce(parsed, collection, param_name)


def json_convert(func: F) -> F:
    """
    Decorator that converts JSON string arguments to the hinted collection types.

    Usage:
        @mcp.tool
        @json_convert
        def my_tool(items: list[str]) -> dict:
            return {"count": len(items)}
    """
    signature = inspect.signature(func)
    type_hints = get_type_hints(func)

    def convert_arguments(args: tuple, kwargs: dict) -> dict[str, Any]:
        bound = signature.bind(*args, **kwargs)
        bound.apply_defaults()
        return {
            name: convert_value(value, type_hints[name], name) if name in type_hints else value
            for name, value in bound.arguments.items()
        }

    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            return await func(**convert_arguments(args, kwargs))

        return async_wrapper  # type: ignore

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        return func(**convert_arguments(args, kwargs))

    return wrapper  # type: ignore
