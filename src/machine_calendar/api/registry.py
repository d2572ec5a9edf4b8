from __future__ import annotations

import inspect
import types
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Union, get_args, get_origin, get_type_hints

JsonSchema = Dict[str, Any]

_SCALAR_TYPES = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    dict: "object",
    list: "array",
    date: "string",
}


def _json_type(annotation: Any) -> str:
    origin = get_origin(annotation)
    if origin is None:
        return _SCALAR_TYPES.get(annotation, "string")
    if origin in (list, List):
        return "array"
    if origin in (dict, Dict):
        return "object"
    if origin in (Union, types.UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        return _json_type(args[0]) if args else "string"
    return "string"


@dataclass(frozen=True)
class ApiFunction:
    name: str
    func: Callable[..., Any]
    description: str
    category: str
    tags: tuple[str, ...]
    signature: inspect.Signature

    @property
    def is_async(self) -> bool:
        return inspect.iscoroutinefunction(self.func)

    @property
    def parameters(self) -> Dict[str, str]:
        return {param.name: str(param.annotation) for param in self.signature.parameters.values()}

    def _hints(self) -> Dict[str, Any]:
        # Endpoint modules use postponed annotations, so signatures carry strings.
        try:
            return get_type_hints(self.func)
        except (NameError, TypeError):
            return {}

    @property
    def parameter_schema(self) -> JsonSchema:
        schema: JsonSchema = {"type": "object", "properties": {}, "required": []}
        hints = self._hints()
        for param in self.signature.parameters.values():
            annotation = hints.get(param.name, param.annotation)
            prop: JsonSchema = {"type": _json_type(annotation)}
            if annotation is date:
                prop["format"] = "date"
            if param.default is not inspect.Parameter.empty and param.default is not None:
                if isinstance(param.default, (str, int, float, bool)):
                    prop["default"] = param.default
            schema["properties"][param.name] = prop
            if param.default is inspect.Parameter.empty:
                schema["required"].append(param.name)
        if not schema["required"]:
            schema.pop("required")
        return schema

    def as_tool(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameter_schema,
            },
        }


REGISTRY: Dict[str, ApiFunction] = {}


def register_api(
    name: str,
    *,
    description: str,
    category: str,
    tags: Optional[Iterable[str]] = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        if name in REGISTRY:
            raise ValueError(f"API function '{name}' is already registered.")
        REGISTRY[name] = ApiFunction(
            name=name,
            func=func,
            description=description,
            category=category,
            tags=tuple(tags or ()),
            signature=inspect.signature(func),
        )
        return func

    return decorator


def get_api_functions() -> List[ApiFunction]:
    return list(REGISTRY.values())


def get_api_function(name: str) -> ApiFunction:
    if name not in REGISTRY:
        raise KeyError(f"API function '{name}' is not registered.")
    return REGISTRY[name]


def call_api(name: str, **kwargs: Any) -> Any:
    """Invoke a registered function. Coroutine functions return an awaitable."""

    return get_api_function(name).func(**kwargs)


async def call_api_async(name: str, **kwargs: Any) -> Any:
    result = call_api(name, **kwargs)
    if inspect.isawaitable(result):
        return await result
    return result
