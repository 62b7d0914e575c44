from __future__ import annotations

import json
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any


def ast_to_debug_data(node: Any, *, include_spans: bool = False) -> Any:
    if node is None:
        return None

    if isinstance(node, Enum):
        return node.value

    if isinstance(node, (str, int, bool)):
        return node

    if isinstance(node, (list, tuple)):
        return [ast_to_debug_data(item, include_spans=include_spans) for item in node]

    if is_dataclass(node):
        result: dict[str, Any] = {"node": type(node).__name__}
        for field in fields(node):
            if not include_spans and field.name == "span":
                continue
            result[field.name] = ast_to_debug_data(getattr(node, field.name), include_spans=include_spans)
        return result

    raise TypeError(f"Unsupported AST debug serialization value: {type(node).__name__}")


def ast_to_debug_json(node: Any, *, include_spans: bool = False) -> str:
    data = ast_to_debug_data(node, include_spans=include_spans)
    return json.dumps(data, indent=2, sort_keys=True)
