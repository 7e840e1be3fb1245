from typing import Any, Dict, Iterable, List

from pydantic import BaseModel


def to_json(model: BaseModel) -> Dict[str, Any]:
    """Dump an API schema with camelCase keys and JSON-safe values."""
    return model.model_dump(by_alias=True, mode="json")


def to_json_list(models: Iterable[BaseModel]) -> List[Dict[str, Any]]:
    return [to_json(model) for model in models]
