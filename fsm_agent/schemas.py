"""Event payload schemas, expressed as pydantic models.

An agent is given an event schema map: event type -> pydantic model class.
The model's docstring is the event description offered to the LLM, and its
JSON schema becomes the tool's parameter schema.

    class Guess(BaseModel):
        \"\"\"Guess the secret number.\"\"\"
        number: int = Field(description="The guessed number")

    events = {"guess": Guess, "giveUp": event_schema("Give up the game")}
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, create_model

EventSchemaMap = Mapping[str, "type[BaseModel] | None"]


def event_schema(description: str | None = None, **fields: Any) -> type[BaseModel]:
    """Build an event payload model inline.

    Fields use pydantic's ``create_model`` syntax: ``name=(type, default)``
    or ``name=(type, Field(...))``.
    """
    return create_model("EventPayload", __doc__=description, **fields)


def describe_event(schema: type[BaseModel] | None) -> str | None:
    if schema is None:
        return None
    return schema.model_json_schema().get("description")


def parameters_schema(schema: type[BaseModel] | None) -> dict[str, Any]:
    """JSON schema for a tool's parameters, without model title/description."""
    if schema is None:
        return {"type": "object", "properties": {}}
    params = dict(schema.model_json_schema())
    params.pop("title", None)
    params.pop("description", None)
    params.setdefault("properties", {})
    # the event type is set by the mapper, never by the model
    params["properties"] = {k: v for k, v in params["properties"].items() if k != "type"}
    if "required" in params:
        params["required"] = [r for r in params["required"] if r != "type"]
    return params
