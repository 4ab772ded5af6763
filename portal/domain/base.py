"""Shared pydantic configuration for records exposed over the JSON API."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class PortalModel(BaseModel):
    """Base model: snake_case in Python and storage, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_api(self) -> dict[str, Any]:
        """Dump to the JSON shape returned by the API."""
        return self.model_dump(mode="json", by_alias=True)


def camelize_record(record: dict[str, Any]) -> dict[str, Any]:
    """Convert a raw snake_case record into its camelCase API form."""
    return {to_camel(key): value for key, value in record.items()}


def explicitly_nulled(model: BaseModel, fields: tuple[str, ...]) -> list[str]:
    """Names in ``fields`` that the caller sent as an explicit null."""
    return [name for name in fields if name in model.model_fields_set and getattr(model, name) is None]
