"""Base schema class for wire models."""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict


class SchemaBase(BaseModel):
    """Base class for all Pydantic schemas exchanged with the service.

    Fields are populated by their Python name or their wire alias, and
    serialized by alias.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the JSON-compatible dict sent over the wire."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_wire(cls, data: Any) -> Self:
        """
        Factory method to create a schema instance from decoded JSON.

        Args:
            data: Decoded JSON object

        Returns:
            Pydantic schema instance
        """
        return cls.model_validate(data)
