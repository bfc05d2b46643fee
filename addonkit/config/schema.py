"""
Settings Schema.

This module provides the field declarations used to validate the
``[addons]`` settings table.

Key features:
- Typed field definitions with defaults and descriptions
- min/max (numbers) and choices constraints
- Partial tables: absent fields fall back to their defaults
"""

from dataclasses import dataclass
from typing import Any


class SchemaError(Exception):
    """Base exception for schema-related errors."""

    pass


class ValidationError(SchemaError):
    """Raised when value validation fails."""

    pass


@dataclass
class ConfigField:
    """
    Represents a settings field with type and constraints.

    Attributes:
        type_: The expected type of the field value
        default: Default value for the field
        description: Human-readable description (written as a TOML comment)
        min: Minimum value (numbers only)
        max: Maximum value (numbers only)
        choices: List of allowed values (optional)
        item_type: Element type for list fields (optional)
    """

    type_: type
    default: Any
    description: str = ""
    min: Any = None
    max: Any = None
    choices: list[Any] | None = None
    item_type: type | None = None

    def __post_init__(self):
        """Validate field definition."""
        if (self.min is not None or self.max is not None) and self.type_ not in (int, float):
            raise SchemaError(
                f"min/max constraints only supported for int, float. Got {self.type_.__name__}"
            )
        self.validate(self.default)

    def _type_matches(self, value: Any) -> bool:
        # bool is an int subclass; TOML keeps them apart, so do we
        if isinstance(value, bool) and self.type_ is not bool:
            return False
        if self.type_ is float:
            return isinstance(value, (int, float))
        return isinstance(value, self.type_)

    def validate(self, value: Any) -> None:
        """
        Validate a value against this field's constraints.

        Args:
            value: The value to validate

        Raises:
            ValidationError: If validation fails
        """
        if not self._type_matches(value):
            raise ValidationError(
                f"Expected type {self.type_.__name__}, got {type(value).__name__}"
            )

        if self.item_type is not None:
            for item in value:
                if not isinstance(item, self.item_type):
                    raise ValidationError(
                        f"Expected {self.item_type.__name__} items, got {type(item).__name__}"
                    )

        if self.choices is not None and value not in self.choices:
            raise ValidationError(f"Value {value!r} not in allowed choices {self.choices}")

        if self.min is not None and value < self.min:
            raise ValidationError(f"Value {value} is less than minimum {self.min}")
        if self.max is not None and value > self.max:
            raise ValidationError(f"Value {value} is greater than maximum {self.max}")


def resolve_config(config: dict[str, Any], schema: dict[str, ConfigField]) -> dict[str, Any]:
    """
    Validate a settings table and fill in defaults.

    Args:
        config: Table read from the settings file
        schema: The schema dictionary (field_name -> ConfigField)

    Returns:
        Complete settings dictionary

    Raises:
        ValidationError: If an unknown field is present or a value is invalid
    """
    for key in config:
        if key not in schema:
            raise ValidationError(f"Unknown configuration field: {key}")

    resolved = {}
    for field_name, field in schema.items():
        value = config.get(field_name, field.default)
        try:
            field.validate(value)
        except ValidationError as e:
            raise ValidationError(f"Field '{field_name}': {e}") from e
        resolved[field_name] = value

    return resolved


def generate_default_config(schema: dict[str, ConfigField]) -> dict[str, Any]:
    """Return the default value of every field in a schema."""
    return {field_name: field.default for field_name, field in schema.items()}
