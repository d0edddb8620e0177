"""Schema descriptors and validators.

The loader needs two capabilities from a schema:

- ``children()``: the named child nodes of a node (empty for a leaf), used to
  derive environment variable names
- ``validate(record)``: turn the merged input into a typed value or raise
  ``ConfigValidationError``

``ModelSchema`` provides both on top of a pydantic ``BaseModel`` subclass.
"""

import types
from typing import (
    Annotated,
    Any,
    Dict,
    Generic,
    List,
    Mapping,
    Optional,
    Protocol,
    Type,
    TypeVar,
    Union,
    get_args,
    get_origin,
    runtime_checkable,
)

from pydantic import AliasChoices, AliasPath, BaseModel
from pydantic import ValidationError as PydanticValidationError
from pydantic.fields import FieldInfo

from layered_config.exceptions import ConfigValidationError, ValidationIssue

T_co = TypeVar("T_co", covariant=True)
M = TypeVar("M", bound=BaseModel)


@runtime_checkable
class SchemaNode(Protocol):
    """A node of a schema tree."""

    def children(self) -> Mapping[str, "SchemaNode"]:
        """Return named child nodes; an empty mapping marks a leaf."""
        ...


@runtime_checkable
class Validator(Protocol[T_co]):
    """Validates a merged record into a typed value."""

    def validate(self, record: Mapping[str, Any]) -> T_co:
        """Return the typed value or raise ConfigValidationError."""
        ...

    async def validate_async(self, record: Mapping[str, Any]) -> T_co:
        """Asynchronous form of validate()."""
        ...


class LeafNode:
    """Schema node without children."""

    def children(self) -> Mapping[str, SchemaNode]:
        return {}

    def __repr__(self) -> str:
        return "LeafNode()"


LEAF = LeafNode()


def _model_type(annotation: Any) -> Any:
    """Return the BaseModel subclass behind ``annotation``, or None.

    Unwraps ``Annotated[Model, ...]`` and ``Optional[Model]``. Unions of more
    than one non-None member are leaves.
    """
    origin = get_origin(annotation)
    if origin is Annotated:
        return _model_type(get_args(annotation)[0])
    if origin is Union or origin is types.UnionType:
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        return _model_type(members[0]) if len(members) == 1 else None
    if origin is not None:
        return None
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return annotation
    return None


def _alias_key(alias: Any) -> Optional[str]:
    """Top-level input key named by a validation alias, or None.

    ``AliasChoices`` resolves to its first usable choice. An ``AliasPath``
    only names a key when it is a single string segment; deeper paths point
    inside another value and have no key of their own.
    """
    if isinstance(alias, str):
        return alias
    if isinstance(alias, AliasPath):
        if len(alias.path) == 1 and isinstance(alias.path[0], str):
            return alias.path[0]
        return None
    if isinstance(alias, AliasChoices):
        for choice in alias.choices:
            key = _alias_key(choice)
            if key is not None:
                return key
    return None


def _input_key(name: str, field: FieldInfo) -> str:
    """Key under which pydantic expects this field in the input record.

    Fields whose only validation alias is a multi-segment ``AliasPath`` fall
    back to the alias or field name; environment values for them are not
    picked up by validation.
    """
    key = _alias_key(field.validation_alias)
    if key is not None:
        return key
    if field.alias:
        return field.alias
    return name


def _to_issues(exc: PydanticValidationError) -> List[ValidationIssue]:
    return [
        ValidationIssue(path=tuple(err["loc"]), code=err["type"], message=err["msg"])
        for err in exc.errors()
    ]


class ModelSchema(Generic[M]):
    """Schema node and validator for a pydantic model class.

    Fields annotated with another model (optionally wrapped in Optional or
    Annotated) are object nodes; every other field is a leaf.

    Example:
        class Database(BaseModel):
            host: str
            pool_size: int = 5

        class AppConfig(BaseModel):
            database: Database

        schema = ModelSchema(AppConfig)
        list(schema.children())                          # ["database"]
        list(schema.children()["database"].children())   # ["host", "pool_size"]
    """

    def __init__(self, model: Type[M]):
        if not (isinstance(model, type) and issubclass(model, BaseModel)):
            raise TypeError(f"ModelSchema requires a pydantic BaseModel subclass, got {model!r}")
        self.model = model

    def children(self) -> Mapping[str, SchemaNode]:
        nodes: Dict[str, SchemaNode] = {}
        for name, field in self.model.model_fields.items():
            nested = _model_type(field.annotation)
            nodes[_input_key(name, field)] = ModelSchema(nested) if nested is not None else LEAF
        return nodes

    def validate(self, record: Mapping[str, Any]) -> M:
        """Validate ``record`` into an instance of the model.

        Raises:
            ConfigValidationError: One issue per pydantic error
        """
        try:
            return self.model.model_validate(record)
        except PydanticValidationError as exc:
            raise ConfigValidationError(_to_issues(exc)) from exc

    async def validate_async(self, record: Mapping[str, Any]) -> M:
        # pydantic validation is synchronous
        return self.validate(record)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ModelSchema) and other.model is self.model

    def __hash__(self) -> int:
        return hash(self.model)

    def __repr__(self) -> str:
        return f"ModelSchema({self.model.__name__})"


def as_schema(schema: Any) -> Any:
    """Coerce a model class into a ModelSchema; pass protocol objects through.

    Raises:
        TypeError: If ``schema`` is neither a BaseModel subclass nor an object
            implementing both SchemaNode and Validator
    """
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return ModelSchema(schema)
    if isinstance(schema, SchemaNode) and isinstance(schema, Validator):
        return schema
    raise TypeError(
        "schema must be a pydantic BaseModel subclass or provide children() and validate()"
    )


__all__ = [
    "SchemaNode",
    "Validator",
    "LeafNode",
    "LEAF",
    "ModelSchema",
    "as_schema",
]
