"""Entity definition schema.

Validates the YAML entity definition files. One file defines one entity:

    entity:
      name: opportunity
      plural: opportunities
      table: opportunities
    fields:
      id: { type: uuid, required: true }
      account_id: { type: uuid, foreign_key: accounts.id, index: true }
    relationships:
      account: { type: belongs_to, target: account, foreign_key: account_id }
    behaviors: [timestamps]

Field semantics:
- ``required: true``: must be provided on create
- ``nullable: true``: the column allows NULL
- both at once is invalid (a required field cannot be null)
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, PositiveInt, model_validator

FieldType = Literal[
    "string",
    "integer",
    "decimal",
    "boolean",
    "uuid",
    "date",
    "datetime",
    "json",
    "entity_ref",  # polymorphic reference, needs allowed_types
    "string_array",
    "enum",  # needs choices or choices_from
]

UiType = Literal[
    "text",
    "textarea",
    "number",
    "money",
    "percentage",
    "email",
    "url",
    "date",
    "datetime",
    "boolean",
    "enum",
    "reference",
    "json",
    "badge",
    "password",
]

UiImportance = Literal["primary", "secondary", "tertiary"]
ExposeLayer = Literal["repository", "rest", "trpc", "electric"]

_NUMERIC_TYPES = ("integer", "decimal")
_IDENTIFIER = r"^[a-z][a-z0-9_]*$"


class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid")


class FieldDefinition(_Strict):
    """A field plus optional UI metadata, with cross-field rules enforced."""

    type: FieldType
    required: bool = False
    nullable: bool = False

    max_length: PositiveInt | None = None
    min_length: NonNegativeInt | None = None
    min: float | None = None
    max: float | None = None

    choices: list[str] | None = None
    choices_from: str | None = None
    allowed_types: list[str] | None = None
    default: Any = None

    index: bool | None = None
    unique: bool | None = None
    foreign_key: str | None = Field(default=None, description='e.g. "accounts.id"')

    ui_label: str | None = None
    ui_type: UiType | None = None
    ui_importance: UiImportance | None = None
    ui_group: str | None = None
    ui_sortable: bool | None = None
    ui_filterable: bool | None = None
    ui_visible: bool | None = None
    ui_placeholder: str | None = None
    ui_help: str | None = None
    ui_format: dict[str, Any] | None = None

    @model_validator(mode="after")
    def validate_combination(self) -> "FieldDefinition":
        problems: list[str] = []

        if self.required and self.nullable:
            problems.append(
                "'required: true' and 'nullable: true' cannot both be set. "
                "A required field cannot be null."
            )
        if self.min_length is not None and self.type != "string":
            problems.append("'min_length' can only be used with type 'string'")
        if self.max_length is not None and self.type != "string":
            problems.append("'max_length' can only be used with type 'string'")
        if self.min is not None and self.type not in _NUMERIC_TYPES:
            problems.append("'min' can only be used with numeric types")
        if self.max is not None and self.type not in _NUMERIC_TYPES:
            problems.append("'max' can only be used with numeric types")
        if self.type == "entity_ref" and not self.allowed_types:
            problems.append("'entity_ref' type requires 'allowed_types' to be specified")
        if self.allowed_types is not None and self.type != "entity_ref":
            problems.append("'allowed_types' can only be used with type 'entity_ref'")
        if self.choices is not None and self.choices_from is not None:
            problems.append("'choices' and 'choices_from' cannot both be specified")
        if self.type == "enum" and not self.choices and not self.choices_from:
            problems.append("'enum' type requires either 'choices' or 'choices_from'")

        if problems:
            raise ValueError("; ".join(problems))
        return self


class RelationshipDefinition(_Strict):
    type: Literal["belongs_to", "has_many", "has_one"]
    target: str
    foreign_key: str
    through: str | None = None  # e.g. "owned_opportunities.updates"
    inverse: str | None = None


class BehaviorSpec(_Strict):
    name: str
    options: dict[str, Any] | None = None


class EntityConfig(_Strict):
    name: str = Field(pattern=_IDENTIFIER)
    plural: str = Field(pattern=_IDENTIFIER)
    table: str = Field(pattern=_IDENTIFIER)

    folder_structure: Literal["nested", "flat"] | None = None
    file_grouping: Literal["separate", "grouped"] | None = None
    behavior_strategy: Literal["base_class", "inline"] | None = None
    expose: list[ExposeLayer] = Field(default_factory=lambda: ["repository", "rest", "trpc"])


class EntityDefinition(_Strict):
    """A whole entity definition file."""

    entity: EntityConfig
    fields: dict[str, FieldDefinition]
    relationships: dict[str, RelationshipDefinition] | None = None
    behaviors: list[str | BehaviorSpec] = Field(default_factory=list)

    def behavior_names(self) -> list[str]:
        return [b if isinstance(b, str) else b.name for b in self.behaviors]
