from typing import Annotated, Literal

from pydantic import Field, Strict, model_validator

from formpulse.schemas.common import CamelModel

FieldType = Literal["short_text", "long_text", "single_select", "multi_select", "date", "checkbox"]
VisibilityOperator = Literal["equals", "not_equals", "includes", "checked"]

SELECT_TYPES: frozenset[str] = frozenset({"single_select", "multi_select"})
FREE_TEXT_TYPES: frozenset[str] = frozenset({"short_text", "long_text"})

# Strict bool: numbers must not be coerced into checkbox answers
AnswerValue = str | list[str] | Annotated[bool, Strict()] | None


class VisibilityRule(CamelModel):
    """Show the owning field only when another field's answer matches."""

    depends_on_id: str = Field(..., min_length=1)
    operator: VisibilityOperator = "equals"
    value: str | None = None


class ValidationRule(CamelModel):
    min_length: int | None = Field(None, ge=0)
    max_length: int | None = Field(None, ge=0)
    min_date: str | None = None  # ISO YYYY-MM-DD
    max_date: str | None = None


class SurveyField(CamelModel):
    """Single question in a form."""

    id: str = Field(..., min_length=1, max_length=100)
    label: str = Field("", max_length=1000)
    type: FieldType
    required: bool = False
    options: list[str] | None = Field(
        None,
        description="Answer options (select types only, dropped for others)",
    )
    ai_enabled: bool = False
    visibility: VisibilityRule | None = None
    validation: ValidationRule | None = None

    @model_validator(mode="after")
    def _options_only_for_select(self) -> "SurveyField":
        if self.type in SELECT_TYPES:
            self.options = [option for option in (self.options or []) if option.strip() != ""]
        else:
            self.options = None
        return self
