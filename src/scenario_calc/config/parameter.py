"""Organization-level named constants."""

from pydantic import BaseModel, ConfigDict, Field


class ParameterDefinition(BaseModel):
    """Named constant referenced inside formulas (e.g. a baseline revenue).

    Available at every evaluation level; never produced by evaluation.
    """

    model_config = ConfigDict(frozen=True)

    id: str = ""
    name: str = Field(min_length=1, pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")
    display_name: str = ""
    value: float = Field(description="Numeric value (plain float)")
    unit: str | None = None
    category: str | None = Field(default=None, description="e.g. BASELINE")
    description: str = ""
