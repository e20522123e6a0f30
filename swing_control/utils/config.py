"""
Tunable detector settings.

Every assignment is validated before it is stored, so a bad value coming from
the command line or the detector server never reaches the sample pipeline.
Invalid values raise `pydantic.ValidationError` and leave the previous value
in place.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_core import PydanticCustomError

# Tunables the host may change at runtime (and forward to the detector server).
TUNABLE_FIELDS = (
    "active",
    "swap",
    "offset",
    "apogee_speed_threshold",
    "inert_range",
    "reset_range",
)


class DetectorConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    active: bool = True
    swap: bool = True
    offset: float = Field(0.0, allow_inf_nan=False)
    apogee_speed_threshold: float = Field(0.1, ge=0, allow_inf_nan=False)
    inert_range: float = Field(0.15, ge=0, allow_inf_nan=False)
    reset_range: float = Field(0.1, ge=0, allow_inf_nan=False)
    # debounce: ms spent continuously inside reset_range before both sides rearm
    reset_delay: float = Field(500.0, gt=0, allow_inf_nan=False)
    value_window: int = Field(10, ge=1)
    speed_window: int = Field(10, ge=1)

    @model_validator(mode="after")
    def reset_range_inside_inert_range(self):
        if self.reset_range > self.inert_range:
            raise PydanticCustomError(
                "reset_range_too_wide",
                "reset_range ({reset_range}) must not exceed inert_range ({inert_range})",
                {"reset_range": self.reset_range, "inert_range": self.inert_range},
            )
        return self

    def __setattr__(self, name, value):
        # Check the whole model with the new value first, so a cross-field
        # failure cannot leave the instance half updated.
        if name in type(self).model_fields:
            candidate = self.model_dump()
            candidate[name] = value
            type(self).model_validate(candidate)
        super().__setattr__(name, value)

    def update(self, **fields):
        """
        Apply several fields at once, validated together.
        Lets a caller narrow inert_range and reset_range in one step without
        tripping the ordering check on the intermediate state.
        """
        validated = type(self).model_validate({**self.model_dump(), **fields})
        # already validated as a whole; bypass per-field assignment checks
        for name in fields:
            object.__setattr__(self, name, getattr(validated, name))
        self.__pydantic_fields_set__.update(fields)

    def tunables(self) -> dict:
        return {name: getattr(self, name) for name in TUNABLE_FIELDS}
