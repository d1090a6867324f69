"""Study inputs for pooling."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Study(BaseModel):
    """One study's effect estimate.

    Extra keyword fields are kept so callers can attach covariates
    (country, design, dose, ...) and use them as subgroup keys.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    name: str
    effect_size: float = Field(allow_inf_nan=False)
    variance: float = Field(gt=0, allow_inf_nan=False)
    sample_size: Optional[int] = Field(default=None, ge=1)
    group_label: Optional[str] = None

    @property
    def standard_error(self) -> float:
        return self.variance**0.5

    def covariate(self, key: str) -> Any:
        """Return a declared field or an extra covariate, or None when absent."""
        if key in type(self).model_fields:
            return getattr(self, key)
        return (self.model_extra or {}).get(key)
