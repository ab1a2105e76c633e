"""
Schémas Pydantic pour la configuration des étoiles.
score < one_star_max → 1 étoile ; score ≤ two_star_max → 2 étoiles ; sinon 3.
"""

from pydantic import BaseModel, Field, model_validator


class ScoringThresholds(BaseModel):
    one_star_max: int = Field(ge=1, le=99)
    two_star_max: int = Field(ge=1, le=99)

    @model_validator(mode="after")
    def ordered(self) -> "ScoringThresholds":
        if self.one_star_max > self.two_star_max:
            raise ValueError("one_star_max doit être inférieur ou égal à two_star_max.")
        return self


DEFAULT_THRESHOLDS = ScoringThresholds(one_star_max=70, two_star_max=84)
