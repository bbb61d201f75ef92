"""
ValidationResult model representing the verdict on one resolved movement (ephemeral).
"""

from pydantic import BaseModel, Field, field_validator

VALID = "VALID"
VALIDATION_FAILED = "VALIDATION_FAILED"
MOVEMENT_NULL = "MOVEMENT_NULL"


class ValidationResult(BaseModel):
    """
    Outcome of validating a resolved movement.

    Note: ValidationResult is ephemeral; only its code and message are
    persisted on the movement record.

    Attributes:
        valid: Overall validation status
        code: VALID, VALIDATION_FAILED or MOVEMENT_NULL
        message: All failures joined with "; " (None when valid)
    """

    valid: bool
    code: str = Field(..., min_length=1)
    message: str | None = None

    @field_validator("message")
    @classmethod
    def check_valid_consistency(cls, v, info):
        """Validate that valid=True carries no error message."""
        if info.data.get("valid") and v:
            raise ValueError("valid=True but message is set")
        return v

    @classmethod
    def success(cls) -> "ValidationResult":
        return cls(valid=True, code=VALID)

    @classmethod
    def failure(cls, code: str, message: str) -> "ValidationResult":
        return cls(valid=False, code=code, message=message)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "valid": False,
                "code": "VALIDATION_FAILED",
                "message": "Origin and destination cannot be the same: 960; Duplicate servicing nodes found"
            }
        }


class ValidationSummary(BaseModel):
    """
    Aggregate over a batch of validation results.

    Attributes:
        total_validated: Number of results summarized
        valid_count: Results with valid=True
        invalid_count: Results with valid=False
        validation_rate: Percentage of valid results (0.0 for an empty batch)
    """

    total_validated: int = Field(0, ge=0)
    valid_count: int = Field(0, ge=0)
    invalid_count: int = Field(0, ge=0)
    validation_rate: float = Field(0.0, ge=0.0, le=100.0)

    @property
    def all_valid(self) -> bool:
        return self.invalid_count == 0

    class Config:
        frozen = True
