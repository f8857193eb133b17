"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from expobackoff.domain.config.backoff import BackoffConfig


class AppConfig(BaseModel):
    """Main application configuration.

    Root model aggregating all configuration sections. Validation is performed
    at load time to fail fast on configuration errors.

    Attributes:
        backoff: Backoff delay configuration
    """

    backoff: BackoffConfig = Field(default_factory=BackoffConfig)

    model_config = ConfigDict(
        extra="forbid",  # Reject unknown fields
        json_schema_extra={
            "example": {
                "backoff": {
                    "factor": 1.75,
                    "interval": 0.5,
                    "jitter": 0.15,
                    "max": 5.0,
                    "jitter_within_max": False,
                },
            }
        },
    )
