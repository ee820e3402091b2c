"""API service configuration models.

See Also:
    [Api][notebrotr.services.api.Api]: The service class that consumes
        these configurations.
    [BaseServiceConfig][notebrotr.core.base_service.BaseServiceConfig]:
        Base class providing ``interval``, ``max_consecutive_failures``,
        and ``metrics`` fields.
"""

from __future__ import annotations

from pydantic import Field, model_validator

from notebrotr.core.base_service import BaseServiceConfig


class ApiConfig(BaseServiceConfig):
    """Configuration for the API service.

    Attributes:
        host: Bind address for the HTTP server.
        port: Port for the HTTP server.
        default_limit: Number of notes returned when ``limit`` is omitted.
        max_limit: Hard ceiling on the ``limit`` query parameter.
        request_timeout: Store query timeout per request, in seconds.
        shutdown_timeout: How long in-flight requests may drain on shutdown.
        cors_origins: Allowed CORS origins. Empty list disables CORS.
    """

    host: str = Field(default="127.0.0.1", min_length=1, description="HTTP bind address")
    port: int = Field(default=8080, ge=1, le=65535, description="HTTP port")
    default_limit: int = Field(default=10, ge=1, le=10000)
    max_limit: int = Field(default=10, ge=1, le=10000)
    request_timeout: float = Field(default=30.0, ge=1.0, le=300.0)
    shutdown_timeout: float = Field(default=10.0, ge=0.1, le=300.0)
    cors_origins: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_limits(self) -> ApiConfig:
        if self.default_limit > self.max_limit:
            msg = (
                f"default_limit ({self.default_limit}) "
                f"must not exceed max_limit ({self.max_limit})"
            )
            raise ValueError(msg)
        return self
