import os
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ServiceConfig(BaseModel):
    """Immutable service settings, normally read from the environment."""

    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=0, le=65535)
    log_file: str = "serverLogs.log"
    # Names understood by both the logging module and uvicorn.
    log_level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = "INFO"
    external_api_url: str = "https://dummyjson.com/products/1"
    external_timeout: float = Field(default=5.0, gt=0)
    # Fixed input of the CPU-bound route; big enough to keep a core busy.
    fibonacci_input: int = Field(default=30, ge=0)
    fibonacci_max_input: int = Field(default=35, ge=0)

    @model_validator(mode="after")
    def _check_fibonacci_bounds(self) -> "ServiceConfig":
        if self.fibonacci_input > self.fibonacci_max_input:
            raise ValueError(
                f"fibonacci_input ({self.fibonacci_input}) exceeds "
                f"fibonacci_max_input ({self.fibonacci_max_input})"
            )
        return self

    @classmethod
    def from_env(cls, environ=None) -> "ServiceConfig":
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            host=env.get("HOST", defaults.host),
            port=env.get("PORT", defaults.port),
            log_file=env.get("LOG_FILE", defaults.log_file),
            log_level=env.get("LOGLEVEL", defaults.log_level).upper(),
            external_api_url=env.get("EXTERNAL_API_URL", defaults.external_api_url),
            external_timeout=env.get("EXTERNAL_TIMEOUT", defaults.external_timeout),
            fibonacci_input=env.get("FIB_INPUT", defaults.fibonacci_input),
            fibonacci_max_input=env.get("FIB_MAX_INPUT", defaults.fibonacci_max_input),
        )
