"""Lambda execution environment settings using Pydantic BaseSettings.

Lambda runtimes set several reserved environment variables during
initialization. They are read-only facts about the function and the
runtime API endpoint; nothing here is ever written back.

Usage:
    from lambda_extensions.config import get_lambda_environment

    environment = get_lambda_environment()
    print(environment.aws_lambda_runtime_api)
"""

import os
import sys
from enum import StrEnum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class InitializationType(StrEnum):
    """How Lambda initialized the execution environment."""

    ON_DEMAND = "on-demand"
    PROVISIONED_CONCURRENCY = "provisioned-concurrency"
    SNAP_START = "snap-start"


class LambdaEnvironment(BaseSettings):
    """Runtime environment variables of a Lambda execution environment.

    Attributes:
        aws_lambda_runtime_api: Host and port of the runtime API.
        aws_region: AWS Region where the function is executed.
        aws_lambda_function_name: Name of the function.
        aws_lambda_function_version: Version of the function being executed.
        aws_lambda_function_memory_size: Memory available to the function in MB.
        aws_lambda_initialization_type: Initialization type of the function.
        x_amzn_trace_id: X-Ray tracing header.
    """

    model_config = SettingsConfigDict(
        env_file=None,
        case_sensitive=False,
        extra="ignore",
        str_strip_whitespace=True,
    )

    aws_lambda_runtime_api: str = Field(default="")
    aws_region: str = Field(default="")
    aws_lambda_function_name: str = Field(default="")
    aws_lambda_function_version: str = Field(default="")
    aws_lambda_function_memory_size: int = Field(default=0, ge=0)
    aws_lambda_initialization_type: str = Field(default="")
    x_amzn_trace_id: str = Field(default="", validation_alias="_X_AMZN_TRACE_ID")

    @field_validator("aws_lambda_function_memory_size", mode="before")
    @classmethod
    def parse_memory_size(cls, value: object) -> object:
        """Treat an empty or non-numeric memory size as zero."""
        if isinstance(value, str):
            stripped = value.strip()
            return int(stripped) if stripped.isdigit() else 0
        return value


@lru_cache
def get_lambda_environment() -> LambdaEnvironment:
    """Get cached Lambda environment instance."""
    return LambdaEnvironment()


def default_extension_name() -> str:
    """Name of the running extension: the file name of its executable.

    Lambda runs extensions from ``/opt/extensions`` and requires the name
    used at registration to match that file name.
    """
    if sys.argv and sys.argv[0]:
        return os.path.basename(sys.argv[0])
    return "lambda-extension"
