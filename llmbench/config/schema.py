# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schema for llmbench.

One frozen pydantic model per section of the config file:

    global:      seed, logging, concurrency
    validation:  test-case mode and where oracles come from
    bench:       timing runs and limits
    adapters:    interpreters, formatters, enabled languages

All models use:
  - frozen=True: a config can't change after it's loaded
  - extra="forbid": a typo in a key is an error, not a silently ignored setting
  - validate_default=True: defaults go through the same checks as file values

Every field has a default, so an empty file (or no file at all, via
`LLMBenchConfig.defaults()`) is a valid configuration.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class GlobalConfig(BaseModel):
    """Cross-cutting settings: reproducibility, observability, parallelism."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(
        default="1.0.0",
        description="Schema version for compatibility tracking",
    )
    seed: int = Field(
        default=42,
        ge=0,
        description="Seed for input generation and the process-wide RNG",
    )
    log_level: str = Field(
        default="INFO",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for file-based log output",
    )
    concurrency: int = Field(
        default=4,
        ge=1,
        le=64,
        description="How many candidates are validated at once",
    )

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        upper = value.upper()
        if upper not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {value}")
        return upper


class ValidationConfig(BaseModel):
    """
    Where the oracle comes from and how long a candidate may take per case.

    `cases` is a glob relative to the baseline's directory. When unset, the
    conventional locations next to the baseline are searched.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    mode: Literal["static", "record-replay", "property-based"] = Field(
        default="static",
        description="How test cases are obtained",
    )
    cases: Optional[str] = Field(
        default=None,
        description="Glob for static test-case files",
    )
    recording_enabled: bool = Field(
        default=False,
        description="Allow record-replay mode to create a missing recording",
    )
    recordings_directory: str = Field(
        default=".llmbench/recordings",
        description="Where record-replay recordings are stored",
    )
    record_count: int = Field(
        default=50,
        ge=1,
        description="Inputs generated when a recording is first made",
    )
    property_count: int = Field(
        default=100,
        ge=1,
        description="Inputs generated per property-based run",
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=600,
        description="Seconds a child may go without reporting a result before it's killed",
    )


class BenchConfig(BaseModel):
    """Benchmark settings shared by every file in a batch."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    enabled: bool = Field(default=True, description="Benchmark candidates that pass validation")
    runs: int = Field(default=1000, ge=1, description="Timed iterations per file")
    warmup: int = Field(default=20, ge=0, description="Untimed iterations before timing starts")
    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Hard wall-clock limit for timing one file",
    )
    per_iteration_sampling: bool = Field(
        default=True,
        description="Time every iteration (true percentiles) instead of the loop total",
    )


class AdapterConfig(BaseModel):
    """Language adapters and the external tools they drive."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    enabled: list[str] = Field(
        default_factory=lambda: ["python", "javascript"],
        min_length=1,
        description="Language adapters to register, in dispatch order",
    )
    python_executable: Optional[str] = Field(
        default=None,
        description="Interpreter for Python candidates; the running interpreter if unset",
    )
    node_executable: str = Field(default="node", description="Node.js binary for JavaScript candidates")
    python_formatter: Optional[list[str]] = Field(
        default=None,
        description="Formatter argv reading stdin and writing stdout, e.g. ['black', '-q', '-']",
    )
    javascript_formatter: Optional[list[str]] = Field(
        default=None,
        description="Formatter argv, e.g. ['prettier', '--stdin-filepath', 'x.js']",
    )
    compile_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Limit for syntax checks and formatter runs",
    )


class LLMBenchConfig(BaseModel):
    """
    Top-level config container.

    The YAML key for the global section is `global`, which is a Python
    keyword, hence the alias.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    global_config: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    bench: BenchConfig = Field(default_factory=BenchConfig)
    adapters: AdapterConfig = Field(default_factory=AdapterConfig)

    @classmethod
    def defaults(cls) -> "LLMBenchConfig":
        """A valid config with every default, for runs without a config file."""
        return cls.model_validate({})
