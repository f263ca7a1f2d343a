"""Application state and configuration."""

from __future__ import annotations

import os
import re
from datetime import datetime
from pathlib import Path
from typing import Any

import platformdirs
import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from moon_dashboard.core.base import BaseConfig, BaseState
from moon_dashboard.core.log import Logger
from moon_dashboard.core.result import ChannelReport, MoonBuildDashboard
from moon_dashboard.core.source import Source
from moon_dashboard.core.yaml_settings import (
    DEFAULTS_FILE,
    YamlWithIncludesSettingsSource,
)

# Names usable in templates, e.g. {platformdirs.user_state_dir}
TEMPLATE_NAMESPACE = {
    'os': os,
    'platformdirs': platformdirs,
    'Path': Path,
}

def _default_commands() -> dict[str, dict[str, str]]:
    """Command templates shipped in defaults/default.yaml."""
    with open(DEFAULTS_FILE) as f:
        return yaml.safe_load(f)["config"]["commands"]


# ============================================================
# CONFIG MODELS (loaded from YAML/env/CLI)
# ============================================================


class ToolchainConfig(BaseConfig):
    """Where the moon toolchain lives and how it is driven."""

    moon_home: Path = Field(
        default_factory=lambda: Path.home() / ".moon",
        description=(
            "MOON_HOME for every toolchain invocation; also the root of "
            "the local registry index"
        ),
    )
    timeout: int | None = Field(
        default=None,
        description="Per-command timeout in seconds (None = unbounded)",
    )

    def environment(self) -> dict[str, str]:
        """Environment overrides for processes that run the toolchain."""
        bin_dir = self.moon_home / "bin"
        return {
            "MOON_HOME": str(self.moon_home),
            "PATH": f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}",
        }


class RegistryConfig(BaseConfig):
    """Mooncakes registry settings."""

    base_url: str = Field(
        default=(
            "https://moonbitlang-mooncakes.s3.us-west-2.amazonaws.com/user"
        ),
        description="Base URL for {name}/{version}.zip downloads",
    )
    exclude_publishers: list[str] = Field(
        default_factory=lambda: ["test"],
        description="Publishers whose index records are test fixtures",
    )


class MatrixConfig(BaseConfig):
    """Check/build/test matrix settings."""

    timeout: int | None = Field(
        default=None,
        description="Timeout for one matrix cell in seconds",
    )
    log_dir: Path | None = Field(
        default=None,
        description=(
            "Directory for per-cell output logs "
            "(supports {config.*} templates); None keeps no logs"
        ),
    )


class OutputConfig(BaseConfig):
    """Where finished snapshots go."""

    path: Path = Field(
        default=Path("webapp/public/data.jsonl"),
        description="JSON-lines file each run appends one snapshot to",
    )


class RunConfig(BaseConfig):
    """Run metadata and channel-pass behaviour."""

    run_id_env: str = Field(
        default="GITHUB_ACTION_RUN_ID",
        description="Environment variable holding the CI run id",
    )
    run_number_env: str = Field(
        default="GITHUB_ACTION_RUN_NUMBER",
        description="Environment variable holding the CI run number",
    )
    reresolve_sources: bool = Field(
        default=False,
        description=(
            "Resolve sources again before the bleeding pass so 'latest' "
            "can move; by default both channels share one resolution"
        ),
    )


class Config(BaseConfig):
    """Application configuration loaded from YAML/env/CLI."""

    logger: Logger = Field(
        default=None,
        description="Logger configuration and runtime instance",
    )
    toolchain: ToolchainConfig = Field(default_factory=ToolchainConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    matrix: MatrixConfig = Field(default_factory=MatrixConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    run: RunConfig = Field(default_factory=RunConfig)

    log_root: Path = Field(
        default_factory=(
            lambda: Path(platformdirs.user_state_dir()) / "moon-dashboard"
        ),
        description="Root directory for log files",
    )
    commands: dict[str, dict[str, str]] = Field(
        default_factory=_default_commands,
        description=(
            "Command templates by tool (git, moon, archive, install)"
        ),
    )

    @model_validator(mode='after')
    def _setup_logger(self) -> 'Config':
        """Install the global logger from the loaded logger section."""
        from moon_dashboard.core.log import setup_logger

        if self.logger is None:
            self.logger = Logger()

        self.logger = setup_logger(
            log_root=self.log_root,
            run_name="stat",
            level=self.logger.level,
            console=self.logger.console,
            file=self.logger.file,
            logfire=self.logger.logfire,
        )
        return self

    def close(self):
        from moon_dashboard.core.log import logger
        if logger is not None:
            logger.close()
        super().close()


# ============================================================
# RUNTIME STATE MODELS (mutable during workflow execution)
# ============================================================


class StatState(BaseState):
    """State of one stat run."""

    repo_url: str | None = None
    file: Path | None = None
    skip_install: bool = False
    skip_update: bool = False

    run_id: str = "0"
    run_number: str = "0"
    start_time: datetime | None = None

    registry: Any = Field(
        default=None,
        description="Version lookup used by the resolver",
    )
    aggregator: Any = Field(
        default=None,
        description="ChannelAggregator driving both channel passes",
    )
    sources: list[Source] = Field(default_factory=list)
    stable: ChannelReport | None = None
    bleeding: ChannelReport | None = None
    dashboard: MoonBuildDashboard | None = None
    status: str = Field(
        default="pending",
        description="pending, running, complete, failed",
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)


class Runtime(BaseModel):
    """Runtime state grouped by command."""

    stat: StatState = Field(default_factory=StatState)


# ============================================================
# STATE (config + runtime combined)
# ============================================================


class State(BaseSettings):
    """Configuration plus runtime state; flows through the workflow.

    `config` is loaded from YAML, .env, MOON_DASHBOARD_* variables and
    CLI arguments. `runtime` is filled in while the run progresses.
    """

    config: Config = Field(default_factory=Config)
    runtime: Runtime = Field(default_factory=Runtime)
    include: list[str] | None = Field(
        default=None,
        description=(
            "Additional YAML files to deep-merge over the defaults "
            "(--include on CLI or include: in YAML)"
        ),
    )

    model_config = SettingsConfigDict(
        yaml_file="moon-dashboard.yaml",
        env_file=".env",
        env_prefix="MOON_DASHBOARD_",
        env_nested_delimiter="__",
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        arbitrary_types_allowed=True,
        extra='ignore',
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Priority, highest first: init args (CLI), YAML (defaults <
        user < project < includes), .env, environment, secrets."""
        return (
            init_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            dotenv_settings,
            env_settings,
            file_secret_settings,
        )

    @model_validator(mode="after")
    def substitute_templates(self) -> "State":
        """Expand {config.*} and {platformdirs.*} templates in the
        loaded configuration."""
        self._substitute_recursive(self.config)
        return self

    def _substitute_recursive(self, obj: Any) -> None:
        if isinstance(obj, BaseModel):
            for field_name in obj.__class__.model_fields:
                value = getattr(obj, field_name)
                new_value = self._substitute_value(value)
                if new_value is not value:
                    setattr(obj, field_name, new_value)
        elif isinstance(obj, dict):
            for key in obj:
                obj[key] = self._substitute_value(obj[key])
        elif isinstance(obj, list):
            for i in range(len(obj)):
                obj[i] = self._substitute_value(obj[i])

    def _substitute_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self._substitute_string(value)
        if isinstance(value, Path):
            return Path(self._substitute_string(str(value)))
        if isinstance(value, (BaseModel, dict, list)):
            self._substitute_recursive(value)
        return value

    def _substitute_string(self, value: str) -> str:
        """Replace {dotted.path} references with their values.

        Unknown references are left alone, which keeps command
        placeholders such as {backend} intact for later formatting.

        Examples:
            "{config.toolchain.moon_home}/registry"
            -> "/home/user/.moon/registry"
            "{platformdirs.user_log_dir}/dashboard"
            -> "/home/user/.local/state/moon-dashboard/log/dashboard"
        """
        def replace_template(match):
            parts = match.group(1).split(".")
            if parts[0] in TEMPLATE_NAMESPACE:
                obj = TEMPLATE_NAMESPACE[parts[0]]
                parts = parts[1:]
            else:
                obj = self

            try:
                for part in parts:
                    obj = getattr(obj, part)
                if callable(obj):
                    obj = obj('moon-dashboard', appauthor=False)
                return str(obj)
            except (AttributeError, TypeError):
                return match.group(0)

        return re.sub(r'\{([a-z._]+)\}', replace_template, value)


__all__ = ["State", "Config", "BaseConfig", "BaseState"]
