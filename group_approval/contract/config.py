"""
Contract Configuration System

Two kinds of configuration reach the contract:

    BuildInfo         The build-fixed contract kind and version. Injected into
                      handlers; compared against the persisted record during
                      instantiation and migration, never chosen by a caller.

    ContractSettings  Runtime tunables for the surrounding tooling (claim
                      pagination bounds, logging). Managed by ConfigManager.

Configuration Sources (in order of precedence):
    1. Environment variables (GROUP_APPROVAL_*)
    2. Runtime overrides
    3. Config file passed to load_from_file()
    4. Default config files (./group-approval.yaml, ~/.group-approval/config.yaml)
    5. Default values

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar, Union

import yaml

from group_approval import __version__
from group_approval.core import load_yaml

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Build-fixed identity of this contract family and release.
CONTRACT_KIND = "group_member_approval_smart_contract"
CONTRACT_VERSION = __version__


class ConfigError(Exception):
    """Configuration error."""
    pass


@dataclass(frozen=True)
class BuildInfo:
    """Identity of the running contract build."""
    contract_kind: str
    contract_version: str

    @classmethod
    def current(cls) -> "BuildInfo":
        """Build info for the code in this package."""
        return cls(contract_kind=CONTRACT_KIND, contract_version=CONTRACT_VERSION)

    def to_dict(self) -> Dict[str, str]:
        return {
            "contract_kind": self.contract_kind,
            "contract_version": self.contract_version,
        }


@dataclass
class ConfigValue(Generic[T]):
    """
    A single configuration value with metadata.

    Supports default values, environment variable binding
    and validation. Environment values are validated on every read.
    """
    default: T
    env_var: Optional[str] = None
    description: str = ""
    validator: Optional[Callable[[T], bool]] = None
    _value: Optional[T] = field(default=None, repr=False)

    def get(self) -> T:
        """Get the current value."""
        # Check environment variable first
        if self.env_var and self.env_var in os.environ:
            value = self._coerce(os.environ[self.env_var])
            if self.validator and not self.validator(value):
                raise ConfigError(f"{self.env_var}: invalid value {value!r}")
            return value

        # Return set value or default
        return self._value if self._value is not None else self.default

    def set(self, value: T) -> None:
        """Set the value with validation."""
        if self.validator and not self.validator(value):
            raise ConfigError(f"Invalid value for config: {value}")

        self._value = value

    def reset(self) -> None:
        """Drop any runtime override."""
        self._value = None

    def _coerce(self, value: str) -> T:
        """Coerce string value to target type."""
        target_type = type(self.default)

        if target_type == bool:
            return value.lower() in ("true", "1", "yes", "on")  # type: ignore
        elif target_type == int:
            try:
                return int(value)  # type: ignore
            except ValueError as e:
                raise ConfigError(f"{self.env_var}: expected integer, got {value!r}") from e
        return value  # type: ignore


@dataclass
class ClaimsConfig:
    """Bounds on claim-store reads during duplicate detection."""
    page_size: ConfigValue[int] = field(default_factory=lambda: ConfigValue(
        default=100,
        env_var="GROUP_APPROVAL_CLAIMS_PAGE_SIZE",
        description="Claims requested per page from the claim store",
        validator=lambda x: isinstance(x, int) and 1 <= x <= 1000,
    ))
    max_pages: ConfigValue[int] = field(default_factory=lambda: ConfigValue(
        default=1000,
        env_var="GROUP_APPROVAL_CLAIMS_MAX_PAGES",
        description="Upper bound on pages fetched per duplicate check",
        validator=lambda x: isinstance(x, int) and x > 0,
    ))


@dataclass
class ObservabilityConfig:
    """Configuration for Observability."""
    log_level: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="info",
        env_var="GROUP_APPROVAL_LOG_LEVEL",
        description="Log level (debug, info, warning, error)",
        validator=lambda x: x in ("debug", "info", "warning", "error", "critical"),
    ))
    structured_logs: ConfigValue[bool] = field(default_factory=lambda: ConfigValue(
        default=True,
        env_var="GROUP_APPROVAL_STRUCTURED_LOGS",
        description="Emit JSON log lines instead of plain text",
    ))


@dataclass
class ContractSettings:
    """
    Root configuration for the contract tooling.

    Aggregates all component configurations and provides
    loading/saving functionality.
    """
    claims: ClaimsConfig = field(default_factory=ClaimsConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        def extract_values(obj: Any) -> Any:
            if isinstance(obj, ConfigValue):
                return obj.get()
            elif hasattr(obj, "__dataclass_fields__"):
                return {k: extract_values(getattr(obj, k)) for k in obj.__dataclass_fields__}
            return obj

        return extract_values(self)

    def to_yaml(self) -> str:
        """Convert to YAML string."""
        return yaml.safe_dump(self.to_dict(), default_flow_style=False)


class ConfigManager:
    """
    Configuration manager with file loading and environment binding.

    Thread-safe singleton that manages configuration lifecycle.
    """

    _instance: Optional["ConfigManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "ConfigManager":
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._initialized = False
            return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._settings = ContractSettings()
        self._initialized = True

    @classmethod
    def reset(cls) -> None:
        """Discard the singleton so the next access starts from defaults."""
        with cls._lock:
            cls._instance = None

    @property
    def settings(self) -> ContractSettings:
        """Get the current configuration."""
        return self._settings

    def load_from_file(self, path: Union[str, Path]) -> None:
        """Load configuration from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            data = load_yaml(path)
        except yaml.YAMLError as e:
            raise ConfigError(f"Configuration file is not valid YAML: {path}: {e}") from e

        if data is None:
            return
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file must contain a mapping: {path}")

        self._apply_dict(data)

    def load_defaults(self) -> None:
        """Load default configuration files if they exist."""
        default_paths = [
            Path("group-approval.yaml"),
            Path("config/group-approval.yaml"),
            Path.home() / ".group-approval" / "config.yaml",
        ]

        for path in default_paths:
            if path.exists():
                try:
                    self.load_from_file(path)
                except ConfigError as e:
                    logger.warning("Ignoring unreadable config file %s: %s", path, e)

    def _apply_dict(self, data: Dict[str, Any]) -> None:
        """Apply dictionary values to configuration."""
        def apply_to_config(config_obj: Any, values: Dict[str, Any], prefix: str) -> None:
            for key, value in values.items():
                path = f"{prefix}{key}"
                if not hasattr(config_obj, key):
                    raise ConfigError(f"Unknown config key: {path}")
                attr = getattr(config_obj, key)
                if isinstance(attr, ConfigValue):
                    attr.set(value)
                elif hasattr(attr, "__dataclass_fields__") and isinstance(value, dict):
                    apply_to_config(attr, value, f"{path}.")
                else:
                    raise ConfigError(f"Invalid config value at {path}")

        apply_to_config(self._settings, data, "")

    def _resolve(self, path: str) -> Any:
        obj: Any = self._settings
        for part in path.split("."):
            if not hasattr(obj, part):
                raise ConfigError(f"Invalid config path: {path}")
            obj = getattr(obj, part)
        return obj

    def set(self, path: str, value: Any) -> None:
        """
        Set a configuration value by path.

        Example: manager.set("claims.page_size", 50)
        """
        attr = self._resolve(path)
        if not isinstance(attr, ConfigValue):
            raise ConfigError(f"Invalid config path: {path}")
        attr.set(value)

    def get(self, path: str) -> Any:
        """
        Get a configuration value by path.

        Example: manager.get("claims.page_size")
        """
        obj = self._resolve(path)
        if isinstance(obj, ConfigValue):
            return obj.get()
        return obj

    def validate(self) -> List[str]:
        """
        Validate all configuration values.

        Returns list of validation errors.
        """
        errors: List[str] = []

        def validate_config(obj: Any, path: str = "") -> None:
            if isinstance(obj, ConfigValue):
                try:
                    value = obj.get()
                    if obj.validator and not obj.validator(value):
                        errors.append(f"{path}: validation failed for value {value}")
                except ConfigError as e:
                    errors.append(f"{path}: {e}")
            elif hasattr(obj, "__dataclass_fields__"):
                for field_name in obj.__dataclass_fields__:
                    field_path = f"{path}.{field_name}" if path else field_name
                    validate_config(getattr(obj, field_name), field_path)

        validate_config(self._settings)
        return errors

    def export_schema(self) -> Dict[str, Any]:
        """Export configuration schema for documentation."""
        schema: Dict[str, Any] = {"properties": {}}

        def extract_schema(obj: Any, properties: Dict[str, Any]) -> None:
            if isinstance(obj, ConfigValue):
                properties["type"] = type(obj.default).__name__
                properties["default"] = str(obj.default)
                properties["description"] = obj.description
                if obj.env_var:
                    properties["env_var"] = obj.env_var
            elif hasattr(obj, "__dataclass_fields__"):
                for field_name in obj.__dataclass_fields__:
                    properties[field_name] = {}
                    extract_schema(getattr(obj, field_name), properties[field_name])

        extract_schema(self._settings, schema["properties"])
        return schema


def get_settings() -> ContractSettings:
    """Get the current contract settings."""
    return ConfigManager().settings


def get_config_manager() -> ConfigManager:
    """Get the configuration manager instance."""
    return ConfigManager()
