"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from ..errors import ConfigurationError
from .defaults import (
    BounceParams,
    ConfidenceThresholds,
    EVThresholds,
    IndicatorParams,
    LimitedPairsParams,
    PositionSizingMultipliers,
    RiskParams,
    SafetyLimits,
    ScoringParams,
    TradingConfig,
    TradingMode,
    get_default_config,
)
from .validation import ConfigValidator

_SECTION_TYPES = {
    "confidence_thresholds": ConfidenceThresholds,
    "ev_thresholds": EVThresholds,
    "position_sizing": PositionSizingMultipliers,
    "safety": SafetyLimits,
    "limited_pairs": LimitedPairsParams,
    "indicators": IndicatorParams,
    "risk": RiskParams,
    "bounce": BounceParams,
    "scoring": ScoringParams,
}


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: TradingConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    def load_file_config(self) -> dict[str, Any]:
        """Load the trading configuration file, if present."""
        config_file = self.config_dir / "trading.yaml"

        if not config_file.exists():
            return {}

        with open(config_file) as f:
            file_config = yaml.safe_load(f)

        return file_config or {}

    def merge_config(
        self,
        asset: Optional[str] = None,
        overrides: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Per-call overrides (highest priority)
        2. File configuration, with its ``assets.<ASSET>`` section applied on top
        3. Global defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        file_config = dict(self.load_file_config())
        asset_sections = file_config.pop("assets", None) or {}
        config = self._deep_merge(config, file_config)

        if asset and asset in asset_sections:
            config = self._deep_merge(config, asset_sections[asset] or {})

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load(
        self,
        asset: Optional[str] = None,
        overrides: Optional[dict[str, Any]] = None
    ) -> TradingConfig:
        """Merge, validate and build a TradingConfig."""
        return config_from_dict(self.merge_config(asset, overrides))

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name, _field in obj.__dataclass_fields__.items():
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                elif isinstance(value, TradingMode):
                    result[field_name] = value.value
                elif isinstance(value, dict):
                    result[field_name] = dict(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def config_from_dict(data: dict[str, Any]) -> TradingConfig:
    """
    Build a TradingConfig from a configuration dictionary.

    Threshold sections are required; every other section falls back to its
    defaults for missing keys.

    Raises:
        ConfigurationError: If validation fails or a section has unknown keys
    """
    errors = ConfigValidator.validate_config(data)
    if errors:
        details = [f"{err.field}: {err.message} (got: {err.value})" for err in errors]
        raise ConfigurationError(
            "Invalid trading configuration: " + "; ".join(details),
            errors=errors
        )

    sections = {}
    for name, section_type in _SECTION_TYPES.items():
        values = data.get(name) or {}
        known = {f.name for f in fields(section_type)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown keys in '{name}' section: {', '.join(unknown)}",
                context={"section": name, "keys": unknown}
            )
        sections[name] = section_type(**values)

    return TradingConfig(
        trading_mode=TradingMode(data.get("trading_mode", TradingMode.AUTONOMOUS.value)),
        **sections,
    )


def load_trading_config(
    asset: Optional[str] = None,
    overrides: Optional[dict[str, Any]] = None,
    config_dir: Optional[Path] = None
) -> TradingConfig:
    """Load the effective configuration for an asset."""
    return ConfigLoader.create(config_dir).load(asset, overrides)
