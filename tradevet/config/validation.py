"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any

from .defaults import TradingMode

REQUIRED_THRESHOLD_SECTIONS = ("confidence_thresholds", "ev_thresholds")
THRESHOLD_KEYS = ("high", "medium", "low", "reject")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_thresholds(section: str, params: Any) -> list[ValidationError]:
        """Validate a high/medium/low/reject threshold section."""
        errors = []

        if not isinstance(params, dict):
            errors.append(ValidationError(
                field=section,
                message="Required threshold section is missing",
                value=params
            ))
            return errors

        for key in THRESHOLD_KEYS:
            if key not in params or params[key] is None:
                errors.append(ValidationError(
                    field=f"{section}.{key}",
                    message="Required threshold is missing",
                    value=None
                ))
            elif not _is_number(params[key]):
                errors.append(ValidationError(
                    field=f"{section}.{key}",
                    message="Must be a number",
                    value=params[key]
                ))

        if errors:
            return errors

        # Tiers must be ordered high >= medium >= low >= reject
        values = [params[key] for key in THRESHOLD_KEYS]
        for upper_key, lower_key, upper, lower in zip(
            THRESHOLD_KEYS, THRESHOLD_KEYS[1:], values, values[1:]
        ):
            if upper < lower:
                errors.append(ValidationError(
                    field=f"{section}.{upper_key}",
                    message=f"Must be >= {section}.{lower_key}",
                    value=upper
                ))

        if section == "confidence_thresholds":
            for key in THRESHOLD_KEYS:
                if not 0 <= params[key] <= 1:
                    errors.append(ValidationError(
                        field=f"{section}.{key}",
                        message="Must be between 0 and 1",
                        value=params[key]
                    ))

        return errors

    @staticmethod
    def validate_trading_mode(value: Any) -> list[ValidationError]:
        """Validate the trading mode."""
        allowed = [mode.value for mode in TradingMode]
        mode_value = value.value if isinstance(value, TradingMode) else value
        if mode_value not in allowed:
            return [ValidationError(
                field="trading_mode",
                message=f"Must be one of {allowed}",
                value=value
            )]
        return []

    @staticmethod
    def validate_position_sizing(params: dict[str, Any]) -> list[ValidationError]:
        """Validate position sizing multipliers."""
        errors = []

        for key in ("high", "medium", "low"):
            if key in params:
                value = params[key]
                if not _is_number(value) or value <= 0 or value > 1:
                    errors.append(ValidationError(
                        field=f"position_sizing.{key}",
                        message="Must be a number in (0, 1]",
                        value=value
                    ))

        return errors

    @staticmethod
    def validate_safety(params: dict[str, Any]) -> list[ValidationError]:
        """Validate safety limits."""
        errors = []

        if "max_risk_per_trade" in params:
            value = params["max_risk_per_trade"]
            if not _is_number(value) or value <= 0 or value > 100:
                errors.append(ValidationError(
                    field="safety.max_risk_per_trade",
                    message="Must be a percentage in (0, 100]",
                    value=value
                ))

        if "daily_loss_limit" in params:
            value = params["daily_loss_limit"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="safety.daily_loss_limit",
                    message="Must be a positive percentage",
                    value=value
                ))

        for key in ("max_open_positions", "consecutive_losses"):
            if key in params:
                value = params[key]
                if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                    errors.append(ValidationError(
                        field=f"safety.{key}",
                        message="Must be a positive integer",
                        value=value
                    ))

        if "min_account_balance" in params:
            value = params["min_account_balance"]
            if not _is_number(value) or value < 0:
                errors.append(ValidationError(
                    field="safety.min_account_balance",
                    message="Must be a non-negative number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_risk(params: dict[str, Any]) -> list[ValidationError]:
        """Validate risk parameters."""
        errors = []

        floor = params.get("take_profit_floor_pct")
        ceiling = params.get("take_profit_ceiling_pct")
        if _is_number(floor) and _is_number(ceiling) and floor > ceiling:
            errors.append(ValidationError(
                field="risk.take_profit_floor_pct",
                message="Must not exceed risk.take_profit_ceiling_pct",
                value=floor
            ))

        for key in ("base_leverage", "default_max_leverage"):
            if key in params:
                value = params[key]
                if not _is_number(value) or value < 1:
                    errors.append(ValidationError(
                        field=f"risk.{key}",
                        message="Must be a number >= 1",
                        value=value
                    ))

        if "base_margin_pct" in params:
            value = params["base_margin_pct"]
            if not _is_number(value) or not 25 <= value <= 100:
                errors.append(ValidationError(
                    field="risk.base_margin_pct",
                    message="Must be between 25 and 100",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate a complete configuration dictionary."""
        errors = []

        for section in REQUIRED_THRESHOLD_SECTIONS:
            errors.extend(ConfigValidator.validate_thresholds(section, config.get(section)))

        if "trading_mode" in config:
            errors.extend(ConfigValidator.validate_trading_mode(config["trading_mode"]))

        if isinstance(config.get("position_sizing"), dict):
            errors.extend(ConfigValidator.validate_position_sizing(config["position_sizing"]))

        if isinstance(config.get("safety"), dict):
            errors.extend(ConfigValidator.validate_safety(config["safety"]))

        if isinstance(config.get("risk"), dict):
            errors.extend(ConfigValidator.validate_risk(config["risk"]))

        return errors
