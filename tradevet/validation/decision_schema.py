"""Structural validation for serialized signal decisions."""

import math
from typing import Any

import structlog

from ..models.decision import ExecutionLevel
from ..models.signals import Direction

logger = structlog.get_logger(__name__)

ENTRY_DIRECTIONS = [Direction.BUY_TO_ENTER.value, Direction.SELL_TO_ENTER.value, Direction.ADD.value]

# Decision JSON schema, matching SignalDecision.to_dict()
DECISION_SCHEMA = {
    "type": "object",
    "required": [
        "asset", "direction", "confidence", "expected_value", "risk_reward_ratio",
        "risk_amount", "position_size", "leverage", "execution_level", "accepted",
        "reason", "evaluated_at",
    ],
    "properties": {
        "asset": {
            "type": "string",
            "minLength": 1,
            "description": "Asset symbol"
        },
        "direction": {
            "type": "string",
            "enum": [d.value for d in Direction],
            "description": "Final candidate direction"
        },
        "entry_price": {
            "type": ["number", "null"],
            "exclusiveMinimum": 0,
            "description": "Entry price (entry directions only)"
        },
        "stop_loss": {
            "type": ["number", "null"],
            "description": "Resolved stop-loss"
        },
        "take_profit": {
            "type": ["number", "null"],
            "description": "Resolved take-profit"
        },
        "confidence": {
            "type": "number",
            "minimum": 0,
            "maximum": 1,
            "description": "Final confidence after penalties and bounce adjustments"
        },
        "expected_value": {
            "type": "number",
            "description": "EV = p * ratio * risk - (1 - p) * risk"
        },
        "risk_reward_ratio": {
            "type": "number",
            "minimum": 0,
            "description": "Reward:risk of the resolved levels"
        },
        "risk_amount": {
            "type": "number",
            "minimum": 0,
            "description": "Account currency at risk"
        },
        "position_size": {
            "type": "number",
            "minimum": 0,
            "description": "Position size in units of the asset"
        },
        "leverage": {
            "type": "number",
            "minimum": 0,
            "description": "Leverage (0 for non-entry decisions)"
        },
        "execution_level": {
            "type": "string",
            "enum": [level.value for level in ExecutionLevel],
            "description": "Tier assigned by the expected value gate"
        },
        "accepted": {
            "type": "boolean",
            "description": "Whether the candidate passed every gate"
        },
        "reason": {
            "type": "string",
            "minLength": 1,
            "description": "Human-readable reason for the outcome"
        },
        "evaluated_at": {
            "type": "integer",
            "minimum": 0,
            "description": "Evaluation time, epoch ms"
        },
        "breakdown": {
            "type": ["object", "null"],
            "description": "Per-category confidence scores"
        },
        "adjustments": {
            "type": "array",
            "description": "Audit list of documented candidate changes"
        }
    },
    "additionalProperties": True
}

EV_TOLERANCE = 1e-9


class DecisionValidationError(Exception):
    """Decision validation error."""
    pass


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


class DecisionValidator:
    """Validates serialized decisions against the schema and its invariants."""

    def __init__(self):
        self.logger = logger
        self.schema = DECISION_SCHEMA

    def validate_decision(self, decision: dict[str, Any]) -> bool:
        """
        Validate a decision dictionary.

        Args:
            decision: Output of SignalDecision.to_dict()

        Returns:
            True if valid

        Raises:
            DecisionValidationError: If validation fails
        """
        try:
            self._validate_required_fields(decision)
            self._validate_field_types(decision)
            self._validate_field_values(decision)
            self._validate_levels(decision)
            self._validate_consistency(decision)
            return True

        except (ValueError, TypeError) as e:
            error_msg = f"Decision validation failed: {str(e)}"
            self.logger.error(error_msg, asset=decision.get("asset"))
            raise DecisionValidationError(error_msg) from e

    def _validate_required_fields(self, decision: dict[str, Any]) -> None:
        """Validate required fields are present."""
        missing_fields = [field for field in self.schema["required"] if field not in decision]

        if missing_fields:
            raise ValueError(f"Missing required fields: {missing_fields}")

    def _validate_field_types(self, decision: dict[str, Any]) -> None:
        """Validate field types match schema."""
        if not isinstance(decision.get("asset"), str) or not decision["asset"]:
            raise ValueError("asset must be a non-empty string")

        for field in ("confidence", "expected_value", "risk_reward_ratio",
                      "risk_amount", "position_size", "leverage"):
            if not _is_number(decision.get(field)):
                raise ValueError(f"{field} must be a finite number, got: {decision.get(field)}")

        if not isinstance(decision.get("accepted"), bool):
            raise ValueError("accepted must be a boolean")

        if not isinstance(decision.get("reason"), str) or not decision["reason"]:
            raise ValueError("reason must be a non-empty string")

        evaluated_at = decision.get("evaluated_at")
        if not isinstance(evaluated_at, int) or isinstance(evaluated_at, bool) or evaluated_at < 0:
            raise ValueError(f"evaluated_at must be a non-negative integer, got: {evaluated_at}")

        if decision.get("breakdown") is not None and not isinstance(decision["breakdown"], dict):
            raise ValueError("breakdown must be an object")

        if not isinstance(decision.get("adjustments", []), list):
            raise ValueError("adjustments must be an array")

    def _validate_field_values(self, decision: dict[str, Any]) -> None:
        """Validate enums and ranges."""
        direction_enum = self.schema["properties"]["direction"]["enum"]
        if decision["direction"] not in direction_enum:
            raise ValueError(f"Invalid direction: {decision['direction']}")

        level_enum = self.schema["properties"]["execution_level"]["enum"]
        if decision["execution_level"] not in level_enum:
            raise ValueError(f"Invalid execution_level: {decision['execution_level']}")

        if not 0 <= decision["confidence"] <= 1:
            raise ValueError(f"confidence must be between 0 and 1, got: {decision['confidence']}")

        for field in ("risk_reward_ratio", "risk_amount", "position_size", "leverage"):
            if decision[field] < 0:
                raise ValueError(f"{field} must be non-negative, got: {decision[field]}")

    def _validate_levels(self, decision: dict[str, Any]) -> None:
        """Accepted entries need a positive entry with stop and target on opposite sides."""
        if not decision["accepted"] or decision["direction"] not in ENTRY_DIRECTIONS:
            return

        entry = decision.get("entry_price")
        stop = decision.get("stop_loss")
        target = decision.get("take_profit")

        for field, value in (("entry_price", entry), ("stop_loss", stop), ("take_profit", target)):
            if not _is_number(value) or value <= 0:
                raise ValueError(f"{field} must be a positive number for entries, got: {value}")

        if (stop - entry) * (target - entry) >= 0:
            raise ValueError(
                f"stop_loss ({stop}) and take_profit ({target}) must be on opposite sides of entry ({entry})"
            )

    def _validate_consistency(self, decision: dict[str, Any]) -> None:
        """Validate cross-field invariants."""
        p = decision["confidence"]
        risk = decision["risk_amount"]
        expected = p * decision["risk_reward_ratio"] * risk - (1 - p) * risk
        if abs(expected - decision["expected_value"]) > EV_TOLERANCE * max(1.0, abs(expected)):
            raise ValueError(
                f"expected_value {decision['expected_value']} does not match "
                f"confidence/ratio/risk ({expected})"
            )

        if decision["accepted"] and decision["execution_level"] == ExecutionLevel.REJECT.value:
            raise ValueError("accepted decisions cannot have execution_level 'reject'")

        breakdown = decision.get("breakdown")
        if breakdown and breakdown.get("auto_rejected"):
            if decision["confidence"] != 0 or decision["accepted"]:
                raise ValueError("auto-rejected decisions must have confidence 0 and accepted false")

    def validate_decisions(self, decisions: list[dict[str, Any]]) -> list[bool]:
        """
        Validate multiple decisions.

        Args:
            decisions: List of decision dictionaries

        Returns:
            List of boolean validation results
        """
        results = []
        for decision in decisions:
            try:
                results.append(self.validate_decision(decision))
            except DecisionValidationError:
                results.append(False)
        return results

    def get_schema(self) -> dict[str, Any]:
        """Get the JSON schema for decisions."""
        return self.schema.copy()


# Global validator instance
validator = DecisionValidator()


def validate_decision_dict(decision: dict[str, Any]) -> bool:
    """Convenience function to validate a decision."""
    return validator.validate_decision(decision)


def validate_decisions(decisions: list[dict[str, Any]]) -> list[bool]:
    """Convenience function to validate multiple decisions."""
    return validator.validate_decisions(decisions)
