"""
Centralized logging configuration for the TradeVet evaluation engine.

Gatekeeper decisions, candidate adjustments and bounce state transitions go
through the audit helpers below. Audit events carry ``audit_trail=True``, so
the evaluation of a single signal can be reconstructed from the log stream
alone, and ``configure_logging(audit_only=True)`` keeps nothing else.
"""
import logging
import sys
from typing import Any, Optional

import orjson
import structlog
from structlog.types import EventDict, FilteringBoundLogger, WrappedLogger


def drop_non_audit(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Processor that discards every event not bound by an audit logger."""
    if not event_dict.get("audit_trail"):
        raise structlog.DropEvent
    return event_dict


def _orjson_dumps(event_dict: EventDict, **kwargs: Any) -> str:
    return orjson.dumps(event_dict, default=kwargs.get("default")).decode()


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    audit_only: bool = False
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: Render one orjson line per event instead of console output
        include_timestamp: Include an ISO timestamp in each event
        audit_only: Keep only gating, adjustment and bounce state events
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        stream=sys.stdout,
        format="%(message)s"
    )

    processors = [structlog.stdlib.filter_by_level]
    if audit_only:
        processors.append(drop_non_audit)
    processors += [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.format_exc_info,
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if format_json:
        processors.append(structlog.processors.JSONRenderer(serializer=_orjson_dumps))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """Get a structlog logger; ``name`` is typically ``__name__``."""
    return structlog.get_logger(name)


def get_gating_logger(name: str) -> FilteringBoundLogger:
    """Logger for the trend gate, contradiction, EV and safety decisions."""
    return get_logger(name).bind(subsystem="gating", audit_trail=True)


def get_state_logger(name: str) -> FilteringBoundLogger:
    """Logger for bounce lifecycle transitions."""
    return get_logger(name).bind(subsystem="bounce_state", audit_trail=True)


def log_gate_decision(
    logger: FilteringBoundLogger,
    gate_name: str,
    passed: bool,
    asset: str,
    reason: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log one gate's verdict on a candidate.

    Passed gates log at info, failed ones at warning.

    Args:
        logger: Gating logger
        gate_name: Gate identifier (trend_alignment, expected_value, ...)
        passed: Whether the candidate got through
        asset: Asset the candidate refers to
        reason: Reason reported for the verdict
        context: Numbers the verdict was based on
    """
    fields: dict[str, Any] = {
        "gate_name": gate_name,
        "gate_result": "PASS" if passed else "FAIL",
        "asset": asset,
        "reason": reason,
    }
    if context:
        fields["context"] = context

    bound_logger = logger.bind(**fields)
    if passed:
        bound_logger.info("Gate passed")
    else:
        bound_logger.warning("Gate failed")


def log_state_transition(
    logger: FilteringBoundLogger,
    asset: str,
    from_state: str,
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """Log a bounce lifecycle step, e.g. ``bounce_mode -> confirmed`` on persistence."""
    fields: dict[str, Any] = {
        "asset": asset,
        "from_state": from_state,
        "to_state": to_state,
        "trigger": trigger,
    }
    if context:
        fields["context"] = context

    logger.bind(**fields).info("State transition")


def log_adjustment(
    logger: FilteringBoundLogger,
    asset: str,
    field: str,
    old_value: Any,
    new_value: Any,
    rule: str
) -> None:
    """
    Log a documented modification of a signal candidate.

    Args:
        logger: Structlog logger instance
        asset: Asset the candidate refers to
        field: Candidate field that changed (stop_loss, take_profit, ...)
        old_value: Value before the rule was applied
        new_value: Value after the rule was applied
        rule: Name of the rule responsible for the change
    """
    logger.bind(
        asset=asset,
        field=field,
        old_value=old_value,
        new_value=new_value,
        rule=rule,
        audit_trail=True,
    ).info("Candidate adjusted")
