"""
Signal evaluation engine.

Orchestrates the vetting pipeline for one proposed trading signal:
Market Data → Snapshot → Contradictions → Confidence → Bounce → Sizing → EV Gate
"""

from dataclasses import asdict
from pathlib import Path
from typing import Any, Optional, Union

import structlog

from .bounce.transitions import assess_bounce
from .config.defaults import TradingConfig, get_default_config
from .config.loader import config_from_dict, load_trading_config
from .config.validation import ConfigValidator
from .data.models import MarketData
from .errors import ConfigurationError, DataQualityError, InsufficientDataError
from .indicators.correlation import correlation_matrix
from .logging.config import get_gating_logger, log_adjustment, log_gate_decision
from .models.decision import (
    Adjustment,
    AdjustmentDecision,
    AdjustmentKind,
    ConfidenceBreakdown,
    ContradictionReport,
    ExecutionLevel,
    SignalDecision,
)
from .models.signals import (
    AccountState,
    CloseCandidate,
    EntryCandidate,
    ExternalData,
    HoldCandidate,
    ReduceCandidate,
    SignalCandidate,
    Side,
    is_entry,
    with_levels,
    with_side,
)
from .risk.expected_value import GateResult, ev_gate, expected_value
from .risk.levels import LevelResolver
from .risk.safety import check_correlated_exposure, check_safety_limits
from .risk.sizing import calculate_sizing
from .scoring.adjustment import decide_adjustment
from .scoring.confidence import score_confidence
from .scoring.contradictions import detect_contradictions
from .scoring.penalties import apply_penalties
from .snapshot.builder import IndicatorSnapshotBuilder
from .utils.time import resolve_evaluation_time

logger = structlog.get_logger(__name__)
gating_logger = get_gating_logger(__name__)

MIN_CANDLES = 14
DEFAULT_CONFIDENCE_HINT = 0.5

Correlations = dict[str, dict[str, Optional[float]]]


class SignalEvaluationEngine:
    """
    Vets proposed trading signals against computed market indicators.

    The engine holds only configuration; every evaluation is a pure
    function of its inputs, so the same series, candidate and evaluation
    time always produce the same SignalDecision.
    """

    def __init__(self, config: Optional[Union[TradingConfig, dict[str, Any]]] = None) -> None:
        """
        Initialize the engine.

        Args:
            config: TradingConfig or configuration dictionary; defaults apply when omitted

        Raises:
            ConfigurationError: If required thresholds are missing or inconsistent
        """
        if config is None:
            config = get_default_config()
        elif isinstance(config, dict):
            config = config_from_dict(config)
        else:
            errors = ConfigValidator.validate_config(asdict(config))
            if errors:
                details = [f"{err.field}: {err.message} (got: {err.value})" for err in errors]
                raise ConfigurationError(
                    "Invalid trading configuration: " + "; ".join(details),
                    errors=errors
                )

        self.config = config
        self.logger = logger
        self.gating_logger = gating_logger
        self.snapshot_builder = IndicatorSnapshotBuilder(config)
        self.level_resolver = LevelResolver(config.risk)

        self.logger.info(
            "Signal evaluation engine initialized",
            trading_mode=config.trading_mode.value
        )

    @classmethod
    def from_config_dir(
        cls,
        config_dir: Optional[Union[str, Path]] = None,
        asset: Optional[str] = None,
        overrides: Optional[dict[str, Any]] = None
    ) -> "SignalEvaluationEngine":
        """Create an engine from ``trading.yaml`` in ``config_dir``."""
        path = Path(config_dir) if config_dir is not None else None
        return cls(load_trading_config(asset, overrides, path))

    def evaluate(
        self,
        market: MarketData,
        candidate: SignalCandidate,
        external: Optional[ExternalData] = None,
        account: Optional[AccountState] = None,
        now_ms: Optional[int] = None,
        correlations: Optional[Correlations] = None
    ) -> SignalDecision:
        """
        Evaluate one candidate against its market data.

        Args:
            market: Primary series plus optional 1h/4h/1d series
            candidate: Proposed signal
            external: Optional external market inputs
            account: Optional account state for sizing and safety limits
            now_ms: Evaluation time; defaults to the last primary candle
            correlations: Optional return-correlation matrix keyed by asset

        Returns:
            SignalDecision
        """
        evaluated_at = resolve_evaluation_time(now_ms, market.primary.last.timestamp)

        try:
            self._require_history(market)
        except InsufficientDataError as e:
            self.logger.warning(
                "Insufficient data for evaluation",
                asset=candidate.asset,
                error=str(e),
                context=e.context
            )
            log_gate_decision(
                self.gating_logger, "insufficient_data", False, candidate.asset, str(e),
                {"required": MIN_CANDLES, "available": len(market.primary)}
            )
            return self._rejected(candidate, evaluated_at, "insufficient_data")

        if not is_entry(candidate):
            return self._pass_through(candidate, evaluated_at)

        return self._evaluate_entry(market, candidate, external, account, evaluated_at, correlations)

    def evaluate_many(
        self,
        requests: list[tuple[MarketData, SignalCandidate]],
        external: Optional[dict[str, ExternalData]] = None,
        account: Optional[AccountState] = None,
        now_ms: Optional[int] = None
    ) -> list[SignalDecision]:
        """
        Evaluate candidates for several assets.

        In limited-pairs mode the correlation matrix is computed from the
        primary closes of every supplied asset.

        Args:
            requests: (market, candidate) pairs
            external: Optional external inputs keyed by asset
            account: Optional shared account state
            now_ms: Evaluation time shared by every run

        Returns:
            One SignalDecision per request, in request order
        """
        correlations = None
        limited = self.config.limited_pairs
        if limited.enabled and len(requests) > 1:
            closes = {market.asset: market.primary.closes for market, _ in requests}
            correlations = correlation_matrix(closes, limited.correlation_lookback)

        external = external or {}
        decisions = []
        for market, candidate in requests:
            try:
                decisions.append(self.evaluate(
                    market, candidate,
                    external=external.get(candidate.asset),
                    account=account,
                    now_ms=now_ms,
                    correlations=correlations,
                ))
            except DataQualityError as e:
                self.logger.warning(
                    "Data quality issue during evaluation",
                    asset=candidate.asset,
                    error=str(e),
                    error_type=type(e).__name__,
                    context=getattr(e, 'context', {})
                )
                decisions.append(self._rejected(
                    candidate, resolve_evaluation_time(now_ms, market.primary.last.timestamp),
                    f"data_quality: {e}"
                ))

        return decisions

    def _require_history(self, market: MarketData) -> None:
        available = len(market.primary)
        if available < MIN_CANDLES:
            raise InsufficientDataError(
                f"Primary series has {available} candles, at least {MIN_CANDLES} required",
                required_count=MIN_CANDLES,
                available_count=available
            )

    def _rejected(self, candidate: SignalCandidate, evaluated_at: int, reason: str) -> SignalDecision:
        return SignalDecision(
            candidate=candidate,
            confidence=0.0,
            expected_value=0.0,
            risk_reward_ratio=0.0,
            risk_amount=0.0,
            position_size=0.0,
            leverage=0.0,
            execution_level=ExecutionLevel.REJECT,
            accepted=False,
            reason=reason,
            evaluated_at=evaluated_at,
        )

    def _pass_through(self, candidate: SignalCandidate, evaluated_at: int) -> SignalDecision:
        """Hold, close and reduce candidates carry no new risk and skip vetting."""
        raw = candidate.raw_confidence
        confidence = max(0.0, min(1.0, raw)) if raw is not None else 0.0

        if isinstance(candidate, HoldCandidate):
            accepted, level, reason = False, ExecutionLevel.REJECT, "hold: no action proposed"
        elif isinstance(candidate, CloseCandidate):
            accepted, level = True, ExecutionLevel.HIGH
            reason = "close_all: exit every position" if candidate.close_all else "close: exit position"
        elif isinstance(candidate, ReduceCandidate):
            accepted, level = True, ExecutionLevel.HIGH
            reason = (f"reduce: trim {candidate.fraction:.0%} of position"
                      if candidate.fraction is not None else "reduce: trim position")
        else:
            raise TypeError(f"Unsupported candidate type: {type(candidate).__name__}")

        log_gate_decision(
            self.gating_logger, "pass_through", accepted, candidate.asset, reason,
            {"direction": candidate.direction.value}
        )

        return SignalDecision(
            candidate=candidate,
            confidence=confidence,
            expected_value=expected_value(confidence, 0.0, 0.0),
            risk_reward_ratio=0.0,
            risk_amount=0.0,
            position_size=0.0,
            leverage=0.0,
            execution_level=level,
            accepted=accepted,
            reason=reason,
            evaluated_at=evaluated_at,
        )

    def _record(
        self,
        adjustments: list[Adjustment],
        asset: str,
        field: str,
        old_value: Any,
        new_value: Any,
        rule: str
    ) -> None:
        adjustments.append(Adjustment(field=field, old_value=old_value, new_value=new_value, rule=rule))
        log_adjustment(self.logger, asset, field, old_value, new_value, rule)

    def _evaluate_entry(
        self,
        market: MarketData,
        candidate: EntryCandidate,
        external: Optional[ExternalData],
        account: Optional[AccountState],
        evaluated_at: int,
        correlations: Optional[Correlations]
    ) -> SignalDecision:
        config = self.config
        asset = candidate.asset
        adjustments: list[Adjustment] = []
        warnings: list[str] = []

        snapshot, alignment = self.snapshot_builder.build(market, evaluated_at)

        # Bounce mode
        bounce = snapshot.bounce if config.bounce.enabled else None
        if bounce is not None and not bounce.detected:
            bounce = None
        if bounce is not None and config.bounce.force_direction and bounce.side is not candidate.side:
            self._record(
                adjustments, asset, "direction", candidate.direction.value,
                bounce.side.value, "bounce_forced_direction"
            )
            candidate = with_side(candidate, bounce.side)
        bounce_mode = bounce is not None and bounce.side is candidate.side

        hint = candidate.raw_confidence if candidate.raw_confidence is not None else DEFAULT_CONFIDENCE_HINT
        candidate, level_changes = self.level_resolver.resolve(candidate, snapshot, hint, bounce_mode)
        adjustments.extend(level_changes)

        # Contradictions and the adjustment decision
        report = detect_contradictions(candidate.side, snapshot, alignment)
        decision = decide_adjustment(candidate.side, report, snapshot, config)

        if decision.kind is AdjustmentKind.FLIP:
            flipped = candidate.side.opposite
            self._record(adjustments, asset, "direction", candidate.direction.value, flipped.value, "extreme_contradiction_flip")
            candidate = with_side(candidate, flipped)
            bounce_mode = bounce is not None and bounce.side is candidate.side
            candidate, level_changes = self.level_resolver.resolve(candidate, snapshot, hint, bounce_mode)
            adjustments.extend(level_changes)
            report = detect_contradictions(candidate.side, snapshot, alignment)
        elif decision.kind is AdjustmentKind.FLAG_CONTRADICTION:
            warnings.append(decision.reason)
            warnings.extend(report.items)

        self._log_contradictions(asset, report, decision)

        # Confidence
        breakdown = score_confidence(candidate, snapshot, alignment, external, config.trading_mode, config.scoring)
        log_gate_decision(
            self.gating_logger, "trend_alignment", not breakdown.auto_rejected, asset,
            breakdown.rejection_reason or "trend alignment above floor",
            {"alignment_score": alignment.alignment_score, "daily_trend": alignment.daily_trend}
        )

        confidence = breakdown.confidence
        penalty_multiplier = 1.0
        trim_recommended = False
        trailed_take_profit = None

        if not breakdown.auto_rejected:
            penalties = apply_penalties(confidence, candidate.side, report, snapshot, config.scoring)
            penalty_multiplier = penalties.multiplier
            if penalties.confidence != confidence:
                self._record(adjustments, asset, "confidence", confidence, penalties.confidence, "penalties")
                warnings.extend(penalties.items)
            confidence = penalties.confidence

            # Bounce lifecycle
            if bounce_mode:
                assessment = assess_bounce(bounce, market.primary, config.bounce, market.timeframe("4h"))
                adjusted = max(0.0, min(1.0, confidence * assessment.confidence_factor))
                if adjusted != confidence:
                    self._record(adjustments, asset, "confidence", confidence, adjusted, f"bounce_{assessment.state.value}")
                confidence = adjusted
                warnings.extend(assessment.notes)
                trim_recommended = assessment.trim_recommended
                trailed_take_profit = assessment.trailed_take_profit
                if trim_recommended:
                    warnings.append(f"Trim {assessment.trim_fraction:.0%} of position recommended")

        candidate, level_changes = self.level_resolver.enforce_reward_risk(candidate, confidence, bounce_mode)
        adjustments.extend(level_changes)

        candidate = self._trail_take_profit(candidate, trailed_take_profit, adjustments, warnings)

        # Sizing and expected value
        sizing = calculate_sizing(
            candidate.side, candidate.entry_price, candidate.stop_loss, candidate.take_profit,
            confidence, snapshot, config, account.equity if account is not None else None
        )
        ev = expected_value(confidence, sizing.reward_risk, sizing.risk_amount)
        gate = ev_gate(confidence, ev, config.trading_mode, config.confidence_thresholds, config.ev_thresholds)
        log_gate_decision(
            self.gating_logger, "expected_value", gate.passed, asset, gate.reason,
            {"confidence": confidence, "expected_value": ev, "reward_risk": sizing.reward_risk}
        )

        accepted, reason = self._final_verdict(candidate, breakdown, decision, gate, account, correlations)

        return SignalDecision(
            candidate=candidate,
            confidence=confidence,
            expected_value=ev,
            risk_reward_ratio=sizing.reward_risk,
            risk_amount=sizing.risk_amount,
            position_size=sizing.position_size,
            leverage=sizing.leverage,
            execution_level=gate.level,
            accepted=accepted,
            reason=reason,
            evaluated_at=evaluated_at,
            margin_pct=sizing.margin_pct,
            penalty_multiplier=penalty_multiplier,
            breakdown=breakdown,
            contradictions=report,
            adjustment=decision,
            adjustments=tuple(adjustments),
            bounce_mode=bounce_mode,
            trim_recommended=trim_recommended,
            warnings=tuple(warnings),
        )

    def _trail_take_profit(
        self,
        candidate: EntryCandidate,
        trailed: Optional[float],
        adjustments: list[Adjustment],
        warnings: list[str]
    ) -> EntryCandidate:
        """Replace the target with the trailed price when it is still on the profit side."""
        if trailed is None:
            return candidate

        profitable = trailed > candidate.entry_price if candidate.side is Side.LONG else trailed < candidate.entry_price
        if not profitable:
            warnings.append(f"EMA(8) crossed against position at {trailed:.6g}, exit suggested")
            return candidate

        self._record(adjustments, candidate.asset, "take_profit", candidate.take_profit, trailed, "bounce_ema8_trail")
        return with_levels(candidate, take_profit=trailed)

    def _log_contradictions(self, asset: str, report: ContradictionReport, decision: AdjustmentDecision) -> None:
        log_gate_decision(
            self.gating_logger, "contradictions", decision.kind is not AdjustmentKind.REJECT, asset,
            decision.reason,
            {"score": report.score, "severity": report.severity.value, "items": list(report.items)}
        )

    def _final_verdict(
        self,
        candidate: EntryCandidate,
        breakdown: ConfidenceBreakdown,
        decision: AdjustmentDecision,
        gate: GateResult,
        account: Optional[AccountState],
        correlations: Optional[Correlations]
    ) -> tuple[bool, str]:
        """Combine every gate; the first failure in pipeline order gives the reason."""
        if breakdown.auto_rejected:
            return False, f"trend_gate: {breakdown.rejection_reason}"

        if decision.kind is AdjustmentKind.REJECT:
            return False, f"contradiction_reject: {decision.reason}"

        if not gate.passed:
            return False, gate.reason

        if account is not None:
            violations = check_safety_limits(candidate, account, self.config.safety)
            log_gate_decision(
                self.gating_logger, "safety_limits", not violations, candidate.asset,
                "; ".join(violations) or "all limits respected"
            )
            if violations:
                return False, "safety_limits: " + "; ".join(violations)

            exposure = check_correlated_exposure(candidate, account, correlations, self.config.limited_pairs)
            log_gate_decision(
                self.gating_logger, "correlated_exposure", exposure is None, candidate.asset,
                exposure or "no correlated exposure"
            )
            if exposure is not None:
                return False, exposure

        if decision.kind is AdjustmentKind.FLAG_CONTRADICTION:
            return True, f"{gate.reason}; contradictions flagged: {decision.reason}"

        return True, gate.reason
