#!/usr/bin/env python3
"""
Basic Usage Example - TradeVet Signal Evaluation Engine

This script demonstrates the basic usage of the signal evaluation engine
with simulated market data. It shows how to:
- Initialize the engine from the shipped configuration
- Normalize OKX-format candle payloads and raw signal proposals
- Evaluate proposals for several assets at once
- Inspect the resulting decisions and their audit trail

Run: python examples/basic_usage.py
"""

import math
from typing import Any, Dict, List

from tradevet.data.candidate_normalizer import normalize_candidate
from tradevet.data.models import MarketData
from tradevet.data.normalizer import normalize_ohlcv
from tradevet.engine import SignalEvaluationEngine
from tradevet.logging.config import configure_logging
from tradevet.models.signals import AccountState, ExternalData, OpenPosition, Side

HOUR_MS = 3_600_000
START_MS = 1_700_000_000_000


def create_candlestick_payload(start_price: float, slope: float, count: int,
                               interval_ms: int = HOUR_MS) -> Dict[str, Any]:
    """Create an OKX-format candlestick payload with a gentle trend."""
    rows: List[List[str]] = []
    previous = start_price
    for i in range(count):
        close = start_price + slope * i + 1.5 * math.sin(i / 3.0)
        high = max(previous, close) * 1.002
        low = min(previous, close) * 0.998
        rows.append([
            str(START_MS + i * interval_ms),
            str(previous),
            str(high),
            str(low),
            str(close),
            str(1000 + 50 * (i % 7)),
            str(close * 1000),
            str(close * 1000),
            "1",
        ])
        previous = close
    return {"code": "0", "msg": "", "data": rows}


def build_market(asset: str, start_price: float, slope: float) -> MarketData:
    """Build 1h, 4h and 1d series for an asset."""
    return MarketData(
        primary=normalize_ohlcv(asset, "1h", create_candlestick_payload(start_price, slope, 220)),
        h4=normalize_ohlcv(asset, "4h", create_candlestick_payload(start_price * 0.8, slope * 3, 120, 4 * HOUR_MS)),
        d1=normalize_ohlcv(asset, "1d", create_candlestick_payload(start_price * 0.5, slope * 10, 120, 24 * HOUR_MS)),
    )


def print_decision(decision) -> None:
    """Print a decision summary."""
    status = "✅ ACCEPTED" if decision.accepted else "❌ REJECTED"
    print(f"\n{status} {decision.asset} {decision.direction}")
    print(f"   Reason: {decision.reason}")
    print(f"   Confidence: {decision.confidence:.3f}  EV: {decision.expected_value:.2f}  "
          f"Level: {decision.execution_level.value}")
    if decision.entry_price:
        print(f"   Entry: {decision.entry_price:.2f}  Stop: {decision.stop_loss:.2f}  "
              f"Target: {decision.take_profit:.2f}  R:R {decision.risk_reward_ratio:.2f}")
        print(f"   Size: {decision.position_size:.4f}  Leverage: {decision.leverage:g}x  "
              f"Risk: {decision.risk_amount:.2f}")
    for adjustment in decision.adjustments:
        print(f"   • {adjustment.field}: {adjustment.old_value} → {adjustment.new_value} ({adjustment.rule})")
    for warning in decision.warnings:
        print(f"   ⚠️  {warning}")


def main():
    """Run the basic usage example."""
    configure_logging(level="WARNING")

    print("🚀 TradeVet Signal Evaluation Engine - Basic Usage")
    print("=" * 60)

    engine = SignalEvaluationEngine.from_config_dir()
    print(f"Trading mode: {engine.config.trading_mode.value}")

    proposals = [
        {"coin": "BTC", "signal": "buy", "confidence": 72},
        {"coin": "ETH", "signal": "sell_to_enter", "sl": "1900"},
        {"coin": "SOL", "signal": "hold"},
    ]
    markets = {
        "BTC": build_market("BTC", 30_000.0, 12.0),
        "ETH": build_market("ETH", 2_000.0, 0.8),
        "SOL": build_market("SOL", 60.0, 0.05),
    }

    requests = []
    for proposal in proposals:
        candidate = normalize_candidate(proposal)
        requests.append((markets[candidate.asset], candidate))

    account = AccountState(
        equity=25_000.0,
        open_positions=(OpenPosition("SOL", Side.LONG),),
    )
    external = {
        "BTC": ExternalData(funding_rate=0.0001, order_book_imbalance=0.25, whale_activity_score=0.4),
    }

    decisions = engine.evaluate_many(requests, external=external, account=account)
    for decision in decisions:
        print_decision(decision)

    print("\n📄 JSON output of the first decision:")
    print(decisions[0].to_json().decode())


if __name__ == "__main__":
    main()
