"""
Bounce/reversal detection module.

Detects Bollinger Band re-entries and replays the recent candles of an
asset through the bounce state machine: BOUNCE_MODE → CONFIRMED / FAILED
→ REENTERED, with decay, trim and take-profit trailing adjustments applied
to the final decision.
"""
