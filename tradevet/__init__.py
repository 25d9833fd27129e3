"""
TradeVet - Trading Signal Vetting Engine

Turns raw OHLCV candle series into a vetted, numerically scored trading
decision. Computes a library of technical indicators, checks a proposed
directional signal for contradictions, scores it across seven weighted
categories, sizes the position and applies an expected-value gate.
"""

__version__ = "0.1.0"
__author__ = "TradeVet Team"
