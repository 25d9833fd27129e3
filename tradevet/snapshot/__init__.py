"""
Indicator snapshot module.

Assembles the latest value of every indicator across the primary and
secondary timeframes into one immutable IndicatorSnapshot.
"""
