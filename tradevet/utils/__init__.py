"""
Utility functions module.

Common utility functions for time handling shared across the system.

Time Semantics:
- Candle timestamps (epoch milliseconds) are ALWAYS authoritative
- The evaluation instant defaults to the last primary candle, never wall-clock time
- Interval labels (``1h``, ``4h``, ``1d``) drive candle-count based timers
"""
