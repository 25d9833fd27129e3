"""
Data models and contracts module.

Immutable data structures for indicator snapshots, signal candidates,
contradiction reports, confidence breakdowns and final decisions.
Follows functional programming principles with frozen dataclasses.
"""
