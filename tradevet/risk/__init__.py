"""
Risk module.

Stop and take-profit levels, position sizing, account safety limits and
the expected value gate.
"""
