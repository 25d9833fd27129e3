"""
Output validation module.

Structural checks for serialized signal decisions handed to downstream consumers.
"""
