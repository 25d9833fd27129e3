"""
Configuration module.

Frozen default parameters, YAML loading with 3-tier precedence and
validation of the recognized option set.
"""
