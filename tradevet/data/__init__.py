"""
Data ingestion and normalization module.

Immutable candle series models, normalization of raw OHLCV rows and
parsing of raw signal proposals into candidate variants.
"""
