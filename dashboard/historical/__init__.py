"""Historical series assembly: record normalization and timeframe queries.

- normalize.py: raw upstream record -> (timestamp, value)
- timeframe.py: lookback windows and their cutoffs
- series.py: sorted Series, filtered label/value views
"""
