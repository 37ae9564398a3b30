"""Indicator and factor computation for surge-scorer.

Modules
-------
indicators - pct change, 20/50/200-day SMAs, 14-day RSI, volume baseline
factors    - IndicatorRow → tri-state FactorVector (deterministic factors only)
"""
