"""Backtesting engine for tradelab.
Replays OHLCV bars through a strategy, simulates long-only fills and derives performance metrics.
"""
