from .synthetic import BASE_PRICES, TIMEFRAME_INTERVALS, generate_historical_data

__all__ = ["BASE_PRICES", "TIMEFRAME_INTERVALS", "generate_historical_data"]
