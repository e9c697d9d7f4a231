"""PolyWatch: prediction-market watchlist backend."""

__version__ = "0.1.0"
