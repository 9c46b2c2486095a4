"""RenoQuote - renovation pricing catalog, task pricing and store reseeding."""

__version__ = "0.1.0"
