"""fincast: personal finance forecasting engine."""

__version__ = "0.1.0"
