"""Package variant modelling, seasonal pricing and variant comparison."""

__version__ = "0.1.0"
