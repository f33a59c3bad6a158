"""routewise — trip route optimisation and day scheduling engine."""

__version__ = "1.0.0"
