"""ivcrush: earnings IV-crush aggregator and options strategy engine."""

__version__ = "0.1.0"
