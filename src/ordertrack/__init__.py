"""ordertrack - customer order tracking with queries and analytics."""

__version__ = "0.1.0"
