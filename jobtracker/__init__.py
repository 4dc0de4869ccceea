"""Job Tracker - personal job application tracking client."""

__version__ = "1.0.0"
