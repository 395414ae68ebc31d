"""Recruitment performance scoring and dropout escalation engine."""

__version__ = "0.1.0"
