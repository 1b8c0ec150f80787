"""Logging and metrics for docaudit."""
