"""Persistence, configuration and application services for route progress."""
