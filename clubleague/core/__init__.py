"""Core utilities and types for the clubleague application."""
