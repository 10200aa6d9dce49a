"""Utility functions for the application."""

from .errors import ValidationError


def form_error(form):
    """Flatten WTForms errors into a single ValidationError."""
    messages = [
        f"{name}: {', '.join(str(e) for e in errors)}"
        for name, errors in form.errors.items()
    ]
    return ValidationError("; ".join(messages) or "Invalid request.")
