"""Onboarding assistant: retrieval-augmented answers over internal docs."""

__version__ = "0.1.0"
