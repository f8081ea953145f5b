# -*- coding: utf-8 -*-
"""
Exception types raised by the importer.

Everything that is not listed here (requests errors, JSON decode errors, neo4j
driver errors, KeyError from missing response keys) is treated as transient and
retried by the component that hit it.
"""


class ConfigurationError(RuntimeError):
    """Required configuration is missing. Fatal at startup."""


class EntityShapeError(ValueError):
    """A search hit is missing the fields needed to place it in the graph."""

    def __init__(self, message: str, source: dict = None):
        super().__init__(message)
        self.source = source


class RetryExhaustedError(RuntimeError):
    """
    A bounded retry policy gave up.

    The last underlying error is chained as __cause__.
    """

    def __init__(self, description: str, attempts: int):
        super().__init__(f"{description} failed after {attempts} attempts")
        self.description = description
        self.attempts = attempts
