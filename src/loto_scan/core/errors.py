from __future__ import annotations


class MalformedInputError(ValueError):
    """A required request field is missing or empty."""


class DocumentConversionError(Exception):
    """The uploaded file could not be turned into text."""


class FallbackExtractionError(Exception):
    """The generative model call failed or returned something that is not JSON."""
