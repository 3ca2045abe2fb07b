"""Content generation exceptions."""


class ContentGenerationError(Exception):
    """A content generation attempt produced no usable result."""
