"""
Chat pipeline errors.

These are business-logic errors, not HTTP errors. The API layer translates
them into JSON:API error responses.
"""


class ChatProcessingError(Exception):
    """Base class for failures while handling a chat turn."""


class DatabaseError(ChatProcessingError):
    """Session lookup/creation or turn persistence failed."""


class ApiCommunicationError(ChatProcessingError):
    """The generation API was unreachable, refused the call or answered badly."""
