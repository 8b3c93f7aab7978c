"""
Domain exceptions raised by the service layer.

"Not found" is not an exception here: services return ``None`` / ``False``
and the routers translate that into a 404.  The classes below cover the
remaining failure modes that a router must map to a specific status code.
"""


class BoardError(Exception):
    """Base class for all board domain errors."""


class DuplicateHashtagName(BoardError):
    """A concurrent insert already created a hashtag with this name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"hashtag already exists: {name!r}")
        self.name = name


class InvalidParentComment(BoardError):
    """The requested parent comment cannot take a reply."""


class NotAuthorError(BoardError):
    """The acting user does not own the resource being modified."""
