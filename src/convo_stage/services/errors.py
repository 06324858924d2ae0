"""Exceptions raised by the convo services.

The API layer maps these onto HTTP responses; nothing below the service layer
knows about status codes.
"""

from __future__ import annotations


class ConvoStageError(RuntimeError):
    """Base exception for convo service failures."""


class NotFoundError(ConvoStageError):
    """Raised when a referenced document does not exist.

    No mutation has been performed when this is raised.
    """

    entity = "Document"

    def __init__(self, entity_id: str) -> None:
        self.entity_id = entity_id
        super().__init__(f"{self.entity} not found: {entity_id}")


class ConvoNotFoundError(NotFoundError):
    entity = "Convo"


class UserNotFoundError(NotFoundError):
    entity = "User"


class CommunityNotFoundError(NotFoundError):
    entity = "Community"


class ValidationFailedError(ConvoStageError, ValueError):
    """Raised for malformed input such as empty convo text."""


class ConvoDeletionError(ConvoStageError):
    """Raised when a store operation fails partway through a cascading delete.

    Attributes:
        convo_id: Identifier of the convo whose deletion was requested.
        stage: Step that failed (``load``, ``discover``, ``delete``,
            ``repair_users``, ``repair_communities``, ``repair_children`` or
            ``commit``).

    The underlying store error is chained as ``__cause__``.
    """

    def __init__(self, convo_id: str, stage: str, cause: BaseException) -> None:
        self.convo_id = convo_id
        self.stage = stage
        super().__init__(f"Failed to delete convo {convo_id} during {stage}: {cause}")
