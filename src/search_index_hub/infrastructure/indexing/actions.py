"""Reindex actions and the queue message that carries them.

A reindex request travels over the ``elastic.indexer`` queue as
``{"indexer_id": ..., "action": ..., "ids": ...}``. Transport and consumer
subscription are wired outside this package.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

QUEUE_NAME = "elastic.indexer"

RecordId = Union[int, str]


class ReindexAction(str, Enum):
    """Reindex actions understood by the indexer consumer.

    Values:
        ROW: Reindex a single row by id
        LIST: Reindex every row
        IDS: Reindex a list of rows by id
    """

    ROW = "index_row"
    LIST = "index_list"
    IDS = "index_ids"


class IndexMessageError(ValueError):
    """Raised when a queue payload is not a valid reindex message."""

    pass


class IndexMessage(BaseModel):
    """Validated reindex request."""

    model_config = ConfigDict(extra="ignore")

    indexer_id: str = Field(..., min_length=1, description="Registered indexer identifier")
    action: ReindexAction = Field(..., description="Reindex action to perform")
    ids: Optional[Union[List[RecordId], RecordId]] = Field(
        None, description="Single id or list of ids, depending on the action"
    )

    @property
    def ids_list(self) -> List[RecordId]:
        """``ids`` normalised to a list (empty when absent)."""
        if self.ids is None:
            return []
        if isinstance(self.ids, list):
            return list(self.ids)
        return [self.ids]

    @classmethod
    def from_payload(cls, payload: Union["IndexMessage", Mapping[str, Any]]) -> "IndexMessage":
        """
        Validate a raw queue payload.

        Raises:
            IndexMessageError: If the payload is malformed
        """
        if isinstance(payload, cls):
            return payload
        if not isinstance(payload, Mapping):
            raise IndexMessageError(
                f"Reindex payload must be a mapping, got {type(payload).__name__}"
            )
        try:
            return cls.model_validate(dict(payload))
        except ValidationError as exc:
            raise IndexMessageError(f"Invalid reindex payload: {exc}") from exc

    def to_payload(self) -> dict:
        return {"ids": self.ids, "action": self.action.value, "indexer_id": self.indexer_id}
