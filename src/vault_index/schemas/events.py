"""Change notification schemas."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from vault_index.core.exceptions import ParseError


class DocumentAction(str, Enum):
    """Document lifecycle actions fired by the host."""

    CREATED = "CREATED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
    RENAMED = "RENAMED"


class DocumentChangeEvent(BaseModel):
    """Change notification for a single document.

    Example event:
    ```json
    {
        "documentId": "notes/idea.md",
        "action": "MODIFIED",
        "content": "First paragraph...\\n\\nSecond paragraph...",
        "version": 1730000000123,
        "timestamp": "2025-10-01T12:30:45.123Z"
    }
    ```

    ``content`` is optional; when absent the handler reads the document from the
    source at processing time. ``oldDocumentId`` is required for ``RENAMED``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    document_id: str = Field(..., alias="documentId", min_length=1)
    action: DocumentAction
    content: str | None = None
    version: int | None = Field(None, ge=0)
    old_document_id: str | None = Field(None, alias="oldDocumentId", min_length=1)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="after")
    def _check_rename(self) -> "DocumentChangeEvent":
        if self.action == DocumentAction.RENAMED and not self.old_document_id:
            raise ValueError("RENAMED events require oldDocumentId")
        return self


def parse_change_event(raw: str | bytes) -> DocumentChangeEvent:
    """Strictly decode a JSON change notification.

    Raises:
        ParseError: If the payload is not valid JSON or does not match the schema.
    """
    try:
        return DocumentChangeEvent.model_validate_json(raw)
    except ValidationError as exc:
        raise ParseError(f"Invalid change notification: {exc.error_count()} error(s)") from exc
