"""
Frame records for the generation event stream.

Each event on the wire is one ``\\n``-terminated line of the form
``data: {"chunk": "..."}``. Only the payload is modelled here; framing lives
in the decoder.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DATA_MARKER = "data: "
LINE_DELIMITER = "\n"
COMPLETE_TYPE = "complete"


class FrameRecord(BaseModel):
    """Structured payload of one ``data:`` line.

    Unknown fields are kept so newer backends can add keys without breaking
    older clients.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    chunk: Optional[str] = Field(default=None, description="Fragment of generated text")
    type: Optional[str] = Field(default=None, description="Event tag, 'complete' on normal end")
    error: Optional[str] = Field(default=None, description="Human-readable error message")

    @property
    def has_chunk(self) -> bool:
        return bool(self.chunk)

    @property
    def is_complete(self) -> bool:
        return self.type == COMPLETE_TYPE

    @property
    def has_error(self) -> bool:
        return bool(self.error)

    @property
    def is_recognized(self) -> bool:
        """Whether the record carries any field the dispatcher acts on."""
        return self.has_chunk or self.is_complete or self.has_error
