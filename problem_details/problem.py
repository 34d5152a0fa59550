"""Problem Details (RFC 9457) model."""

from typing import Any, BinaryIO, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

from .i18n import find_status_phrase, get_message
from .serializers import json_writer, xml_writer
from .serializers.json_writer import JsonExtension
from .serializers.xml_writer import XmlExtension

NAMESPACE = xml_writer.NAMESPACE
MEDIA_TYPE_XML = "application/problem+xml"
MEDIA_TYPE_JSON = "application/problem+json"
ABOUT_BLANK = xml_writer.ABOUT_BLANK


class Problem(BaseModel):
    """Problem Details as defined in RFC 9457.

    A mutable value object; assignments are validated, so ``type`` can never
    become None and ``status`` always stays within 100-599. Two problems are
    equal when all five members are equal.

    ``type`` and ``instance`` are URI references kept as plain strings. They
    are not parsed or checked for URI syntax, so relative references such as
    ``/account/12345`` are accepted as given.

    Use ``model_copy()`` for a copy; every member is immutable, so the
    shallow copy is independent of the original.
    """

    type: str = Field(default=ABOUT_BLANK, description="A URI reference that identifies the problem type")
    status: Optional[StrictInt] = Field(default=None, description="The HTTP status code")
    title: Optional[str] = Field(default=None, description="A short, human-readable summary of the problem type")
    detail: Optional[str] = Field(default=None, description="A human-readable explanation specific to this occurrence")
    instance: Optional[str] = Field(default=None, description="A URI reference that identifies the specific occurrence")

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    find_status_phrase = staticmethod(find_status_phrase)

    def __init__(self, type: Optional[str] = ABOUT_BLANK, instance: Optional[str] = None, **data: Any):
        super().__init__(type=type, instance=instance, **data)

    @field_validator("type", mode="before")
    @classmethod
    def validate_type(cls, v):
        """Reject a missing problem type."""
        if v is None:
            raise ValueError(get_message("error.type.nonnull"))
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        """Validate the status code range."""
        if v is not None and not 100 <= v <= 599:
            raise ValueError(get_message("error.status.inrange"))
        return v

    @classmethod
    def from_status(cls, status: int, locale: Optional[str] = None, **data: Any) -> "Problem":
        """Create a problem titled with the status phrase for ``status``."""
        data.setdefault("title", find_status_phrase(status, locale))
        return cls(status=status, **data)

    def __hash__(self) -> int:
        return hash((self.type, self.status, self.title, self.detail, self.instance))

    def __str__(self) -> str:
        return f"Problem [type={self.type}, title={self.title}]"

    def to_json(self, encoding: Optional[str] = None, extension: Optional[JsonExtension] = None) -> str:
        """Serialize to an application/problem+json string."""
        return json_writer.to_json(self, encoding, extension)

    def write_json(
        self,
        stream: BinaryIO,
        encoding: Optional[str] = None,
        extension: Optional[JsonExtension] = None
    ) -> None:
        """Write application/problem+json to a binary stream."""
        json_writer.write_json(self, stream, encoding, extension)

    def to_xml(
        self,
        encoding: Optional[str] = None,
        write_start_document: Optional[bool] = None,
        extension: Optional[XmlExtension] = None
    ) -> str:
        """Serialize to an application/problem+xml string."""
        return xml_writer.to_xml(self, encoding, write_start_document, extension)

    def write_xml(
        self,
        stream: BinaryIO,
        encoding: Optional[str] = None,
        write_start_document: Optional[bool] = None,
        extension: Optional[XmlExtension] = None
    ) -> None:
        """Write application/problem+xml to a binary stream."""
        xml_writer.write_xml_to_stream(self, stream, encoding, write_start_document, extension)
