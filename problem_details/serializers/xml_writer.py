"""XML serializer for problem details (application/problem+xml)."""

import io
import logging
from typing import TYPE_CHECKING, BinaryIO, Callable, Mapping, Optional

from ..config import get_settings
from .xml_stream import NamespaceContext, XmlStreamWriter

if TYPE_CHECKING:
    from ..problem import Problem

logger = logging.getLogger(__name__)

NAMESPACE = "urn:ietf:rfc:7807"
ROOT_ELEMENT = "problem"

# Implied when the type element is absent (RFC 9457, 3.1.1)
ABOUT_BLANK = "about:blank"

# Called with the writer and the output encoding before the root element is closed
XmlExtension = Callable[[XmlStreamWriter, str], None]


def negotiate_prefix(context: NamespaceContext, namespace: str = NAMESPACE) -> Optional[str]:
    """Decide how to bind the problem namespace in the given context.

    Returns:
        The prefix to use, ``""`` for the default namespace, and None when
        the namespace is already bound and nothing needs to be declared. In
        the None case the bound prefix is available from
        ``context.get_prefix(namespace)``.
    """
    if context.get_prefix(namespace) is not None:
        return None
    if context.get_namespace_uri("") is None:
        return ""

    prefix = "p"
    index = 0
    while context.get_namespace_uri(prefix) is not None:
        prefix = f"p{index}"
        index += 1
    return prefix


def write_xml(
    problem: "Problem",
    writer: XmlStreamWriter,
    encoding: Optional[str] = None,
    write_start_document: bool = True,
    extension: Optional[XmlExtension] = None
) -> None:
    """Write a problem through an existing XML writer.

    Args:
        problem: The problem to write
        writer: The writer, possibly already positioned inside other elements
        encoding: Encoding named in the XML declaration; defaults to the
            writer's encoding
        write_start_document: Whether to write the XML declaration and end
            the document afterwards
        extension: Optional hook writing extra elements before the root closes

    Raises:
        XmlStreamError: If the writer state would produce malformed XML
    """
    encoding = encoding or writer.encoding

    if write_start_document:
        writer.write_start_document(encoding, "1.0")

    context = writer.namespace_context
    declare = negotiate_prefix(context)
    if declare is None:
        prefix = context.get_prefix(NAMESPACE)
        writer.write_start_element(NAMESPACE, ROOT_ELEMENT, prefix)
    elif declare == "":
        prefix = ""
        writer.write_start_element(NAMESPACE, ROOT_ELEMENT, prefix)
        writer.write_default_namespace(NAMESPACE)
    else:
        prefix = declare
        writer.write_start_element(NAMESPACE, ROOT_ELEMENT, prefix)
        writer.write_namespace(prefix, NAMESPACE)

    logger.debug(
        f"Writing problem XML with prefix '{prefix}'",
        extra={"prefix": prefix, "declared": declare is not None, "type": problem.type}
    )

    if problem.type != ABOUT_BLANK:
        _write_text_element(writer, prefix, "type", problem.type)
    _write_text_element(writer, prefix, "title", problem.title)
    if problem.status is not None:
        _write_text_element(writer, prefix, "status", str(problem.status))
    _write_text_element(writer, prefix, "detail", problem.detail)
    _write_text_element(writer, prefix, "instance", problem.instance)

    if extension is not None:
        extension(writer, encoding)

    # /problem
    writer.write_end_element()

    if write_start_document:
        writer.write_end_document()


def _write_text_element(writer: XmlStreamWriter, prefix: str, local_name: str, value: Optional[str]) -> None:
    if value is None:
        return
    writer.write_start_element(NAMESPACE, local_name, prefix)
    writer.write_characters(value)
    writer.write_end_element()


def write_xml_to_stream(
    problem: "Problem",
    stream: BinaryIO,
    encoding: Optional[str] = None,
    write_start_document: Optional[bool] = None,
    extension: Optional[XmlExtension] = None
) -> None:
    """Write a problem as an XML document to a binary stream.

    The internal writer is closed afterwards; the stream is left open.
    """
    settings = get_settings()
    encoding = encoding or settings.default_encoding
    if write_start_document is None:
        write_start_document = settings.xml_declaration

    with XmlStreamWriter(stream, encoding) as writer:
        write_xml(problem, writer, encoding, write_start_document, extension)
        writer.flush()


def to_xml(
    problem: "Problem",
    encoding: Optional[str] = None,
    write_start_document: Optional[bool] = None,
    extension: Optional[XmlExtension] = None
) -> str:
    """Serialize a problem to an XML string."""
    encoding = encoding or get_settings().default_encoding
    with io.BytesIO() as buffer:
        write_xml_to_stream(problem, buffer, encoding, write_start_document, extension)
        return buffer.getvalue().decode(encoding)


def xml_elements(
    namespace: str,
    elements: Mapping[str, object],
    prefix: Optional[str] = None
) -> XmlExtension:
    """Build an extension hook writing simple text elements.

    Args:
        namespace: Namespace of the extension elements
        elements: Local names mapped to values; None values are skipped
        prefix: Preferred prefix; an existing binding is reused when omitted
    """
    def extend(writer: XmlStreamWriter, encoding: str) -> None:
        for local_name, value in elements.items():
            if value is None:
                continue
            writer.write_start_element(namespace, local_name, prefix)
            writer.write_characters(str(value))
            writer.write_end_element()

    return extend
