"""Streaming XML writer with namespace tracking.

A small forward-only writer in the spirit of StAX: elements are written as
they are opened, namespace declarations may be added while a start tag is
still open, and the writer keeps a scoped namespace context that callers can
query to decide how to bind their own namespaces.

The writer repairs missing bindings: when a start tag is completed and the
element's namespace is not bound to the prefix it was written with, the
declaration is added to that start tag.
"""

import codecs
import logging
import re
from typing import BinaryIO, Dict, List, Optional
from xml.sax.saxutils import escape, quoteattr

from ..errors import XmlStreamError

logger = logging.getLogger(__name__)

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"
XMLNS_NAMESPACE = "http://www.w3.org/2000/xmlns/"

# Anything outside the XML 1.0 Char production
_INVALID_CHARS = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


class NamespaceContext:
    """Prefix bindings for one element scope, chained to the enclosing scope.

    The empty string prefix stands for the default namespace. A prefix bound
    to the empty string is treated as unbound (``xmlns=""`` undeclares the
    default namespace).
    """

    def __init__(self, parent: Optional["NamespaceContext"] = None):
        self._parent = parent
        self._bindings: Dict[str, str] = {}

    @property
    def parent(self) -> Optional["NamespaceContext"]:
        return self._parent

    def bind(self, prefix: str, uri: str) -> None:
        """Bind a prefix in this scope."""
        self._bindings[prefix] = uri

    def declared(self, prefix: str) -> Optional[str]:
        """Return the URI bound to a prefix in this scope only."""
        return self._bindings.get(prefix)

    def get_namespace_uri(self, prefix: str) -> Optional[str]:
        """Return the URI bound to a prefix, or None if unbound."""
        if prefix == "xml":
            return XML_NAMESPACE
        if prefix == "xmlns":
            return XMLNS_NAMESPACE
        scope = self
        while scope is not None:
            if prefix in scope._bindings:
                return scope._bindings[prefix] or None
            scope = scope._parent
        return None

    def get_prefix(self, uri: str) -> Optional[str]:
        """Return a prefix bound to a URI, or None if the URI is not bound.

        Inner scopes win, and a prefix rebound by an inner scope does not
        count for the outer binding.
        """
        if not uri:
            return None
        if uri == XML_NAMESPACE:
            return "xml"
        scope = self
        while scope is not None:
            for prefix, bound in scope._bindings.items():
                if bound == uri and self.get_namespace_uri(prefix) == uri:
                    return prefix
            scope = scope._parent
        return None

    def prefixes(self) -> List[str]:
        """Return every prefix currently in effect."""
        seen: List[str] = []
        scope = self
        while scope is not None:
            for prefix in scope._bindings:
                if prefix not in seen and self.get_namespace_uri(prefix) is not None:
                    seen.append(prefix)
            scope = scope._parent
        return seen


class _Frame:
    """An open element."""

    __slots__ = ("qname", "context", "pending")

    def __init__(self, qname: str, context: NamespaceContext):
        self.qname = qname
        self.context = context
        # Bindings the element needs that have not been written yet
        self.pending: Dict[str, str] = {}


class XmlStreamWriter:
    """Forward-only XML writer over a binary stream.

    Args:
        stream: Binary stream receiving the encoded output
        encoding: Output encoding; characters it cannot represent are
            written as character references
        namespace_context: Optional context holding bindings already in
            effect around the output (for writing fragments)
    """

    def __init__(
        self,
        stream: BinaryIO,
        encoding: str = "utf-8",
        namespace_context: Optional[NamespaceContext] = None
    ):
        self._stream = stream
        self._encoding = codecs.lookup(encoding).name
        self._encoding_label = encoding
        self._encoder = codecs.getincrementalencoder(encoding)("xmlcharrefreplace")
        self._root_context = namespace_context or NamespaceContext()
        self._frames: List[_Frame] = []
        self._start_tag_open = False
        self._root_closed = False
        self._written = False
        self._closed = False

    @property
    def encoding(self) -> str:
        return self._encoding_label

    @property
    def namespace_context(self) -> NamespaceContext:
        """The namespace context of the element currently being written."""
        if self._frames:
            return self._frames[-1].context
        return self._root_context

    @property
    def depth(self) -> int:
        return len(self._frames)

    def _write(self, text: str) -> None:
        self._stream.write(self._encoder.encode(text))
        self._written = True

    def _check_open(self) -> None:
        if self._closed:
            raise XmlStreamError("Writer is closed")

    def write_start_document(self, encoding: Optional[str] = None, version: str = "1.0") -> None:
        """Write the XML declaration."""
        self._check_open()
        if self._written:
            raise XmlStreamError("XML declaration must be the first output")
        encoding = encoding or self._encoding_label
        if codecs.lookup(encoding).name != self._encoding:
            raise XmlStreamError(
                f"Declared encoding {encoding} does not match writer encoding {self._encoding_label}"
            )
        self._write(f'<?xml version="{version}" encoding="{encoding.upper()}"?>')

    def write_start_element(self, namespace: Optional[str], local_name: str, prefix: Optional[str] = None) -> None:
        """Open an element.

        Args:
            namespace: Namespace URI, or None for no namespace
            local_name: Local element name
            prefix: Prefix to write the element with; when None, an existing
                binding for the namespace is reused, otherwise the default
                namespace is used if free, otherwise a prefix is generated
        """
        self._check_open()
        if not self._frames and self._root_closed:
            raise XmlStreamError("Document element already closed", local_name)
        self._finish_start_tag()

        parent = self.namespace_context
        namespace = namespace or None
        if namespace is None:
            prefix = ""
        elif prefix is None:
            prefix = parent.get_prefix(namespace)
            if prefix is None:
                prefix = "" if parent.get_namespace_uri("") is None else self._generate_prefix(parent)

        qname = f"{prefix}:{local_name}" if prefix else local_name
        frame = _Frame(qname, NamespaceContext(parent))
        if parent.get_namespace_uri(prefix) != namespace:
            # Bound right away so nested writers see it; declared when the tag closes
            frame.pending[prefix] = namespace or ""
            frame.context.bind(prefix, namespace or "")

        self._frames.append(frame)
        self._write(f"<{qname}")
        self._start_tag_open = True

    def write_namespace(self, prefix: Optional[str], uri: str) -> None:
        """Declare a namespace binding on the open start tag."""
        self._check_open()
        if not self._start_tag_open:
            raise XmlStreamError("Namespace declarations require an open start tag")
        prefix = prefix or ""
        frame = self._frames[-1]
        if prefix in ("xml", "xmlns"):
            if prefix == "xml" and uri == XML_NAMESPACE:
                return
            raise XmlStreamError(f"Prefix {prefix} is reserved", frame.qname)

        if prefix in frame.pending:
            if frame.pending[prefix] != uri:
                raise XmlStreamError(
                    f"Prefix '{prefix}' is needed for {frame.pending[prefix] or 'no namespace'}",
                    frame.qname
                )
            del frame.pending[prefix]
        else:
            declared = frame.context.declared(prefix)
            if declared is not None:
                if declared == uri:
                    return
                raise XmlStreamError(f"Prefix '{prefix}' already declared for {declared}", frame.qname)
            frame.context.bind(prefix, uri)

        self._write_declaration(prefix, uri)

    def write_default_namespace(self, uri: str) -> None:
        """Declare the default namespace on the open start tag."""
        self.write_namespace("", uri)

    def write_attribute(self, local_name: str, value: str) -> None:
        """Write an unqualified attribute on the open start tag."""
        self._check_open()
        if not self._start_tag_open:
            raise XmlStreamError("Attributes require an open start tag")
        value = str(value)
        self._check_chars(value, local_name)
        self._write(f" {local_name}={quoteattr(value)}")

    def set_prefix(self, prefix: str, uri: str) -> None:
        """Record a binding that is already in effect without writing it."""
        self._check_open()
        self.namespace_context.bind(prefix or "", uri)

    def set_default_namespace(self, uri: str) -> None:
        self.set_prefix("", uri)

    def write_characters(self, text: str) -> None:
        """Write escaped character data inside the current element."""
        self._check_open()
        if not self._frames:
            raise XmlStreamError("Character data outside the document element")
        self._check_chars(text, self._frames[-1].qname)
        self._finish_start_tag()
        # Carriage returns would be normalised away by parsers
        self._write(escape(text, {"\r": "&#13;"}))

    def write_end_element(self) -> None:
        """Close the current element."""
        self._check_open()
        if not self._frames:
            raise XmlStreamError("No open element to close")
        if self._start_tag_open:
            self._finish_start_tag(empty=True)
            self._frames.pop()
        else:
            frame = self._frames.pop()
            self._write(f"</{frame.qname}>")
        if not self._frames:
            self._root_closed = True

    def write_end_document(self) -> None:
        """Close every open element."""
        self._check_open()
        while self._frames:
            self.write_end_element()

    def flush(self) -> None:
        self._stream.flush()

    def close(self) -> None:
        """Close the writer. The underlying stream is left open."""
        if self._closed:
            return
        tail = self._encoder.encode("", final=True)
        if tail:
            self._stream.write(tail)
        self._closed = True
        if self._frames:
            logger.debug(
                f"XML writer closed with {len(self._frames)} open element(s)",
                extra={"open_elements": [frame.qname for frame in self._frames]}
            )

    def __enter__(self) -> "XmlStreamWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @staticmethod
    def _check_chars(text: str, element: str) -> None:
        match = _INVALID_CHARS.search(text)
        if match:
            raise XmlStreamError(
                f"Character U+{ord(match.group()):04X} is not allowed in XML",
                element
            )

    def _write_declaration(self, prefix: str, uri: str) -> None:
        name = f"xmlns:{prefix}" if prefix else "xmlns"
        self._write(f" {name}={quoteattr(uri)}")

    def _finish_start_tag(self, empty: bool = False) -> None:
        if not self._start_tag_open:
            return
        frame = self._frames[-1]
        for prefix, uri in frame.pending.items():
            self._write_declaration(prefix, uri)
        frame.pending.clear()
        self._write("/>" if empty else ">")
        self._start_tag_open = False

    @staticmethod
    def _generate_prefix(context: NamespaceContext) -> str:
        index = 0
        while context.get_namespace_uri(f"ns{index}") is not None:
            index += 1
        return f"ns{index}"
