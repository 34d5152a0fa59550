"""JSON serializer for problem details (application/problem+json)."""

import codecs
import io
import json
import logging
from typing import TYPE_CHECKING, Any, BinaryIO, Callable, Mapping, Optional, TextIO

from ..config import get_settings

if TYPE_CHECKING:
    from ..problem import Problem

logger = logging.getLogger(__name__)

# Called with a text buffer and the output encoding; writes "key":value
# members without a leading comma and returns True if it wrote any. The
# writer encodes the buffered text with its own encoder.
JsonExtension = Callable[[TextIO, str], bool]


def _ascii_only(encoding: str) -> bool:
    """Non-UTF encodings get \\uXXXX escapes so every character survives."""
    return not codecs.lookup(encoding).name.startswith("utf")


def encode_member(key: str, value: Any, encoding: str) -> str:
    """Encode a single ``"key":value`` member for the given output encoding."""
    ensure_ascii = _ascii_only(encoding)
    return json.dumps(key, ensure_ascii=ensure_ascii) + ":" + json.dumps(value, ensure_ascii=ensure_ascii)


def write_json(
    problem: "Problem",
    stream: BinaryIO,
    encoding: Optional[str] = None,
    extension: Optional[JsonExtension] = None
) -> None:
    """Write a problem as a JSON object to a binary stream.

    Members are written in the order type, title, status, detail, instance;
    absent members are omitted and status is written as a number.

    Args:
        problem: The problem to write
        stream: Binary stream to write to; left open
        encoding: Output encoding, defaults to the configured encoding
        extension: Optional hook adding members before the object is closed
    """
    encoding = encoding or get_settings().default_encoding
    encoder = codecs.getincrementalencoder(encoding)()
    ensure_ascii = _ascii_only(encoding)

    def write(text: str) -> None:
        stream.write(encoder.encode(text))

    def write_member(key: str, value: Any) -> None:
        if value is None:
            return
        write(f',"{key}":')
        write(json.dumps(value, ensure_ascii=ensure_ascii))

    write('{"type":')
    write(json.dumps(problem.type, ensure_ascii=ensure_ascii))
    write_member("title", problem.title)
    write_member("status", problem.status)
    write_member("detail", problem.detail)
    write_member("instance", problem.instance)

    if extension is not None:
        with io.StringIO() as buffer:
            extended = extension(buffer, encoding)
            content = buffer.getvalue()
        if extended and content:
            write(",")
            write(content)
        elif content:
            logger.debug(
                "Discarding JSON extension output not reported as written",
                extra={"chars": len(content), "type": problem.type}
            )

    write("}")
    stream.write(encoder.encode("", final=True))


def to_json(
    problem: "Problem",
    encoding: Optional[str] = None,
    extension: Optional[JsonExtension] = None
) -> str:
    """Serialize a problem to a JSON string."""
    encoding = encoding or get_settings().default_encoding
    with io.BytesIO() as buffer:
        write_json(problem, buffer, encoding, extension)
        return buffer.getvalue().decode(encoding)


def json_members(members: Mapping[str, Any]) -> JsonExtension:
    """Build an extension hook writing extension members.

    None values are skipped. Values must be serializable by :mod:`json`.
    """
    def extend(stream: TextIO, encoding: str) -> bool:
        written = False
        for key, value in members.items():
            if value is None:
                continue
            if written:
                stream.write(",")
            stream.write(encode_member(key, value, encoding))
            written = True
        return written

    return extend
