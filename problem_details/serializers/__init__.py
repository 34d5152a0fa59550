"""JSON and XML serializers for problem details."""

from .json_writer import JsonExtension, json_members, to_json, write_json
from .xml_stream import NamespaceContext, XmlStreamWriter
from .xml_writer import (
    NAMESPACE,
    XmlExtension,
    negotiate_prefix,
    to_xml,
    write_xml,
    write_xml_to_stream,
    xml_elements
)

__all__ = [
    "JsonExtension",
    "json_members",
    "to_json",
    "write_json",
    "NamespaceContext",
    "XmlStreamWriter",
    "NAMESPACE",
    "XmlExtension",
    "negotiate_prefix",
    "to_xml",
    "write_xml",
    "write_xml_to_stream",
    "xml_elements"
]
