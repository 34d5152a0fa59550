"""Problem Details for HTTP APIs (RFC 9457) with JSON and XML serialization."""

from .config import Settings, configure_logging, get_settings
from .errors import ProblemDetailsError, XmlStreamError
from .i18n import available_locales, find_status_phrase
from .problem import (
    ABOUT_BLANK,
    MEDIA_TYPE_JSON,
    MEDIA_TYPE_XML,
    NAMESPACE,
    Problem
)
from .serializers import (
    JsonExtension,
    NamespaceContext,
    XmlExtension,
    XmlStreamWriter,
    json_members,
    xml_elements
)

__all__ = [
    "Settings",
    "configure_logging",
    "get_settings",
    "ProblemDetailsError",
    "XmlStreamError",
    "available_locales",
    "find_status_phrase",
    "ABOUT_BLANK",
    "MEDIA_TYPE_JSON",
    "MEDIA_TYPE_XML",
    "NAMESPACE",
    "Problem",
    "JsonExtension",
    "NamespaceContext",
    "XmlExtension",
    "XmlStreamWriter",
    "json_members",
    "xml_elements"
]
