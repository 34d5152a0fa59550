"""Pytest configuration and shared fixtures for the problem details tests."""

import io
import logging
import xml.etree.ElementTree as ET

import pytest

from problem_details import Problem, XmlStreamWriter, json_members, xml_elements


# Keep library debug logging out of the test output
logging.getLogger("problem_details").setLevel(logging.WARNING)

EXTENSION_NS = "http://my.namespace"


@pytest.fixture
def problem() -> Problem:
    """A default problem (type about:blank)."""
    return Problem()


@pytest.fixture
def not_found_problem() -> Problem:
    """A problem with status 404 and its status phrase as title."""
    problem = Problem()
    problem.status = 404
    problem.title = "Not Found"
    return problem


@pytest.fixture
def full_problem() -> Problem:
    """A problem with every member set."""
    return Problem(
        "https://example.com/probs/out-of-credit",
        "/account/12345/msgs/abc",
        status=403,
        title="You do not have enough credit.",
        detail="Your current balance is 30, but that costs 50."
    )


@pytest.fixture
def solution_json_extension():
    """JSON extension adding a single "solution" member."""
    return json_members({"solution": "Moar Hugs"})


@pytest.fixture
def solution_xml_extension():
    """XML extension adding a single bp:solution element."""
    return xml_elements(EXTENSION_NS, {"solution": "Moar Hugs"}, prefix="bp")


@pytest.fixture
def buffer():
    """In-memory binary sink."""
    with io.BytesIO() as stream:
        yield stream


@pytest.fixture
def writer(buffer):
    """XML writer over the in-memory sink."""
    with XmlStreamWriter(buffer, "utf-8") as xml_writer:
        yield xml_writer


@pytest.fixture
def parse_xml():
    """Parse serialized XML into an element tree."""
    def parse(text: str) -> ET.Element:
        return ET.fromstring(text.encode("utf-8"))
    return parse
