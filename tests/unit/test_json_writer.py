"""Tests for the JSON serializer."""

import io
import json
from unittest.mock import patch

import pytest

from problem_details import Problem, json_members
from problem_details.serializers.json_writer import encode_member, to_json, write_json


class TestToJson:
    """Test JSON output of the fixed members."""

    def test_default_problem(self, problem):
        """Test that a default problem only carries its type."""
        assert problem.to_json() == '{"type":"about:blank"}'

    def test_status_and_title(self, not_found_problem):
        """Test member order and that status is an unquoted number."""
        assert not_found_problem.to_json() == '{"type":"about:blank","title":"Not Found","status":404}'

    def test_all_members_in_fixed_order(self, full_problem):
        """Test the member order type, title, status, detail, instance."""
        output = full_problem.to_json()

        assert output == (
            '{"type":"https://example.com/probs/out-of-credit",'
            '"title":"You do not have enough credit.",'
            '"status":403,'
            '"detail":"Your current balance is 30, but that costs 50.",'
            '"instance":"/account/12345/msgs/abc"}'
        )
        assert list(json.loads(output)) == ["type", "title", "status", "detail", "instance"]

    def test_absent_members_omitted(self):
        """Test that unset members leave no key behind."""
        problem = Problem("my:problem", "/orders/17")

        assert problem.to_json() == '{"type":"my:problem","instance":"/orders/17"}'

    def test_module_function_matches_method(self, full_problem):
        """Test that the module-level serializer and the method agree."""
        assert to_json(full_problem) == full_problem.to_json()


class TestEscaping:
    """String members are JSON-escaped, so the output always parses."""

    @pytest.mark.parametrize("detail", [
        'He said "no"',
        "C:\\temp\\file",
        "line one\nline two\ttabbed",
        "bell \x07 and null \x00",
        "</script>",
    ])
    def test_special_characters_round_trip(self, detail):
        """Test that quotes, backslashes and control characters are escaped."""
        problem = Problem(detail=detail)

        assert json.loads(problem.to_json())["detail"] == detail

    def test_quote_is_escaped(self):
        """Test the escaped form of a quote."""
        problem = Problem(title='Say "hi"')

        assert problem.to_json() == '{"type":"about:blank","title":"Say \\"hi\\""}'

    def test_non_ascii_kept_in_utf8(self):
        """Test that UTF-8 output keeps non-ASCII characters as-is."""
        problem = Problem(title="Nicht gefunden – Größe")

        assert problem.to_json() == '{"type":"about:blank","title":"Nicht gefunden – Größe"}'

    def test_non_ascii_escaped_for_other_encodings(self):
        """Test that non-UTF encodings get \\u escapes for unrepresentable text."""
        problem = Problem(title="Größe – 5€")

        output = problem.to_json(encoding="latin-1")

        assert output == '{"type":"about:blank","title":"Gr\\u00f6\\u00dfe \\u2013 5\\u20ac"}'
        assert json.loads(output)["title"] == "Größe – 5€"


class TestWriteJson:
    """Test writing to caller-provided streams."""

    def test_writes_utf8_bytes(self, buffer):
        """Test that the default encoding is UTF-8."""
        Problem(title="Größe").write_json(buffer)

        assert buffer.getvalue() == '{"type":"about:blank","title":"Größe"}'.encode("utf-8")

    def test_writes_requested_encoding(self, buffer):
        """Test writing UTF-16 output with a single byte order mark."""
        write_json(Problem(title="Größe"), buffer, "utf-16")

        data = buffer.getvalue()
        assert data.decode("utf-16") == '{"type":"about:blank","title":"Größe"}'
        assert data.count(b"\xff\xfe") + data.count(b"\xfe\xff") == 1

    def test_stream_left_open(self, buffer, problem):
        """Test that the caller's stream is not closed."""
        problem.write_json(buffer)

        assert not buffer.closed
        buffer.write(b"\n")

    def test_default_encoding_from_settings(self, problem):
        """Test that the configured default encoding is used."""
        with patch("problem_details.serializers.json_writer.get_settings") as mock_settings:
            mock_settings.return_value.default_encoding = "utf-16-le"
            output = to_json(problem)

        assert output == '{"type":"about:blank"}'

    def test_io_errors_propagate(self, problem):
        """Test that stream failures are not swallowed."""
        class BrokenStream(io.RawIOBase):
            def writable(self):
                return True

            def write(self, data):
                raise OSError("disk full")

        with pytest.raises(OSError, match="disk full"):
            problem.write_json(BrokenStream())


class TestJsonExtension:
    """Test the extension hook."""

    def test_single_member_extension(self, not_found_problem, solution_json_extension):
        """Test that one extension member gets exactly one separating comma."""
        output = not_found_problem.to_json(extension=solution_json_extension)

        assert output == '{"type":"about:blank","title":"Not Found","status":404,"solution":"Moar Hugs"}'
        assert output.count(",") == 3
        assert json.loads(output)["solution"] == "Moar Hugs"

    def test_extension_on_default_problem(self, problem, solution_json_extension):
        """Test an extension after the type member only."""
        assert problem.to_json(extension=solution_json_extension) == '{"type":"about:blank","solution":"Moar Hugs"}'

    def test_multiple_members(self, problem):
        """Test an extension writing several members of different types."""
        extension = json_members({"balance": 30, "accounts": ["/account/12345"], "retry": None})

        output = problem.to_json(extension=extension)

        assert output == '{"type":"about:blank","balance":30,"accounts":["/account/12345"]}'

    def test_extension_reporting_nothing(self, problem):
        """Test that an extension reporting no output adds no comma."""
        assert problem.to_json(extension=json_members({})) == '{"type":"about:blank"}'

    def test_unreported_output_discarded(self, problem):
        """Test that output from a hook returning False is not written."""
        def extension(stream, encoding):
            stream.write('"stray":1')
            return False

        assert problem.to_json(extension=extension) == '{"type":"about:blank"}'

    def test_custom_hook_receives_encoding(self, problem):
        """Test a hand-written hook."""
        seen = {}

        def extension(stream, encoding):
            seen["encoding"] = encoding
            stream.write(encode_member("trace_id", "abc-123", encoding))
            return True

        output = problem.to_json(extension=extension)

        assert seen["encoding"] == "utf-8"
        assert output == '{"type":"about:blank","trace_id":"abc-123"}'

    def test_object_closed_when_extension_writes(self, full_problem, solution_json_extension):
        """Test that the object is always closed."""
        output = full_problem.to_json(extension=solution_json_extension)

        assert output.endswith('"solution":"Moar Hugs"}')
        assert json.loads(output)["status"] == 403

    def test_extension_in_utf16(self, buffer):
        """Test that extension members share the single byte order mark of the document."""
        write_json(Problem(), buffer, "utf-16", json_members({"a": 1, "b": 2}))

        data = buffer.getvalue()
        assert data.count(b"\xff\xfe") + data.count(b"\xfe\xff") == 1
        text = data.decode("utf-16")
        assert "\ufeff" not in text
        assert json.loads(text) == {"type": "about:blank", "a": 1, "b": 2}

    def test_extension_in_latin1(self, problem):
        """Test that extension members are escaped for non-UTF encodings."""
        output = problem.to_json(encoding="latin-1", extension=json_members({"note": "Größe 5€"}))

        assert output == '{"type":"about:blank","note":"Gr\\u00f6\\u00dfe 5\\u20ac"}'
        assert json.loads(output)["note"] == "Größe 5€"
