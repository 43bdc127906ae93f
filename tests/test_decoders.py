"""
Output decoders and defensive field helpers.
"""
import pytest

from cpi_hyperv.actions.decoders import (
    UNKNOWN,
    CsvDecoder,
    JsonDecoder,
    ScalarDecoder,
    SideEffectDecoder,
    int_field,
    lookup_code,
    text_field,
    vhd_format,
    vm_state,
)
from cpi_hyperv.actions.volumes import GetVolumes
from cpi_hyperv.errors import MalformedOutput

STATES = {2: "Running", 3: "Stopped"}


@pytest.fixture
def workers_csv():
    return CsvDecoder(("name", "id", "state"), converters={"state": lambda v: lookup_code(STATES, v)})


class TestCsv:
    def test_header_and_one_row(self, workers_csv):
        text = '"Name","Id","State"\r\n"vm1","GUID-1","2"\r\n'
        assert workers_csv.decode(text) == [{"name": "vm1", "id": "GUID-1", "state": "Running"}]

    def test_header_only_is_empty(self, workers_csv):
        assert workers_csv.decode('"Name","Id","State"\n') == []

    def test_empty_output_is_empty(self, workers_csv):
        assert workers_csv.decode("") == []
        assert workers_csv.decode("\r\n  \r\n") == []

    def test_unknown_state_code(self, workers_csv):
        rows = workers_csv.decode('"Name","Id","State"\n"vm9","G9","99"\n')
        assert rows[0]["state"] == UNKNOWN

    def test_blank_and_short_rows_skipped(self, workers_csv):
        text = '"Name","Id","State"\n\n"broken"\n"vm2","G2","3"\n'
        assert workers_csv.decode(text) == [{"name": "vm2", "id": "G2", "state": "Stopped"}]

    def test_quoted_delimiter_kept_in_field(self, workers_csv):
        rows = workers_csv.decode('"Name","Id","State"\n"web, primary","G1","2"\n')
        assert rows[0]["name"] == "web, primary"

    def test_byte_order_mark(self, workers_csv):
        rows = workers_csv.decode('\ufeff"Name","Id","State"\n"vm1","G1","3"\n')
        assert rows == [{"name": "vm1", "id": "G1", "state": "Stopped"}]


class TestJson:
    def test_object_mode(self):
        assert JsonDecoder("object").decode('  {"Id": "abc"}\r\n') == {"Id": "abc"}

    def test_object_mode_rejects_array(self):
        with pytest.raises(MalformedOutput):
            JsonDecoder("object").decode('[{"Id": "abc"}]')

    def test_array_mode(self):
        assert JsonDecoder("array").decode('[{"a": 1}, 5, {"a": 2}]') == [{"a": 1}, {"a": 2}]

    def test_any_sniffs_object_and_array_equivalently(self):
        record = '{"Path": "C:\\\\d\\\\a.vhdx", "VhdType": 2, "Size": 10737418240}'
        one = JsonDecoder("any").decode(record)
        many = JsonDecoder("any").decode(f"[{record}]")
        assert one == many
        action = GetVolumes()
        assert action.build_result(one, {}) == action.build_result(many, {})
        assert action.build_result(one, {})["volumes"] == [
            {"id": "C:\\d\\a.vhdx", "path": "C:\\d\\a.vhdx", "size_mb": 10240, "format": "DynamicExpanding"}
        ]

    def test_any_empty_output_is_empty_list(self):
        assert JsonDecoder("any").decode("") == []
        assert JsonDecoder("any").decode("\r\n") == []

    def test_not_json(self):
        with pytest.raises(MalformedOutput) as exc:
            JsonDecoder("object").decode("Name : vm1")
        assert exc.value.raw == "Name : vm1"
        assert exc.value.code == "MALFORMED_OUTPUT"

    def test_truncated_json(self):
        with pytest.raises(MalformedOutput) as exc:
            JsonDecoder("any").decode('{"Path": ')
        assert "invalid JSON" in exc.value.reason

    def test_fallback_returns_none(self):
        assert JsonDecoder("object", fallback=True).decode("garbage") is None
        assert JsonDecoder("object", fallback=True).decode('{"Path": "x"}') == {"Path": "x"}

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            JsonDecoder("maybe")


class TestScalar:
    def test_count(self):
        assert ScalarDecoder("count").decode("  3 \r\n") == 3
        assert ScalarDecoder("count").decode("0") == 0

    def test_count_unparseable(self):
        with pytest.raises(MalformedOutput):
            ScalarDecoder("count").decode("three")
        with pytest.raises(MalformedOutput):
            ScalarDecoder("count").decode("")

    def test_bool_case_insensitive(self):
        assert ScalarDecoder("bool").decode("True\r\n") is True
        assert ScalarDecoder("bool").decode("FALSE") is False

    def test_bool_unparseable(self):
        with pytest.raises(MalformedOutput):
            ScalarDecoder("bool").decode("yes")

    def test_side_effect_ignores_output(self):
        assert SideEffectDecoder().decode("anything at all") is None


class TestFields:
    def test_text_field(self):
        assert text_field({"Name": "vm1"}, "Name") == "vm1"
        assert text_field({"Name": 5}, "Name") == "unknown"
        assert text_field({}, "Name") == "unknown"
        assert text_field(None, "Name", default="x") == "x"

    def test_int_field(self):
        assert int_field({"n": 4}, "n") == 4
        assert int_field({"n": 2048.0}, "n") == 2048
        assert int_field({"n": " 12 "}, "n") == 12
        assert int_field({"n": "twelve"}, "n") == 0
        assert int_field({"n": True}, "n") == 0
        assert int_field({"n": None}, "n", default=-1) == -1
        assert int_field([], "n") == 0

    def test_state_lookup(self):
        assert vm_state(2) == "Running"
        assert vm_state("3") == "Stopped"
        assert vm_state(2.0) == "Running"
        assert vm_state("running") == "Running"
        assert vm_state(99) == UNKNOWN
        assert vm_state(None) == UNKNOWN
        assert vm_state(True) == UNKNOWN
        assert vm_state("Paused") == UNKNOWN

    def test_vhd_format_lookup(self):
        assert vhd_format(1) == "FixedSize"
        assert vhd_format(3) == "Differencing"
        assert vhd_format(7) == UNKNOWN
