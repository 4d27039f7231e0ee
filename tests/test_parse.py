import pytest

from csv_rescue.errors import ParseError
from csv_rescue.models import ParseOptions
from csv_rescue.parse import parse_records, prepare_text


def test_prepare_text_normalizes_newlines_and_nuls():
    assert prepare_text("a\r\nb\rc\x00d\n") == "a\nb\ncd\n"


def test_header_and_rows():
    records = parse_records("id,name\n1,Li\n2,Wang\n")
    assert records == [{"id": "1", "name": "Li"}, {"id": "2", "name": "Wang"}]


def test_bom_stripped_from_first_header():
    records = parse_records("\ufeffid,name\n1,Li\n")
    assert list(records[0]) == ["id", "name"]


def test_header_only_yields_no_records():
    assert parse_records("id,name,date\n") == []
    assert parse_records("") == []


def test_trim_and_blank_lines():
    records = parse_records("id , name\n\n  1 ,  Li  \n,\n")
    assert records == [{"id": "1", "name": "Li"}]


def test_quoted_fields_with_delimiters_and_newlines():
    records = parse_records('id,note\n1,"a, b"\n2,"line1\nline2"\n3,"say ""hi"""\n')
    assert [r["note"] for r in records] == ["a, b", "line1\nline2", 'say "hi"']


def test_short_rows_padded_long_rows_truncated():
    records = parse_records("a,b,c\n1\n1,2,3,4\n")
    assert records == [
        {"a": "1", "b": None, "c": None},
        {"a": "1", "b": "2", "c": "3"},
    ]


def test_column_count_mismatch_skipped_when_not_relaxed():
    options = ParseOptions(relax_column_count=False, skip_malformed=True)
    records = parse_records("a,b\n1\n1,2\n", options)
    assert records == [{"a": "1", "b": "2"}]


def test_column_count_mismatch_raises_when_strict():
    options = ParseOptions(relax_column_count=False, skip_malformed=False)
    with pytest.raises(ParseError):
        parse_records("a,b\n1\n1,2\n", options)


def test_strict_quotes_raise_when_not_skipping():
    options = ParseOptions(relax_quotes=False, skip_malformed=False)
    with pytest.raises(ParseError):
        parse_records('a,b\n"x"y,2\n', options)


def test_strict_quotes_skip_malformed_record():
    options = ParseOptions(relax_quotes=False, skip_malformed=True)
    records = parse_records('a,b\n"x"y,2\n3,4\n', options)
    assert {"a": "3", "b": "4"} in records
    assert all(r["a"] != 'x"y' for r in records)


def test_custom_delimiter_and_escape():
    options = ParseOptions(delimiter=";", escape="\\")
    records = parse_records('a;b\n"x\\"y";2\n', options)
    assert records == [{"a": 'x"y', "b": "2"}]


def test_without_header_names_columns():
    options = ParseOptions(header=False)
    records = parse_records("1,2\n3,4\n", options)
    assert records == [
        {"column_1": "1", "column_2": "2"},
        {"column_1": "3", "column_2": "4"},
    ]


def test_control_characters_stripped_from_header():
    records = parse_records("\ufeffid,na\x01me\x7f\n1,Li\n")
    assert records == [{"id": "1", "name": "Li"}]
