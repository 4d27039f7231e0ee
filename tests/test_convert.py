import datetime as dt
import json
from pathlib import Path

import pytest
from openpyxl import load_workbook

from csv_rescue.config import get_profile
from csv_rescue.convert import convert_bytes, convert_file, convert_files, find_csv_files, output_path_for
from csv_rescue.errors import EmptyContentError, NoQualifyingRecordsError
from csv_rescue.sinks import JsonSink, XlsxSink, get_sink


def fixed_detector(label, confidence):
    def detector(data):
        return {"encoding": label, "confidence": confidence}
    return detector


def test_utf8_bom_end_to_end():
    raw = b"\xef\xbb\xbfid,name,date\n1,Li,2024-01-05\n"

    result = convert_bytes(raw, detector=fixed_detector("ascii", 0.2))

    assert result.encoding.encoding == "utf8"
    assert result.encoding.source == "bom"
    assert result.rows == 1
    assert result.records == [{"id": 1, "name": "Li", "date": dt.date(2024, 1, 5)}]


def test_gbk_low_confidence_end_to_end():
    raw = "编号,姓名,城市\n1,张三,北京\n2,李四,上海\n".encode("gbk")

    result = convert_bytes(raw, detector=fixed_detector("gb2312", 0.5))

    assert result.encoding.encoding == "gbk"
    assert result.encoding.source == "round_trip"
    assert result.records == [
        {"编号": 1, "姓名": "张三", "城市": "北京"},
        {"编号": 2, "姓名": "李四", "城市": "上海"},
    ]
    assert all("\ufffd" not in str(v) for r in result.records for v in r.values())


def test_header_only_is_success_with_zero_records():
    result = convert_bytes(b"id,name,date\n")
    assert result.rows == 0
    assert result.records == []


def test_header_only_with_filter_has_no_qualifying_records():
    profile = get_profile("strict", allow_field="id", allow_values=["1"])
    with pytest.raises(NoQualifyingRecordsError):
        convert_bytes(b"id,name\n", profile)


def test_empty_content():
    with pytest.raises(EmptyContentError):
        convert_bytes(b"")
    with pytest.raises(EmptyContentError):
        convert_bytes(b" \r\n\t ")


def test_lenient_profile_keeps_strings_and_defaults_to_gbk():
    raw = "编号,日期\n1,2024-01-05\n".encode("gbk")
    profile = get_profile("lenient")

    result = convert_bytes(raw, profile, detector=fixed_detector("gb2312", 0.5))

    assert profile.decode.default_encoding == "gbk"
    assert result.encoding.encoding == "gbk"
    assert result.encoding.source == "round_trip"
    assert result.records == [{"编号": "1", "日期": "2024-01-05"}]


def test_lenient_profile_falls_to_gbk_default():
    raw = "编号\n1\n".encode("gbk")
    profile = get_profile("lenient", overrides={"decode": {"trial_encodings": ["utf8"]}})

    result = convert_bytes(raw, profile, detector=fixed_detector("gb2312", 0.5))

    assert result.encoding.source == "default"
    assert result.encoding.encoding == "gbk"
    assert result.records == [{"编号": "1"}]


@pytest.mark.parametrize(
    "profile_name, expected",
    [
        ("strict", [{"id": 1, "name": "Li"}]),
        ("lenient", [{"id": "1", "name": "Li"}]),
    ],
)
@pytest.mark.parametrize("codec, encoding", [("utf-16-le", "utf16le"), ("utf-16-be", "utf16be")])
def test_utf16_with_bom_under_every_profile(profile_name, expected, codec, encoding):
    raw = "\ufeffid,name\n1,Li\n".encode(codec)

    result = convert_bytes(raw, get_profile(profile_name))

    assert result.encoding.encoding == encoding
    assert result.records == expected


def test_filtered_records():
    raw = b"PATIENT_ID,value\nPA100,\x01a\nPA999,b\nPA100,c\n"
    profile = get_profile("strict", allow_field="PATIENT_ID", allow_values=["PA100"])

    result = convert_bytes(raw, profile, detector=fixed_detector("ascii", 0.99))

    assert result.rows == 3
    assert result.records == [
        {"PATIENT_ID": "PA100", "value": "a"},
        {"PATIENT_ID": "PA100", "value": "c"},
    ]


def test_profile_overrides():
    profile = get_profile("strict", overrides={"decode": {"confidence_threshold": 0.9}})
    assert profile.decode.confidence_threshold == 0.9
    assert profile.decode.default_encoding == "utf8"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"allow_field": "id"},
        {"allow_values": ["1"]},
    ],
)
def test_incomplete_allow_list_is_rejected(kwargs):
    with pytest.raises(ValueError):
        get_profile("strict", **kwargs)


def test_unknown_profile():
    with pytest.raises(ValueError):
        get_profile("nope")


def test_output_path_for(tmp_path: Path):
    assert output_path_for(Path("in/a.b.csv"), tmp_path, JsonSink()) == tmp_path / "a.b.json"
    assert output_path_for(Path("in/x.CSV"), tmp_path, XlsxSink()) == tmp_path / "x.xlsx"


def test_json_sink(tmp_path: Path):
    src = tmp_path / "people.csv"
    src.write_bytes("id,name,date\n1,Café,2024-01-05\n".encode("utf-8"))
    out_dir = tmp_path / "out"

    outcome = convert_file(src, out_dir, JsonSink(), detector=fixed_detector("utf-8", 0.99))

    assert outcome.ok
    assert outcome.records == 1
    data = json.loads((out_dir / "people.json").read_text(encoding="utf-8"))
    assert data == [{"id": 1, "name": "Café", "date": "2024-01-05"}]


def test_xlsx_sink(tmp_path: Path):
    src = tmp_path / "visits.csv"
    src.write_bytes(b"id,name,date\n1,Li,2024-01-05\n2,Wang,\n")
    out_dir = tmp_path / "out"

    outcome = convert_file(src, out_dir, XlsxSink())

    assert outcome.ok
    wb = load_workbook(out_dir / "visits.xlsx")
    ws = wb["Sheet1"]
    rows = list(ws.iter_rows(values_only=True))
    assert rows[0] == ("id", "name", "date")
    assert rows[1][:2] == (1, "Li")
    assert rows[1][2].date() == dt.date(2024, 1, 5)
    assert rows[2] == (2, "Wang", None)


def test_xlsx_sink_header_with_control_character(tmp_path: Path):
    src = tmp_path / "ctrl.csv"
    src.write_bytes(b"id,na\x01me\n1,Li\n")
    out_dir = tmp_path / "out"

    outcome = convert_file(src, out_dir, XlsxSink(), detector=fixed_detector("ascii", 0.99))

    assert outcome.ok, outcome.error
    ws = load_workbook(out_dir / "ctrl.xlsx")["Sheet1"]
    assert list(ws.iter_rows(values_only=True)) == [("id", "name"), (1, "Li")]


def test_xlsx_sink_writes_formula_like_text_as_text(tmp_path: Path):
    src = tmp_path / "formula.csv"
    src.write_bytes(b'id,expr\n1,=1+2\n2,"=HYPERLINK(""http://x"")"\n')
    out_dir = tmp_path / "out"

    outcome = convert_file(src, out_dir, XlsxSink())

    assert outcome.ok, outcome.error
    ws = load_workbook(out_dir / "formula.xlsx")["Sheet1"]
    assert ws["B2"].value == "=1+2"
    assert ws["B2"].data_type == "s"
    assert ws["B3"].value == '=HYPERLINK("http://x")'
    assert ws["B3"].data_type == "s"


def test_get_sink():
    assert isinstance(get_sink("json"), JsonSink)
    with pytest.raises(ValueError):
        get_sink("parquet")


def test_convert_file_reports_failure(tmp_path: Path):
    src = tmp_path / "empty.csv"
    src.write_bytes(b"")

    outcome = convert_file(src, tmp_path / "out", JsonSink())

    assert not outcome.ok
    assert "EmptyContentError" in outcome.error
    assert not (tmp_path / "out" / "empty.json").exists()


def test_convert_file_missing_source(tmp_path: Path):
    outcome = convert_file(tmp_path / "missing.csv", tmp_path / "out", JsonSink())
    assert not outcome.ok
    assert outcome.error.startswith("FileNotFoundError")


def test_batch_collects_failures(tmp_path: Path):
    in_dir = tmp_path / "in"
    in_dir.mkdir()
    (in_dir / "a.csv").write_bytes(b"id\n1\n")
    (in_dir / "b.csv").write_bytes(b"")
    (in_dir / "c.CSV").write_bytes("名称\n测试\n".encode("gbk"))
    (in_dir / "notes.txt").write_bytes(b"ignored")

    sources = find_csv_files(in_dir)
    assert [p.name for p in sources] == ["a.csv", "b.csv", "c.CSV"]

    report = convert_files(sources, tmp_path / "out", JsonSink(), max_workers=2)

    assert report.total == 3
    assert report.succeeded == 2
    assert report.failed == 1
    assert report.failed_files == ["b.csv"]
    assert report.completion_rate == pytest.approx(2 / 3)
    assert (tmp_path / "out" / "a.json").exists()
    assert (tmp_path / "out" / "c.json").exists()


def test_batch_with_no_sources(tmp_path: Path):
    report = convert_files([], tmp_path / "out", JsonSink())
    assert report.total == 0
    assert report.completion_rate == 0.0
    assert (tmp_path / "out").is_dir()
