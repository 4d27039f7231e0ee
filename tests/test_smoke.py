from fastapi.testclient import TestClient
from csv_rescue.main import app

client = TestClient(app)

def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}

def test_normalize_utf8_bom_upload():
    raw = "\ufeffid,name,date\n1,Li,2024-01-05\n".encode("utf-8")

    files = {"file": ("test.csv", raw, "text/csv")}
    r = client.post("/normalize", files=files)
    assert r.status_code == 200

    data = r.json()
    assert data["encoding"]["encoding"] == "utf8"
    assert data["summary"] == {"rows": 1, "records": 1, "dropped": 0, "profile": "strict"}
    # BOM must not leak into the first header name
    assert data["records"] == [{"id": 1, "name": "Li", "date": "2024-01-05"}]

def test_normalize_with_allow_list():
    raw = "PATIENT_ID,score\nPA100,1\nPA999,2\n".encode("utf-8")

    files = {"file": ("patients.csv", raw, "text/csv")}
    r = client.post(
        "/normalize",
        files=files,
        params={"allow_field": "PATIENT_ID", "allow_values": ["PA100"]},
    )
    assert r.status_code == 200

    data = r.json()
    assert data["records"] == [{"PATIENT_ID": "PA100", "score": 1}]
    assert data["summary"]["dropped"] == 1

def test_normalize_rejects_non_csv():
    files = {"file": ("test.txt", b"a,b\n", "text/plain")}
    r = client.post("/normalize", files=files)
    assert r.status_code == 422

def test_normalize_empty_content_is_422():
    files = {"file": ("blank.csv", b"   \n\n", "text/csv")}
    r = client.post("/normalize", files=files)
    assert r.status_code == 422
    assert "EmptyContentError" in r.json()["detail"]

def test_normalize_unknown_profile():
    files = {"file": ("test.csv", b"a\n1\n", "text/csv")}
    r = client.post("/normalize", files=files, params={"profile": "nope"})
    assert r.status_code == 422

def test_detect_endpoint():
    raw = "name,city\nPaul,Montreal\n".encode("ascii")

    files = {"file": ("test.csv", raw, "text/csv")}
    r = client.post("/detect", files=files)
    assert r.status_code == 200

    data = r.json()
    assert data["encoding"] == "utf8"
    assert data["bad_ratio"] == 0.0
