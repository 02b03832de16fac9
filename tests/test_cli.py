import json

from marketrank import cli


def _write_catalog(tmp_path):
    doc = {
        "items": [
            {"id": "1", "name": "Iphone 12", "category": "Smartphones", "price": 300000},
            {"id": "2", "name": "Samsung phone", "category": "Smartphones", "price": 280000},
            {"id": "3", "name": "Rice bag", "category": "Groceries", "price": 40000},
        ],
        "vendors": [{"id": "v1", "name": "Ade", "businessName": "Phone Palace"}],
    }
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(doc), encoding="utf-8")
    return path


def _run(capsys, argv):
    code = cli.main(argv)
    return code, json.loads(capsys.readouterr().out)


def test_cli_search(tmp_path, capsys):
    catalog = _write_catalog(tmp_path)
    code, out = _run(capsys, ["--catalog", str(catalog), "search", "phone"])
    assert code == 0
    assert [p["id"] for p in out["products"]] == ["1", "2"]


def test_cli_correct(tmp_path, capsys):
    catalog = _write_catalog(tmp_path)
    code, out = _run(capsys, ["--catalog", str(catalog), "correct", "smartphone groceris"])
    assert code == 0
    assert out["correction"] == "Smartphones Groceries"


def test_cli_track_then_recommend(tmp_path, capsys):
    catalog = _write_catalog(tmp_path)
    history = tmp_path / "history.json"

    code, out = _run(capsys, ["--catalog", str(catalog), "track", "1", "--history", str(history)])
    assert code == 0
    assert out == {"history": ["1"]}

    code, out = _run(capsys, ["--catalog", str(catalog), "recommend", "--history", str(history)])
    assert code == 0
    assert [p["id"] for p in out] == ["2", "3"]


def test_cli_missing_catalog(tmp_path):
    assert cli.main(["--catalog", str(tmp_path / "none.json"), "suggest", "phone"]) == 2


def test_cli_similar_unknown_item(tmp_path):
    catalog = _write_catalog(tmp_path)
    assert cli.main(["--catalog", str(catalog), "similar", "404"]) == 1
