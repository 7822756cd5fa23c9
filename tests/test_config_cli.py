import json
import os
import sys

import pytest

# Ensure src/ is importable when tests run from repo root
sys.path.insert(0, os.path.abspath("src"))

from shelfscan.cli.main import main
from shelfscan.config import DEFAULT_OCR_API_KEY, load_settings

_KEYS = (
    "OCR_SPACE_API_KEY",
    "OCR_SPACE_URL",
    "OCR_ENGINE",
    "OCR_LANGUAGE",
    "OCR_TIMEOUT",
    "SHELFSCAN_MAX_RECORDS",
    "SHELFSCAN_CONFIDENCE",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in _KEYS:
        monkeypatch.delenv(key, raising=False)


def test_settings_from_dotenv_in_parent_dir(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text(
        "# planogram scanner\nOCR_SPACE_API_KEY='abc123'\nSHELFSCAN_MAX_RECORDS=25\nOCR_TIMEOUT=soon\n",
        encoding="utf-8",
    )
    nested = tmp_path / "src" / "pkg"
    nested.mkdir(parents=True)
    monkeypatch.setenv("SHELFSCAN_CONFIDENCE", "OVERLAY")

    settings = load_settings(str(nested))

    assert settings.ocr_api_key == "abc123"
    assert settings.max_records == 25
    assert settings.ocr_timeout == 60
    assert settings.confidence_policy == "overlay"
    assert settings.ocr_engine == "2"


def test_environment_wins_over_dotenv(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("OCR_SPACE_API_KEY=from-file\n", encoding="utf-8")
    monkeypatch.setenv("OCR_SPACE_API_KEY", "from-env")
    monkeypatch.setenv("SHELFSCAN_CONFIDENCE", "vibes")
    settings = load_settings(str(tmp_path))
    assert settings.ocr_api_key == "from-env"
    assert settings.confidence_policy == "coverage"


def test_defaults_without_dotenv(tmp_path):
    settings = load_settings(str(tmp_path))
    assert settings.ocr_api_key == DEFAULT_OCR_API_KEY
    assert settings.max_records == 100


def test_cli_text_json(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    src = tmp_path / "ocr.txt"
    src.write_text("SHELF\nCRUNCHY PEANUT BUTTER 12234567890 1234567890123\n", encoding="utf-8")

    code = main(["text", "--file", str(src)])

    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert out["products"] == [
        {"productName": "CRUNCHY PEANUT BUTTER", "sku": "12234567890", "upc": "1234567890123"}
    ]
    assert out["confidence"] == 0.5


def test_cli_text_tsv_and_empty(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    src = tmp_path / "ocr.txt"
    src.write_text("ORGANIC ALMOND MILK\n12200000001\n4000000000011\n", encoding="utf-8")
    assert main(["text", "--file", str(src), "--format", "tsv"]) == 0
    assert capsys.readouterr().out.strip() == "ORGANIC ALMOND MILK\t12200000001\t4000000000011"

    src.write_text("SHELF\n", encoding="utf-8")
    assert main(["text", "--file", str(src)]) == 1
    assert main(["text", "--file", str(tmp_path / "missing.txt")]) == 2


def test_cli_classify(tmp_path, capsys):
    src = tmp_path / "ocr.txt"
    src.write_text("SHELF\n\n12234567890\n", encoding="utf-8")
    assert main(["classify", "--file", str(src)]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].split()[:2] == ["1", "HEADER"]
    assert lines[1].split()[:2] == ["3", "SKU_ONLY"]
    assert "sku=12234567890" in lines[1]


def test_cli_image_missing_file(tmp_path):
    assert main(["image", "--source", str(tmp_path / "nope.jpg")]) == 2


def test_cli_serve_passes_origins_through(tmp_path, monkeypatch):
    import uvicorn

    import shelfscan.frontend as frontend

    seen = {}

    def fake_create_app(settings, *, allow_origins=None):
        seen["origins"] = allow_origins
        return "app"

    def fake_run(app, **kwargs):
        seen["run"] = (app, kwargs)

    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(frontend, "create_app", fake_create_app)
    monkeypatch.setattr(uvicorn, "run", fake_run)

    assert main(["serve", "--port", "9000", "--allow-origin", "*"]) == 0
    assert seen["origins"] == ["*"]
    assert seen["run"] == ("app", {"host": "127.0.0.1", "port": 9000, "log_level": "info"})

    main(["serve", "--allow-origin", "http://a.test", "--allow-origin", "http://b.test"])
    assert seen["origins"] == ["http://a.test", "http://b.test"]

    main(["serve"])
    assert seen["origins"] is None
