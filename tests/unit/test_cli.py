"""Unit tests for the search CLI (src.cli.search)."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from src.cli import search as cli


@pytest.fixture(autouse=True)
def _keep_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    # Reconfiguring structlog onto the captured stderr would leak into other tests.
    monkeypatch.setattr(cli, "_suppress_logs", lambda: None)


class TestParseParams:
    def test_pairs(self) -> None:
        assert cli.parse_params(["q=seismic", "keywords=a,b", "empty="]) == {
            "q": "seismic",
            "keywords": "a,b",
            "empty": "",
        }

    def test_value_may_contain_equals(self) -> None:
        assert cli.parse_params(["bbox=POLYGON((0 0))=x"]) == {"bbox": "POLYGON((0 0))=x"}

    @pytest.mark.parametrize("pair", ["novalue", "=value", " =x"])
    def test_rejects_bad_pairs(self, pair: str) -> None:
        with pytest.raises(ValueError):
            cli.parse_params([pair])


class TestMain:
    def test_json_output(self, catalog_path: Path, capsys: pytest.CaptureFixture) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main([str(catalog_path), "--json", "-p", "keywords=waveform"])
        assert exc_info.value.code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["total"] == 1
        assert payload["items"][0]["id"] == "dist-1"

    def test_text_output(self, catalog_path: Path, capsys: pytest.CaptureFixture) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main([str(catalog_path), "--quiet"])
        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        assert out.startswith("Results: 3")
        assert "[dist-1]" in out

    def test_organisations_profile(self, catalog_path: Path, capsys: pytest.CaptureFixture) -> None:
        with pytest.raises(SystemExit):
            cli.main([str(catalog_path), "--profile", "organisations", "-q"])
        out = capsys.readouterr().out
        assert "Alpha Institute (Italy)  [org-a]" in out

    def test_missing_file_exits_1(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main([str(tmp_path / "nope.json"), "-q"])
        assert exc_info.value.code == 1

    def test_bad_param_exits_2(self, catalog_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main([str(catalog_path), "-p", "oops"])
        assert exc_info.value.code == 2
