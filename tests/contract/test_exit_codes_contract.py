from __future__ import annotations

from pathlib import Path

import httpx

from asset_import.api.client import ApiClient
from asset_import.cli import __main__ as cli_module
from asset_import.cli.__main__ import EXIT_FATAL, EXIT_PARTIAL_FAILURE, EXIT_SUCCESS_ALL, main as cli_main

"""Exit code contract: 0 all accepted, 2 some rows rejected, 1 fatal."""


def _use_transport(monkeypatch, handler) -> None:
    monkeypatch.setattr(cli_module, "ApiClient", lambda cfg: ApiClient(cfg, transport=httpx.MockTransport(handler)))


def _write_assets(path: Path, make_xlsx, rows) -> None:
    path.write_bytes(make_xlsx([["Asset Name (English)", "Asset Name (Arabic)", "Category Name"], *rows]))


def test_exit_code_values():
    assert (EXIT_SUCCESS_ALL, EXIT_PARTIAL_FAILURE, EXIT_FATAL) == (0, 2, 1)


def test_exit_code_fatal_startup(temp_workdir: Path, capsys):
    code = cli_main(["import", "assets", "data/assets.xlsx"])
    assert code == EXIT_FATAL
    assert "ERROR config:" in capsys.readouterr().out


def test_exit_code_all_success(write_config: Path, temp_workdir: Path, make_xlsx, monkeypatch, capsys):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={"items": [{"id": 4, "category": "Laptops"}]})
        return httpx.Response(200, json={"added_assets": [{"id": 100, "name_en": "Laptop", "name_ar": "حاسوب"}]})

    _use_transport(monkeypatch, handler)
    _write_assets(temp_workdir / "data" / "assets.xlsx", make_xlsx, [["Laptop", "حاسوب", "Laptops"]])
    assert cli_main(["import", "assets", "data/assets.xlsx", "--no-export"]) == EXIT_SUCCESS_ALL


def test_exit_code_partial_failure(write_config: Path, temp_workdir: Path, make_xlsx, monkeypatch, capsys):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={"items": [{"id": 4, "category": "Laptops"}]})
        return httpx.Response(200, json={"added_assets": [{"id": 100, "name_en": "Laptop", "name_ar": "حاسوب"}]})

    _use_transport(monkeypatch, handler)
    _write_assets(
        temp_workdir / "data" / "assets.xlsx",
        make_xlsx,
        [["Laptop", "حاسوب", "Laptops"], ["Tablet", "لوحي", "Tablets"]],
    )
    code = cli_main(["import", "assets", "data/assets.xlsx", "--no-export"])
    assert code == EXIT_PARTIAL_FAILURE
    assert "ReferentialMiss=1" in capsys.readouterr().out


def test_exit_code_fatal_parse(write_config: Path, temp_workdir: Path, make_xlsx, monkeypatch, capsys):
    _use_transport(monkeypatch, lambda request: httpx.Response(200, json={}))
    (temp_workdir / "data" / "assets.xlsx").write_bytes(make_xlsx([["Only"], ["one column"]]))
    code = cli_main(["import", "assets", "data/assets.xlsx"])
    assert code == EXIT_FATAL
    assert "ERROR import: Excel file must have at least 3 columns" in capsys.readouterr().out
