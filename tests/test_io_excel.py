"""Tests du module I/O Excel."""

from pathlib import Path

import pandas as pd

from dedoublon.io_excel import list_sheets, load_records, load_sheet, save_xlsx


def test_list_sheets(tmp_path: Path) -> None:
    path = tmp_path / "test.xlsx"
    with pd.ExcelWriter(path, engine="openpyxl") as w:
        pd.DataFrame({"a": [1]}).to_excel(w, sheet_name="Feuille1", index=False)
        pd.DataFrame({"x": [1]}).to_excel(w, sheet_name="Feuille2", index=False)
    assert list_sheets(path) == ["Feuille1", "Feuille2"]


def test_list_sheets_csv(tmp_path: Path) -> None:
    path = tmp_path / "data.csv"
    path.write_text("a,b\n1,2\n", encoding="utf-8")
    assert list_sheets(path) == ["(données)"]


def test_load_sheet_default_first(tmp_path: Path) -> None:
    path = tmp_path / "test.xlsx"
    pd.DataFrame({"col": ["a", "b"]}).to_excel(path, index=False, engine="openpyxl")
    df = load_sheet(path)
    assert len(df) == 2
    assert "col" in df.columns


def test_load_sheet_preserves_text(tmp_path: Path) -> None:
    path = tmp_path / "test.xlsx"
    pd.DataFrame({"zip": ["01000", "69001"]}).to_excel(path, index=False, engine="openpyxl")
    df = load_sheet(path)
    assert df["zip"].tolist() == ["01000", "69001"]


def test_load_sheet_csv_semicolon(tmp_path: Path) -> None:
    path = tmp_path / "data.csv"
    path.write_text("nom;ville\nDupont;Lyon\nMartin;Paris\n", encoding="utf-8")
    df = load_sheet(path)
    assert list(df.columns) == ["nom", "ville"]
    assert df["ville"].tolist() == ["Lyon", "Paris"]


def test_load_sheet_csv_latin1(tmp_path: Path) -> None:
    path = tmp_path / "data.csv"
    path.write_bytes("nom,ville\nValéry,Sète\n".encode("latin-1"))
    df = load_sheet(path)
    assert df["nom"].tolist() == ["Valéry"]


def test_load_records_missing_cells_become_none(tmp_path: Path) -> None:
    path = tmp_path / "data.csv"
    path.write_text("name,email\nAlice,\nBob,bob@x.org\n", encoding="utf-8")
    records = load_records(path)
    assert records == [{"name": "Alice", "email": None}, {"name": "Bob", "email": "bob@x.org"}]


def test_save_xlsx(tmp_path: Path) -> None:
    path = tmp_path / "out.xlsx"
    long_name = "Une feuille au nom beaucoup trop long"
    save_xlsx(path, {"Survivors": pd.DataFrame({"a": [1]}), long_name: pd.DataFrame({"b": [2]})})
    assert path.exists()
    sheets = list_sheets(path)
    assert sheets[0] == "Survivors"
    assert sheets[1] == long_name[:31]
