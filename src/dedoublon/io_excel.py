"""I/O tableurs : chargement des enregistrements et sauvegarde des résultats (Excel, CSV)."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any

import pandas as pd

from dedoublon.config import DedoublonError
from dedoublon.normalize import is_missing

SUPPORTED_INPUT_EXTENSIONS = (".xlsx", ".csv")
_CSV_DELIMITERS = [",", ";", "\t", "|"]


class ExcelFileError(DedoublonError):
    """Erreur de chargement d'un fichier (fichier absent, feuille inexistante)."""


def _is_csv(path: Path) -> bool:
    return path.suffix.lower() == ".csv"


def _detect_csv_delimiter(path: Path, encoding: str) -> str | None:
    """Devine le séparateur à partir des premières lignes non vides."""
    with path.open("r", encoding=encoding, errors="replace") as f:
        sample_lines = [line for line in (f.readline() for _ in range(10)) if line.strip()][:5]
    if not sample_lines:
        return None
    try:
        return csv.Sniffer().sniff("".join(sample_lines), delimiters=_CSV_DELIMITERS).delimiter
    except csv.Error:
        counts = {d: sample_lines[0].count(d) for d in _CSV_DELIMITERS}
        best = max(counts, key=counts.get)  # type: ignore[arg-type]
        return best if counts[best] > 0 else None


def list_sheets(filepath: str | Path) -> list[str]:
    """
    Liste les noms des feuilles d'un fichier xlsx (une seule "feuille" pour CSV).

    Raises:
        ExcelFileError: Si le fichier est absent ou illisible.
    """
    path = Path(filepath)
    if not path.exists():
        raise ExcelFileError(f"Fichier introuvable: {path}")
    if _is_csv(path):
        return ["(données)"]
    try:
        xl = pd.ExcelFile(path, engine="openpyxl")
        return list(xl.sheet_names)  # type: ignore[arg-type]
    except Exception as e:
        raise ExcelFileError(f"Impossible de lire le fichier {path}: {e}") from e


def load_sheet(
    filepath: str | Path,
    sheet_name: str | None = None,
    *,
    dtype: type | dict[str, type] | None = None,
) -> pd.DataFrame:
    """
    Charge une feuille (xlsx) ou un CSV dans un DataFrame en préservant le texte.

    Args:
        filepath: Chemin vers le fichier.
        sheet_name: Nom de la feuille (None = première). Ignoré pour CSV.
        dtype: Types de colonnes (None = str pour tout).

    Returns:
        DataFrame chargé.

    Raises:
        ExcelFileError: Si le fichier est absent, illisible ou si la feuille n'existe pas.
    """
    path = Path(filepath)
    if not path.exists():
        raise ExcelFileError(f"Fichier introuvable: {path}")
    if dtype is None:
        dtype = str  # Préserver texte par défaut

    if _is_csv(path):
        for encoding in ("utf-8", "latin-1"):
            try:
                sep = _detect_csv_delimiter(path, encoding) or ","
                return pd.read_csv(path, dtype=dtype, encoding=encoding, sep=sep)
            except UnicodeDecodeError:
                continue
            except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
                raise ExcelFileError(f"Erreur CSV {path}: {e}") from e
        raise ExcelFileError(f"Encodage non reconnu: {path}")

    try:
        xl = pd.ExcelFile(path, engine="openpyxl")
    except Exception as e:
        raise ExcelFileError(f"Impossible de lire le fichier {path}: {e}") from e
    if sheet_name is None:
        sheet_name = xl.sheet_names[0]  # type: ignore[assignment]
    elif sheet_name not in xl.sheet_names:
        raise ExcelFileError(f"Feuille '{sheet_name}' introuvable dans {path}. Feuilles: {xl.sheet_names}")
    return pd.read_excel(xl, sheet_name=sheet_name, dtype=dtype)  # type: ignore[return-value]


def load_records(filepath: str | Path, sheet_name: str | None = None) -> list[dict[str, Any]]:
    """Charge un fichier en liste d'enregistrements ; les cellules vides deviennent None."""
    df = load_sheet(filepath, sheet_name)
    return [
        {k: (None if is_missing(v) else v) for k, v in row.items()}
        for row in df.to_dict(orient="records")
    ]


def save_xlsx(filepath: str | Path, dataframes: dict[str, pd.DataFrame]) -> None:
    """
    Sauvegarde plusieurs DataFrames dans un fichier xlsx (une feuille par DataFrame).

    Args:
        filepath: Chemin de sortie.
        dataframes: Dict {nom_feuille: DataFrame}, dans l'ordre des feuilles.
    """
    with pd.ExcelWriter(filepath, engine="openpyxl") as writer:
        for sheet_name, df in dataframes.items():
            # Excel limite les noms de feuille à 31 caractères
            df.to_excel(writer, sheet_name=str(sheet_name)[:31], index=False)
