"""Crée un fichier Excel de contacts avec doublons pour la démonstration de Dedoublon."""

import pandas as pd
from pathlib import Path

DATA_DIR = Path(__file__).parent / "data"
DATA_DIR.mkdir(exist_ok=True)

contacts = pd.DataFrame({
    "name": ["Jean Dupont", "Marie Martin", "Jean Dupond", "Pierre Bernard", "MARIE MARTIN", "Luc Leroy"],
    "email": [
        "jean.dupont@example.org",
        "marie.martin@example.org",
        "jean.dupont@example.org",
        "p.bernard@example.org",
        "marie.martin@example.org",
        "",
    ],
    "city": ["Lyon", "Paris", "Lyon", "Nantes", "Paris", "Lille"],
    "phone": ["", "01 23 45 67 89", "04 78 00 00 00", "", "", "03 20 00 00 00"],
    "updated_at": ["2023-01-10", "2022-06-01", "2024-03-15", "2021-11-30", "2023-09-12", "2020-02-02"],
})

contacts.to_excel(DATA_DIR / "contacts.xlsx", index=False, engine="openpyxl")
print(f"Fichier créé dans {DATA_DIR}")
