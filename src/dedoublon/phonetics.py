"""
Encodages phonétiques : Soundex, Metaphone et une variante "double" simplifiée.

Ce sont des heuristiques documentées, pas des implémentations certifiées :
en particulier, double_metaphone réutilise le Metaphone simplifié comme code
primaire et calcule un code alternatif par substitution de quelques lettres,
au lieu de l'algorithme complet de Lawrence Philips. Modifier ces règles change
les résultats de matching sur des données existantes.
"""

from __future__ import annotations

import re

MAX_CODE_LENGTH = 6

_NON_LETTERS_RE = re.compile(r"[^A-Z]")
_VOWELS = frozenset("AEIOU")
_FRONT_VOWELS = frozenset("EIY")
_INITIAL_SILENT = ("AE", "GN", "KN", "PN", "WR")

_SOUNDEX_CODES = {
    letter: digit
    for letters, digit in (
        ("BFPV", "1"),
        ("CGJKQSXZ", "2"),
        ("DT", "3"),
        ("L", "4"),
        ("MN", "5"),
        ("R", "6"),
    )
    for letter in letters
}

# Lettres codées sans regarder le contexte
_METAPHONE_SIMPLE = {
    "B": "B",
    "F": "F",
    "J": "J",
    "L": "L",
    "M": "M",
    "N": "N",
    "Q": "K",
    "R": "R",
    "V": "F",
    "X": "KS",
    "Z": "S",
}

_ALTERNATE_CODES = {
    "B": "B",
    "D": "T",
    "F": "F",
    "H": "H",
    "J": "J",
    "K": "K",
    "L": "L",
    "M": "M",
    "N": "N",
    "P": "P",
    "Q": "K",
    "R": "R",
    "S": "S",
    "T": "T",
    "V": "F",
    "W": "W",
    "Y": "Y",
    "Z": "S",
}


def _ascii_letters(word: str) -> str:
    """Majuscules, lettres A-Z uniquement."""
    return _NON_LETTERS_RE.sub("", word.upper())


def soundex(word: str) -> str:
    """
    Code Soundex sur 4 caractères.

    La première lettre est conservée ; les consonnes suivantes sont codées
    (BFPV=1, CGJKQSXZ=2, DT=3, L=4, MN=5, R=6). Deux codes identiques adjacents
    ne comptent qu'une fois ; une voyelle (ou H, W, Y) entre deux consonnes de
    même code les sépare. Une entrée sans lettre donne "0000".
    """
    letters = _ascii_letters(word)
    if not letters:
        return "0000"

    code = letters[0]
    last = _SOUNDEX_CODES.get(letters[0], "0")
    for ch in letters[1:]:
        if len(code) >= 4:
            break
        digit = _SOUNDEX_CODES.get(ch)
        if digit is None:
            last = "0"
        elif digit != last:
            code += digit
            last = digit

    return (code + "000")[:4]


def metaphone(word: str) -> str:
    """
    Code Metaphone simplifié (squelette consonantique).

    Le codage s'arrête dès 6 caractères ; un X ("KS") codé en sixième
    position peut en donner 7.

    Exemples : "Thompson" -> "0MPSN", "Knight" -> "NT".
    """
    text = _ascii_letters(word)
    if not text:
        return ""

    if text.startswith(_INITIAL_SILENT):
        text = text[1:]
    if text.endswith("MB"):
        text = text[:-1]

    n = len(text)
    code = ""
    i = 0
    while i < n and len(code) < MAX_CODE_LENGTH:
        ch = text[i]
        prev = text[i - 1] if i > 0 else ""
        nxt = text[i + 1] if i + 1 < n else ""
        nxt2 = text[i + 2] if i + 2 < n else ""

        if ch == prev and ch != "C":
            i += 1
            continue

        step = 1
        if ch in _VOWELS:
            if i == 0:
                code += ch
        elif ch == "C":
            if nxt in _FRONT_VOWELS:
                if nxt == "I" and nxt2 == "A":
                    code += "X"
                    step = 3
                else:
                    code += "S"
                    step = 2
            elif nxt == "H":
                code += "X"
                step = 2
            else:
                code += "K"
        elif ch == "D":
            if nxt == "G" and nxt2 in _FRONT_VOWELS:
                code += "J"
                step = 2
            else:
                code += "T"
        elif ch == "G":
            if nxt == "H" and nxt2 and nxt2 not in _VOWELS:
                step = 2  # GH muet devant consonne
            elif nxt == "N" and (i + 2 >= n or (nxt2 == "E" and i + 3 >= n)):
                pass  # GN / GNE final : G muet
            elif prev != "G":
                code += "J" if nxt in _FRONT_VOWELS else "K"
        elif ch == "H":
            # H initial muet ; codé après consonne, devant voyelle ou en finale
            if prev and prev not in _VOWELS and (not nxt or nxt in _VOWELS):
                code += "H"
        elif ch == "K":
            if prev != "C":
                code += "K"
        elif ch == "P":
            if nxt == "H":
                code += "F"
                step = 2
            else:
                code += "P"
        elif ch == "S":
            if nxt == "H" or (nxt == "I" and nxt2 in ("O", "A")):
                code += "X"
                step = 2
            elif nxt == "C" and nxt2 == "H":
                code += "SK"
                step = 3
            else:
                code += "S"
        elif ch == "T":
            if nxt == "H":
                code += "0"
                step = 2
            elif nxt == "I" and nxt2 in ("O", "A"):
                code += "X"
                step = 2
            else:
                code += "T"
        elif ch in ("W", "Y"):
            if nxt in _VOWELS:
                code += ch
        else:
            code += _METAPHONE_SIMPLE.get(ch, "")
        i += step

    return code


def _alternate_code(text: str) -> str:
    """Code alternatif : CH->K, G->K, SH->S, TH->T, X->S, le reste comme le primaire."""
    n = len(text)
    code = ""
    i = 0
    while i < n and len(code) < MAX_CODE_LENGTH:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < n else ""

        step = 1
        if ch == "C":
            if nxt in _FRONT_VOWELS:
                code += "S"
                step = 2
            elif nxt == "H":
                code += "K"
                step = 2
            else:
                code += "K"
        elif ch == "G":
            code += "K"
        elif ch in ("P", "S", "T") and nxt == "H":
            code += "F" if ch == "P" else ch
            step = 2
        elif ch == "X":
            code += "S"
        elif ch in _VOWELS:
            if i == 0:
                code += ch
        else:
            code += _ALTERNATE_CODES.get(ch, "")
        i += step

    return code


def double_metaphone(word: str) -> tuple[str, str]:
    """
    Retourne (primaire, alternatif).

    L'alternatif vaut le primaire quand la variante ne produit aucun code.
    """
    text = _ascii_letters(word)
    if not text:
        return "", ""
    primary = metaphone(text)
    alternate = _alternate_code(text)
    return primary, alternate or primary
