"""Interface en ligne de commande Dedoublon."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

from dedoublon import __version__
from dedoublon.config import Config, ConfigError, DedoublonError, MatchRule
from dedoublon.io_excel import list_sheets, load_records, save_xlsx
from dedoublon.matching import MatchingEngine
from dedoublon.report import build_clusters_df, build_pairs_df, build_report_df, print_report_console


def _load(config_path: str, input_path: str | None, rule_id: str | None) -> tuple[Config, MatchRule, list[dict]]:
    config = Config.load(config_path)
    rule = config.get_rule(rule_id)
    input_file = input_path or config.input_file
    if not input_file:
        raise ConfigError("input_file requis (dans la config ou via --input)")
    records = load_records(input_file, config.sheet)
    return config, rule, records


def _warn_missing_columns(rule: MatchRule, records: list[dict]) -> None:
    """Avertit si des champs de la règle ne sont pas des colonnes du fichier."""
    if not records:
        return
    columns = set(records[0])
    wanted = [f.name for f in rule.fields] + list(rule.blocking_fields)
    missing = [c for c in dict.fromkeys(wanted) if c not in columns]
    if missing:
        print(f"Avertissement: colonnes absentes (valeurs vides): {', '.join(missing)}")


def _write_output(output_path: str, main_sheet: str, main_df: pd.DataFrame, sheets: dict[str, pd.DataFrame]) -> None:
    """xlsx : une feuille par tableau ; csv : le tableau principal seul."""
    if Path(output_path).suffix.lower() == ".csv":
        main_df.to_csv(output_path, index=False, encoding="utf-8")
    else:
        save_xlsx(output_path, {main_sheet: main_df, **sheets})
    print(f"Fichier de sortie: {output_path}")


def cmd_list_sheets(filepath: str) -> int:
    """Liste les feuilles d'un fichier xlsx."""
    sheets = list_sheets(filepath)
    print(f"Feuilles dans {filepath}:")
    for s in sheets:
        print(f"  - {s}")
    return 0


def cmd_rules(config_path: str) -> int:
    """Liste les règles d'une configuration."""
    config = Config.load(config_path)
    default_id = config.get_rule().id
    print(f"Règles dans {config_path}:")
    for r in config.rules:
        marker = " (défaut)" if r.id == default_id else ""
        state = "" if r.enabled else " [désactivée]"
        fields = ", ".join(f"{f.name}:{f.algorithm.value}" for f in r.fields)
        print(f"  - {r.id}{marker}{state}: {r.name} seuil={r.overall_threshold} [{fields}]")
    return 0


def cmd_match(
    config_path: str,
    output_path: str | None,
    *,
    input_path: str | None = None,
    rule_id: str | None = None,
) -> int:
    """Recherche les paires de doublons et écrit éventuellement le détail."""
    _, rule, records = _load(config_path, input_path, rule_id)
    _warn_missing_columns(rule, records)

    engine = MatchingEngine(rules=[rule])
    result = engine.find_matches(records, rule.id)
    print_report_console(result)

    if output_path:
        _write_output(
            output_path,
            "Pairs",
            build_pairs_df(result),
            {
                "Clusters": build_clusters_df(result.clusters),
                "REPORT": build_report_df(result, rule),
            },
        )
    return 0


def cmd_dedupe(
    config_path: str,
    output_path: str | None,
    *,
    input_path: str | None = None,
    rule_id: str | None = None,
    dry_run: bool = False,
) -> int:
    """Dédoublonne le fichier d'entrée et écrit les enregistrements survivants."""
    _, rule, records = _load(config_path, input_path, rule_id)
    _warn_missing_columns(rule, records)

    engine = MatchingEngine(rules=[rule])
    result = engine.deduplicate(records, rule.id)
    print_report_console(result)

    if dry_run:
        print("Mode dry-run: pas d'écriture du fichier de sortie.")
        return 0

    if not output_path:
        print("Erreur: --output requis en mode non dry-run.")
        return 1

    _write_output(
        output_path,
        "Survivors",
        pd.DataFrame(result.survivor_records),
        {
            "Clusters": build_clusters_df(result.clusters),
            "REPORT": build_report_df(result, rule),
        },
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="dedoublon",
        description="Rapprochement probabiliste et dédoublonnage d'enregistrements (Excel, CSV)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Journalisation détaillée")

    subparsers = parser.add_subparsers(dest="command", help="Commandes")

    # list-sheets
    p_list = subparsers.add_parser("list-sheets", help="Lister les feuilles d'un xlsx")
    p_list.add_argument("file", help="Fichier xlsx ou csv")

    # rules
    p_rules = subparsers.add_parser("rules", help="Lister les règles d'une configuration")
    p_rules.add_argument("--config", "-c", required=True, help="Fichier config JSON")

    # match
    p_match = subparsers.add_parser("match", help="Rechercher les paires de doublons")
    p_match.add_argument("--config", "-c", required=True, help="Fichier config JSON")
    p_match.add_argument("--input", help="Fichier d'entrée (remplace input_file)")
    p_match.add_argument("--rule", "-r", help="Id de la règle (défaut: default_rule)")
    p_match.add_argument("--output", "-o", help="Fichier de sortie (xlsx ou csv)")

    # dedupe
    p_dedupe = subparsers.add_parser("dedupe", help="Dédoublonner le fichier d'entrée")
    p_dedupe.add_argument("--config", "-c", required=True, help="Fichier config JSON")
    p_dedupe.add_argument("--input", help="Fichier d'entrée (remplace input_file)")
    p_dedupe.add_argument("--rule", "-r", help="Id de la règle (défaut: default_rule)")
    p_dedupe.add_argument("--output", "-o", help="Fichier de sortie (xlsx ou csv)")
    p_dedupe.add_argument("--dry-run", action="store_true", help="Ne pas écrire le fichier de sortie")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "list-sheets":
            return cmd_list_sheets(args.file)

        if args.command == "rules":
            return cmd_rules(args.config)

        if args.command == "match":
            return cmd_match(args.config, args.output, input_path=args.input, rule_id=args.rule)

        if args.command == "dedupe":
            if not args.dry_run and not args.output:
                parser.error("--output requis sauf en --dry-run")
            return cmd_dedupe(
                args.config,
                args.output,
                input_path=args.input,
                rule_id=args.rule,
                dry_run=args.dry_run,
            )
    except DedoublonError as e:
        print(f"Erreur: {e}")
        return 1

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
