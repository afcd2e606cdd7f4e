"""Extract hardcoded Chinese text from a Vue project into an i18n dictionary.

Usage:
    vue-i18n-extract
    vue-i18n-extract path/to/project --dry-run
    vue-i18n-extract --key-strategy hash --export-csv
    vue-i18n-extract --scan --report i18n.scan.md
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from . import __version__
from .config import ExtractConfig, load_config
from .errors import ConfigError
from .processor import display_path, run_extraction
from .scan import scan_directory, to_markdown

MAX_LISTED = 20


def print_truncated(items: Sequence[str], prefix: str = "- ") -> None:
    for item in items[:MAX_LISTED]:
        print(f"{prefix}{item}")
    if len(items) > MAX_LISTED:
        print(f"... and {len(items) - MAX_LISTED} more")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vue-i18n-extract",
        description="Rewrite hardcoded Chinese text in .vue/.js/.ts files into $t()/t() calls.",
    )
    parser.add_argument(
        "target",
        nargs="?",
        type=Path,
        default=Path("."),
        help="Project directory (or a path inside it). Default: current directory.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to i18n.config.json. Default: searched upwards from target.",
    )
    parser.add_argument(
        "--scan",
        action="store_true",
        help="Only list lines with untranslated text; nothing is rewritten.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without writing any file.",
    )
    parser.add_argument(
        "--key-strategy",
        choices=["increment", "prefix_increment", "hash"],
        default=None,
        help="Key generation strategy. Default: from config (increment).",
    )
    parser.add_argument("--source-dir", type=Path, default=None, help="Directory to process.")
    parser.add_argument(
        "--output-json",
        type=Path,
        default=None,
        help="Resource dictionary path. Default: from config (locales/zh.json).",
    )
    parser.add_argument(
        "--export-csv",
        action="store_true",
        default=None,
        help="Also export the dictionary as a translator CSV sheet.",
    )
    parser.add_argument(
        "--report",
        type=Path,
        default=None,
        help="With --scan: write the markdown report here as well.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def overrides_from_args(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if args.key_strategy:
        overrides["key_strategy"] = args.key_strategy
    if args.source_dir is not None:
        overrides["source_dir"] = str(args.source_dir.resolve())
    if args.output_json is not None:
        overrides["output"] = {"json": str(args.output_json.resolve())}
    if args.export_csv:
        overrides["export_csv"] = True
    return overrides


def run_scan(config: ExtractConfig, report_path: Path | None) -> int:
    findings, errors = scan_directory(
        config.source_dir, config.extensions, config.exclude_dirs
    )
    for finding in findings[:MAX_LISTED]:
        label = display_path(finding.path, config.project_root)
        print(f"[todo] {label}:{finding.line} {finding.snippet}")
    if len(findings) > MAX_LISTED:
        print(f"... and {len(findings) - MAX_LISTED} more")

    if report_path is not None:
        report_path = report_path.resolve()
        report_path.parent.mkdir(parents=True, exist_ok=True)
        report_path.write_text(to_markdown(findings, config.source_dir), encoding="utf-8")

    print(f"Untranslated lines: {len(findings)}")
    if report_path is not None:
        print(f"Report: {report_path}")
    if errors:
        print(f"Warnings: {len(errors)} file(s) could not be read")
        print_truncated(errors)
    return 0


def run_extract(config: ExtractConfig, dry_run: bool) -> int:
    report = run_extraction(config, dry_run=dry_run)
    root = config.project_root

    tag = "would update" if dry_run else "updated"
    for result in report.changed:
        print(f"[{tag}] {display_path(result.path, root)} ({result.edits})")
    for result in report.failed:
        print(f"[skipped] {display_path(result.path, root)}: {result.error}")
    manual = report.diagnostics
    for line in manual[:MAX_LISTED]:
        print(f"[manual] {line}")
    if len(manual) > MAX_LISTED:
        print(f"... and {len(manual) - MAX_LISTED} more")

    print(f"Scanned files: {len(report.results)}")
    print(f"Changed files: {len(report.changed)}")
    print(f"New keys: {len(report.new_entries)}")
    print(f"Manual review: {len(manual)}")
    if report.dictionary_path is not None:
        print(f"Dictionary: {report.dictionary_path}")
    if report.csv_path is not None:
        print(f"CSV: {report.csv_path}")
    if dry_run:
        print("Dry run: no files were written.")
    if report.failed:
        print(f"Failed files: {len(report.failed)}")
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.target, args.config, overrides_from_args(args))
        if args.scan:
            if not config.source_dir.is_dir():
                raise ConfigError(f"Source directory not found: {config.source_dir}")
            return run_scan(config, args.report)
        return run_extract(config, args.dry_run)
    except ConfigError as exc:
        raise SystemExit(f"error: {exc}") from exc


if __name__ == "__main__":
    raise SystemExit(main())
