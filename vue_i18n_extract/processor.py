from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .config import ExtractConfig, module_prefix_for
from .edits import Edit, apply_edits, resolve_overlaps
from .errors import ConfigError, Diagnostic, ParseError, line_col
from .export import export_csv
from .key_store import KeyStore
from .resources import load_dictionary, save_dictionary
from .script_rewriter import ScriptRewriter, lang_for_suffix
from .sfc import parse_sfc
from .template_rewriter import TemplateRewriter

SCRIPT_LANGS = {"ts", "tsx"}


@dataclass
class FileResult:
    path: Path
    module: str
    edits: int = 0
    diagnostics: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def changed(self) -> bool:
        return self.error is None and self.edits > 0


@dataclass
class ExtractionReport:
    results: list[FileResult]
    new_entries: dict[str, str]
    dictionary_path: Path | None = None
    csv_path: Path | None = None

    @property
    def changed(self) -> list[FileResult]:
        return [r for r in self.results if r.changed]

    @property
    def failed(self) -> list[FileResult]:
        return [r for r in self.results if r.error is not None]

    @property
    def diagnostics(self) -> list[str]:
        return [d for r in self.results for d in r.diagnostics]


def display_path(path: Path, root: Path) -> str:
    try:
        return path.resolve().relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def format_diagnostic(label: str, source: str, diagnostic: Diagnostic) -> str:
    line, col = line_col(source, diagnostic.offset)
    snippet = " ".join(diagnostic.snippet.split())
    if len(snippet) > 80:
        snippet = f"{snippet[:77]}..."
    if not snippet:
        return f"{label}:{line}:{col} {diagnostic.message}"
    return f"{label}:{line}:{col} {diagnostic.message}: {snippet}"


def collect_files(
    root: Path,
    extensions: Iterable[str],
    exclude_dirs: Iterable[str] = (),
) -> list[Path]:
    wanted = {e.lower() for e in extensions}
    excluded = {d.lower() for d in exclude_dirs}
    files: list[Path] = []
    for path in root.rglob("*"):
        if not path.is_file():
            continue
        if path.suffix.lower() not in wanted:
            continue
        rel = path.relative_to(root)
        if any(part.lower() in excluded for part in rel.parts[:-1]):
            continue
        if path.name.lower().endswith(".min.js"):
            continue
        files.append(path)
    files.sort()
    return files


def vue_files_first(files: Iterable[Path]) -> list[Path]:
    files = list(files)
    vue = [p for p in files if p.suffix.lower() == ".vue"]
    scripts = [p for p in files if p.suffix.lower() != ".vue"]
    return vue + scripts


def read_source(path: Path) -> str:
    # Bytes in, bytes out: line endings must survive untouched.
    return path.read_bytes().decode("utf-8")


def write_source(path: Path, text: str) -> None:
    path.write_bytes(text.encode("utf-8"))


class Extractor:
    """Runs the template and script rewriters over files, one at a time."""

    def __init__(self, store: KeyStore, config: ExtractConfig) -> None:
        self.store = store
        self.config = config
        self.template = TemplateRewriter(store)
        self.script = ScriptRewriter(store)

    def rewrite_vue(self, source: str, module: str) -> tuple[str, int, list[Diagnostic]]:
        descriptor = parse_sfc(source)
        lang = descriptor.script_lang
        edits: list[Edit] = []
        diagnostics: list[Diagnostic] = []

        block = descriptor.template
        if block is not None and block.lang not in (None, "html"):
            diagnostics.append(
                Diagnostic(
                    block.start,
                    f"Template lang '{block.lang}' is not supported, left untouched",
                    "",
                )
            )
        elif block is not None:
            found, notes = self.template.collect_edits(
                source, module, start=block.start, end=block.end, lang=lang
            )
            edits.extend(found)
            diagnostics.extend(notes)

        for script in descriptor.scripts:
            if script.attrs.get("src"):
                continue
            script_lang = script.lang if script.lang in SCRIPT_LANGS else "js"
            found, notes = self.script.collect_edits(
                source, module, start=script.start, end=script.end, lang=script_lang
            )
            edits.extend(found)
            diagnostics.extend(notes)

        ordered = resolve_overlaps(edits)
        return apply_edits(source, ordered), len(ordered), diagnostics

    def rewrite_script(
        self, source: str, module: str, lang: str = "js"
    ) -> tuple[str, int, list[Diagnostic]]:
        edits, diagnostics = self.script.collect_edits(source, module, lang=lang)
        ordered = resolve_overlaps(edits)
        return apply_edits(source, ordered), len(ordered), diagnostics

    def rewrite(self, path: Path, source: str, module: str) -> tuple[str, int, list[Diagnostic]]:
        if path.suffix.lower() == ".vue":
            return self.rewrite_vue(source, module)
        return self.rewrite_script(source, module, lang_for_suffix(path.suffix))

    def process_file(self, path: Path, *, dry_run: bool = False) -> FileResult:
        module = module_prefix_for(path, self.config)
        label = display_path(path, self.config.project_root)
        result = FileResult(path=path, module=module)
        source = ""
        try:
            with self.store.atomic():
                source = read_source(path)
                new_text, count, diagnostics = self.rewrite(path, source, module)
                result.diagnostics = [
                    format_diagnostic(label, source, d) for d in diagnostics
                ]
                if new_text != source:
                    result.edits = count
                    if not dry_run:
                        write_source(path, new_text)
        except ParseError as exc:
            where = ""
            if exc.offset is not None and source:
                line, col = line_col(source, exc.offset)
                where = f"{line}:{col}: "
            result.error = f"{where}{exc}"
        except Exception as exc:  # noqa: BLE001
            result.error = f"{type(exc).__name__}: {exc}"
        return result


def run_extraction(
    config: ExtractConfig,
    *,
    dry_run: bool = False,
    files: Iterable[Path] | None = None,
) -> ExtractionReport:
    if not config.source_dir.is_dir():
        raise ConfigError(f"Source directory not found: {config.source_dir}")

    dictionary: dict[str, Any] = load_dictionary(config.output_json)
    store = KeyStore(dictionary, strategy=config.key_strategy)
    extractor = Extractor(store, config)

    if files is None:
        files = collect_files(config.source_dir, config.extensions, config.exclude_dirs)
    results = [extractor.process_file(path, dry_run=dry_run) for path in vue_files_first(files)]

    report = ExtractionReport(results=results, new_entries=store.extracted)
    if dry_run:
        return report

    merged = dictionary
    if report.new_entries:
        merged = save_dictionary(config.output_json, report.new_entries)
        report.dictionary_path = config.output_json
    if config.export_csv:
        export_csv(merged, config.output_csv, config.languages)
        report.csv_path = config.output_csv
    return report
