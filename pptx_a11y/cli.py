#!/usr/bin/env python3
"""
PPTX → PDF/UA Konverter - CLI
=============================

Usage:
    pptx-a11y convert presentation.pptx
    pptx-a11y convert presentation.pptx -o output.pdf --profile strict
    pptx-a11y convert presentation.pptx --ai
    pptx-a11y validate presentation.pptx --strict
    pptx-a11y inspect presentation.pptx
    pptx-a11y check document.pdf
    pptx-a11y profiles
"""

import argparse
import json
import logging
import os
import sys
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from .autofix import AutoFixer
from .enricher import Enricher, EnricherConfig, EnhancementResult, OllamaClient
from .errors import MalformedPackageError, RenderError
from .models import ElementType, IssueType, Presentation
from .parser import ParserConfig, PPTXParser
from .pdfcheck import inspect_pdf
from .profiles import PROFILES, ConversionProfile, get_profile
from .report import AccessibilityReport
from .tagging import StructureNode
from .validator import AccessibilityValidator


logger = logging.getLogger(__name__)


@dataclass
class ConversionResult:
    """Ergebnis eines Pipeline-Durchlaufs."""
    presentation: Presentation
    report: AccessibilityReport
    pdf_bytes: Optional[bytes] = None
    structure: Optional[StructureNode] = None
    enhancement: Optional[EnhancementResult] = None
    fixes: list[str] = field(default_factory=list)

    @property
    def enhancement_stats(self) -> Optional[dict]:
        if self.enhancement is None:
            return None
        return self.enhancement.stats.to_dict()

    def to_dict(self) -> dict:
        data = {
            "report": self.report.to_dict(),
            "fixes": list(self.fixes),
            "pdfBytes": len(self.pdf_bytes) if self.pdf_bytes is not None else None,
        }
        if self.enhancement is not None:
            data["enhancement"] = {
                "stats": self.enhancement.stats.to_dict(),
                "enhancements": [e.to_dict() for e in self.enhancement.enhancements],
                "errors": list(self.enhancement.errors),
            }
        return data


class Pipeline:
    """
    Hauptpipeline für die Konvertierung.

    PPTX → Parse → (Enrich) → Validate → Auto-Fix → Generate

    Der Enricher ist optional und wird explizit übergeben.
    Ist Ollama nicht erreichbar, läuft die Pipeline mit dem
    unveränderten Modell weiter.
    """

    def __init__(
        self,
        profile: Optional[ConversionProfile] = None,
        enricher: Optional[Enricher] = None,
        parser_config: Optional[ParserConfig] = None,
        renderer_config=None,
    ):
        self.profile = profile or get_profile()
        self.enricher = enricher
        self.parser = PPTXParser(parser_config)
        self.validator = AccessibilityValidator(self.profile)
        self.renderer_config = renderer_config

    def run(
        self,
        data: bytes | Path | str,
        title: Optional[str] = None,
        language: Optional[str] = None,
        validate_only: bool = False,
        timestamp: Optional[datetime] = None,
    ) -> ConversionResult:
        """
        Führt die komplette Konvertierung durch.

        Raises:
            MalformedPackageError: Eingabe ist kein gültiges PPTX
            RenderError: PDF-Erzeugung fehlgeschlagen
        """
        presentation = self.parser.parse(data)
        apply_overrides(presentation, title=title, language=language)

        enhancement = None
        if self.enricher is not None:
            enhancement = self.enricher.enhance(presentation)
            presentation = enhancement.presentation
            for error in enhancement.errors:
                logger.warning("KI-Anreicherung: %s", error)

        report = self.validator.validate(presentation, timestamp)
        result = ConversionResult(presentation, report, enhancement=enhancement)
        if validate_only:
            return result

        fixer = AutoFixer(self.profile)
        fixed = fixer.fix(presentation)
        result.fixes = list(fixer.applied)

        # WeasyPrint erst laden, wenn wirklich gerendert wird
        from .renderer import TaggedDocumentGenerator

        generator = TaggedDocumentGenerator(self.renderer_config)
        result.pdf_bytes, result.structure = generator.generate_with_structure(fixed, self.profile)
        return result


def apply_overrides(presentation: Presentation, title: Optional[str] = None, language: Optional[str] = None):
    """Titel/Sprache vom Aufrufer übernehmen; zugehörige Parser-Befunde entfallen."""
    if title and title.strip():
        presentation.metadata.title = title.strip()
        presentation.issues = [
            i for i in presentation.issues if i.type != IssueType.MISSING_DOCUMENT_TITLE
        ]
    if language and language.strip():
        presentation.metadata.language = language.strip()
        presentation.issues = [
            i for i in presentation.issues if i.type != IssueType.MISSING_LANGUAGE
        ]


def write_atomic(path: Path, data: bytes):
    """Schreibt über eine temporäre Datei; nie halb geschriebene Ausgabe."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def report_path_for(output_pdf: Path) -> Path:
    return output_pdf.with_name(f"{output_pdf.stem}.report.json")


def _build_enricher(args) -> Optional[Enricher]:
    if not args.ai:
        return None
    config = EnricherConfig(
        ollama_url=args.ollama_url,
        vision_model=args.model,
        text_model=args.text_model,
        language=args.lang or "de",
    )
    return Enricher(OllamaClient(config), config)


def _build_renderer_config(args):
    from .renderer import RendererConfig

    return RendererConfig(font_files=[Path(f) for f in args.font or []])


def cmd_convert(args):
    """Convert-Befehl."""
    input_path = Path(args.input)

    if not input_path.exists():
        print(f"❌ Datei nicht gefunden: {input_path}")
        return 1

    output_path = Path(args.output) if args.output else input_path.with_suffix(".pdf")
    profile = get_profile(args.profile)

    if not args.quiet:
        print(f"\n{'='*60}")
        print("🔄 PPTX → PDF/UA Konverter")
        print(f"{'='*60}")
        print(f"\n📂 Eingabe: {input_path.name}")
        print(f"⚙️  Profil: {profile.name}")

    pipeline = Pipeline(
        profile=profile,
        enricher=_build_enricher(args),
        parser_config=ParserConfig(default_language=args.lang or "de"),
        renderer_config=_build_renderer_config(args),
    )
    result = pipeline.run(input_path, title=args.title, language=args.lang)

    write_atomic(output_path, result.pdf_bytes)
    report_path = report_path_for(output_path)
    write_atomic(report_path, json.dumps(result.to_dict(), indent=2, ensure_ascii=False).encode("utf-8"))

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    elif not args.quiet:
        stats = result.enhancement_stats
        if stats is not None:
            print(f"\n🤖 KI: {stats['altTextsGenerated']} Alt-Texte, {stats['titlesGenerated']} Titel")
        for fix in result.fixes:
            print(f"   🔧 {fix}")
        print()
        print(result.report.render_text(args.report_lang))
        print(f"\n{'='*60}")
        print("✅ Konvertierung abgeschlossen!")
        print(f"📁 Ausgabe: {output_path}")
        print(f"📋 Bericht: {report_path}")
        print(f"{'='*60}\n")

    return 0


def cmd_validate(args):
    """Validate-Befehl - prüft eine PPTX ohne PDF-Erzeugung."""
    input_path = Path(args.input)

    if not input_path.exists():
        print(f"❌ Datei nicht gefunden: {input_path}")
        return 1

    pipeline = Pipeline(
        profile=get_profile(args.profile),
        parser_config=ParserConfig(default_language=args.lang or "de"),
    )
    result = pipeline.run(input_path, language=args.lang, validate_only=True)
    report = result.report

    if args.json:
        print(report.to_json())
    else:
        print(report.render_text(args.report_lang))

    if args.strict and report.summary.errors:
        return 1
    return 0


_ICONS = {
    ElementType.TITLE: "📌",
    ElementType.SUBTITLE: "📌",
    ElementType.BODY: "📝",
    ElementType.TEXTBOX: "📝",
    ElementType.LIST: "📋",
    ElementType.TABLE: "📊",
    ElementType.CHART: "📈",
    ElementType.IMAGE: "🖼️",
    ElementType.SMARTART: "🔷",
}


def cmd_inspect(args):
    """Inspect-Befehl - zeigt Struktur einer PPTX."""
    input_path = Path(args.input)

    if not input_path.exists():
        print(f"❌ Datei nicht gefunden: {input_path}")
        return 1

    model = PPTXParser().parse(input_path)
    meta = model.metadata
    stats = model.stats

    print(f"\n📊 PPTX Struktur: {input_path.name}")
    print("="*60)
    print(f"Titel: {meta.title or '(kein Titel)'}")
    print(f"Autor: {meta.author or '(kein Autor)'}")
    print(f"Sprache: {meta.language}")
    print(f"Folien: {model.slide_count}")
    print(f"Bilder: {stats.images_with_alt_text + stats.images_without_alt_text + stats.decorative_images}")
    print(f"  - Ohne Alt-Text: {stats.images_without_alt_text}")
    print(f"  - Dekorativ: {stats.decorative_images}")

    print("\n📑 Folien:")
    for slide in model.slides:
        print(f"\n  Folie {slide.number}: {slide.title or '(ohne Titel)'}"
              f"  [{slide.layout.name}, Lesereihenfolge {slide.reading_order_confidence:.0%}]")
        for element in slide.ordered_elements:
            icon = _ICONS.get(element.type, "▪️")
            text = element.text or element.content.alt_text or ""
            preview = text[:50] + "..." if len(text) > 50 else text
            preview = preview.replace("\n", " ")
            print(f"    {icon} {element.type.value}: {preview}")
        for element in slide.background_elements:
            print(f"    ⬜ {element.type.value} (dekorativ)")

    print("\n" + "="*60)
    return 0


def cmd_check(args):
    """Check-Befehl - prüft ein erzeugtes PDF."""
    pdf_path = Path(args.input)

    if not pdf_path.exists():
        print(f"❌ Datei nicht gefunden: {pdf_path}")
        return 1

    result = inspect_pdf(pdf_path)

    if args.json:
        data = {
            "compliant": result.is_compliant,
            "tagged": result.is_tagged,
            "language": result.language,
            "title": result.title,
            "pages": result.page_count,
            "bookmarks": result.outline_titles,
            "figures": result.figure_count,
            "figures_without_alt": result.figures_without_alt,
            "issues": [
                {
                    "rule_id": f.rule_id,
                    "severity": f.severity,
                    "message": f.message,
                    "clause": f.clause,
                }
                for f in result.findings
            ],
        }
        print(json.dumps(data, indent=2, ensure_ascii=False))
    else:
        print(f"\n📄 {pdf_path.name} ({result.pdf_version}, {result.page_count} Seiten)")
        print(result.summary())
        for finding in result.findings:
            icon = "❌" if finding.is_error else "⚠️ "
            print(f"   {icon} [{finding.clause}] {finding.message}")

    return 0 if result.is_compliant else 1


def cmd_profiles(args):
    """Profiles-Befehl - listet die Profile."""
    if args.json:
        print(json.dumps([p.to_dict() for p in PROFILES.values()], indent=2, ensure_ascii=False))
        return 0
    for profile in PROFILES.values():
        print(f"⚙️  {profile.id:<10} {profile.name}: {profile.description}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pptx-a11y",
        description="PPTX zu PDF/UA Konverter mit Barrierefreiheitsbericht (WCAG 2.1 / BITV 2.0)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Beispiele:
  pptx-a11y convert praesentation.pptx
  pptx-a11y convert praesentation.pptx -o output.pdf --profile strict
  pptx-a11y validate praesentation.pptx --strict
  pptx-a11y check output.pdf
        """
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug-Logging")

    subparsers = parser.add_subparsers(dest="command", help="Verfügbare Befehle")
    profile_names = sorted(PROFILES)

    # Convert
    convert_parser = subparsers.add_parser("convert", help="PPTX zu PDF/UA konvertieren")
    convert_parser.add_argument("input", help="Eingabe PPTX-Datei")
    convert_parser.add_argument("-o", "--output", help="Ausgabe PDF-Datei")
    convert_parser.add_argument("--profile", default="standard", choices=profile_names, help="Konvertierungsprofil")
    convert_parser.add_argument("--lang", help="Dokumentsprache (überschreibt PPTX)")
    convert_parser.add_argument("--title", help="Dokumenttitel (überschreibt PPTX)")
    convert_parser.add_argument("--ai", action="store_true", help="KI Alt-Texte und Titel via Ollama")
    convert_parser.add_argument("--model", default="llava:13b", help="Vision-Modell (Ollama)")
    convert_parser.add_argument("--text-model", default="llama3.2:3b", help="Text-Modell (Ollama)")
    convert_parser.add_argument("--ollama-url", default="http://localhost:11434", help="Ollama URL")
    convert_parser.add_argument("--font", action="append", help="Schriftdatei einbetten (mehrfach möglich)")
    convert_parser.add_argument("--report-lang", default="de", choices=["de", "en"], help="Sprache des Berichts")
    convert_parser.add_argument("-q", "--quiet", action="store_true", help="Keine Ausgabe")
    convert_parser.add_argument("--json", action="store_true", help="JSON Output")

    # Validate
    validate_parser = subparsers.add_parser("validate", help="PPTX auf Barrierefreiheit prüfen")
    validate_parser.add_argument("input", help="PPTX-Datei")
    validate_parser.add_argument("--profile", default="standard", choices=profile_names, help="Konvertierungsprofil")
    validate_parser.add_argument("--lang", help="Dokumentsprache (überschreibt PPTX)")
    validate_parser.add_argument("--report-lang", default="de", choices=["de", "en"], help="Sprache des Berichts")
    validate_parser.add_argument("--strict", action="store_true", help="Exit-Code 1 bei Fehlern")
    validate_parser.add_argument("--json", action="store_true", help="JSON Output")

    # Inspect
    inspect_parser = subparsers.add_parser("inspect", help="PPTX Struktur anzeigen")
    inspect_parser.add_argument("input", help="PPTX-Datei")

    # Check
    check_parser = subparsers.add_parser("check", help="Erzeugtes PDF prüfen")
    check_parser.add_argument("input", help="PDF-Datei")
    check_parser.add_argument("--json", action="store_true", help="JSON Output")

    # Profiles
    profiles_parser = subparsers.add_parser("profiles", help="Konvertierungsprofile anzeigen")
    profiles_parser.add_argument("--json", action="store_true", help="JSON Output")

    return parser


_COMMANDS = {
    "convert": cmd_convert,
    "validate": cmd_validate,
    "inspect": cmd_inspect,
    "check": cmd_check,
    "profiles": cmd_profiles,
}


def main(argv: Optional[list[str]] = None) -> int:
    """CLI Haupteinstiegspunkt."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    command = _COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 0

    try:
        return command(args)
    except (MalformedPackageError, RenderError) as e:
        print(f"❌ {e.message_de}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
