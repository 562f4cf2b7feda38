"""
PDF/UA Ausgabeprüfung
=====================
Prüft grundlegende PDF/UA-1 Anforderungen eines erzeugten PDFs mit pikepdf.

Ersetzt keinen vollständigen Validator wie veraPDF, deckt aber die
Katalog-Voraussetzungen ab, die der Generator selbst setzt.
"""

from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Optional

import pikepdf

from .structtree import figures_without_alt, iter_struct_elements


@dataclass
class CheckFinding:
    """Ein einzelnes Prüfergebnis."""
    rule_id: str
    severity: str  # error, warning
    message: str
    clause: str
    test: str

    @property
    def is_error(self) -> bool:
        return self.severity == "error"


@dataclass
class OutputCheck:
    """Ergebnis der Ausgabeprüfung."""
    is_tagged: bool = False
    has_struct_tree: bool = False
    language: Optional[str] = None
    title: Optional[str] = None
    xmp_title: Optional[str] = None
    display_doc_title: bool = False
    pdfua_part: Optional[str] = None
    page_count: int = 0
    outline_titles: list[str] = field(default_factory=list)
    figure_count: int = 0
    figures_without_alt: int = 0
    pdf_version: str = ""
    findings: list[CheckFinding] = field(default_factory=list)

    @property
    def errors(self) -> list[CheckFinding]:
        return [f for f in self.findings if f.is_error]

    @property
    def warnings(self) -> list[CheckFinding]:
        return [f for f in self.findings if not f.is_error]

    @property
    def is_compliant(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        """Kurze Zusammenfassung."""
        status = "✅ VALIDE" if self.is_compliant else "❌ NICHT VALIDE"
        return f"{status} | Fehler: {len(self.errors)} | Warnungen: {len(self.warnings)}"


def inspect_pdf(source: bytes | Path | str) -> OutputCheck:
    """
    Liest die PDF/UA-relevanten Katalog-Einträge.

    Raises:
        pikepdf.PdfError: Datei ist kein lesbares PDF
    """
    if isinstance(source, (str, Path)):
        data = Path(source).read_bytes()
    else:
        data = source

    result = OutputCheck()
    with pikepdf.open(BytesIO(data)) as pdf:
        root = pdf.Root
        result.pdf_version = f"PDF {pdf.pdf_version}"
        result.page_count = len(pdf.pages)

        # 1. Getaggt?
        if "/MarkInfo" in root:
            result.is_tagged = bool(root.MarkInfo.get("/Marked", False))
        result.has_struct_tree = "/StructTreeRoot" in root

        # 2. Sprache
        if "/Lang" in root:
            result.language = str(root.Lang)

        # 3. Titel und Anzeige-Einstellung
        title = pdf.docinfo.get("/Title")
        result.title = str(title) if title else None
        if "/ViewerPreferences" in root:
            result.display_doc_title = bool(root.ViewerPreferences.get("/DisplayDocTitle", False))

        # 4. XMP
        with pdf.open_metadata() as meta:
            result.xmp_title = meta.get("dc:title")
            result.pdfua_part = meta.get("pdfuaid:part")

        # 5. Lesezeichen
        with pdf.open_outline() as outline:
            result.outline_titles = [item.title for item in outline.root]

        # 6. Figures im Strukturbaum
        result.figure_count = sum(1 for elem in iter_struct_elements(pdf) if str(elem.S) == "/Figure")
        result.figures_without_alt = figures_without_alt(pdf)

    result.findings = _findings(result)
    return result


def _findings(result: OutputCheck) -> list[CheckFinding]:
    findings = []
    if not result.is_tagged:
        findings.append(CheckFinding(
            "PDFUA-7.1-MarkInfo", "error",
            "PDF ist nicht als getaggt markiert", "7.1", "MarkInfo.Marked == true",
        ))
    if not result.has_struct_tree:
        findings.append(CheckFinding(
            "PDFUA-7.1-StructTree", "error",
            "PDF hat keinen Strukturbaum", "7.1", "StructTreeRoot exists",
        ))
    if not result.language:
        findings.append(CheckFinding(
            "PDFUA-7.2-Lang", "error",
            "Dokumentsprache nicht definiert", "7.2", "Document.Lang exists",
        ))
    if not result.title:
        findings.append(CheckFinding(
            "PDFUA-7.1-Title", "error",
            "Dokumenttitel nicht definiert", "7.1", "Info.Title exists",
        ))
    if not result.display_doc_title:
        findings.append(CheckFinding(
            "PDFUA-7.1-DisplayDocTitle", "error",
            "ViewerPreferences.DisplayDocTitle fehlt", "7.1", "DisplayDocTitle == true",
        ))
    if result.pdfua_part != "1":
        findings.append(CheckFinding(
            "PDFUA-5-Identifier", "warning",
            "PDF/UA-Kennung in XMP fehlt", "5", "pdfuaid:part == 1",
        ))
    if result.figures_without_alt:
        findings.append(CheckFinding(
            "PDFUA-7.3-Alt", "error",
            f"{result.figures_without_alt} Figure-Element(e) ohne Alternativtext", "7.3", "Figure.Alt exists",
        ))
    return findings
