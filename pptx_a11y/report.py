"""
Prüfbericht
===========
Unveränderliches Ergebnis einer Validierung.

Strukturierte Form (to_dict / to_json) und Textform (render_text)
werden aus demselben Objekt abgeleitet und können nicht auseinanderlaufen.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .issues import WCAG_CRITERIA
from .models import AccessibilityIssue, IssueType, PresentationStats, Severity


UNTITLED = "Unbenannt"

# Punktabzug je Schweregrad
SCORE_PENALTIES = {
    Severity.ERROR: 15,
    Severity.WARNING: 5,
    Severity.INFO: 1,
}

# (Issue-Typen, Empfehlung EN, Empfehlung DE) in fester Reihenfolge
RECOMMENDATIONS: tuple[tuple[frozenset, str, str], ...] = (
    (
        frozenset({IssueType.MISSING_ALT_TEXT}),
        "Add alternative text to all meaningful images. "
        "In PowerPoint: Right-click image > Edit Alt Text.",
        "Ergänzen Sie Alternativtext für alle bedeutungstragenden Bilder. "
        "In PowerPoint: Rechtsklick auf das Bild > Alternativtext bearbeiten.",
    ),
    (
        frozenset({IssueType.MISSING_TITLE, IssueType.MISSING_DOCUMENT_TITLE}),
        "Ensure all slides have titles and the document has a title. "
        "This aids navigation with assistive technology.",
        "Stellen Sie sicher, dass alle Folien und das Dokument einen Titel haben. "
        "Das erleichtert die Navigation mit assistiven Technologien.",
    ),
    (
        frozenset({IssueType.TABLE_MISSING_HEADERS}),
        "Mark table headers properly. In PowerPoint: Table Design > Header Row checkbox.",
        "Markieren Sie Tabellenköpfe korrekt. In PowerPoint: Tabellenentwurf > Kopfzeile.",
    ),
    (
        frozenset({IssueType.READING_ORDER_UNCLEAR}),
        "Review reading order using the Selection Pane (Home > Arrange > Selection Pane).",
        "Prüfen Sie die Lesereihenfolge im Auswahlbereich (Start > Anordnen > Auswahlbereich).",
    ),
    (
        frozenset({IssueType.PSEUDO_TABLE}),
        "Convert text boxes arranged as tables into real tables "
        "for proper structure and accessibility.",
        "Wandeln Sie tabellenartig angeordnete Textfelder in echte Tabellen um, "
        "damit Struktur und Barrierefreiheit erhalten bleiben.",
    ),
    (
        frozenset({IssueType.MISSING_LANGUAGE}),
        "Set the document language in File > Options > Language.",
        "Legen Sie die Dokumentsprache unter Datei > Optionen > Sprache fest.",
    ),
)


@dataclass(frozen=True)
class ReportSummary:
    total: int = 0
    errors: int = 0
    warnings: int = 0
    info: int = 0
    auto_fixable: int = 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "errors": self.errors,
            "warnings": self.warnings,
            "info": self.info,
            "autoFixable": self.auto_fixable,
        }


@dataclass(frozen=True)
class Conformance:
    wcag_level: str = "none"  # AAA, AA, A, none
    pdfua_level: str = "none"  # PDF/UA-1, partial, none
    bitv_conformant: bool = False

    def to_dict(self) -> dict:
        return {
            "wcagLevel": self.wcag_level,
            "pdfuaLevel": self.pdfua_level,
            "bitvConformant": self.bitv_conformant,
        }


def calculate_score(errors: int, warnings: int, infos: int) -> int:
    """100 minus 15 je Fehler, 5 je Warnung, 1 je Hinweis; nie unter 0."""
    score = (
        100
        - errors * SCORE_PENALTIES[Severity.ERROR]
        - warnings * SCORE_PENALTIES[Severity.WARNING]
        - infos * SCORE_PENALTIES[Severity.INFO]
    )
    return max(0, score)


def determine_conformance(errors: int, warnings: int) -> Conformance:
    if errors == 0 and warnings == 0:
        return Conformance("AAA", "PDF/UA-1", True)
    if errors == 0:
        return Conformance("AA", "PDF/UA-1", True)
    if errors <= 3:
        return Conformance("A", "partial", False)
    return Conformance("none", "none", False)


def summarize(issues: list[AccessibilityIssue]) -> ReportSummary:
    def count(severity: Severity) -> int:
        return sum(1 for issue in issues if issue.severity == severity)

    return ReportSummary(
        total=len(issues),
        errors=count(Severity.ERROR),
        warnings=count(Severity.WARNING),
        info=count(Severity.INFO),
        auto_fixable=sum(1 for issue in issues if issue.auto_fixable),
    )


def recommendations_for(issues: list[AccessibilityIssue], lang: str = "en") -> tuple[str, ...]:
    present = {issue.type for issue in issues}
    return tuple(
        de if lang == "de" else en
        for types, en, de in RECOMMENDATIONS
        if types & present
    )


@dataclass(frozen=True)
class AccessibilityReport:
    """
    Barrierefreiheits-Prüfbericht.

    Wird nur vom Validator erzeugt. Alle abgeleiteten Werte
    (Summary, Score, Konformität) stehen fest, sobald der
    Bericht existiert.
    """
    timestamp: datetime
    document_title: str
    summary: ReportSummary
    issues: tuple[AccessibilityIssue, ...]
    conformance: Conformance
    overall_score: int
    pdfua_conformant: bool
    recommendations: tuple[str, ...] = ()
    recommendations_de: tuple[str, ...] = ()
    stats: PresentationStats = field(default_factory=PresentationStats)

    @classmethod
    def from_issues(
        cls,
        issues: list[AccessibilityIssue],
        document_title: Optional[str],
        stats: PresentationStats,
        timestamp: datetime,
    ) -> "AccessibilityReport":
        summary = summarize(issues)
        return cls(
            timestamp=timestamp,
            document_title=(document_title or "").strip() or UNTITLED,
            summary=summary,
            issues=tuple(issues),
            conformance=determine_conformance(summary.errors, summary.warnings),
            overall_score=calculate_score(summary.errors, summary.warnings, summary.info),
            pdfua_conformant=summary.errors == 0,
            recommendations=recommendations_for(issues, "en"),
            recommendations_de=recommendations_for(issues, "de"),
            stats=stats,
        )

    @property
    def wcag_level(self) -> str:
        return self.conformance.wcag_level

    @property
    def errors(self) -> list[AccessibilityIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[AccessibilityIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    @property
    def infos(self) -> list[AccessibilityIssue]:
        return [i for i in self.issues if i.severity == Severity.INFO]

    def issues_of(self, issue_type: IssueType) -> list[AccessibilityIssue]:
        return [i for i in self.issues if i.type == issue_type]

    @property
    def report_text(self) -> str:
        return self.render_text("en")

    @property
    def report_text_de(self) -> str:
        return self.render_text("de")

    def render_text(self, lang: str = "en") -> str:
        """Zeilenorientierter Bericht (EN oder DE)."""
        if lang == "de":
            return "\n".join(self._lines_de())
        return "\n".join(self._lines_en())

    def _lines_en(self) -> list[str]:
        lines = [
            "=== Accessibility Report ===\n",
            f"Document: {self.document_title}",
            f"Date: {self.timestamp.isoformat()}\n",
        ]
        if self.summary.errors == 0 and self.summary.warnings == 0:
            lines.append("✅ No accessibility issues found.\n")
        else:
            lines.append(
                f"Found {self.summary.errors} error(s) and "
                f"{self.summary.warnings} warning(s).\n"
            )

        if self.errors:
            lines.append("--- Errors (must fix) ---")
            for issue in self.errors:
                lines.append(f"• {issue.message}")
                if issue.slide_number:
                    lines.append(f"  Slide: {issue.slide_number}")
                if issue.wcag_criterion:
                    lines.append(f"  WCAG: {issue.wcag_criterion}")
                lines.append("")

        if self.warnings:
            lines.append("--- Warnings (should fix) ---")
            for issue in self.warnings:
                lines.append(f"• {issue.message}")
                if issue.slide_number:
                    lines.append(f"  Slide: {issue.slide_number}")
                lines.append("")

        if self.recommendations:
            lines.append("--- Recommendations ---")
            lines.extend(f"• {text}" for text in self.recommendations)
            lines.append("")

        lines.append(f"Score: {self.overall_score}/100 | WCAG: {self.conformance.wcag_level}")
        return lines

    def _lines_de(self) -> list[str]:
        ts = self.timestamp
        lines = [
            "=== Barrierefreiheits-Prüfbericht ===\n",
            f"Dokument: {self.document_title}",
            f"Datum: {ts.day}.{ts.month}.{ts.year}\n",
        ]
        if self.summary.errors == 0 and self.summary.warnings == 0:
            lines.append("✅ Keine Barrierefreiheitsprobleme gefunden.\n")
        else:
            lines.append(
                f"{self.summary.errors} Fehler und "
                f"{self.summary.warnings} Warnungen gefunden.\n"
            )

        if self.errors:
            lines.append("--- Fehler (müssen behoben werden) ---")
            for issue in self.errors:
                lines.append(f"• {issue.message_de or issue.message}")
                if issue.slide_number:
                    lines.append(f"  Folie: {issue.slide_number}")
                if issue.wcag_criterion:
                    criterion = WCAG_CRITERIA.get(issue.wcag_criterion, {})
                    title = criterion.get("title_de") or criterion.get("title", "")
                    lines.append(f"  WCAG: {issue.wcag_criterion} - {title}")
                if issue.suggestion_de:
                    lines.append(f"  Empfehlung: {issue.suggestion_de}")
                lines.append("")

        if self.warnings:
            lines.append("--- Warnungen (sollten behoben werden) ---")
            for issue in self.warnings:
                lines.append(f"• {issue.message_de or issue.message}")
                if issue.slide_number:
                    lines.append(f"  Folie: {issue.slide_number}")
                if issue.suggestion_de:
                    lines.append(f"  Empfehlung: {issue.suggestion_de}")
                lines.append("")

        if self.recommendations_de:
            lines.append("--- Empfehlungen ---")
            lines.extend(f"• {text}" for text in self.recommendations_de)
            lines.append("")

        lines.append(f"Punktzahl: {self.overall_score}/100 | WCAG: {self.conformance.wcag_level}")
        return lines

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "documentTitle": self.document_title,
            "summary": self.summary.to_dict(),
            "issues": [issue.to_dict() for issue in self.issues],
            "conformance": self.conformance.to_dict(),
            "overallScore": self.overall_score,
            "wcagLevel": self.conformance.wcag_level,
            "pdfuaConformant": self.pdfua_conformant,
            "recommendations": list(self.recommendations),
            "recommendationsDE": list(self.recommendations_de),
            "stats": self.stats.to_dict(),
            "reportText": self.report_text,
            "reportTextDE": self.report_text_de,
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)
