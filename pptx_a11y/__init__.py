"""
PPTX → PDF/UA mit Barrierefreiheitsbericht
==========================================
DSGVO-konforme Konvertierung von PowerPoint zu barrierefreien PDFs,
mit zweisprachigem Prüfbericht nach WCAG 2.1 und BITV 2.0.

Architektur:
    PPTX → Presentation → (Enricher) → Validator → AccessibilityReport
                        ↘ Tagged HTML → WeasyPrint → pikepdf → PDF/UA

Module:
    - package: Zip-/XML-Zugriff auf das PPTX-Paket
    - parser: PPTX → Presentation (Klassifikation, Lesereihenfolge)
    - validator, report: Prüfregeln, Score, Konformität
    - tagging, renderer: Strukturbaum, HTML und PDF/UA
    - enricher: KI-basierte Alt-Texte und Titel (Ollama, optional)
    - autofix: Profilgesteuerte Korrekturen vor dem Rendern
    - pdfcheck: Prüfung des erzeugten PDFs

Quick Start:
    >>> from pptx_a11y import parse_presentation, validate, get_profile
    >>> presentation = parse_presentation("slides.pptx")
    >>> report = validate(presentation, get_profile("strict"))
    >>> print(report.render_text("de"))

PDF-Erzeugung (benötigt WeasyPrint):
    >>> from pptx_a11y.renderer import generate
    >>> pdf_bytes = generate(presentation, get_profile("standard"))
"""

__version__ = "0.2.0"

from .errors import (
    MalformedPackageError,
    MissingPartError,
    PartParseError,
    RenderError,
)
from .models import (
    Presentation,
    Slide,
    SlideElement,
    ElementType,
    SemanticRole,
    AltTextStatus,
    Severity,
    IssueType,
    AccessibilityIssue,
    TableData,
    TableCell,
    ListData,
    ListItem,
)
from .profiles import (
    ConversionProfile,
    AutoFixOptions,
    ExportOptions,
    PROFILES,
    get_profile,
)
from .parser import PPTXParser, ParserConfig, parse_presentation
from .validator import AccessibilityValidator, validate
from .report import AccessibilityReport
from .tagging import StructureNode, TaggedHTMLBuilder
from .enricher import (
    Enricher,
    EnricherConfig,
    Enhancement,
    OllamaClient,
    apply_enhancements,
)
from .autofix import apply_auto_fixes

__all__ = [
    # Version
    "__version__",

    # Fehler
    "MalformedPackageError",
    "MissingPartError",
    "PartParseError",
    "RenderError",

    # Models
    "Presentation",
    "Slide",
    "SlideElement",
    "ElementType",
    "SemanticRole",
    "AltTextStatus",
    "Severity",
    "IssueType",
    "AccessibilityIssue",
    "TableData",
    "TableCell",
    "ListData",
    "ListItem",

    # Profile
    "ConversionProfile",
    "AutoFixOptions",
    "ExportOptions",
    "PROFILES",
    "get_profile",

    # Parser
    "PPTXParser",
    "ParserConfig",
    "parse_presentation",

    # Validator
    "AccessibilityValidator",
    "AccessibilityReport",
    "validate",

    # Tagging
    "StructureNode",
    "TaggedHTMLBuilder",

    # Enricher
    "Enricher",
    "EnricherConfig",
    "Enhancement",
    "OllamaClient",
    "apply_enhancements",

    # Auto-Fix
    "apply_auto_fixes",
]
