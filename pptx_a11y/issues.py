"""
Issue-Katalog
=============
Gemeinsames Vokabular für Parser und Validator. Jede Prüfung hat
genau eine Fabrikfunktion; Schweregrad, Texte (EN/DE) und
Norm-Referenzen stehen nur hier.
"""

from typing import Optional

from .models import (
    AccessibilityIssue, ElementType, IssueType, Severity, SlideElement,
)


# WCAG 2.1 Kriterien mit deutschen Titeln
WCAG_CRITERIA: dict[str, dict[str, str]] = {
    "1.1.1": {"title": "Non-text Content", "title_de": "Nicht-Text-Inhalt", "level": "A"},
    "1.3.1": {"title": "Info and Relationships", "title_de": "Informationen und Beziehungen", "level": "A"},
    "1.3.2": {"title": "Meaningful Sequence", "title_de": "Bedeutungstragende Reihenfolge", "level": "A"},
    "1.4.3": {"title": "Contrast (Minimum)", "title_de": "Kontrast (Minimum)", "level": "AA"},
    "2.4.2": {"title": "Page Titled", "title_de": "Seite mit Titel versehen", "level": "A"},
    "2.4.4": {"title": "Link Purpose (In Context)", "title_de": "Linkzweck (im Kontext)", "level": "A"},
    "2.4.6": {"title": "Headings and Labels", "title_de": "Überschriften und Beschriftungen", "level": "AA"},
    "3.1.1": {"title": "Language of Page", "title_de": "Sprache der Seite", "level": "A"},
    "3.1.2": {"title": "Language of Parts", "title_de": "Sprache von Teilen", "level": "AA"},
    "4.1.2": {"title": "Name, Role, Value", "title_de": "Name, Rolle, Wert", "level": "A"},
}

# PDF/UA-1 (ISO 14289-1) Klauseln
PDFUA_CLAUSES: dict[str, dict[str, str]] = {
    "7.1": {"title": "General", "title_de": "Allgemein"},
    "7.2": {"title": "Text", "title_de": "Text"},
    "7.3": {"title": "Graphics", "title_de": "Grafiken"},
    "7.4": {"title": "Headings", "title_de": "Überschriften"},
    "7.5": {"title": "Tables", "title_de": "Tabellen"},
    "7.6": {"title": "Lists", "title_de": "Listen"},
    "7.7": {"title": "Mathematical Expressions", "title_de": "Mathematische Ausdrücke"},
    "7.17": {"title": "Annotations", "title_de": "Anmerkungen"},
    "7.18": {"title": "Artifacts", "title_de": "Artefakte"},
    "7.21": {"title": "Optional Content", "title_de": "Optionaler Inhalt"},
}

_TYPE_NAMES = {
    ElementType.IMAGE: ("Image", "Bild"),
    ElementType.CHART: ("Chart", "Diagramm"),
    ElementType.SMARTART: ("SmartArt", "SmartArt"),
    ElementType.TABLE: ("Table", "Tabelle"),
}


def type_name(element_type: Optional[ElementType], lang: str = "en") -> str:
    en, de = _TYPE_NAMES.get(element_type, ("Element", "Element"))
    return de if lang == "de" else en


def _element_issue(
    issue_type: IssueType,
    severity: Severity,
    slide_number: int,
    element: SlideElement,
    **kwargs,
) -> AccessibilityIssue:
    return AccessibilityIssue(
        type=issue_type,
        severity=severity,
        slide_number=slide_number,
        element_id=element.id,
        element_type=element.type,
        **kwargs,
    )


# === Dokument ===

def missing_document_title() -> AccessibilityIssue:
    return AccessibilityIssue(
        type=IssueType.MISSING_DOCUMENT_TITLE,
        severity=Severity.ERROR,
        message="Document title is missing",
        message_de="Dokumenttitel fehlt",
        wcag_criterion="2.4.2",
        pdfua_clause="7.1",
        suggestion="Add a document title in File > Info > Properties",
        suggestion_de="Fügen Sie einen Dokumenttitel unter Datei > Info > Eigenschaften hinzu",
        auto_fixable=True,
    )


def missing_language() -> AccessibilityIssue:
    return AccessibilityIssue(
        type=IssueType.MISSING_LANGUAGE,
        severity=Severity.ERROR,
        message="Document language is not defined",
        message_de="Dokumentsprache ist nicht definiert",
        wcag_criterion="3.1.1",
        pdfua_clause="7.2",
        suggestion="Set the document language in the presentation settings",
        suggestion_de="Setzen Sie die Dokumentsprache in den Präsentationseinstellungen",
        auto_fixable=True,
    )


def missing_author() -> AccessibilityIssue:
    return AccessibilityIssue(
        type=IssueType.MISSING_METADATA,
        severity=Severity.INFO,
        message="Document author is not set",
        message_de="Dokumentautor ist nicht gesetzt",
        suggestion="Consider adding author information for better metadata",
        suggestion_de="Erwägen Sie, Autorinformationen für bessere Metadaten hinzuzufügen",
    )


# === Folie ===

def missing_slide_title(slide_number: int) -> AccessibilityIssue:
    return AccessibilityIssue(
        type=IssueType.MISSING_TITLE,
        severity=Severity.WARNING,
        slide_number=slide_number,
        message=f"Slide {slide_number} has no title",
        message_de=f"Folie {slide_number} hat keinen Titel",
        wcag_criterion="2.4.2",
        pdfua_clause="7.4",
        suggestion="Add a title to enable navigation via headings",
        suggestion_de="Fügen Sie einen Titel hinzu, um Navigation über Überschriften zu ermöglichen",
    )


def reading_order_unclear(slide_number: int, confidence: float) -> AccessibilityIssue:
    return AccessibilityIssue(
        type=IssueType.READING_ORDER_UNCLEAR,
        severity=Severity.WARNING,
        slide_number=slide_number,
        message=f"Reading order on slide {slide_number} may be incorrect",
        message_de=f"Lesereihenfolge auf Folie {slide_number} ist möglicherweise unkorrekt",
        wcag_criterion="1.3.2",
        pdfua_clause="7.1",
        suggestion="Review and manually adjust reading order if needed",
        suggestion_de="Überprüfen und ggf. manuell anpassen",
        context=f"Confidence: {round(confidence * 100)}%",
    )


def overlapping_elements(
    slide_number: int, first: SlideElement, second: SlideElement
) -> AccessibilityIssue:
    return AccessibilityIssue(
        type=IssueType.OVERLAPPING_ELEMENTS,
        severity=Severity.INFO,
        slide_number=slide_number,
        element_id=f"{first.id}+{second.id}",
        element_type=first.type,
        message=f'Elements "{first.id}" and "{second.id}" overlap',
        message_de=f'Elemente "{first.id}" und "{second.id}" überlappen sich',
        wcag_criterion="1.3.2",
        suggestion="Ensure overlapping elements have correct reading order",
        suggestion_de="Stellen Sie sicher, dass überlappende Elemente die richtige Lesereihenfolge haben",
    )


def pseudo_table(slide_number: int, rows: int, columns: int) -> AccessibilityIssue:
    return AccessibilityIssue(
        type=IssueType.PSEUDO_TABLE,
        severity=Severity.WARNING,
        slide_number=slide_number,
        message="Text boxes arranged like a table detected",
        message_de="Textfelder in Tabellenanordnung erkannt",
        wcag_criterion="1.3.1",
        pdfua_clause="7.5",
        suggestion="Convert to a real table for proper accessibility markup",
        suggestion_de="Konvertieren Sie in eine echte Tabelle für korrektes Accessibility-Markup",
        context=f"{rows} rows × {columns} columns of textboxes",
    )


# === Elemente ===

def missing_alt_text(slide_number: int, element: SlideElement) -> AccessibilityIssue:
    return _element_issue(
        IssueType.MISSING_ALT_TEXT, Severity.ERROR, slide_number, element,
        message=f"{type_name(element.type)} is missing alt text",
        message_de=f"{type_name(element.type, 'de')} hat keinen Alternativtext",
        wcag_criterion="1.1.1",
        pdfua_clause="7.3",
        suggestion="Add descriptive alt text or mark as decorative",
        suggestion_de="Fügen Sie beschreibenden Alt-Text hinzu oder markieren Sie als dekorativ",
    )


def decorative_not_marked(slide_number: int, element: SlideElement) -> AccessibilityIssue:
    return _element_issue(
        IssueType.DECORATIVE_NOT_MARKED, Severity.ERROR, slide_number, element,
        message=f"{type_name(element.type)} is treated as decorative but not marked as such",
        message_de=f"{type_name(element.type, 'de')} gilt als dekorativ, ist aber nicht so markiert",
        wcag_criterion="1.1.1",
        pdfua_clause="7.18",
        suggestion="Mark the element as decorative or add alt text",
        suggestion_de="Markieren Sie das Element als dekorativ oder ergänzen Sie Alt-Text",
        auto_fixable=True,
    )


def insufficient_alt_text(slide_number: int, element: SlideElement) -> AccessibilityIssue:
    return _element_issue(
        IssueType.INSUFFICIENT_ALT_TEXT, Severity.WARNING, slide_number, element,
        message="Alt text may not be sufficiently descriptive",
        message_de="Alt-Text ist möglicherweise nicht ausreichend beschreibend",
        wcag_criterion="1.1.1",
        pdfua_clause="7.3",
        suggestion="Review alt text: avoid file names, generic descriptions, or overly short text",
        suggestion_de=(
            "Überprüfen Sie den Alt-Text: Vermeiden Sie Dateinamen, "
            "generische Beschreibungen oder zu kurzen Text"
        ),
        context=f'Current: "{element.content.alt_text}"',
    )


def table_missing_headers(slide_number: int, element: SlideElement) -> AccessibilityIssue:
    return _element_issue(
        IssueType.TABLE_MISSING_HEADERS, Severity.WARNING, slide_number, element,
        message="Table has no defined header row or column",
        message_de="Tabelle hat keine definierte Kopfzeile oder -spalte",
        wcag_criterion="1.3.1",
        pdfua_clause="7.5",
        suggestion="Mark the first row as header for screen reader navigation",
        suggestion_de="Markieren Sie die erste Zeile als Kopf für Screenreader-Navigation",
        auto_fixable=True,
    )


def table_empty_cells(slide_number: int, element: SlideElement, count: int) -> AccessibilityIssue:
    return _element_issue(
        IssueType.TABLE_EMPTY_CELLS, Severity.INFO, slide_number, element,
        message=f"Table has {count} empty cells",
        message_de=f"Tabelle hat {count} leere Zellen",
        wcag_criterion="1.3.1",
        suggestion='Consider using "-" or "N/A" for intentionally empty cells',
        suggestion_de='Erwägen Sie "-" oder "k.A." für absichtlich leere Zellen',
    )


def unclear_link_text(slide_number: int, element: SlideElement, text: str) -> AccessibilityIssue:
    return _element_issue(
        IssueType.UNCLEAR_LINK_TEXT, Severity.WARNING, slide_number, element,
        message=f'Link text "{text}" is not descriptive',
        message_de=f'Linktext "{text}" ist nicht beschreibend',
        wcag_criterion="2.4.4",
        pdfua_clause="7.17",
        suggestion="Use descriptive link text that explains the destination",
        suggestion_de="Verwenden Sie beschreibenden Linktext, der das Ziel erklärt",
    )


def empty_element(slide_number: int, element: SlideElement) -> AccessibilityIssue:
    return _element_issue(
        IssueType.EMPTY_ELEMENT, Severity.INFO, slide_number, element,
        message="Empty text element that is not marked as decorative",
        message_de="Leeres Textelement, das nicht als dekorativ markiert ist",
        suggestion="Remove empty element or mark as decorative",
        suggestion_de="Leeres Element entfernen oder als dekorativ markieren",
        auto_fixable=True,
    )


def background_not_decorative(slide_number: int, element: SlideElement) -> AccessibilityIssue:
    return _element_issue(
        IssueType.BACKGROUND_NOT_DECORATIVE, Severity.INFO, slide_number, element,
        message="Background image should be explicitly marked as decorative",
        message_de="Hintergrundbild sollte ausdrücklich als dekorativ markiert sein",
        pdfua_clause="7.18",
        suggestion="Mark background images as decorative (artifact)",
        suggestion_de="Markieren Sie Hintergrundbilder als dekorativ (Artefakt)",
        auto_fixable=True,
        context="Only an empty description was found",
    )


def flattened_content(slide_number: int, element: SlideElement) -> AccessibilityIssue:
    return _element_issue(
        IssueType.FLATTENED_CONTENT, Severity.WARNING, slide_number, element,
        message="SmartArt may lose structure when converted",
        message_de="SmartArt kann bei der Konvertierung Struktur verlieren",
        wcag_criterion="1.3.1",
        suggestion="Add alt text describing the diagram or convert it to a list",
        suggestion_de="Beschreiben Sie das Diagramm per Alt-Text oder wandeln Sie es in eine Liste um",
    )


def grouped_content_order(slide_number: int, group_id: str) -> AccessibilityIssue:
    return AccessibilityIssue(
        type=IssueType.GROUPED_CONTENT_ORDER,
        severity=Severity.INFO,
        slide_number=slide_number,
        element_id=group_id,
        element_type=ElementType.GROUP,
        message="Grouped elements - verify reading order is correct",
        message_de="Gruppierte Elemente - Lesereihenfolge prüfen",
        wcag_criterion="1.3.2",
    )
