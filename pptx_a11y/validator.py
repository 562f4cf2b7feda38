"""
Barrierefreiheits-Validator
===========================
Prüft ein Presentation-Modell gegen WCAG 2.1 / PDF/UA-1 / BITV 2.0.

Der Validator arbeitet nur auf dem Modell, nicht auf dem PDF.
Er verändert das Modell nicht; bei festem Zeitstempel ist das
Ergebnis für dieselbe Eingabe identisch.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Optional

from . import issues
from .geometry import detect_pseudo_table, find_overlaps
from .models import (
    DECORATIVE_EMPTY_DESCRIPTION,
    AccessibilityIssue,
    AltTextStatus,
    ElementType,
    Presentation,
    SemanticRole,
    Slide,
    SlideElement,
    compute_stats,
)
from .profiles import ConversionProfile, get_profile
from .report import AccessibilityReport


logger = logging.getLogger(__name__)

# Unterhalb dieser Konfidenz wird die Lesereihenfolge beanstandet
READING_ORDER_THRESHOLD = 0.7

_FILENAME_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif|bmp|svg|webp)$", re.IGNORECASE)

_GENERIC_ALT_PATTERN = re.compile(
    r"^(bild|image|foto|photo|grafik|graphic|diagramm|chart|logo|icon|symbol"
    r"|screenshot|abbildung|img\d*|picture\d*|untitled|unbenannt|placeholder|platzhalter)$",
    re.IGNORECASE,
)

_UNCLEAR_LINK_PATTERN = re.compile(
    r"^(hier|klick|hier klicken|click here|here|more|mehr|link|read more|weiterlesen|details)$",
    re.IGNORECASE,
)


def is_low_quality_alt_text(alt_text: str) -> bool:
    """
    Erkennt minderwertige Alt-Texte.

    >>> is_low_quality_alt_text("image.jpg")
    True
    >>> is_low_quality_alt_text("Balkendiagramm der Umsätze pro Quartal 2024")
    False
    """
    lowered = alt_text.strip().lower()
    if _FILENAME_PATTERN.search(lowered):
        return True
    if _GENERIC_ALT_PATTERN.match(lowered):
        return True
    # Einzelwörter beschreiben selten ein Bild ausreichend
    return len(lowered.split()) < 2


def is_unclear_link_text(text: str) -> bool:
    return bool(_UNCLEAR_LINK_PATTERN.match(text.strip()))


class AccessibilityValidator:
    """
    Prüft eine Präsentation und erzeugt einen AccessibilityReport.

    Usage:
        validator = AccessibilityValidator(get_profile("strict"))
        report = validator.validate(presentation)
        print(report.render_text("de"))
    """

    def __init__(self, profile: Optional[ConversionProfile] = None):
        self.profile = profile or get_profile()

    def validate(
        self,
        presentation: Presentation,
        timestamp: Optional[datetime] = None,
    ) -> AccessibilityReport:
        found: list[AccessibilityIssue] = []

        found.extend(self._check_document(presentation))
        for slide in presentation.slides:
            found.extend(self._check_slide(slide))

        # Bereits beim Parsen/Anreichern erkannte Befunde
        found.extend(presentation.issues)
        for slide in presentation.slides:
            found.extend(slide.issues)
            for element in slide.elements:
                # Als Artefakt gemappte Elemente erscheinen nicht im Strukturbaum
                if self.profile.role_for(element) != SemanticRole.ARTIFACT:
                    found.extend(element.issues)

        unique = deduplicate(found)
        logger.debug("%d Befunde (%d vor Deduplizierung)", len(unique), len(found))

        return AccessibilityReport.from_issues(
            unique,
            document_title=presentation.metadata.title,
            stats=compute_stats(presentation.slides),
            timestamp=timestamp or datetime.now(timezone.utc),
        )

    # === Dokument ===

    def _check_document(self, presentation: Presentation) -> list[AccessibilityIssue]:
        metadata = presentation.metadata
        found = []
        if not (metadata.title or "").strip():
            found.append(issues.missing_document_title())
        language = (metadata.language or "").strip()
        if len(language) < 2 or language == "und":
            found.append(issues.missing_language())
        if not (metadata.author or "").strip():
            found.append(issues.missing_author())
        return found

    # === Folie ===

    def _check_slide(self, slide: Slide) -> list[AccessibilityIssue]:
        found = []

        if slide.title is None:
            found.append(issues.missing_slide_title(slide.number))

        if slide.reading_order_confidence < READING_ORDER_THRESHOLD:
            found.append(issues.reading_order_unclear(slide.number, slide.reading_order_confidence))
        for first, second in find_overlaps(slide.elements):
            found.append(issues.overlapping_elements(slide.number, first, second))

        for element in slide.elements:
            found.extend(self._check_element(element, slide.number))

        grid = detect_pseudo_table(slide.elements)
        if grid:
            found.append(issues.pseudo_table(slide.number, *grid))

        for element in slide.background_elements:
            found.extend(self._check_background(element, slide.number))

        return found

    # === Elemente ===

    def _check_element(self, element: SlideElement, slide_number: int) -> list[AccessibilityIssue]:
        found = []

        if element.is_image_like:
            found.extend(self._check_alt_text(element, slide_number))

        if element.type == ElementType.TABLE and element.table_data is not None:
            found.extend(self._check_table(element, slide_number))

        link_text = self._unclear_link_text(element)
        if link_text is not None:
            found.append(issues.unclear_link_text(slide_number, element, link_text))

        if (
            element.type in (ElementType.BODY, ElementType.TEXTBOX)
            and not element.text.strip()
            and not element.is_decorative
        ):
            found.append(issues.empty_element(slide_number, element))

        return found

    def _check_alt_text(self, element: SlideElement, slide_number: int) -> list[AccessibilityIssue]:
        if element.is_decorative:
            return []
        if self.profile.role_for(element) == SemanticRole.ARTIFACT:
            return []

        status = element.content.alt_text_status
        alt_text = (element.content.alt_text or "").strip()

        if status == AltTextStatus.DECORATIVE:
            return [issues.decorative_not_marked(slide_number, element)]
        if status == AltTextStatus.MISSING or not alt_text:
            return [issues.missing_alt_text(slide_number, element)]
        if is_low_quality_alt_text(alt_text):
            return [issues.insufficient_alt_text(slide_number, element)]
        return []

    def _check_table(self, element: SlideElement, slide_number: int) -> list[AccessibilityIssue]:
        table = element.table_data
        found = []
        if not table.has_header_row and not table.has_header_column and table.rows > 1:
            found.append(issues.table_missing_headers(slide_number, element))

        empty_cells = sum(
            1 for row in table.cells for cell in row
            if not cell.content.strip()
        )
        if empty_cells:
            found.append(issues.table_empty_cells(slide_number, element, empty_cells))
        return found

    @staticmethod
    def _unclear_link_text(element: SlideElement) -> Optional[str]:
        """Erster nicht beschreibender Linktext des Elements (oder None)."""
        candidates = [run.text for run in element.links]
        if element.hyperlink:
            candidates.insert(0, element.text)
        for text in candidates:
            if text.strip() and is_unclear_link_text(text):
                return text.strip()
        return None

    def _check_background(self, element: SlideElement, slide_number: int) -> list[AccessibilityIssue]:
        if element.type != ElementType.IMAGE:
            return []
        implicit = element.content.decorative_source == DECORATIVE_EMPTY_DESCRIPTION
        if not element.is_decorative or implicit:
            return [issues.background_not_decorative(slide_number, element)]
        return []


def deduplicate(found: list[AccessibilityIssue]) -> list[AccessibilityIssue]:
    """Entfernt Duplikate nach ID; das erste Vorkommen gewinnt."""
    seen: set[str] = set()
    unique = []
    for issue in found:
        if issue.id in seen:
            continue
        seen.add(issue.id)
        unique.append(issue)
    return unique


def validate(
    presentation: Presentation,
    profile: Optional[ConversionProfile] = None,
    timestamp: Optional[datetime] = None,
) -> AccessibilityReport:
    """Kurzform für AccessibilityValidator(profile).validate(...)."""
    return AccessibilityValidator(profile).validate(presentation, timestamp)
