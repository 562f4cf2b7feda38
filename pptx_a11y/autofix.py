"""
Automatische Korrekturen
========================
Wendet die Auto-Fix-Schalter eines Profils auf eine Kopie des Modells an.

Läuft in der Pipeline nach der Validierung und vor der Erzeugung;
der Bericht beschreibt immer das unkorrigierte Eingabemodell.
"""

import copy
import logging
from typing import Optional

from .geometry import compute_reading_order, reading_order_confidence
from .models import (
    AltTextStatus,
    ElementType,
    IssueType,
    Presentation,
)
from .profiles import ConversionProfile, get_profile


logger = logging.getLogger(__name__)

# Herkunft des Dekorativ-Status bei automatischer Markierung
DECORATIVE_AUTO_FIX = "auto_fix"


class AutoFixer:
    """
    Korrigiert einfache, eindeutige Probleme.

    Usage:
        fixer = AutoFixer(get_profile("strict"))
        fixed = fixer.fix(presentation)
        print(fixer.applied)
    """

    def __init__(self, profile: Optional[ConversionProfile] = None):
        self.profile = profile or get_profile()
        self.applied: list[str] = []

    def fix(self, presentation: Presentation) -> Presentation:
        options = self.profile.auto_fix
        result = copy.deepcopy(presentation)
        self.applied = []

        if options.set_document_language:
            self._set_language(result)
        if options.fix_empty_titles:
            self._fix_document_title(result)
        if options.fix_reading_order:
            self._fix_reading_order(result)
        if options.mark_uncaptioned_as_decorative:
            self._mark_decorative(result)

        result.refresh_stats()
        for message in self.applied:
            logger.info("Auto-Fix: %s", message)
        return result

    def _set_language(self, presentation: Presentation):
        language = (presentation.metadata.language or "").strip()
        if len(language) >= 2 and language != "und":
            return
        presentation.metadata.language = self.profile.default_language
        _drop_issues(presentation, IssueType.MISSING_LANGUAGE)
        self.applied.append(f"Dokumentsprache gesetzt: {self.profile.default_language}")

    def _fix_document_title(self, presentation: Presentation):
        if (presentation.metadata.title or "").strip():
            return
        for slide in presentation.slides:
            if slide.title:
                presentation.metadata.title = slide.title
                _drop_issues(presentation, IssueType.MISSING_DOCUMENT_TITLE)
                self.applied.append(f"Dokumenttitel aus Folie {slide.number}: {slide.title}")
                return

    def _fix_reading_order(self, presentation: Presentation):
        for slide in presentation.slides:
            order = compute_reading_order(slide.elements)
            if order != slide.reading_order:
                self.applied.append(f"Lesereihenfolge neu berechnet (Folie {slide.number})")
            slide.reading_order = order
            slide.reading_order_confidence = reading_order_confidence(slide.elements)

    def _mark_decorative(self, presentation: Presentation):
        for slide in presentation.slides:
            keep = []
            for element in slide.elements:
                if (
                    element.type == ElementType.IMAGE
                    and not (element.content.alt_text or "").strip()
                ):
                    element.is_decorative = True
                    element.content.alt_text_status = AltTextStatus.DECORATIVE
                    element.content.decorative_source = DECORATIVE_AUTO_FIX
                    element.issues = []
                    slide.background_elements.append(element)
                    self.applied.append(f"Als dekorativ markiert: {element.id} (Folie {slide.number})")
                else:
                    keep.append(element)
            slide.elements = keep
            ids = {element.id for element in keep}
            slide.reading_order = [i for i in slide.reading_order if i in ids]


def _drop_issues(presentation: Presentation, issue_type: IssueType):
    presentation.issues = [i for i in presentation.issues if i.type != issue_type]


def apply_auto_fixes(presentation: Presentation, profile: Optional[ConversionProfile] = None) -> Presentation:
    """Kurzform für AutoFixer(profile).fix(...)."""
    return AutoFixer(profile).fix(presentation)
