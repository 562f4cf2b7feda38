"""
Positions-Heuristiken
=====================
Lesereihenfolge, Überlappungen und Pseudo-Tabellen auf Basis der
Element-Positionen. Parser und Validator nutzen dieselben Funktionen.
"""

import math
from itertools import combinations
from typing import Optional

from .models import (
    ElementType, SlideElement, SlideLayout, SlideLayoutType,
)


ROW_TOLERANCE_PX = 20.0
PSEUDO_TABLE_GRID_PX = 30.0
PSEUDO_TABLE_MIN_BOXES = 4

# Konfidenz-Abzüge
OVERLAP_PENALTY = 0.2
GROUP_PENALTY = 0.1
ROW_DIVERSITY_PENALTY = 0.2
MIN_CONFIDENCE = 0.3

_BODY_TYPES = {
    ElementType.BODY,
    ElementType.PARAGRAPH,
    ElementType.LIST,
    ElementType.TEXTBOX,
}


def round_half_up(value: float) -> int:
    """Rundet .5 immer nach oben (nicht Banker's Rounding)."""
    return math.floor(value + 0.5)


def find_overlaps(elements: list[SlideElement]) -> list[tuple[SlideElement, SlideElement]]:
    """Alle Elementpaare mit überlappenden Bounding-Boxes."""
    return [
        (a, b) for a, b in combinations(elements, 2)
        if a.position.overlaps(b.position)
    ]


def compute_reading_order(
    elements: list[SlideElement],
    row_tolerance: float = ROW_TOLERANCE_PX,
) -> list[str]:
    """
    Bestimmt die Lesereihenfolge.

    Heuristik:
    1. Titel zuerst, dann Untertitel
    2. Übrige Elemente in Zeilenbändern von oben nach unten
       (ein Band umfasst alle Elemente innerhalb der Toleranz
       zum obersten Element des Bands)
    3. Innerhalb eines Bands von links nach rechts

    Returns:
        Liste von Element-IDs
    """
    titles = [e for e in elements if e.type == ElementType.TITLE]
    subtitles = [e for e in elements if e.type == ElementType.SUBTITLE]
    rest = [e for e in elements if e.type not in (ElementType.TITLE, ElementType.SUBTITLE)]

    # Stabil: gleiche Position → Fundreihenfolge
    rest = sorted(rest, key=lambda e: e.position.y)

    bands: list[list[SlideElement]] = []
    band_top: Optional[float] = None
    for element in rest:
        if band_top is None or element.position.y - band_top > row_tolerance:
            bands.append([])
            band_top = element.position.y
        bands[-1].append(element)

    ordered = titles + subtitles
    for band in bands:
        ordered.extend(sorted(band, key=lambda e: e.position.x))
    return [e.id for e in ordered]


def reading_order_confidence(elements: list[SlideElement]) -> float:
    """
    Konfidenz der berechneten Lesereihenfolge in [0.3, 1.0].

    Rein beratend, blockiert nie die Erzeugung.
    """
    if not elements:
        return 1.0

    confidence = 1.0
    if find_overlaps(elements):
        confidence -= OVERLAP_PENALTY
    if any(e.is_grouped for e in elements):
        confidence -= GROUP_PENALTY

    rows = {round_half_up(e.position.y / ROW_TOLERANCE_PX) for e in elements}
    if len(rows) < len(elements) * 0.5:
        confidence -= ROW_DIVERSITY_PENALTY

    return round(max(MIN_CONFIDENCE, confidence), 2)


def detect_pseudo_table(
    elements: list[SlideElement],
    grid: float = PSEUDO_TABLE_GRID_PX,
) -> Optional[tuple[int, int]]:
    """
    Erkennt Textfelder in Tabellenanordnung.

    Bedingungen: mindestens 4 Textboxen, Y-Positionen auf ein
    30px-Raster quantisiert, mindestens 2 Zeilen mit jeweils
    gleich vielen (mindestens 2) Feldern.

    Returns:
        (zeilen, spalten) oder None
    """
    textboxes = [e for e in elements if e.type == ElementType.TEXTBOX]
    if len(textboxes) < PSEUDO_TABLE_MIN_BOXES:
        return None

    rows: dict[int, int] = {}
    for box in textboxes:
        key = round_half_up(box.position.y / grid)
        rows[key] = rows.get(key, 0) + 1

    sizes = list(rows.values())
    if len(sizes) < 2 or sizes[0] < 2:
        return None
    if any(size != sizes[0] for size in sizes):
        return None
    return len(sizes), sizes[0]


def detect_layout(elements: list[SlideElement]) -> SlideLayout:
    """Layout-Typ aus der Zusammensetzung der Elemente."""
    has_title = any(e.type == ElementType.TITLE for e in elements)
    has_subtitle = any(e.type == ElementType.SUBTITLE for e in elements)
    body_count = sum(1 for e in elements if e.type in _BODY_TYPES)

    if has_title and has_subtitle and body_count == 0:
        return SlideLayout(SlideLayoutType.TITLE, "Titelfolie")
    if has_title and body_count == 1:
        return SlideLayout(SlideLayoutType.TITLE_AND_CONTENT, "Titel und Inhalt")
    if has_title and body_count == 2:
        return SlideLayout(SlideLayoutType.TWO_CONTENT, "Zwei Inhalte")
    if has_title and body_count == 0:
        return SlideLayout(SlideLayoutType.TITLE_ONLY, "Nur Titel")
    if not has_title and body_count == 0:
        return SlideLayout(SlideLayoutType.BLANK, "Leer")
    return SlideLayout(SlideLayoutType.CUSTOM, "Benutzerdefiniert")
