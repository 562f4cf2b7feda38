"""
Semantische Datenmodelle für Präsentationen.

Das Presentation-Modell ist das Herzstück der Pipeline:
PPTX → Presentation → (Validator | Generator)

Alle Strukturinformationen werden hier normalisiert,
bevor sie geprüft oder zu PDF/UA gerendert werden.
Positionen sind in CSS-Pixeln (96 dpi).
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Iterator, Optional


class ElementType(Enum):
    """Inhaltstypen eines Folienelements."""
    TITLE = "title"
    SUBTITLE = "subtitle"
    BODY = "body"
    PARAGRAPH = "paragraph"
    LIST = "list"
    LIST_ITEM = "listItem"
    TABLE = "table"
    IMAGE = "image"
    SHAPE = "shape"
    CHART = "chart"
    SMARTART = "smartart"
    GROUP = "group"
    TEXTBOX = "textbox"
    FOOTER = "footer"
    SLIDE_NUMBER = "slideNumber"
    DATE = "date"
    UNKNOWN = "unknown"


class SemanticRole(Enum):
    """PDF-Strukturrollen (geschlossene Menge)."""
    H1 = "H1"
    H2 = "H2"
    H3 = "H3"
    P = "P"
    L = "L"
    LI = "LI"
    LBL = "Lbl"
    LBODY = "LBody"
    TABLE = "Table"
    TR = "TR"
    TH = "TH"
    TD = "TD"
    FIGURE = "Figure"
    CAPTION = "Caption"
    LINK = "Link"
    NOTE = "Note"
    ARTIFACT = "Artifact"
    SPAN = "Span"
    DOCUMENT = "Document"
    PART = "Part"
    SECT = "Sect"


class AltTextStatus(Enum):
    PRESENT = "present"
    MISSING = "missing"
    DECORATIVE = "decorative"
    NEEDS_REVIEW = "needs_review"


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueType(Enum):
    """Taxonomie der Barrierefreiheitsprobleme."""
    # Alt-Text
    MISSING_ALT_TEXT = "missing_alt_text"
    EMPTY_ALT_TEXT = "empty_alt_text"
    DECORATIVE_NOT_MARKED = "decorative_not_marked"
    INSUFFICIENT_ALT_TEXT = "insufficient_alt_text"
    # Struktur
    MISSING_TITLE = "missing_title"
    HEADING_HIERARCHY = "heading_hierarchy"
    READING_ORDER_UNCLEAR = "reading_order_unclear"
    PSEUDO_TABLE = "pseudo_table"
    EMPTY_ELEMENT = "empty_element"
    OVERLAPPING_ELEMENTS = "overlapping_elements"
    # Tabellen
    TABLE_MISSING_HEADERS = "table_missing_headers"
    TABLE_COMPLEX_STRUCTURE = "table_complex_structure"
    TABLE_EMPTY_CELLS = "table_empty_cells"
    # Links
    LINK_TEXT_EMPTY = "link_text_empty"
    LINK_TEXT_GENERIC = "link_text_generic"
    LINK_TEXT_URL_ONLY = "link_text_url_only"
    UNCLEAR_LINK_TEXT = "unclear_link_text"
    # Dokument
    MISSING_LANGUAGE = "missing_language"
    MISSING_DOCUMENT_TITLE = "missing_document_title"
    MISSING_METADATA = "missing_metadata"
    # Darstellung
    INSUFFICIENT_CONTRAST = "insufficient_contrast"
    COLOR_ONLY_INFORMATION = "color_only_information"
    SMALL_TEXT = "small_text"
    # Technik
    FONT_NOT_EMBEDDED = "font_not_embedded"
    UNICODE_MAPPING_ISSUE = "unicode_mapping_issue"
    GROUPED_CONTENT_ORDER = "grouped_content_order"
    FLATTENED_CONTENT = "flattened_content"
    BACKGROUND_NOT_DECORATIVE = "background_not_decorative"


class SlideLayoutType(Enum):
    TITLE = "title"
    TITLE_AND_CONTENT = "titleAndContent"
    SECTION_HEADER = "sectionHeader"
    TWO_CONTENT = "twoContent"
    COMPARISON = "comparison"
    TITLE_ONLY = "titleOnly"
    BLANK = "blank"
    CONTENT_WITH_CAPTION = "contentWithCaption"
    PICTURE_WITH_CAPTION = "pictureWithCaption"
    CUSTOM = "custom"


# Herkunft des Dekorativ-Status
DECORATIVE_MARKER = "marker"
DECORATIVE_EMPTY_DESCRIPTION = "empty_description"


def make_issue_id(
    issue_type: IssueType | str,
    slide_number: Optional[int] = None,
    element_id: Optional[str] = None,
) -> str:
    """
    Deterministische Issue-ID.

    Hängt nur von Prüfung, Folie und Element ab, nie von der
    Position in einer Liste.

    >>> make_issue_id(IssueType.MISSING_ALT_TEXT, 2, "shape-5")
    'missing_alt_text@s2/shape-5'
    """
    scope = "doc" if slide_number is None else f"s{slide_number}"
    if element_id:
        scope = f"{scope}/{element_id}"
    return f"{IssueType(issue_type).value}@{scope}"


@dataclass
class Position:
    """Position und Größe eines Elements (px)."""
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    z_order: int = 0

    def __post_init__(self):
        # Normalisiere negative Werte
        self.width = abs(self.width)
        self.height = abs(self.height)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def overlaps(self, other: "Position") -> bool:
        """Echte Überschneidung der Bounding-Boxes (Berührung zählt nicht)."""
        return (
            self.x < other.right and self.right > other.x
            and self.y < other.bottom and self.bottom > other.y
        )


@dataclass
class RichTextRun:
    """Ein Textabschnitt mit einheitlicher Formatierung."""
    text: str
    bold: bool = False
    italic: bool = False
    underline: bool = False
    font_size: Optional[float] = None  # in pt
    color: Optional[str] = None  # Hex: "FF0000"
    hyperlink: Optional[str] = None


@dataclass
class ElementContent:
    text: str = ""
    rich_text: list[RichTextRun] = field(default_factory=list)
    alt_text: Optional[str] = None
    alt_text_status: AltTextStatus = AltTextStatus.MISSING
    long_description: Optional[str] = None
    # "marker" = explizit markiert, "empty_description" = nur leerer descr
    decorative_source: Optional[str] = None


@dataclass
class ElementStyle:
    font_size: Optional[float] = None
    font_weight: str = "normal"
    font_style: str = "normal"
    text_color: Optional[str] = None
    background_color: Optional[str] = None
    # Weißer/heller Text auf unbekanntem Hintergrund (nur Risikosignal)
    is_light_text: bool = False


@dataclass
class TableCell:
    content: str = ""
    rich_text: list[RichTextRun] = field(default_factory=list)
    is_header: bool = False
    scope: Optional[str] = None  # "col", "row"
    row_span: int = 1
    col_span: int = 1


@dataclass
class TableData:
    """Tabelleninhalt. rows == len(cells), columns == len(cells[0])."""
    cells: list[list[TableCell]] = field(default_factory=list)
    has_header_row: bool = False
    has_header_column: bool = False

    @property
    def rows(self) -> int:
        return len(self.cells)

    @property
    def columns(self) -> int:
        if not self.cells:
            return 0
        return len(self.cells[0])

    @property
    def is_ragged(self) -> bool:
        return any(len(row) != self.columns for row in self.cells)


@dataclass
class ListItem:
    text: str
    level: int = 0
    list_type: str = "bullet"  # bullet, numbered
    rich_text: list[RichTextRun] = field(default_factory=list)


@dataclass
class ListData:
    list_type: str = "bullet"
    level: int = 0
    items: list[ListItem] = field(default_factory=list)


@dataclass(frozen=True)
class AccessibilityIssue:
    """
    Ein Barrierefreiheitsproblem.

    Unveränderlich. Die ID wird aus (Typ, Folie, Element) abgeleitet,
    damit Parser und Validator dieselben Befunde zusammenführen.
    """
    type: IssueType
    severity: Severity
    message: str
    message_de: str
    slide_number: Optional[int] = None
    element_id: Optional[str] = None
    element_type: Optional[ElementType] = None
    wcag_criterion: Optional[str] = None
    pdfua_clause: Optional[str] = None
    suggestion: Optional[str] = None
    suggestion_de: Optional[str] = None
    auto_fixable: bool = False
    context: Optional[str] = None
    id: str = field(init=False)

    def __post_init__(self):
        object.__setattr__(
            self, "id", make_issue_id(self.type, self.slide_number, self.element_id)
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "severity": self.severity.value,
            "slideNumber": self.slide_number,
            "elementId": self.element_id,
            "elementType": self.element_type.value if self.element_type else None,
            "message": self.message,
            "messageDE": self.message_de,
            "wcagCriteria": self.wcag_criterion,
            "pdfuaClause": self.pdfua_clause,
            "suggestion": self.suggestion,
            "suggestionDE": self.suggestion_de,
            "autoFixable": self.auto_fixable,
            "context": self.context,
        }


@dataclass
class SlideElement:
    """
    Ein Inhaltselement auf einer Folie.

    is_decorative == True heißt: kein Knoten im Strukturbaum,
    kein Alt-Text nötig.
    """
    id: str
    type: ElementType
    semantic_role: SemanticRole
    position: Position = field(default_factory=Position)
    content: ElementContent = field(default_factory=ElementContent)
    style: ElementStyle = field(default_factory=ElementStyle)
    name: str = ""

    is_decorative: bool = False
    is_grouped: bool = False
    group_id: Optional[str] = None
    hyperlink: Optional[str] = None

    table_data: Optional[TableData] = None
    list_data: Optional[ListData] = None
    # Textpunkte aus SmartArt-Daten (flach, in Dokumentreihenfolge)
    smartart_items: list[ListItem] = field(default_factory=list)

    # Bilddaten (nur image)
    image_data: Optional[bytes] = None
    mime_type: Optional[str] = None
    image_hash: Optional[str] = None  # Für Caching

    issues: list[AccessibilityIssue] = field(default_factory=list)

    @property
    def text(self) -> str:
        return self.content.text

    @property
    def is_image_like(self) -> bool:
        return self.type in (ElementType.IMAGE, ElementType.CHART, ElementType.SMARTART)

    @property
    def links(self) -> list[RichTextRun]:
        """Runs mit Hyperlink."""
        return [run for run in self.content.rich_text if run.hyperlink]


@dataclass
class SlideLayout:
    type: SlideLayoutType = SlideLayoutType.CUSTOM
    name: str = "Benutzerdefiniert"


@dataclass
class Slide:
    """Eine einzelne Folie."""
    number: int
    layout: SlideLayout = field(default_factory=SlideLayout)
    elements: list[SlideElement] = field(default_factory=list)
    background_elements: list[SlideElement] = field(default_factory=list)
    reading_order: list[str] = field(default_factory=list)
    reading_order_confidence: float = 1.0
    notes: Optional[str] = None
    issues: list[AccessibilityIssue] = field(default_factory=list)

    @property
    def id(self) -> str:
        return f"slide-{self.number}"

    @property
    def title(self) -> Optional[str]:
        """Text des ersten nicht-leeren Titel-Elements."""
        for element in self.elements:
            if element.type == ElementType.TITLE and element.text.strip():
                return element.text.strip()
        return None

    def element(self, element_id: str) -> Optional[SlideElement]:
        for element in self.elements:
            if element.id == element_id:
                return element
        return None

    @property
    def ordered_elements(self) -> list[SlideElement]:
        """
        Elemente in Lesereihenfolge.

        Nicht gelistete Elemente werden in Fundreihenfolge angehängt,
        keine Doppelungen.
        """
        by_id = {element.id: element for element in self.elements}
        seen: set[str] = set()
        ordered = []
        for element_id in self.reading_order:
            if element_id in by_id and element_id not in seen:
                ordered.append(by_id[element_id])
                seen.add(element_id)
        for element in self.elements:
            if element.id not in seen:
                ordered.append(element)
                seen.add(element.id)
        return ordered


@dataclass
class DocumentMetadata:
    title: Optional[str] = None
    author: Optional[str] = None
    subject: Optional[str] = None
    keywords: list[str] = field(default_factory=list)
    language: str = "de"
    created: Optional[datetime] = None
    modified: Optional[datetime] = None


@dataclass
class Theme:
    name: str = "Default"
    colors: dict[str, str] = field(default_factory=dict)
    heading_font: str = "Arial"
    body_font: str = "Arial"


@dataclass
class PresentationStats:
    total_elements: int = 0
    images_with_alt_text: int = 0
    images_without_alt_text: int = 0
    decorative_images: int = 0
    tables: int = 0
    lists: int = 0
    links: int = 0

    def to_dict(self) -> dict:
        return {
            "totalElements": self.total_elements,
            "imagesWithAltText": self.images_with_alt_text,
            "imagesWithoutAltText": self.images_without_alt_text,
            "decorativeImages": self.decorative_images,
            "tables": self.tables,
            "lists": self.lists,
            "links": self.links,
        }


def compute_stats(slides: list[Slide]) -> PresentationStats:
    """Einzige Ableitung der Statistik aus den Folien."""
    stats = PresentationStats()
    for slide in slides:
        stats.total_elements += len(slide.elements)
        for element in slide.elements + slide.background_elements:
            if element.type == ElementType.IMAGE:
                if element.is_decorative:
                    stats.decorative_images += 1
                elif element.content.alt_text and element.content.alt_text.strip():
                    stats.images_with_alt_text += 1
                else:
                    stats.images_without_alt_text += 1
        for element in slide.elements:
            if element.type == ElementType.TABLE:
                stats.tables += 1
            elif element.type == ElementType.LIST:
                stats.lists += 1
            stats.links += len(element.links)
            if element.hyperlink and not element.links:
                stats.links += 1
    return stats


@dataclass
class Presentation:
    """
    Komplettes Präsentationsmodell.

    Das ist das zentrale Datenformat, das durch die
    gesamte Pipeline fließt:

    PPTX → [Parser] → Presentation → [Enricher] → Presentation → [Generator] → PDF
    """
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    slides: list[Slide] = field(default_factory=list)
    theme: Theme = field(default_factory=Theme)
    stats: PresentationStats = field(default_factory=PresentationStats)
    issues: list[AccessibilityIssue] = field(default_factory=list)
    source_name: Optional[str] = None

    @property
    def slide_count(self) -> int:
        return len(self.slides)

    def refresh_stats(self) -> PresentationStats:
        self.stats = compute_stats(self.slides)
        return self.stats

    def iter_elements(self) -> Iterator[tuple[Slide, SlideElement]]:
        for slide in self.slides:
            for element in slide.elements:
                yield slide, element

    def to_dict(self) -> dict:
        """Serialisiert zu Dictionary (für JSON-Export)."""
        return _to_plain(self)


def _to_plain(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bytes):
        return f"<{len(value)} bytes>"
    if isinstance(value, AccessibilityIssue):
        return value.to_dict()
    if hasattr(value, "__dataclass_fields__"):
        data = {f.name: _to_plain(getattr(value, f.name)) for f in fields(value)}
        if isinstance(value, TableData):
            data["rows"] = value.rows
            data["columns"] = value.columns
        return data
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_plain(v) for k, v in value.items()}
    return value
