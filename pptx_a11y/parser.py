"""
PPTX Parser
===========
Extrahiert ein semantisches Presentation-Modell aus PowerPoint-Dateien.

Kernaufgaben:
1. Paket prüfen (ZIP, Pflicht-Parts, Folienreihenfolge)
2. Shapes parsen und klassifizieren
3. Alt-Texte und Dekorativ-Markierungen auslesen
4. Lesereihenfolge heuristisch bestimmen (mit Konfidenz)
5. Pseudo-Tabellen erkennen und Befunde direkt ins Modell schreiben
"""

import hashlib
import logging
import re
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Callable, Optional

from pptx import Presentation as PptxPresentation
from pptx.enum.dml import MSO_COLOR_TYPE, MSO_THEME_COLOR
from pptx.enum.shapes import MSO_SHAPE_TYPE, PP_PLACEHOLDER
from pptx.shapes.base import BaseShape
from pptx.shapes.group import GroupShape
from pptx.shapes.picture import Picture

from . import issues
from .errors import MalformedPackageError, PartParseError
from .geometry import (
    ROW_TOLERANCE_PX,
    compute_reading_order,
    detect_layout,
    detect_pseudo_table,
    reading_order_confidence,
)
from .models import (
    DECORATIVE_EMPTY_DESCRIPTION,
    DECORATIVE_MARKER,
    AltTextStatus,
    DocumentMetadata,
    ElementContent,
    ElementStyle,
    ElementType,
    ListData,
    ListItem,
    Position,
    Presentation,
    RichTextRun,
    SemanticRole,
    Slide,
    SlideElement,
    TableCell,
    TableData,
    Theme,
)
from .package import DIAGRAM_URI, PackageReader, XmlNode
from .profiles import default_role


logger = logging.getLogger(__name__)

EMU_PER_PX = 9525  # 914400 EMU/inch / 96 px/inch

# Hintergrund unbekannt: ab dieser Helligkeit gilt Text als "hell"
LIGHT_TEXT_LUMINANCE = 0.8

_PLACEHOLDER_TYPES = {
    PP_PLACEHOLDER.TITLE: ElementType.TITLE,
    PP_PLACEHOLDER.CENTER_TITLE: ElementType.TITLE,
    PP_PLACEHOLDER.SUBTITLE: ElementType.SUBTITLE,
    PP_PLACEHOLDER.BODY: ElementType.BODY,
    PP_PLACEHOLDER.DATE: ElementType.DATE,
    PP_PLACEHOLDER.FOOTER: ElementType.FOOTER,
    PP_PLACEHOLDER.SLIDE_NUMBER: ElementType.SLIDE_NUMBER,
}

# Body-/Objekt-Platzhalter erben Aufzählungszeichen vom Master
_BULLET_PLACEHOLDERS = {PP_PLACEHOLDER.BODY, PP_PLACEHOLDER.OBJECT}

_THEME_COLOR_KEYS = {
    MSO_THEME_COLOR.TEXT_1: "dk1",
    MSO_THEME_COLOR.DARK_1: "dk1",
    MSO_THEME_COLOR.BACKGROUND_1: "lt1",
    MSO_THEME_COLOR.LIGHT_1: "lt1",
    MSO_THEME_COLOR.TEXT_2: "dk2",
    MSO_THEME_COLOR.DARK_2: "dk2",
    MSO_THEME_COLOR.BACKGROUND_2: "lt2",
    MSO_THEME_COLOR.LIGHT_2: "lt2",
    MSO_THEME_COLOR.ACCENT_1: "accent1",
    MSO_THEME_COLOR.ACCENT_2: "accent2",
    MSO_THEME_COLOR.ACCENT_3: "accent3",
    MSO_THEME_COLOR.ACCENT_4: "accent4",
    MSO_THEME_COLOR.ACCENT_5: "accent5",
    MSO_THEME_COLOR.ACCENT_6: "accent6",
    MSO_THEME_COLOR.HYPERLINK: "hlink",
}

_DEFAULT_SCHEME_COLORS = {
    "dk1": "000000",
    "lt1": "FFFFFF",
    "dk2": "333333",
    "lt2": "F0F0F0",
}


@dataclass
class ParserConfig:
    """Konfiguration für den Parser."""
    # Sprache, falls das Paket keine angibt
    default_language: str = "de"

    # Toleranz für "gleiche Zeile" in der Lesereihenfolge (px)
    row_tolerance: float = ROW_TOLERANCE_PX

    # Bilddaten ins Modell übernehmen (für Rendering und KI)
    extract_images: bool = True


# === Klassifikation ===
#
# Jede Strategie liefert einen ElementType oder None ("keine Meinung").
# Die erste Strategie mit Meinung gewinnt.

TextClassifier = Callable[[BaseShape], Optional[ElementType]]


def classify_by_placeholder(shape: BaseShape) -> Optional[ElementType]:
    """Expliziter Platzhalter-Typ (title, ctrTitle, subTitle, body, dt, ftr, sldNum)."""
    if not shape.is_placeholder:
        return None
    return _PLACEHOLDER_TYPES.get(shape.placeholder_format.type)


def classify_by_name(shape: BaseShape) -> Optional[ElementType]:
    """Namens-Heuristik ("Subtitle 2", "Title 1", "Content Placeholder 3")."""
    name = (shape.name or "").lower()
    if "subtitle" in name:
        return ElementType.SUBTITLE
    if "title" in name:
        return ElementType.TITLE
    if "content" in name or "body" in name:
        return ElementType.BODY
    return None


def classify_default(shape: BaseShape) -> Optional[ElementType]:
    return ElementType.TEXTBOX


TEXT_CLASSIFIERS: tuple[TextClassifier, ...] = (
    classify_by_placeholder,
    classify_by_name,
    classify_default,
)


def classify_text_shape(
    shape: BaseShape,
    classifiers: tuple[TextClassifier, ...] = TEXT_CLASSIFIERS,
) -> ElementType:
    for classifier in classifiers:
        element_type = classifier(shape)
        if element_type is not None:
            return element_type
    return ElementType.UNKNOWN


def _shape_type(shape: BaseShape) -> Optional[MSO_SHAPE_TYPE]:
    try:
        return shape.shape_type
    except NotImplementedError:
        # python-pptx kennt nicht jede sp-Variante
        return None


def is_light_color(hex_color: Optional[str]) -> bool:
    """Relative Helligkeit (0.299 R + 0.587 G + 0.114 B) > 0.8"""
    if not hex_color or not re.fullmatch(r"[0-9A-Fa-f]{6}", hex_color):
        return False
    r, g, b = (int(hex_color[i:i + 2], 16) for i in (0, 2, 4))
    luminance = (0.299 * r + 0.587 * g + 0.114 * b) / 255
    return luminance > LIGHT_TEXT_LUMINANCE


class _GroupTransform:
    """Rechnet Kind-Koordinaten einer Gruppe in Folienkoordinaten um."""

    def __init__(self, parent: Optional["_GroupTransform"] = None, xfrm: XmlNode = None):
        self.parent = parent
        self.scale_x = self.scale_y = 1.0
        self.dx = self.dy = 0.0
        if xfrm:
            off, ext = xfrm.child("a:off"), xfrm.child("a:ext")
            ch_off, ch_ext = xfrm.child("a:chOff"), xfrm.child("a:chExt")
            ch_cx = float(ch_ext.attr("cx", "0") or 0)
            ch_cy = float(ch_ext.attr("cy", "0") or 0)
            if ch_cx:
                self.scale_x = float(ext.attr("cx", "0") or 0) / ch_cx
            if ch_cy:
                self.scale_y = float(ext.attr("cy", "0") or 0) / ch_cy
            self.dx = float(off.attr("x", "0") or 0) - float(ch_off.attr("x", "0") or 0) * self.scale_x
            self.dy = float(off.attr("y", "0") or 0) - float(ch_off.attr("y", "0") or 0) * self.scale_y

    def apply(self, x: float, y: float, cx: float, cy: float) -> tuple[float, float, float, float]:
        x, y = x * self.scale_x + self.dx, y * self.scale_y + self.dy
        cx, cy = cx * self.scale_x, cy * self.scale_y
        if self.parent:
            return self.parent.apply(x, y, cx, cy)
        return x, y, cx, cy


class PPTXParser:
    """
    Parst PPTX-Dateien zu einem semantischen Presentation-Modell.

    Usage:
        parser = PPTXParser()
        presentation = parser.parse("presentation.pptx")

    Raises (parse):
        MalformedPackageError: kein gültiges PPTX-Paket
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        classifiers: tuple[TextClassifier, ...] = TEXT_CLASSIFIERS,
    ):
        self.config = config or ParserConfig()
        self.classifiers = classifiers

    def parse(self, source: bytes | Path | str) -> Presentation:
        """
        Parst ein PPTX-Paket.

        Args:
            source: Rohe Bytes oder Pfad zur PPTX-Datei

        Returns:
            Presentation mit Folien, Lesereihenfolge und Befunden
        """
        source_name = None
        if isinstance(source, (str, Path)):
            source_name = Path(source).name
            data = Path(source).read_bytes()
        else:
            data = source

        # Paketstruktur prüfen, bevor python-pptx es lädt
        reader = PackageReader.from_bytes(data)
        try:
            presentation = _PackageParse(self.config, self.classifiers, reader).run(data, source_name)
        finally:
            reader.close()

        logger.debug(
            "%d Folien, %d Elemente geparst",
            presentation.slide_count, presentation.stats.total_elements,
        )
        return presentation


class _PackageParse:
    """Zustand eines einzelnen parse()-Aufrufs: Reader, Theme, z-Reihenfolge."""

    def __init__(
        self,
        config: ParserConfig,
        classifiers: tuple[TextClassifier, ...],
        reader: PackageReader,
    ):
        self.config = config
        self.classifiers = classifiers
        self._reader = reader
        self._theme = Theme()
        self._z_order = 0

    def run(self, data: bytes, source_name: Optional[str]) -> Presentation:
        slide_parts = self._reader.slide_part_names()

        try:
            prs = PptxPresentation(BytesIO(data))
        except MalformedPackageError:
            raise
        except Exception as e:
            raise MalformedPackageError(
                f"Presentation could not be opened: {e}",
                f"Präsentation konnte nicht geöffnet werden: {e}",
            ) from e

        self._theme = self._parse_theme(self._reader)

        presentation = Presentation(
            metadata=self._parse_metadata(prs),
            theme=self._theme,
            source_name=source_name,
        )

        pptx_slides = {
            str(pptx_slide.part.partname).lstrip("/"): pptx_slide
            for pptx_slide in prs.slides
        }
        for slide_number, part_name in enumerate(slide_parts, 1):
            pptx_slide = pptx_slides.get(part_name)
            if pptx_slide is None:
                raise MalformedPackageError(
                    f"Slide part {part_name} is not part of the presentation",
                    f"Folien-Part {part_name} gehört nicht zur Präsentation",
                )
            presentation.slides.append(self._parse_slide(pptx_slide, slide_number, part_name))

        presentation.issues.extend(self._document_issues(presentation.metadata))
        presentation.refresh_stats()
        return presentation

    # === Dokument ===

    def _parse_metadata(self, prs) -> DocumentMetadata:
        props = prs.core_properties
        keywords = [
            k.strip() for k in re.split(r"[,;]", props.keywords or "")
            if k.strip()
        ]
        language = (props.language or "").strip() or self.config.default_language
        return DocumentMetadata(
            title=(props.title or "").strip() or None,
            author=(props.author or "").strip() or None,
            subject=(props.subject or "").strip() or None,
            keywords=keywords,
            language=language,
            created=props.created,
            modified=props.modified,
        )

    def _parse_theme(self, reader: PackageReader) -> Theme:
        theme = Theme(colors=dict(_DEFAULT_SCHEME_COLORS))
        part = reader.theme_part_name()
        if part is None:
            return theme

        root = reader.xml(part)
        theme.name = root.attr("name") or theme.name
        elements = root.child("a:themeElements")

        for color in elements.child("a:clrScheme").children():
            srgb = color.child("a:srgbClr")
            value = srgb.attr("val") if srgb else color.child("a:sysClr").attr("lastClr")
            if value:
                theme.colors[color.tag] = value.upper()

        fonts = elements.child("a:fontScheme")
        major = fonts.path("a:majorFont", "a:latin").attr("typeface")
        minor = fonts.path("a:minorFont", "a:latin").attr("typeface")
        theme.heading_font = major or theme.heading_font
        theme.body_font = minor or theme.body_font
        return theme

    def _document_issues(self, metadata: DocumentMetadata):
        found = []
        if not metadata.title:
            found.append(issues.missing_document_title())
        if not metadata.language or metadata.language == "und" or len(metadata.language) < 2:
            found.append(issues.missing_language())
        return found

    # === Folien ===

    def _parse_slide(self, pptx_slide, slide_number: int, part_name: str) -> Slide:
        """Parst eine einzelne Folie."""
        slide = Slide(number=slide_number)
        self._z_order = 0

        for shape in pptx_slide.shapes:
            for element in self._parse_shape(shape, slide_number, part_name, None, None):
                if element.is_decorative:
                    slide.background_elements.append(element)
                else:
                    slide.elements.append(element)

        slide.reading_order = compute_reading_order(slide.elements, self.config.row_tolerance)
        slide.reading_order_confidence = reading_order_confidence(slide.elements)
        slide.layout = detect_layout(slide.elements)

        # Speaker Notes
        if pptx_slide.has_notes_slide:
            notes_frame = pptx_slide.notes_slide.notes_text_frame
            if notes_frame is not None and notes_frame.text.strip():
                slide.notes = notes_frame.text.strip()

        if slide.title is None:
            slide.issues.append(issues.missing_slide_title(slide_number))

        grid = detect_pseudo_table(slide.elements)
        if grid:
            slide.issues.append(issues.pseudo_table(slide_number, *grid))

        logger.debug(
            "Folie %d: %d Elemente, %d Hintergrund, Konfidenz %.2f",
            slide_number, len(slide.elements), len(slide.background_elements),
            slide.reading_order_confidence,
        )
        return slide

    def _parse_shape(
        self,
        shape: BaseShape,
        slide_number: int,
        part_name: str,
        transform: Optional[_GroupTransform],
        group_id: Optional[str],
    ) -> list[SlideElement]:
        """
        Parst ein Shape zu null oder mehr Elementen.

        Gruppen werden rekursiv aufgelöst, ihre Kinder tragen
        is_grouped und group_id.
        """
        if isinstance(shape, GroupShape):
            return self._parse_group(shape, slide_number, part_name, transform)

        self._z_order += 1

        if isinstance(shape, Picture):
            element = self._parse_picture(shape)
        elif shape.has_table:
            element = self._parse_table(shape)
        elif shape.has_chart:
            element = self._parse_chart(shape)
        elif self._graphic_uri(shape) == DIAGRAM_URI:
            element = self._parse_smartart(shape, part_name)
        elif shape.has_text_frame:
            element = self._parse_text_shape(shape)
        else:
            element = self._new_element(shape, ElementType.SHAPE)

        element.position = self._position(shape, transform)
        if group_id is not None:
            element.is_grouped = True
            element.group_id = group_id

        if element.is_image_like and not element.is_decorative:
            if element.content.alt_text_status == AltTextStatus.MISSING:
                element.issues.append(issues.missing_alt_text(slide_number, element))
        if element.type == ElementType.SMARTART:
            element.issues.append(issues.flattened_content(slide_number, element))

        return [element]

    def _parse_group(self, shape, slide_number: int, part_name: str, parent) -> list[SlideElement]:
        group_id = f"group-{shape.shape_id}"
        xfrm = XmlNode(shape._element).path("p:grpSpPr", "a:xfrm")
        transform = _GroupTransform(parent, xfrm)

        elements = []
        for child in shape.shapes:
            elements.extend(self._parse_shape(child, slide_number, part_name, transform, group_id))

        if len(elements) > 1:
            elements[0].issues.append(issues.grouped_content_order(slide_number, group_id))
        return elements

    # === Element-Typen ===

    def _new_element(self, shape: BaseShape, element_type: ElementType) -> SlideElement:
        """Basis-Element mit Alt-Text und Dekorativ-Status aus cNvPr."""
        c_nv_pr = self._c_nv_pr(shape)
        descr = c_nv_pr.attr("descr")
        title = c_nv_pr.attr("title")

        marker = self._has_decorative_marker(c_nv_pr)
        empty_descr = descr is not None and not descr.strip()

        content = ElementContent()
        alt_text = (descr or "").strip() or (title or "").strip() or None
        content.alt_text = alt_text
        if title and descr and descr.strip():
            content.long_description = descr.strip()

        if marker:
            content.alt_text_status = AltTextStatus.DECORATIVE
            content.decorative_source = DECORATIVE_MARKER
        elif empty_descr:
            content.alt_text_status = AltTextStatus.DECORATIVE
            content.decorative_source = DECORATIVE_EMPTY_DESCRIPTION
        elif alt_text:
            content.alt_text_status = AltTextStatus.PRESENT

        return SlideElement(
            id=f"shape-{shape.shape_id}",
            type=element_type,
            semantic_role=default_role(element_type),
            content=content,
            name=shape.name or "",
            is_decorative=marker or empty_descr,
        )

    def _parse_text_shape(self, shape: BaseShape) -> SlideElement:
        """Parst ein Text-Shape und bestimmt den semantischen Typ."""
        text, runs = self._extract_text(shape.text_frame)
        is_placeholder = shape.is_placeholder

        if not text.strip() and not is_placeholder and _shape_type(shape) != MSO_SHAPE_TYPE.TEXT_BOX:
            # Reine Form ohne Text (Rechteck, Pfeil, ...)
            return self._new_element(shape, ElementType.SHAPE)

        element_type = classify_text_shape(shape, self.classifiers)
        element = self._new_element(shape, element_type)
        element.content.text = text
        element.content.rich_text = runs
        element.style = self._extract_style(runs)
        element.hyperlink = self._shape_hyperlink(shape) or next(
            (run.hyperlink for run in runs if run.hyperlink), None
        )

        list_data = self._detect_list(shape)
        if list_data and element_type in (ElementType.BODY, ElementType.TEXTBOX, ElementType.PARAGRAPH):
            element.type = ElementType.LIST
            element.semantic_role = SemanticRole.L
            element.list_data = list_data

        return element

    def _parse_picture(self, shape) -> SlideElement:
        """Parst ein Bild-Shape."""
        element = self._new_element(shape, ElementType.IMAGE)
        element.hyperlink = self._shape_hyperlink(shape)

        if self.config.extract_images:
            try:
                image = shape.image
            except (ValueError, KeyError, AttributeError) as e:
                # Bild-Platzhalter ohne eingebettetes Bild
                logger.warning("Bilddaten für %s nicht lesbar: %s", element.id, e)
            else:
                element.image_data = image.blob
                element.mime_type = image.content_type
                element.image_hash = hashlib.md5(image.blob).hexdigest()
        return element

    def _parse_table(self, shape) -> SlideElement:
        """Parst eine Tabelle (erste Zeile = Kopfzeile, außer explizit abgeschaltet)."""
        element = self._new_element(shape, ElementType.TABLE)
        pptx_table = shape.table
        rows = list(pptx_table.rows)

        tbl_pr = XmlNode(pptx_table._tbl).child("a:tblPr")
        header_row = bool(rows) and tbl_pr.attr("firstRow") not in ("0", "false")
        header_col = tbl_pr.attr("firstCol") in ("1", "true")

        cells: list[list[TableCell]] = []
        for row_idx, pptx_row in enumerate(rows):
            row_cells = []
            for col_idx, pptx_cell in enumerate(pptx_row.cells):
                if pptx_cell.is_spanned:
                    continue
                text, runs = self._extract_text(pptx_cell.text_frame)
                is_header = (header_row and row_idx == 0) or (header_col and col_idx == 0)
                scope = None
                if is_header:
                    scope = "col" if header_row and row_idx == 0 else "row"
                row_cells.append(TableCell(
                    content=text,
                    rich_text=runs,
                    is_header=is_header,
                    scope=scope,
                    row_span=pptx_cell.span_height if pptx_cell.is_merge_origin else 1,
                    col_span=pptx_cell.span_width if pptx_cell.is_merge_origin else 1,
                ))
            cells.append(row_cells)

        element.table_data = TableData(
            cells=cells,
            has_header_row=header_row,
            has_header_column=header_col,
        )
        element.content.text = "\n".join(
            " | ".join(cell.content for cell in row) for row in cells
        )
        return element

    def _parse_chart(self, shape) -> SlideElement:
        """
        Parst ein Chart. Charts brauchen Alt-Text wie Bilder;
        der Diagrammtitel dient nur als Langbeschreibung.
        """
        element = self._new_element(shape, ElementType.CHART)
        chart = shape.chart
        if chart.has_title and chart.chart_title.has_text_frame:
            chart_title = chart.chart_title.text_frame.text.strip()
            if chart_title and not element.content.long_description:
                element.content.long_description = chart_title
        return element

    def _parse_smartart(self, shape, part_name: str) -> SlideElement:
        """
        Parst ein SmartArt-Diagramm.

        Die Hierarchie geht verloren, die Textpunkte bleiben als
        flache Liste erhalten.
        """
        element = self._new_element(shape, ElementType.SMARTART)

        graphic_data = XmlNode(shape._element).path("a:graphic", "a:graphicData")
        data_rel = graphic_data.child("dgm:relIds").attr("r:dm")
        data_part = self._reader.related_part(part_name, data_rel) if data_rel else None
        if data_part is None or not self._reader.has_part(data_part):
            logger.warning("SmartArt-Daten für %s nicht gefunden", element.id)
            return element

        try:
            data_model = self._reader.xml(data_part)
        except PartParseError as e:
            logger.warning("SmartArt-Daten für %s nicht lesbar: %s", element.id, e)
            return element

        for point in data_model.descendants("dgm:pt"):
            if point.attr("type", "node") != "node":
                continue
            text = "".join(t.text for t in point.descendants("a:t")).strip()
            if text:
                element.smartart_items.append(ListItem(text=text))

        element.content.text = "\n".join(item.text for item in element.smartart_items)
        if element.smartart_items and not element.content.alt_text:
            element.semantic_role = SemanticRole.L
        return element

    # === Hilfsfunktionen ===

    def _extract_text(self, text_frame) -> tuple[str, list[RichTextRun]]:
        """Flacher Text (Absätze mit \\n getrennt) und Rich-Text-Runs."""
        paragraphs = []
        runs = []
        for pptx_para in text_frame.paragraphs:
            para_runs = self._paragraph_runs(pptx_para)
            paragraphs.append("".join(run.text for run in para_runs))
            runs.extend(para_runs)
        return "\n".join(paragraphs), runs

    def _paragraph_runs(self, pptx_para) -> list[RichTextRun]:
        runs = []
        for pptx_run in pptx_para.runs:
            if not pptx_run.text:
                continue
            font = pptx_run.font
            runs.append(RichTextRun(
                text=pptx_run.text,
                bold=bool(font.bold),
                italic=bool(font.italic),
                underline=bool(font.underline),
                font_size=font.size.pt if font.size is not None else None,
                color=self._resolve_color(font.color),
                hyperlink=pptx_run.hyperlink.address or None,
            ))
        return runs

    def _resolve_color(self, color_format) -> Optional[str]:
        color_type = color_format.type
        if color_type == MSO_COLOR_TYPE.RGB:
            return str(color_format.rgb).upper()
        if color_type == MSO_COLOR_TYPE.SCHEME:
            key = _THEME_COLOR_KEYS.get(color_format.theme_color)
            if key:
                return self._theme.colors.get(key) or _DEFAULT_SCHEME_COLORS.get(key)
        return None

    def _extract_style(self, runs: list[RichTextRun]) -> ElementStyle:
        style = ElementStyle()
        if not runs:
            return style
        sizes = [run.font_size for run in runs if run.font_size]
        style.font_size = max(sizes) if sizes else None
        if all(run.bold for run in runs):
            style.font_weight = "bold"
        if all(run.italic for run in runs):
            style.font_style = "italic"
        style.text_color = next((run.color for run in runs if run.color), None)
        style.is_light_text = is_light_color(style.text_color)
        return style

    def _detect_list(self, shape) -> Optional[ListData]:
        """
        Erkennt Aufzählungen.

        Explizite Aufzählungszeichen (buChar/buAutoNum) oder Einrückung
        zählen immer. Body-Platzhalter erben Aufzählungszeichen vom
        Master, dort reichen zwei Absätze ohne buNone.
        """
        paragraphs = [p for p in shape.text_frame.paragraphs if "".join(r.text for r in p.runs).strip()]
        if not paragraphs:
            return None

        inherits_bullets = (
            shape.is_placeholder
            and shape.placeholder_format.type in _BULLET_PLACEHOLDERS
        )

        items = []
        numbered = False
        for para in paragraphs:
            p_pr = XmlNode(para._p).child("a:pPr")
            if p_pr.child("a:buNone"):
                return None
            explicit = bool(p_pr.child("a:buChar")) or bool(p_pr.child("a:buAutoNum"))
            if not (explicit or para.level > 0 or inherits_bullets):
                return None
            if p_pr.child("a:buAutoNum"):
                numbered = True
            items.append((para, explicit or para.level > 0))

        if inherits_bullets and len(items) < 2 and not any(flag for _, flag in items):
            return None

        list_type = "numbered" if numbered else "bullet"
        list_items = []
        for para, _ in items:
            runs = self._paragraph_runs(para)
            list_items.append(ListItem(
                text="".join(run.text for run in runs),
                level=para.level,
                list_type=list_type,
                rich_text=runs,
            ))
        return ListData(
            list_type=list_type,
            level=min(item.level for item in list_items),
            items=list_items,
        )

    def _position(self, shape: BaseShape, transform: Optional[_GroupTransform]) -> Position:
        """Position in px (EMU / 9525), Gruppen-Koordinaten umgerechnet."""
        x = float(shape.left or 0)
        y = float(shape.top or 0)
        cx = float(shape.width or 0)
        cy = float(shape.height or 0)
        if transform is not None:
            x, y, cx, cy = transform.apply(x, y, cx, cy)
        return Position(
            x=round(x / EMU_PER_PX, 2),
            y=round(y / EMU_PER_PX, 2),
            width=round(cx / EMU_PER_PX, 2),
            height=round(cy / EMU_PER_PX, 2),
            z_order=self._z_order,
        )

    @staticmethod
    def _c_nv_pr(shape: BaseShape) -> XmlNode:
        """p:cNvPr aus dem jeweiligen nv*Pr-Container (sp, pic, graphicFrame, cxnSp)."""
        root = XmlNode(shape._element)
        for container in root.children():
            c_nv_pr = container.child("p:cNvPr")
            if c_nv_pr:
                return c_nv_pr
        return root.descendant("p:cNvPr")

    @staticmethod
    def _has_decorative_marker(c_nv_pr: XmlNode) -> bool:
        for ext in c_nv_pr.path("a:extLst").children("a:ext"):
            marker = ext.child("adec:decorative")
            if marker:
                return marker.attr("val") in ("1", "true")
        return False

    @staticmethod
    def _graphic_uri(shape: BaseShape) -> Optional[str]:
        return XmlNode(shape._element).path("a:graphic", "a:graphicData").attr("uri")

    @staticmethod
    def _shape_hyperlink(shape: BaseShape) -> Optional[str]:
        try:
            hyperlink = shape.click_action.hyperlink
        except AttributeError:
            return None
        return hyperlink.address or None


def parse_presentation(source: bytes | Path | str, config: Optional[ParserConfig] = None) -> Presentation:
    """Kurzform für PPTXParser(config).parse(source)."""
    return PPTXParser(config).parse(source)
