"""
PDF/UA Renderer
===============
Konvertiert Presentation → getaggtes HTML → PDF/UA

Pipeline:
1. Presentation → Semantisches HTML + Strukturbaum (tagging)
2. HTML → WeasyPrint → Tagged PDF (im Speicher)
3. pikepdf → PDF/UA Metadaten, Lesezeichen, XMP patchen, Artefakte lösen
"""

import logging
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Optional

import pikepdf
from weasyprint import HTML
from weasyprint.text.fonts import FontConfiguration

from .errors import RenderError
from .models import Presentation
from .profiles import ConversionProfile, get_profile
from .sanitize import sanitize_text
from .structtree import convert_artifacts
from .tagging import StructureNode, TaggedDocument, TaggedHTMLBuilder


logger = logging.getLogger(__name__)


@dataclass
class RendererConfig:
    """Konfiguration für den Renderer."""
    # Seitenformat
    page_width_mm: float = 297.0   # A4 Landscape
    page_height_mm: float = 210.0

    # Margins
    margin_top_mm: float = 15.0
    margin_bottom_mm: float = 15.0
    margin_left_mm: float = 20.0
    margin_right_mm: float = 20.0

    # Styling
    font_family: str = "Liberation Sans, Arial, sans-serif"
    base_font_size_pt: float = 11.0
    heading_scale: float = 1.4

    # Schriftdateien, die eingebettet werden müssen (fehlt eine → RenderError)
    font_files: list[Path] = field(default_factory=list)

    # Basis-URL für relative Referenzen im HTML
    base_url: Optional[str] = None


def build_stylesheet(config: RendererConfig, profile: ConversionProfile) -> str:
    """CSS für das PDF-Rendering."""
    cfg = config
    font_faces = "\n".join(
        f"@font-face {{ font-family: \"Embedded {i}\"; src: url(\"{Path(path).resolve().as_uri()}\"); }}"
        for i, path in enumerate(cfg.font_files)
    )
    embedded = ", ".join(f'"Embedded {i}"' for i in range(len(cfg.font_files)))
    family = f"{embedded}, {cfg.font_family}" if embedded else cfg.font_family

    return f"""
{font_faces}

/* Page Setup */
@page {{
    size: {cfg.page_width_mm}mm {cfg.page_height_mm}mm;
    margin: {cfg.margin_top_mm}mm {cfg.margin_right_mm}mm {cfg.margin_bottom_mm}mm {cfg.margin_left_mm}mm;
}}

/* Folie als Section, eine Seite je Folie */
section.slide {{
    page-break-after: always;
}}

section.slide:last-child {{
    page-break-after: auto;
}}

/* Base Typography */
body {{
    font-family: {family};
    font-size: {cfg.base_font_size_pt}pt;
    line-height: 1.5;
    color: #1a1a1a;
}}

/* Headings (Lesezeichen setzt der Patcher) */
h1, h2, h3 {{
    bookmark-level: none;
    font-weight: bold;
}}

h1 {{
    font-size: {cfg.base_font_size_pt * cfg.heading_scale ** 3:.1f}pt;
    margin: 0 0 0.5em 0;
    color: #003366;
}}

h2 {{
    font-size: {cfg.base_font_size_pt * cfg.heading_scale ** 2:.1f}pt;
    margin: 0.6em 0 0.4em 0;
    color: #004080;
}}

h3 {{
    font-size: {cfg.base_font_size_pt * cfg.heading_scale:.1f}pt;
    margin: 0.5em 0 0.3em 0;
}}

p {{
    margin: 0 0 0.8em 0;
    orphans: 2;
    widows: 2;
}}

/* Listen mit expliziten Labels */
ul.list, ol.list {{
    list-style: none;
    margin: 0 0 1em 0;
    padding-left: 1.5em;
}}

ul.list ul.list, ol.list ol.list {{
    margin-bottom: 0;
}}

.lbl {{
    display: inline-block;
    min-width: 1.2em;
}}

/* Tables */
table {{
    width: 100%;
    border-collapse: collapse;
    margin: 1em 0;
    font-size: {cfg.base_font_size_pt * 0.9:.1f}pt;
}}

th, td {{
    border: 1px solid #ccc;
    padding: 0.4em 0.7em;
    text-align: left;
    vertical-align: top;
}}

th {{
    background-color: #f0f0f0;
    font-weight: bold;
}}

/* Figures */
figure {{
    margin: 1em 0;
    page-break-inside: avoid;
}}

figure img {{
    max-width: 100%;
    max-height: 120mm;
}}

figcaption {{
    font-size: {cfg.base_font_size_pt * 0.85:.1f}pt;
    color: #555;
    margin-top: 0.5em;
    font-style: italic;
}}

a {{
    color: #0066cc;
    text-decoration: underline;
}}

blockquote.artifact {{
    margin: 0;
}}

.slide-number {{
    font-size: 9pt;
    color: #666;
    text-align: right;
    margin-bottom: 0.5em;
}}

.artifact img {{
    max-width: 100%;
    max-height: 60mm;
}}
"""


class PDFUAPatcher:
    """
    Patcht PDF für PDF/UA-1 Compliance.

    WeasyPrint generiert Tagged PDFs, aber nicht alle
    PDF/UA-Anforderungen werden erfüllt. Dieser Patcher
    ergänzt Katalog-Einträge, Metadaten und Lesezeichen.
    """

    CREATOR = "pptx-a11y"
    PRODUCER = "WeasyPrint + pptx-a11y"

    def patch(
        self,
        pdf_bytes: bytes,
        document: TaggedDocument,
        presentation: Presentation,
        profile: ConversionProfile,
        page_map: Optional[dict[int, int]] = None,
    ) -> bytes:
        """
        Fügt hinzu:
        - /MarkInfo mit /Marked true
        - /Lang für Dokumentsprache
        - /ViewerPreferences /DisplayDocTitle
        - Info-Dictionary und XMP (dc:title, pdfuaid:part)
        - Lesezeichen je Folientitel (wenn im Profil aktiv)

        und macht aus den Artefakt-Containern echte Artefakte.

        Raises:
            RenderError: PDF ist nicht lesbar/schreibbar
        """
        metadata = presentation.metadata
        try:
            with pikepdf.open(BytesIO(pdf_bytes)) as pdf:
                # 1. MarkInfo (zeigt an dass PDF getaggt ist)
                pdf.Root.MarkInfo = pikepdf.Dictionary({
                    "/Marked": True
                })

                # 2. Dokumentsprache
                pdf.Root.Lang = pikepdf.String(document.language)

                # 3. ViewerPreferences
                pdf.Root.ViewerPreferences = pikepdf.Dictionary({
                    "/DisplayDocTitle": True
                })

                # 4. Metadaten via Info Dictionary
                pdf.docinfo["/Title"] = pikepdf.String(document.title)
                pdf.docinfo["/Author"] = pikepdf.String(sanitize_text(metadata.author))
                pdf.docinfo["/Subject"] = pikepdf.String(sanitize_text(metadata.subject))
                if metadata.keywords:
                    pdf.docinfo["/Keywords"] = pikepdf.String(sanitize_text(", ".join(metadata.keywords)))
                pdf.docinfo["/Creator"] = pikepdf.String(self.CREATOR)
                pdf.docinfo["/Producer"] = pikepdf.String(self.PRODUCER)

                # 5. XMP Metadaten (PDF/UA Part Identifier)
                with pdf.open_metadata(set_pikepdf_as_editor=False, update_docinfo=False) as meta:
                    meta["dc:title"] = document.title
                    meta["pdfuaid:part"] = "1"

                # 6. Lesezeichen
                self._write_outline(pdf, document, profile, page_map or {})

                # 7. Artefakte aus dem Strukturbaum lösen
                convert_artifacts(pdf)

                out = BytesIO()
                pdf.save(out, linearize=profile.export.linearized)
                return out.getvalue()
        except pikepdf.PdfError as e:
            raise RenderError(
                f"PDF post-processing failed: {e}",
                f"PDF-Nachbearbeitung fehlgeschlagen: {e}",
            ) from e

    @staticmethod
    def _write_outline(pdf, document: TaggedDocument, profile: ConversionProfile, page_map: dict[int, int]):
        with pdf.open_outline() as outline:
            outline.root.clear()
            if not profile.export.include_bookmarks:
                return
            page_count = len(pdf.pages)
            for slide_number, title in document.bookmarks:
                page_index = page_map.get(slide_number, slide_number - 1)
                if 0 <= page_index < page_count:
                    outline.root.append(pikepdf.OutlineItem(title, page_index))
        if profile.export.include_bookmarks and document.bookmarks:
            pdf.Root.PageMode = pikepdf.Name.UseOutlines


class TaggedDocumentGenerator:
    """
    Hauptklasse für PDF/UA Rendering.

    Erzeugt auch für Präsentationen mit offenen Befunden immer
    ein bestmögliches PDF; ob es ausgeliefert wird, entscheidet
    der Aufrufer anhand des Berichts.

    Usage:
        generator = TaggedDocumentGenerator()
        pdf_bytes = generator.generate(presentation, get_profile("strict"))
    """

    def __init__(self, config: Optional[RendererConfig] = None):
        self.config = config or RendererConfig()
        self.patcher = PDFUAPatcher()

    def build(self, presentation: Presentation, profile: Optional[ConversionProfile] = None) -> TaggedDocument:
        """Nur HTML und Strukturbaum (ohne PDF)."""
        profile = profile or get_profile()
        stylesheet = build_stylesheet(self.config, profile)
        return TaggedHTMLBuilder(profile, stylesheet).build(presentation)

    def generate(self, presentation: Presentation, profile: Optional[ConversionProfile] = None) -> bytes:
        pdf_bytes, _ = self.generate_with_structure(presentation, profile)
        return pdf_bytes

    def generate_with_structure(
        self,
        presentation: Presentation,
        profile: Optional[ConversionProfile] = None,
    ) -> tuple[bytes, StructureNode]:
        """
        Rendert eine Präsentation zu PDF/UA.

        Returns:
            (PDF-Bytes, Strukturbaum)

        Raises:
            RenderError: Schriftdatei fehlt oder Rendering schlägt fehl
        """
        profile = profile or get_profile()
        self._check_fonts(profile)

        document = self.build(presentation, profile)
        logger.debug("HTML erzeugt (%d Zeichen)", len(document.html))

        try:
            rendered = HTML(
                string=document.html,
                base_url=self.config.base_url,
            ).render(font_config=FontConfiguration())
            page_map = self._page_map(rendered, presentation)
            pdf_bytes = rendered.write_pdf(
                pdf_variant="pdf/ua-1",
                pdf_version=profile.export.pdf_version,
            )
        except (OSError, ValueError) as e:
            raise RenderError(
                f"PDF rendering failed: {e}",
                f"PDF-Rendering fehlgeschlagen: {e}",
            ) from e

        patched = self.patcher.patch(pdf_bytes, document, presentation, profile, page_map)
        logger.debug("PDF erzeugt: %d Seiten-Zuordnungen, %d Bytes", len(page_map), len(patched))
        return patched, document.structure

    def _check_fonts(self, profile: ConversionProfile):
        if not profile.export.embed_fonts:
            return
        for path in self.config.font_files:
            if not Path(path).is_file():
                raise RenderError(
                    f"Required font file cannot be embedded: {path}",
                    f"Benötigte Schriftdatei kann nicht eingebettet werden: {path}",
                )

    @staticmethod
    def _page_map(rendered, presentation: Presentation) -> dict[int, int]:
        """Foliennummer → Index der ersten Seite dieser Folie."""
        first_page: dict[str, int] = {}
        for index, page in enumerate(rendered.pages):
            for anchor in page.anchors:
                first_page.setdefault(anchor, index)
        return {
            slide.number: first_page[slide.id]
            for slide in presentation.slides
            if slide.id in first_page
        }


def generate(
    presentation: Presentation,
    profile: Optional[ConversionProfile] = None,
    config: Optional[RendererConfig] = None,
) -> bytes:
    """Kurzform für TaggedDocumentGenerator(config).generate(...)."""
    return TaggedDocumentGenerator(config).generate(presentation, profile)
