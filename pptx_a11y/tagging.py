"""
Getaggtes HTML und Strukturbaum
===============================
Erzeugt in einem Durchlauf semantisches HTML (für WeasyPrint) und
den dazu passenden Strukturbaum im Speicher:

    Document
      └─ Part (je Folie)
           ├─ H1 / H2          Titel, Untertitel
           ├─ P  (─ Link)      Fließtext
           ├─ L ─ LI ─ Lbl     Listen (verschachtelt nach Ebene)
           │          └ LBody
           ├─ Table ─ TR ─ TH/TD
           └─ Figure           Bilder, Charts, SmartArt (alt verbatim)

Dekorative Elemente und Artefakte werden sichtbar gerendert,
bekommen aber keinen Knoten. Im HTML stehen sie in einem
Artefakt-Container, den der PDF-Patcher aus dem Strukturbaum
des PDFs entfernt (siehe structtree).

Alles, was im PDF zur /Figure werden soll, wird als <img> mit alt
gerendert; nur daraus schreibt WeasyPrint /Figure mit /Alt.
"""

import base64
import html
import textwrap
from dataclasses import dataclass, field
from typing import Iterator, Optional

from .models import (
    ElementType,
    ListItem,
    Presentation,
    RichTextRun,
    SemanticRole,
    Slide,
    SlideElement,
    TableData,
)
from .profiles import ConversionProfile, get_profile
from .sanitize import sanitize_text
from .structtree import ARTIFACT_HTML_TAG


FIGURE_FALLBACK_ALT = "[Bild ohne Alternativtext]"

# Platzhaltergrafik für Figures ohne Bitmap (Chart, SmartArt, Form)
PLACEHOLDER_WIDTH = 800
PLACEHOLDER_LINE_CHARS = 90
PLACEHOLDER_MAX_LINES = 12

_HEADING_ROLES = {
    SemanticRole.H1: "h1",
    SemanticRole.H2: "h2",
    SemanticRole.H3: "h3",
}

# Rollen, die als Fließtext gerendert werden
_TEXT_ROLES = {
    SemanticRole.P,
    SemanticRole.SPAN,
    SemanticRole.CAPTION,
    SemanticRole.NOTE,
    SemanticRole.SECT,
    SemanticRole.LBODY,
    SemanticRole.LI,
}


@dataclass
class StructureNode:
    """Knoten im Strukturbaum des Ausgabedokuments."""
    role: SemanticRole
    element_id: Optional[str] = None
    text: Optional[str] = None
    alt: Optional[str] = None
    lang: Optional[str] = None
    attributes: dict = field(default_factory=dict)
    children: list["StructureNode"] = field(default_factory=list)

    def append(self, node: "StructureNode") -> "StructureNode":
        self.children.append(node)
        return node

    def walk(self) -> Iterator["StructureNode"]:
        """Tiefensuche, der Knoten selbst zuerst."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find_all(self, role: SemanticRole) -> list["StructureNode"]:
        return [node for node in self.walk() if node.role == role]

    def element_ids(self) -> set[str]:
        return {node.element_id for node in self.walk() if node.element_id}

    def to_dict(self) -> dict:
        data: dict = {"role": self.role.value}
        if self.element_id:
            data["elementId"] = self.element_id
        if self.text is not None:
            data["text"] = self.text
        if self.alt is not None:
            data["alt"] = self.alt
        if self.lang:
            data["lang"] = self.lang
        if self.attributes:
            data["attributes"] = dict(self.attributes)
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data


@dataclass
class TaggedDocument:
    """HTML-Dokument plus Strukturbaum, aus demselben Durchlauf."""
    html: str
    structure: StructureNode
    title: str
    language: str
    bookmarks: list[tuple[int, str]] = field(default_factory=list)


def _esc(text: Optional[str]) -> str:
    return html.escape(sanitize_text(text))


def _artifact(content: str, css_class: str = "artifact") -> str:
    tag = ARTIFACT_HTML_TAG
    return f'    <{tag} class="{css_class}" aria-hidden="true">{content}</{tag}>'


def placeholder_svg(text: str) -> str:
    """
    Gestrichelter Rahmen mit Text als SVG-Data-URI.

    Der Text ist Teil der Grafik; für Screenreader zählt das alt des <img>.
    """
    lines: list[str] = []
    for paragraph in sanitize_text(text).split("\n"):
        lines.extend(textwrap.wrap(paragraph, PLACEHOLDER_LINE_CHARS) or [""])
    lines = lines[:PLACEHOLDER_MAX_LINES] or [""]

    width = PLACEHOLDER_WIDTH
    height = 24 + 20 * len(lines)
    rows = "".join(
        f'<text x="16" y="{30 + 20 * i}">{html.escape(line)}</text>'
        for i, line in enumerate(lines)
    )
    svg = (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}" font-family="sans-serif" font-size="14" fill="#333333">'
        f'<rect x="1" y="1" width="{width - 2}" height="{height - 2}" fill="none" '
        f'stroke="#999999" stroke-dasharray="6 4"/>{rows}</svg>'
    )
    return "data:image/svg+xml;base64," + base64.b64encode(svg.encode("utf-8")).decode("ascii")


def _split_runs_by_lines(text: str, runs: list[RichTextRun]) -> Optional[list[list[RichTextRun]]]:
    """
    Ordnet die flachen Runs wieder den Textzeilen zu.

    None, wenn Runs und Text nicht zusammenpassen.
    """
    lines = text.split("\n")
    grouped = []
    index = 0
    for line in lines:
        current = []
        consumed = ""
        while index < len(runs) and len(consumed) < len(line):
            current.append(runs[index])
            consumed += runs[index].text
            index += 1
        if consumed != line:
            return None
        grouped.append(current)
    if index != len(runs):
        return None
    return grouped


def _nest_items(items: list[ListItem]) -> list[tuple[ListItem, list]]:
    """Flache Listenpunkte → Baum aus (Punkt, Unterpunkte) nach Ebene."""
    roots: list[tuple[ListItem, list]] = []
    stack: list[tuple[int, tuple[ListItem, list]]] = []
    for item in items:
        entry: tuple[ListItem, list] = (item, [])
        while stack and stack[-1][0] >= item.level:
            stack.pop()
        if stack:
            stack[-1][1][1].append(entry)
        else:
            roots.append(entry)
        stack.append((item.level, entry))
    return roots


class TaggedHTMLBuilder:
    """
    Baut HTML und Strukturbaum aus einer Präsentation.

    Usage:
        builder = TaggedHTMLBuilder(get_profile("standard"))
        doc = builder.build(presentation)
        doc.structure.find_all(SemanticRole.FIGURE)
    """

    def __init__(self, profile: Optional[ConversionProfile] = None, stylesheet: str = ""):
        self.profile = profile or get_profile()
        self.stylesheet = stylesheet

    def build(self, presentation: Presentation) -> TaggedDocument:
        metadata = presentation.metadata
        language = (metadata.language or "").strip() or self.profile.default_language
        title = sanitize_text(metadata.title) or "Präsentation"

        root = StructureNode(
            SemanticRole.DOCUMENT,
            lang=language,
            attributes={"title": title},
        )
        bookmarks: list[tuple[int, str]] = []
        sections = []
        for slide in presentation.slides:
            part = root.append(StructureNode(
                SemanticRole.PART,
                element_id=slide.id,
                attributes={"slide": slide.number},
            ))
            sections.append(self._render_slide(slide, part))
            if slide.title:
                bookmarks.append((slide.number, sanitize_text(slide.title)))

        keywords = ", ".join(metadata.keywords)
        document = f"""<!DOCTYPE html>
<html lang="{html.escape(language)}">
<head>
    <meta charset="UTF-8">
    <title>{html.escape(title)}</title>
    <meta name="author" content="{_esc(metadata.author)}">
    <meta name="description" content="{_esc(metadata.subject)}">
    <meta name="keywords" content="{_esc(keywords)}">
    <meta name="generator" content="pptx-a11y">
    <style>
{self.stylesheet}
    </style>
</head>
<body>
{"".join(sections)}
</body>
</html>"""
        return TaggedDocument(
            html=document,
            structure=root,
            title=title,
            language=language,
            bookmarks=bookmarks,
        )

    # === Folie ===

    def _render_slide(self, slide: Slide, part: StructureNode) -> str:
        label = f"Folie {slide.number}"
        if slide.title:
            label += f": {slide.title}"

        parts = [
            f'\n<section class="slide" id="{slide.id}" aria-label="{_esc(label)}">',
            _artifact(f"Folie {slide.number}", "slide-number artifact"),
        ]
        for element in slide.background_elements:
            parts.append(self._render_artifact(element))
        for element in slide.ordered_elements:
            parts.append(self._render_element(element, part))
        parts.append("</section>")
        return "\n".join(p for p in parts if p)

    def _render_element(self, element: SlideElement, parent: StructureNode) -> str:
        """Rendert ein Element und hängt seinen Knoten an parent."""
        if element.is_decorative:
            return self._render_artifact(element)

        role = self.profile.role_for(element)
        if role == SemanticRole.ARTIFACT:
            return self._render_artifact(element)

        if element.type == ElementType.SHAPE and not element.text.strip() and not element.content.alt_text:
            # Reine Form ohne Inhalt
            return self._render_artifact(element)

        if element.type == ElementType.SMARTART:
            if not element.content.alt_text and element.smartart_items:
                return self._render_list(element, element.smartart_items, parent)
            return self._render_figure(element, parent)

        if role in _HEADING_ROLES:
            return self._render_heading(element, _HEADING_ROLES[role], role, parent)
        if role == SemanticRole.L:
            return self._render_list(element, self._list_items(element), parent)
        if role == SemanticRole.TABLE and element.table_data is not None:
            return self._render_table(element, element.table_data, parent)
        if role == SemanticRole.FIGURE:
            if element.text.strip() and not element.is_image_like and element.type != ElementType.SHAPE:
                # Textelement mit Figure-Mapping: Text bleibt lesbar
                return self._render_paragraph(element, parent)
            return self._render_figure(element, parent)
        if role in _TEXT_ROLES or element.text.strip():
            return self._render_paragraph(element, parent)
        return self._render_artifact(element)

    # === Rollen ===

    def _render_artifact(self, element: SlideElement) -> str:
        if element.image_data and element.mime_type:
            return _artifact(f'<img src="{self._data_uri(element)}" alt="" role="presentation">')
        if element.text.strip():
            return _artifact(_esc(element.text))
        return f'    <!-- Artefakt: {html.escape(element.id)} -->'

    def _render_heading(
        self, element: SlideElement, tag: str, role: SemanticRole, parent: StructureNode
    ) -> str:
        text = sanitize_text(element.text.strip())
        if not text:
            return self._render_artifact(element)
        parent.append(StructureNode(role, element_id=element.id, text=text))
        return f'    <{tag} id="{element.id}">{html.escape(text)}</{tag}>'

    def _render_paragraph(self, element: SlideElement, parent: StructureNode) -> str:
        text = element.text.strip("\n")
        if not text.strip():
            return self._render_artifact(element)

        node = parent.append(StructureNode(
            SemanticRole.P, element_id=element.id, text=sanitize_text(text)
        ))
        grouped = _split_runs_by_lines(text, element.content.rich_text) if element.content.rich_text else None
        if grouped is None:
            body = "<br>".join(_esc(line) for line in text.split("\n"))
        else:
            body = "<br>".join(
                "".join(self._render_run(run, node) for run in line_runs)
                for line_runs in grouped
            )
        if element.hyperlink and not element.links and self.profile.export.include_links:
            node.append(StructureNode(
                SemanticRole.LINK, text=sanitize_text(text), attributes={"href": element.hyperlink}
            ))
            body = f'<a href="{html.escape(element.hyperlink)}">{body}</a>'
        return f'    <p id="{element.id}">{body}</p>'

    def _render_run(self, run: RichTextRun, node: StructureNode) -> str:
        text = _esc(run.text)
        if run.bold:
            text = f"<strong>{text}</strong>"
        if run.italic:
            text = f"<em>{text}</em>"
        if run.underline:
            text = f"<u>{text}</u>"
        if run.hyperlink and self.profile.export.include_links:
            node.append(StructureNode(
                SemanticRole.LINK,
                text=sanitize_text(run.text),
                attributes={"href": run.hyperlink},
            ))
            text = f'<a href="{html.escape(run.hyperlink)}">{text}</a>'
        return text

    @staticmethod
    def _list_items(element: SlideElement) -> list[ListItem]:
        if element.list_data is not None and element.list_data.items:
            return element.list_data.items
        return [ListItem(text=line) for line in element.text.split("\n") if line.strip()]

    def _render_list(self, element: SlideElement, items: list[ListItem], parent: StructureNode) -> str:
        """Liste mit expliziten Lbl/LBody-Paaren, tiefere Ebenen verschachtelt."""
        if not items:
            return self._render_artifact(element)
        node = parent.append(StructureNode(SemanticRole.L, element_id=element.id))
        return "    " + self._render_list_level(_nest_items(items), node, element.id)

    def _render_list_level(
        self,
        entries: list[tuple[ListItem, list]],
        node: StructureNode,
        element_id: Optional[str] = None,
    ) -> str:
        tag = "ol" if entries[0][0].list_type == "numbered" else "ul"
        id_attr = f' id="{element_id}"' if element_id else ""
        out = [f'<{tag}{id_attr} class="list">']
        for number, (item, children) in enumerate(entries, 1):
            label = f"{number}." if item.list_type == "numbered" else "-"
            text = sanitize_text(item.text)

            li = node.append(StructureNode(SemanticRole.LI))
            li.append(StructureNode(SemanticRole.LBL, text=label))
            li.append(StructureNode(SemanticRole.LBODY, text=text))

            nested = ""
            if children:
                nested = self._render_list_level(children, li.append(StructureNode(SemanticRole.L)))
            out.append(
                f'<li><span class="lbl">{html.escape(label)}</span> '
                f'<span class="lbody">{html.escape(text)}</span>{nested}</li>'
            )
        out.append(f"</{tag}>")
        return "\n".join(out)

    def _render_table(self, element: SlideElement, table: TableData, parent: StructureNode) -> str:
        node = parent.append(StructureNode(
            SemanticRole.TABLE,
            element_id=element.id,
            attributes={"rows": table.rows, "columns": table.columns},
        ))
        rows_html = []
        for row in table.cells:
            tr = node.append(StructureNode(SemanticRole.TR))
            cells_html = []
            for cell in row:
                role = SemanticRole.TH if cell.is_header else SemanticRole.TD
                attributes: dict = {"header": cell.is_header}
                attrs = ""
                if cell.is_header:
                    scope = cell.scope or "col"
                    attributes["scope"] = scope
                    attrs += f' scope="{scope}"'
                if cell.col_span > 1:
                    attributes["colspan"] = cell.col_span
                    attrs += f' colspan="{cell.col_span}"'
                if cell.row_span > 1:
                    attributes["rowspan"] = cell.row_span
                    attrs += f' rowspan="{cell.row_span}"'
                text = sanitize_text(cell.content)
                tr.append(StructureNode(role, text=text, attributes=attributes))
                tag = "th" if cell.is_header else "td"
                content = "<br>".join(html.escape(line) for line in text.split("\n"))
                cells_html.append(f"            <{tag}{attrs}>{content}</{tag}>")
            rows_html.append("        <tr>\n" + "\n".join(cells_html) + "\n        </tr>")

        if table.has_header_row and rows_html:
            body = (
                f"        <thead>\n{rows_html[0]}\n        </thead>\n"
                "        <tbody>\n" + "\n".join(rows_html[1:]) + "\n        </tbody>"
            )
        else:
            body = "\n".join(rows_html)
        return f'    <table id="{element.id}">\n{body}\n    </table>'

    def _render_figure(self, element: SlideElement, parent: StructureNode) -> str:
        alt = element.content.alt_text or FIGURE_FALLBACK_ALT
        attributes = {}
        if element.content.long_description:
            attributes["long_description"] = element.content.long_description
        parent.append(StructureNode(
            SemanticRole.FIGURE, element_id=element.id, alt=alt, attributes=attributes
        ))

        if element.image_data and element.mime_type:
            visual = f'<img src="{self._data_uri(element)}" alt="{html.escape(alt)}">'
        else:
            # Kein Bitmap (Chart, SmartArt, Form)
            shown = element.content.long_description or element.text or alt
            visual = (
                f'<img class="figure-placeholder" src="{placeholder_svg(shown)}" '
                f'alt="{html.escape(alt)}">'
            )

        caption = ""
        if element.content.long_description and element.content.long_description != alt:
            caption = f"\n        <figcaption>{_esc(element.content.long_description)}</figcaption>"
        return f'    <figure id="{element.id}">\n        {visual}{caption}\n    </figure>'

    @staticmethod
    def _data_uri(element: SlideElement) -> str:
        b64 = base64.b64encode(element.image_data).decode("ascii")
        return f"data:{element.mime_type};base64,{b64}"
