"""
Gemeinsame Fixtures
===================
Baut echte PPTX-Dateien mit python-pptx im Speicher.
"""

import base64
from datetime import datetime, timezone
from io import BytesIO

import pytest
from pptx import Presentation as PptxPresentation
from pptx.opc.constants import CONTENT_TYPE as CT, RELATIONSHIP_TYPE as RT
from pptx.opc.package import Part
from pptx.opc.packuri import PackURI
from pptx.oxml import parse_xml
from pptx.util import Inches


# 1×1 Pixel PNG
PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)

FIXED_TIME = datetime(2024, 3, 15, 10, 30, tzinfo=timezone.utc)

# Layouts der python-pptx Standardvorlage
LAYOUT_TITLE_SLIDE = 0
LAYOUT_TITLE_AND_CONTENT = 1
LAYOUT_TITLE_ONLY = 5
LAYOUT_BLANK = 6

_DECORATIVE_EXT = (
    '<a:extLst xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main">'
    '<a:ext uri="{C183D7F6-B498-43B3-948B-1728B52AA6E4}">'
    '<adec:decorative xmlns:adec="http://schemas.microsoft.com/office/drawing/2017/decorative" val="1"/>'
    '</a:ext></a:extLst>'
)


def c_nv_pr(shape):
    """p:cNvPr eines python-pptx Shapes."""
    return shape._element.xpath("./*/p:cNvPr")[0]


def set_descr(shape, text):
    c_nv_pr(shape).set("descr", text)


def remove_descr(shape):
    # add_picture setzt descr auf den Dateinamen
    attrib = c_nv_pr(shape).attrib
    if "descr" in attrib:
        del attrib["descr"]


def mark_decorative(shape):
    c_nv_pr(shape).append(parse_xml(_DECORATIVE_EXT))


def to_bytes(prs) -> bytes:
    buffer = BytesIO()
    prs.save(buffer)
    return buffer.getvalue()


def new_presentation(title="Quartalsbericht", author="Erika Mustermann", language=None):
    prs = PptxPresentation()
    prs.core_properties.title = title or ""
    prs.core_properties.author = author or ""
    if language is not None:
        prs.core_properties.language = language
    return prs


def add_title_slide(prs, title):
    slide = prs.slides.add_slide(prs.slide_layouts[LAYOUT_TITLE_ONLY])
    slide.shapes.title.text = title
    return slide


def add_picture(slide, left=Inches(1), top=Inches(2.5), width=Inches(2), descr=None):
    picture = slide.shapes.add_picture(BytesIO(PNG_1X1), left, top, width=width, height=width)
    if descr is None:
        remove_descr(picture)
    else:
        set_descr(picture, descr)
    return picture


def add_textbox(slide, text, left, top, width=Inches(2.5), height=Inches(0.6)):
    box = slide.shapes.add_textbox(left, top, width, height)
    box.text_frame.text = text
    return box


SMARTART_DATA = (
    b'<dgm:dataModel xmlns:dgm="http://schemas.openxmlformats.org/drawingml/2006/diagram"'
    b' xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main"><dgm:ptLst>'
    b'<dgm:pt modelId="0" type="doc"><dgm:prSet/></dgm:pt>'
    b'<dgm:pt modelId="1"><dgm:t><a:bodyPr/><a:p><a:r><a:t>Planen</a:t></a:r></a:p></dgm:t></dgm:pt>'
    b'<dgm:pt modelId="2" type="parTrans"><dgm:t><a:bodyPr/><a:p><a:r><a:t>Pfeil</a:t></a:r></a:p></dgm:t></dgm:pt>'
    b'<dgm:pt modelId="3"><dgm:t><a:bodyPr/><a:p><a:r><a:t>Umsetzen</a:t></a:r></a:p></dgm:t></dgm:pt>'
    b'</dgm:ptLst><dgm:cxnLst/></dgm:dataModel>'
)

_SMARTART_FRAME = (
    '<p:graphicFrame xmlns:p="http://schemas.openxmlformats.org/presentationml/2006/main"'
    ' xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main"'
    ' xmlns:r="http://schemas.openxmlformats.org/officeDocument/2006/relationships">'
    '<p:nvGraphicFramePr><p:cNvPr id="{id}" name="Diagramm {id}"/><p:cNvGraphicFramePr/><p:nvPr/>'
    '</p:nvGraphicFramePr>'
    '<p:xfrm><a:off x="914400" y="2286000"/><a:ext cx="5486400" cy="2743200"/></p:xfrm>'
    '<a:graphic><a:graphicData uri="http://schemas.openxmlformats.org/drawingml/2006/diagram">'
    '<dgm:relIds xmlns:dgm="http://schemas.openxmlformats.org/drawingml/2006/diagram" r:dm="{r_id}"/>'
    '</a:graphicData></a:graphic></p:graphicFrame>'
)


def add_smartart(slide, data=SMARTART_DATA):
    """SmartArt-Rahmen mit Datenpart (data darf kaputtes XML sein)."""
    part = Part(
        PackURI(f"/ppt/diagrams/data{slide.slide_id}.xml"),
        CT.DML_DIAGRAM_DATA,
        package=slide.part.package,
        blob=data,
    )
    r_id = slide.part.relate_to(part, RT.DIAGRAM_DATA)
    frame = parse_xml(_SMARTART_FRAME.format(id=slide.shapes._next_shape_id, r_id=r_id))
    slide.shapes._spTree.append(frame)
    return frame


def add_grid(slide, rows=2, columns=3):
    """Textfelder in Tabellenanordnung (ohne Überlappung)."""
    boxes = []
    for row in range(rows):
        for col in range(columns):
            boxes.append(add_textbox(
                slide,
                f"Zelle {row + 1}/{col + 1}",
                left=Inches(0.5 + 3 * col),
                top=Inches(2.5 + row),
            ))
    return boxes


@pytest.fixture
def scenario_pptx() -> bytes:
    """
    Drei Folien:
    1. nur Titel
    2. Titel + Bild ohne Alt-Text
    3. Titel + 2×3 Textfelder
    """
    prs = new_presentation()
    add_title_slide(prs, "Einführung")

    slide = add_title_slide(prs, "Umsatzentwicklung")
    add_picture(slide)

    slide = add_title_slide(prs, "Kennzahlen")
    add_grid(slide)

    return to_bytes(prs)


@pytest.fixture
def clean_pptx() -> bytes:
    """Zwei Folien ohne Befunde."""
    prs = new_presentation()
    slide = add_title_slide(prs, "Willkommen")
    add_textbox(slide, "Agenda für das Treffen am Montag", Inches(0.5), Inches(2.5), width=Inches(8))

    slide = add_title_slide(prs, "Logo")
    add_picture(slide, descr="Firmenlogo der Muster GmbH mit blauem Schriftzug")
    return to_bytes(prs)


@pytest.fixture
def rich_pptx() -> bytes:
    """Liste, Tabelle, Link, dekoratives Bild."""
    prs = new_presentation(title="Projektstatus")

    slide = prs.slides.add_slide(prs.slide_layouts[LAYOUT_TITLE_AND_CONTENT])
    slide.shapes.title.text = "Meilensteine"
    body = slide.placeholders[1].text_frame
    body.text = "Konzept abgeschlossen"
    for text, level in (("Review mit Fachbereich", 1), ("Umsetzung gestartet", 0)):
        para = body.add_paragraph()
        para.text = text
        para.level = level

    slide = add_title_slide(prs, "Budget")
    graphic = slide.shapes.add_table(3, 2, Inches(0.5), Inches(2.5), Inches(6), Inches(1.5))
    table = graphic.table
    for row, values in enumerate((("Posten", "Betrag"), ("Personal", "120.000"), ("Sachmittel", "30.000"))):
        for col, value in enumerate(values):
            table.cell(row, col).text = value

    slide = add_title_slide(prs, "Weitere Infos")
    box = add_textbox(slide, "", Inches(0.5), Inches(2.5), width=Inches(8))
    run = box.text_frame.paragraphs[0].add_run()
    run.text = "Projektseite im Intranet"
    run.font.bold = True
    run.hyperlink.address = "https://intranet.example.org/projekt"
    decoration = add_picture(slide, left=Inches(8), top=Inches(6), width=Inches(1))
    mark_decorative(decoration)

    return to_bytes(prs)


@pytest.fixture
def scenario(scenario_pptx):
    from pptx_a11y.parser import parse_presentation
    return parse_presentation(scenario_pptx)


@pytest.fixture
def rich(rich_pptx):
    from pptx_a11y.parser import parse_presentation
    return parse_presentation(rich_pptx)


def weasyprint_available() -> bool:
    """WeasyPrint samt nativer Bibliotheken (Pango) ladbar?"""
    try:
        import weasyprint  # noqa: F401
    except (ImportError, OSError):
        return False
    return True


requires_weasyprint = pytest.mark.skipif(
    not weasyprint_available(),
    reason="WeasyPrint/Pango nicht installiert",
)

