"""
Tests für die Strukturbaum-Nachbearbeitung
==========================================
Handgebaute getaggte PDFs, wie WeasyPrint sie schreibt.
"""

from io import BytesIO

import pikepdf
from pikepdf import Array, Dictionary, Name

from pptx_a11y.pdfcheck import inspect_pdf
from pptx_a11y.structtree import convert_artifacts, figures_without_alt, iter_struct_elements


CONTENT = (
    b"/Span <</MCID 0>> BDC BT /F1 9 Tf 500 560 Td (Folie 1) Tj ET EMC\n"
    b"/P <</MCID 1>> BDC BT /F1 12 Tf 72 500 Td (Inhalt) Tj ET EMC\n"
)


def tagged_pdf(*figures):
    """
    Eine Seite, Strukturbaum Document → [BlockQuote → Span, P, Figure...].

    Der BlockQuote ist der Artefakt-Container (Foliennummer).
    figures: Alt-Texte (None = ohne /Alt)
    """
    pdf = pikepdf.new()
    pdf.add_blank_page(page_size=(842, 595))
    page = pdf.pages[0]
    page.obj.Contents = pdf.make_stream(CONTENT)
    page.obj.StructParents = 0

    root = pdf.make_indirect(Dictionary(Type=Name.StructTreeRoot))
    document = pdf.make_indirect(Dictionary(Type=Name.StructElem, S=Name.Document, P=root))
    quote = pdf.make_indirect(Dictionary(Type=Name.StructElem, S=Name.BlockQuote, P=document))
    span = pdf.make_indirect(Dictionary(
        Type=Name.StructElem, S=Name.Span, P=quote, Pg=page.obj, K=Array([0]),
    ))
    paragraph = pdf.make_indirect(Dictionary(
        Type=Name.StructElem, S=Name.P, P=document, Pg=page.obj, K=Array([1]),
    ))
    quote.K = Array([span])

    kids = [quote, paragraph]
    for alt in figures:
        figure = Dictionary(Type=Name.StructElem, S=Name.Figure, P=document)
        if alt is not None:
            figure.Alt = pikepdf.String(alt)
        kids.append(pdf.make_indirect(figure))
    document.K = Array(kids)

    root.K = document
    root.ParentTree = Dictionary(Nums=Array([0, Array([span, paragraph])]))
    pdf.Root.StructTreeRoot = root
    pdf.Root.MarkInfo = Dictionary(Marked=True)
    return pdf


def save(pdf) -> bytes:
    out = BytesIO()
    pdf.save(out)
    return out.getvalue()


class TestConvertArtifacts:
    """Artefakt-Container → /Artifact im Content-Stream."""

    def test_container_removed(self):
        pdf = tagged_pdf()
        assert convert_artifacts(pdf) == 1
        document = pdf.Root.StructTreeRoot.K
        assert [str(kid.S) for kid in document.K] == ["/P"]

    def test_content_marked_as_artifact(self):
        pdf = tagged_pdf()
        convert_artifacts(pdf)
        instructions = list(pikepdf.parse_content_stream(pdf.pages[0]))
        first = instructions[0]
        assert str(first.operator) == "BMC"
        assert first.operands[0] == Name.Artifact

        tagged = [i for i in instructions if str(i.operator) == "BDC"]
        assert len(tagged) == 1
        assert tagged[0].operands[1].MCID == 1

    def test_parent_tree_entry_cleared(self):
        pdf = tagged_pdf()
        paragraph = pdf.Root.StructTreeRoot.K.K[1]
        convert_artifacts(pdf)
        refs = pdf.Root.StructTreeRoot.ParentTree.Nums[1]
        assert refs[0] is None
        assert refs[1].objgen == paragraph.objgen

    def test_saved_pdf_readable(self):
        """Umgeschriebener Stream bleibt gültig, kein BlockQuote mehr im Baum."""
        pdf = tagged_pdf()
        convert_artifacts(pdf)
        with pikepdf.open(BytesIO(save(pdf))) as reopened:
            types = [str(elem.S) for elem in iter_struct_elements(reopened)]
        assert types == ["/Document", "/P"]

    def test_nothing_to_do(self):
        pdf = pikepdf.new()
        pdf.add_blank_page()
        assert convert_artifacts(pdf) == 0

    def test_second_pass_is_noop(self):
        pdf = tagged_pdf()
        convert_artifacts(pdf)
        assert convert_artifacts(pdf) == 0


class TestFigures:
    """Figure-Elemente und Alternativtexte."""

    def test_iter_in_document_order(self):
        pdf = tagged_pdf("Balkendiagramm Umsatz")
        types = [str(elem.S) for elem in iter_struct_elements(pdf)]
        assert types == ["/Document", "/BlockQuote", "/Span", "/P", "/Figure"]

    def test_figures_without_alt(self):
        pdf = tagged_pdf("Balkendiagramm Umsatz", None, "  ")
        assert figures_without_alt(pdf) == 2

    def test_output_check_reports_missing_alt(self):
        check = inspect_pdf(save(tagged_pdf("Logo", None)))
        assert check.figure_count == 2
        assert check.figures_without_alt == 1
        assert "PDFUA-7.3-Alt" in [f.rule_id for f in check.errors]

    def test_output_check_all_figures_described(self):
        check = inspect_pdf(save(tagged_pdf("Logo")))
        assert check.figures_without_alt == 0
        assert "PDFUA-7.3-Alt" not in [f.rule_id for f in check.findings]
