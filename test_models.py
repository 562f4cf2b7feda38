"""
Tests für pptx_a11y
===================

Ausführen mit: pytest
"""

import pytest

from pptx_a11y.models import (
    AccessibilityIssue,
    AltTextStatus,
    ElementContent,
    ElementType,
    IssueType,
    Position,
    Presentation,
    RichTextRun,
    SemanticRole,
    Severity,
    Slide,
    SlideElement,
    TableCell,
    TableData,
    compute_stats,
    make_issue_id,
)


def element(element_id, element_type=ElementType.TEXTBOX, text="", **kwargs):
    return SlideElement(
        id=element_id,
        type=element_type,
        semantic_role=SemanticRole.P,
        content=ElementContent(text=text),
        **kwargs,
    )


class TestModels:
    """Tests für Datenmodelle."""

    def test_presentation_creation(self):
        """Presentation kann erstellt werden."""
        model = Presentation()
        assert model.metadata.language == "de"
        assert model.slide_count == 0

    def test_slide_id(self):
        """Folien-ID leitet sich aus der Nummer ab."""
        assert Slide(number=3).id == "slide-3"

    def test_slide_title(self):
        """Slide.title ist der erste nicht-leere Titel."""
        slide = Slide(number=1)
        slide.elements = [
            element("a", ElementType.TITLE, "  "),
            element("b", ElementType.TEXTBOX, "Text"),
            element("c", ElementType.TITLE, "Titel"),
        ]
        assert slide.title == "Titel"

    def test_slide_without_title(self):
        """Ohne Titel-Element ist title None."""
        slide = Slide(number=1, elements=[element("a", text="Text")])
        assert slide.title is None

    def test_position_normalizes_negative_size(self):
        """Negative Breiten/Höhen werden normalisiert."""
        pos = Position(x=10, y=10, width=-50, height=-20)
        assert pos.width == 50
        assert pos.height == 20
        assert pos.right == 60
        assert pos.bottom == 30

    def test_position_overlap(self):
        """Berührung zählt nicht als Überlappung."""
        a = Position(0, 0, 100, 100)
        assert a.overlaps(Position(50, 50, 100, 100))
        assert not a.overlaps(Position(100, 0, 50, 50))

    def test_table_dimensions(self):
        """Table kennt Zeilen, Spalten und ungleichmäßige Zeilen."""
        table = TableData(cells=[
            [TableCell("A", is_header=True), TableCell("B", is_header=True)],
            [TableCell("1"), TableCell("2")],
            [TableCell("3")],
        ])
        assert table.rows == 3
        assert table.columns == 2
        assert table.is_ragged

    def test_element_links(self):
        """links liefert nur Runs mit Hyperlink."""
        el = element("a", text="Mehr Infos")
        el.content.rich_text = [
            RichTextRun("Mehr "),
            RichTextRun("Infos", hyperlink="https://example.org"),
        ]
        assert [run.text for run in el.links] == ["Infos"]

    def test_image_like(self):
        """Bilder, Charts und SmartArt brauchen Alt-Text."""
        assert element("a", ElementType.IMAGE).is_image_like
        assert element("a", ElementType.CHART).is_image_like
        assert element("a", ElementType.SMARTART).is_image_like
        assert not element("a", ElementType.TABLE).is_image_like


class TestReadingOrder:
    """Tests für Slide.ordered_elements."""

    def test_reading_order(self):
        """Elemente werden nach Lesereihenfolge sortiert."""
        slide = Slide(number=1)
        slide.elements = [element("a"), element("b"), element("c")]
        slide.reading_order = ["c", "a", "b"]
        assert [e.id for e in slide.ordered_elements] == ["c", "a", "b"]

    def test_unlisted_elements_appended(self):
        """Nicht gelistete Elemente werden in Fundreihenfolge angehängt."""
        slide = Slide(number=1)
        slide.elements = [element("a"), element("b"), element("c")]
        slide.reading_order = ["b"]
        assert [e.id for e in slide.ordered_elements] == ["b", "a", "c"]

    def test_unknown_and_duplicate_ids_ignored(self):
        """Unbekannte und doppelte IDs erzeugen keine Doppelungen."""
        slide = Slide(number=1)
        slide.elements = [element("a"), element("b")]
        slide.reading_order = ["b", "x", "b", "a"]
        assert [e.id for e in slide.ordered_elements] == ["b", "a"]


class TestIssues:
    """Tests für AccessibilityIssue."""

    def test_issue_id_deterministic(self):
        """ID hängt nur von Typ, Folie und Element ab."""
        assert make_issue_id(IssueType.MISSING_ALT_TEXT, 2, "shape-5") == "missing_alt_text@s2/shape-5"
        assert make_issue_id(IssueType.MISSING_LANGUAGE) == "missing_language@doc"
        assert make_issue_id("missing_title", 4) == "missing_title@s4"

    def test_issue_is_immutable(self):
        """Befunde können nicht verändert werden."""
        issue = AccessibilityIssue(
            type=IssueType.MISSING_TITLE,
            severity=Severity.WARNING,
            message="Slide 1 has no title",
            message_de="Folie 1 hat keinen Titel",
            slide_number=1,
        )
        assert issue.id == "missing_title@s1"
        with pytest.raises(AttributeError):
            issue.message = "geändert"

    def test_issue_to_dict(self):
        """to_dict verwendet camelCase-Schlüssel."""
        issue = AccessibilityIssue(
            type=IssueType.MISSING_ALT_TEXT,
            severity=Severity.ERROR,
            message="m",
            message_de="m_de",
            slide_number=2,
            element_id="shape-4",
            element_type=ElementType.IMAGE,
            wcag_criterion="1.1.1",
        )
        data = issue.to_dict()
        assert data["type"] == "missing_alt_text"
        assert data["severity"] == "error"
        assert data["slideNumber"] == 2
        assert data["elementType"] == "image"
        assert data["messageDE"] == "m_de"
        assert data["wcagCriteria"] == "1.1.1"


class TestStats:
    """Tests für die Statistik."""

    def test_compute_stats(self):
        """Statistik zählt Bilder nach Alt-Text-Status."""
        with_alt = element("img1", ElementType.IMAGE)
        with_alt.content.alt_text = "Foto vom Team beim Workshop"
        with_alt.content.alt_text_status = AltTextStatus.PRESENT
        without_alt = element("img2", ElementType.IMAGE)
        decorative = element("img3", ElementType.IMAGE, is_decorative=True)
        table = element("t", ElementType.TABLE)

        slide = Slide(number=1, elements=[with_alt, without_alt, table], background_elements=[decorative])
        stats = compute_stats([slide])

        assert stats.total_elements == 3
        assert stats.images_with_alt_text == 1
        assert stats.images_without_alt_text == 1
        assert stats.decorative_images == 1
        assert stats.tables == 1

    def test_refresh_stats(self):
        """refresh_stats leitet die Statistik aus den Folien neu ab."""
        model = Presentation(slides=[Slide(number=1, elements=[element("a"), element("b")])])
        assert model.stats.total_elements == 0
        model.refresh_stats()
        assert model.stats.total_elements == 2

    def test_to_dict(self):
        """Presentation ist JSON-serialisierbar."""
        model = Presentation(slides=[Slide(number=1, elements=[element("a", text="Hallo")])])
        data = model.to_dict()
        assert data["slides"][0]["elements"][0]["type"] == "textbox"
        assert data["slides"][0]["elements"][0]["content"]["text"] == "Hallo"
        assert data["metadata"]["language"] == "de"
