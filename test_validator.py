"""
Tests für Validator und Bericht
===============================
"""

import json

import pytest

from conftest import FIXED_TIME
from pptx_a11y.issues import missing_alt_text, missing_slide_title
from pptx_a11y.models import (
    DECORATIVE_EMPTY_DESCRIPTION,
    AltTextStatus,
    DocumentMetadata,
    ElementContent,
    ElementType,
    IssueType,
    Position,
    Presentation,
    SemanticRole,
    Severity,
    Slide,
    SlideElement,
    TableCell,
    TableData,
    compute_stats,
)
from pptx_a11y.parser import parse_presentation
from pptx_a11y.profiles import ConversionProfile, get_profile
from pptx_a11y.report import AccessibilityReport, calculate_score, determine_conformance
from pptx_a11y.validator import AccessibilityValidator, deduplicate, is_low_quality_alt_text, validate


def make_element(element_id, element_type, text="", x=0, y=200, **kwargs):
    return SlideElement(
        id=element_id,
        type=element_type,
        semantic_role=SemanticRole.P,
        position=Position(x, y, 100, 40),
        content=ElementContent(text=text),
        **kwargs,
    )


def make_presentation(*elements, background=(), title="Testbericht"):
    """Eine Folie mit Titel plus den übergebenen Elementen."""
    slide_title = make_element("title", ElementType.TITLE, "Folientitel", y=0)
    slide = Slide(
        number=1,
        elements=[slide_title, *elements],
        background_elements=list(background),
    )
    slide.reading_order = [e.id for e in slide.elements]
    return Presentation(
        metadata=DocumentMetadata(title=title, author="Max Mustermann", language="de"),
        slides=[slide],
    )


def issue_types(report):
    return [i.type for i in report.issues]


class TestScenario:
    """Drei Folien: Bild ohne Alt-Text, 2×3 Textfelder."""

    def test_findings(self, scenario):
        """Genau ein Fehler (Folie 2) und eine Warnung (Folie 3)."""
        report = validate(scenario, timestamp=FIXED_TIME)

        alt = report.issues_of(IssueType.MISSING_ALT_TEXT)
        assert len(alt) == 1
        assert alt[0].slide_number == 2
        assert alt[0].severity == Severity.ERROR

        pseudo = report.issues_of(IssueType.PSEUDO_TABLE)
        assert len(pseudo) == 1
        assert pseudo[0].slide_number == 3
        assert pseudo[0].severity == Severity.WARNING

        assert report.summary.total == 2

    def test_score(self, scenario):
        """100 - 15 (Fehler) - 5 (Warnung)."""
        report = validate(scenario, timestamp=FIXED_TIME)
        assert report.overall_score == 80
        assert report.wcag_level == "A"
        assert not report.pdfua_conformant
        assert not report.conformance.bitv_conformant

    def test_deterministic(self, scenario_pptx):
        """Zwei Läufe liefern byte-identische Berichte."""
        first = validate(parse_presentation(scenario_pptx), timestamp=FIXED_TIME)
        second = validate(parse_presentation(scenario_pptx), timestamp=FIXED_TIME)
        assert first.to_json() == second.to_json()
        assert [i.id for i in first.issues] == [i.id for i in second.issues]

    def test_ids_stable_under_reordering(self, scenario):
        """Umsortieren unbeteiligter Elemente ändert keine IDs."""
        before = {i.id for i in validate(scenario, timestamp=FIXED_TIME).issues}
        for slide in scenario.slides:
            slide.elements.reverse()
            slide.reading_order.reverse()
        after = {i.id for i in validate(scenario, timestamp=FIXED_TIME).issues}
        assert before == after

    def test_validator_does_not_mutate(self, scenario):
        snapshot = scenario.to_dict()
        validate(scenario, timestamp=FIXED_TIME)
        assert scenario.to_dict() == snapshot

    def test_clean_presentation(self, clean_pptx):
        """Ohne Befunde: volle Punktzahl und höchste Stufe."""
        report = validate(parse_presentation(clean_pptx), timestamp=FIXED_TIME)
        assert report.issues == ()
        assert report.overall_score == 100
        assert report.wcag_level == "AAA"
        assert report.conformance.pdfua_level == "PDF/UA-1"
        assert report.conformance.bitv_conformant


class TestScore:
    """Punktzahl und Konformitätsstufen."""

    def test_error_costs_15(self):
        assert calculate_score(0, 0, 0) == 100
        assert calculate_score(1, 0, 0) == 85
        assert calculate_score(2, 0, 0) == 70

    def test_warning_costs_5(self):
        assert calculate_score(0, 1, 0) == 95
        assert calculate_score(1, 1, 0) == 80

    def test_clamped_at_zero(self):
        assert calculate_score(7, 0, 0) == 0
        assert calculate_score(10, 10, 10) == 0

    def test_monotonic_on_report(self):
        """Ein zusätzlicher Fehler senkt die Punktzahl um genau 15."""
        element = make_element("shape-9", ElementType.IMAGE)
        base = [missing_slide_title(4)]
        stats = compute_stats([])
        before = AccessibilityReport.from_issues(base, "T", stats, FIXED_TIME)
        after = AccessibilityReport.from_issues(base + [missing_alt_text(1, element)], "T", stats, FIXED_TIME)
        assert before.overall_score - after.overall_score == 15

    def test_thresholds(self):
        assert determine_conformance(0, 0).wcag_level == "AAA"
        assert determine_conformance(0, 3).wcag_level == "AA"
        assert determine_conformance(1, 0).wcag_level == "A"
        assert determine_conformance(3, 0).wcag_level == "A"
        assert determine_conformance(4, 0).wcag_level == "none"
        assert determine_conformance(0, 0).bitv_conformant
        assert not determine_conformance(1, 0).bitv_conformant


class TestAltTextHeuristic:
    """Erkennung minderwertiger Alt-Texte."""

    @pytest.mark.parametrize("text", ["image.jpg", "Bild", "photo", "icon", "IMG_2024.PNG", "Platzhalter"])
    def test_low_quality(self, text):
        assert is_low_quality_alt_text(text)

    def test_descriptive_sentence(self):
        assert not is_low_quality_alt_text("Balkendiagramm mit steigenden Umsätzen pro Quartal")


class TestRules:
    """Einzelne Prüfregeln an konstruierten Modellen."""

    def test_missing_document_metadata(self):
        model = make_presentation(title=None)
        model.metadata.author = None
        model.metadata.language = "und"
        types = issue_types(validate(model, timestamp=FIXED_TIME))
        assert IssueType.MISSING_DOCUMENT_TITLE in types
        assert IssueType.MISSING_LANGUAGE in types
        assert IssueType.MISSING_METADATA in types

    def test_missing_slide_title(self):
        model = make_presentation()
        model.slides[0].elements.pop(0)
        report = validate(model, timestamp=FIXED_TIME)
        assert issue_types(report) == [IssueType.MISSING_TITLE]

    def test_insufficient_alt_text(self):
        image = make_element("img", ElementType.IMAGE)
        image.content.alt_text = "Bild"
        image.content.alt_text_status = AltTextStatus.PRESENT
        report = validate(make_presentation(image), timestamp=FIXED_TIME)
        assert issue_types(report) == [IssueType.INSUFFICIENT_ALT_TEXT]
        assert report.issues[0].severity == Severity.WARNING

    def test_decorative_status_without_flag(self):
        """Status dekorativ, aber nicht als dekorativ ausgelagert → Fehler."""
        image = make_element("img", ElementType.IMAGE)
        image.content.alt_text_status = AltTextStatus.DECORATIVE
        report = validate(make_presentation(image), timestamp=FIXED_TIME)
        assert issue_types(report) == [IssueType.DECORATIVE_NOT_MARKED]

    def test_decorative_element_needs_no_alt(self):
        image = make_element("img", ElementType.IMAGE, is_decorative=True)
        report = validate(make_presentation(image), timestamp=FIXED_TIME)
        assert report.issues == ()

    def test_needs_review_alt_text_accepted(self):
        image = make_element("img", ElementType.IMAGE)
        image.content.alt_text = "Team beim Workshop in der Stadtbibliothek"
        image.content.alt_text_status = AltTextStatus.NEEDS_REVIEW
        assert validate(make_presentation(image), timestamp=FIXED_TIME).issues == ()

    def test_implicit_decorative_background(self):
        """Nur leerer descr: Hinweis zur Überprüfung."""
        image = make_element("img", ElementType.IMAGE, is_decorative=True)
        image.content.alt_text_status = AltTextStatus.DECORATIVE
        image.content.decorative_source = DECORATIVE_EMPTY_DESCRIPTION
        report = validate(make_presentation(background=[image]), timestamp=FIXED_TIME)
        assert issue_types(report) == [IssueType.BACKGROUND_NOT_DECORATIVE]
        assert report.issues[0].severity == Severity.INFO

    def test_table_rules(self):
        table = make_element("tbl", ElementType.TABLE)
        table.table_data = TableData(cells=[
            [TableCell("Name"), TableCell("Wert")],
            [TableCell("A"), TableCell("")],
        ])
        types = issue_types(validate(make_presentation(table), timestamp=FIXED_TIME))
        assert IssueType.TABLE_MISSING_HEADERS in types
        assert IssueType.TABLE_EMPTY_CELLS in types

    def test_unclear_link_text(self):
        link = make_element("lnk", ElementType.TEXTBOX, "hier klicken", hyperlink="https://example.org")
        report = validate(make_presentation(link), timestamp=FIXED_TIME)
        assert issue_types(report) == [IssueType.UNCLEAR_LINK_TEXT]
        assert '"hier klicken"' in report.issues[0].message_de

    def test_empty_textbox(self):
        box = make_element("box", ElementType.TEXTBOX, "  ")
        assert issue_types(validate(make_presentation(box), timestamp=FIXED_TIME)) == [IssueType.EMPTY_ELEMENT]

    def test_reading_order_confidence(self):
        model = make_presentation()
        model.slides[0].reading_order_confidence = 0.5
        report = validate(model, timestamp=FIXED_TIME)
        assert issue_types(report) == [IssueType.READING_ORDER_UNCLEAR]

    def test_overlap(self):
        a = make_element("a", ElementType.TEXTBOX, "Links", x=0)
        b = make_element("b", ElementType.TEXTBOX, "Rechts", x=50)
        report = validate(make_presentation(a, b), timestamp=FIXED_TIME)
        assert issue_types(report) == [IssueType.OVERLAPPING_ELEMENTS]

    def test_artifact_mapping_suppresses_alt_check(self, scenario):
        """Profil mappt Bilder auf Artefakt → keine Alt-Text-Pflicht."""
        profile = ConversionProfile(
            id="logos",
            name="Logos",
            tag_mapping={ElementType.IMAGE: SemanticRole.ARTIFACT},
        )
        report = AccessibilityValidator(profile).validate(scenario, FIXED_TIME)
        assert not report.issues_of(IssueType.MISSING_ALT_TEXT)

    def test_deduplicate(self):
        issue = missing_slide_title(1)
        assert deduplicate([issue, missing_slide_title(1), missing_slide_title(2)]) == [
            issue, missing_slide_title(2),
        ]


class TestReportText:
    """Textform und strukturierte Form."""

    def test_german_text(self, scenario):
        text = validate(scenario, timestamp=FIXED_TIME).render_text("de")
        assert "=== Barrierefreiheits-Prüfbericht ===" in text
        assert "Dokument: Quartalsbericht" in text
        assert "Datum: 15.3.2024" in text
        assert "1 Fehler und 1 Warnungen gefunden." in text
        assert "Punktzahl: 80/100 | WCAG: A" in text

    def test_english_text(self, scenario):
        text = validate(scenario, timestamp=FIXED_TIME).report_text
        assert "Found 1 error(s) and 1 warning(s)." in text
        assert "Score: 80/100 | WCAG: A" in text
        assert "--- Recommendations ---" in text

    def test_structured_matches_text(self, scenario):
        """Beide Formen stammen aus demselben Bericht."""
        report = validate(scenario, timestamp=FIXED_TIME)
        data = json.loads(report.to_json())
        assert data["summary"]["errors"] == 1
        assert data["summary"]["warnings"] == 1
        assert data["overallScore"] == 80
        assert data["documentTitle"] == "Quartalsbericht"
        assert data["reportTextDE"] == report.render_text("de")
        assert [i["id"] for i in data["issues"]] == [i.id for i in report.issues]

    def test_untitled_document(self):
        report = validate(make_presentation(title=None), timestamp=FIXED_TIME)
        assert report.document_title == "Unbenannt"

    def test_default_profile(self):
        assert AccessibilityValidator().profile is get_profile("standard")
