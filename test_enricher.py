"""
Tests für die KI-Anreicherung
=============================
Ohne laufendes Ollama: Client und HTTP-Session sind Attrappen.
"""

import pytest
import requests

from conftest import FIXED_TIME
from pptx_a11y.enricher import (
    UNAVAILABLE_MESSAGE_DE,
    AltTextCache,
    Enhancement,
    Enricher,
    EnricherConfig,
    OllamaClient,
    apply_enhancements,
    clean_title,
    rule_based_polish,
)
from pptx_a11y.models import (
    AltTextStatus,
    ElementContent,
    ElementType,
    IssueType,
    Position,
    Presentation,
    SemanticRole,
    Slide,
    SlideElement,
)
from pptx_a11y.validator import validate


class FakeClient:
    """Zählt Aufrufe und liefert feste Antworten."""

    def __init__(self, available=True, description="Balkendiagramm mit Umsätzen pro Quartal.", title="Umsatzübersicht"):
        self.available = available
        self.description = description
        self.title = title
        self.describe_calls = []
        self.title_calls = []

    def is_available(self):
        return self.available

    def describe(self, element, slide):
        self.describe_calls.append(element.id)
        return self.description

    def suggest_title(self, slide):
        self.title_calls.append(slide.number)
        return self.title


class FakeResponse:
    def __init__(self, data, status=200):
        self.data = data
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status}")

    def json(self):
        return self.data


class FakeSession:
    """Ersetzt requests.Session; merkt sich die gesendeten Payloads."""

    def __init__(self, models=("llava:13b", "llama3.2:3b"), answer="Das Bild zeigt einen roten Apfel", error=None):
        self.models = models
        self.answer = answer
        self.error = error
        self.posts = []

    def get(self, url, timeout=None):
        if self.error:
            raise self.error
        return FakeResponse({"models": [{"name": name} for name in self.models]})

    def post(self, url, json=None, timeout=None):
        self.posts.append((url, json, timeout))
        if self.error:
            raise self.error
        return FakeResponse({"response": self.answer})


def image(element_id, image_hash=None, data=b"png", alt=None):
    return SlideElement(
        id=element_id,
        type=ElementType.IMAGE,
        semantic_role=SemanticRole.FIGURE,
        position=Position(100, 200, 100, 100),
        content=ElementContent(alt_text=alt, alt_text_status=AltTextStatus.PRESENT if alt else AltTextStatus.MISSING),
        image_data=data,
        image_hash=image_hash,
    )


def textbox(element_id, text):
    return SlideElement(
        id=element_id,
        type=ElementType.TEXTBOX,
        semantic_role=SemanticRole.P,
        position=Position(100, 300, 300, 40),
        content=ElementContent(text=text),
    )


def untitled_presentation():
    """Eine Folie ohne Titel mit einem Textfeld."""
    slide = Slide(number=1, elements=[textbox("shape-2", "Umsatz Q1 bis Q4 gestiegen")])
    slide.reading_order = ["shape-2"]
    return Presentation(slides=[slide])


class TestEnricher:
    """Enricher mit Attrappen-Client."""

    def test_alt_text_for_scenario(self, scenario):
        """Bild ohne Alt-Text bekommt Vorschlag mit Status needs_review."""
        client = FakeClient()
        result = Enricher(client).enhance(scenario)

        alt = [e for e in result.enhancements if e.kind == Enhancement.ALT_TEXT]
        assert len(alt) == 1
        assert alt[0].slide_number == 2
        assert alt[0].confidence == 0.9

        element = result.presentation.slides[1].element(alt[0].element_id)
        assert element.content.alt_text == "Balkendiagramm mit Umsätzen pro Quartal."
        assert element.content.alt_text_status == AltTextStatus.NEEDS_REVIEW
        assert result.stats.alt_texts_generated == 1
        assert result.errors == []

    def test_input_unchanged(self, scenario):
        snapshot = scenario.to_dict()
        Enricher(FakeClient()).enhance(scenario)
        assert scenario.to_dict() == snapshot

    def test_enhanced_scenario_validates_clean_of_alt_errors(self, scenario):
        enhanced = Enricher(FakeClient()).enhance(scenario).presentation
        report = validate(enhanced, timestamp=FIXED_TIME)
        assert not report.issues_of(IssueType.MISSING_ALT_TEXT)

    def test_client_absent(self, scenario):
        """Ohne Client: Modell unverändert, Hinweis in errors."""
        result = Enricher(None).enhance(scenario)
        assert result.enhancements == []
        assert result.errors == [UNAVAILABLE_MESSAGE_DE]
        assert result.presentation.to_dict() == scenario.to_dict()

    def test_client_unavailable(self, scenario):
        client = FakeClient(available=False)
        result = Enricher(client).enhance(scenario)
        assert result.errors == [UNAVAILABLE_MESSAGE_DE]
        assert client.describe_calls == []

    def test_call_limit_per_slide(self):
        """Höchstens fünf Aufrufe je Folie."""
        elements = [image(f"img-{i}") for i in range(7)]
        slide = Slide(number=1, elements=elements)
        slide.reading_order = [e.id for e in elements]
        client = FakeClient()
        result = Enricher(client, EnricherConfig(generate_titles=False)).enhance(Presentation(slides=[slide]))
        assert len(client.describe_calls) == 5
        assert len(result.enhancements) == 5

    def test_cache_by_image_hash(self):
        """Identische Bilder werden nur einmal beschrieben."""
        elements = [image("a", image_hash="abc"), image("b", image_hash="abc")]
        slide = Slide(number=1, elements=elements)
        client = FakeClient()
        result = Enricher(client, EnricherConfig(generate_titles=False)).enhance(Presentation(slides=[slide]))
        assert client.describe_calls == ["a"]
        assert result.stats.from_cache == 1
        assert [e.new_value for e in result.enhancements] == [client.description] * 2

    def test_skips_decorative_and_described(self):
        decorative = image("deko")
        decorative.is_decorative = True
        slide = Slide(number=1, elements=[decorative, image("alt", alt="Stadtplan der Innenstadt")])
        client = FakeClient()
        Enricher(client, EnricherConfig(generate_titles=False)).enhance(Presentation(slides=[slide]))
        assert client.describe_calls == []

    def test_failed_description(self, scenario):
        client = FakeClient(description=None)
        result = Enricher(client).enhance(scenario)
        assert result.enhancements == []
        assert result.errors == [f"Folie 2: keine Beschreibung für {client.describe_calls[0]}"]

    def test_title_inserted(self):
        """Fehlender Titel → neues H1-Element vorne in der Lesereihenfolge."""
        result = Enricher(FakeClient()).enhance(untitled_presentation())
        slide = result.presentation.slides[0]

        assert slide.title == "Umsatzübersicht"
        assert slide.reading_order[0] == "generated-title-1"
        title = slide.elements[0]
        assert title.semantic_role == SemanticRole.H1
        assert (title.position.x, title.position.y) == (50, 50)
        assert result.stats.titles_generated == 1

    def test_existing_titles_kept(self, scenario):
        client = FakeClient()
        Enricher(client).enhance(scenario)
        assert client.title_calls == []

    def test_propose_only(self, scenario):
        proposals = Enricher(FakeClient()).propose(scenario)
        assert [p.kind for p in proposals] == [Enhancement.ALT_TEXT]
        assert scenario.slides[1].elements[-1].content.alt_text is None


class TestApplyEnhancements:
    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            apply_enhancements(untitled_presentation(), [Enhancement("farbe", 1, None, "rot")])

    def test_unknown_slide_ignored(self):
        model = untitled_presentation()
        result = apply_enhancements(model, [Enhancement(Enhancement.TITLE, 9, None, "X")])
        assert result.slides[0].title is None

    def test_to_dict(self):
        data = Enhancement(Enhancement.ALT_TEXT, 2, "shape-4", "Ein Foto.", confidence=0.6).to_dict()
        assert data == {
            "type": "alt_text",
            "slideNumber": 2,
            "elementId": "shape-4",
            "originalValue": None,
            "newValue": "Ein Foto.",
            "confidence": 0.6,
        }


class TestOllamaClient:
    """OllamaClient gegen eine Attrappen-Session."""

    def test_available(self):
        client = OllamaClient(session=FakeSession())
        assert client.is_available()
        assert client.has_model("llava")

    def test_unreachable(self):
        """Verbindungsfehler → nicht verfügbar, keine Exception."""
        client = OllamaClient(session=FakeSession(error=requests.ConnectionError("refused")))
        assert client.list_models() == []
        assert not client.is_available()

    def test_model_missing(self):
        client = OllamaClient(session=FakeSession(models=("mistral:7b",)))
        assert not client.is_available()

    def test_describe_image_uses_vision_model(self):
        session = FakeSession()
        client = OllamaClient(session=session)
        slide = Slide(number=1)
        result = client.describe(image("img", data=b"\x89PNG"), slide)

        assert result == "Einen roten Apfel."
        url, payload, timeout = session.posts[0]
        assert url == "http://localhost:11434/api/generate"
        assert payload["model"] == "llava:13b"
        assert payload["stream"] is False
        assert payload["images"] == ["iVBORw=="]
        assert timeout == 120

    def test_describe_without_image_uses_text_model(self):
        session = FakeSession()
        client = OllamaClient(session=session)
        chart = image("chart", data=None)
        chart.type = ElementType.CHART
        client.describe(chart, Slide(number=1))
        _, payload, timeout = session.posts[0]
        assert payload["model"] == "llama3.2:3b"
        assert "Diagramm" in payload["prompt"]
        assert "images" not in payload
        assert timeout == 30

    def test_short_answer_rejected(self):
        client = OllamaClient(session=FakeSession(answer="ok"))
        assert client.describe(image("img"), Slide(number=1)) is None

    def test_timeout(self):
        session = FakeSession()
        client = OllamaClient(session=session)
        client.list_models()
        session.error = requests.Timeout("zu langsam")
        assert client.describe(image("img"), Slide(number=1)) is None

    def test_suggest_title(self):
        client = OllamaClient(session=FakeSession(answer='"Umsatz im Überblick."\nweiterer Text'))
        slide = untitled_presentation().slides[0]
        assert client.suggest_title(slide) == "Umsatz im Überblick"

    def test_english_prompts(self):
        session = FakeSession()
        client = OllamaClient(EnricherConfig(language="en"), session=session)
        client.describe(image("img"), Slide(number=1))
        assert session.posts[0][1]["prompt"].startswith("Describe this image")


class TestHelpers:
    def test_rule_based_polish(self):
        assert rule_based_polish("The image shows a red apple") == "A red apple."
        assert rule_based_polish("Karte von Berlin!") == "Karte von Berlin!"

    def test_clean_title(self):
        assert clean_title("  „Projektplan 2025.“  ") == "Projektplan 2025"
        assert clean_title("\n\n") == ""

    def test_cache(self):
        cache = AltTextCache()
        key = AltTextCache.compute_hash(b"logo")
        assert cache.get(key) is None
        cache.set(key, "Logo")
        assert cache.get(key) == "Logo"
        assert len(cache) == 1
