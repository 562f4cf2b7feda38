"""
KI-Anreicherung für Alt-Texte und Folientitel
=============================================
Optionaler Schritt zwischen Parser und Validator:

1. Vision-LLM: Beschreibt Bilder ohne Alt-Text
2. Text-LLM: Poliert Beschreibungen, schlägt fehlende Folientitel vor

Der Client wird explizit übergeben (oder None), nie global gehalten.
Vorschläge werden als Enhancement-Liste erzeugt und auf eine Kopie
des Modells angewendet; das Eingabemodell bleibt unverändert.

DSGVO-konform: Alles läuft lokal über Ollama.
"""

import base64
import copy
import hashlib
import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Protocol

import requests

from .models import (
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


logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE_DE = "Ollama ist nicht verfügbar. Starten Sie Ollama für AI-Features."

# Konfidenz der Vorschläge
CONFIDENCE_VISION = 0.9
CONFIDENCE_TEXT = 0.6
CONFIDENCE_TITLE = 0.7

# Position eines neu erzeugten Titels (px)
GENERATED_TITLE_POSITION = (50.0, 50.0, 700.0, 50.0)


@dataclass
class EnricherConfig:
    """Konfiguration für die KI-Anreicherung."""
    # Ollama-Einstellungen
    ollama_url: str = "http://localhost:11434"

    # Vision-Modell für Bildbeschreibung
    vision_model: str = "llava:13b"  # oder: qwen2-vl, bakllava

    # Text-Modell für Kürzung und Titel
    text_model: str = "llama3.2:3b"  # oder: mistral, qwen2.5

    # Sprache
    language: str = "de"

    # Timeouts (s)
    vision_timeout: int = 120
    text_timeout: int = 30
    tags_timeout: int = 5

    # Obergrenze der Aufrufe je Folie
    max_calls_per_slide: int = 5

    # Features
    generate_alt_texts: bool = True
    generate_titles: bool = True


class EnhancementClient(Protocol):
    """Fähigkeit, die der Enricher braucht."""

    def is_available(self) -> bool: ...

    def describe(self, element: SlideElement, slide: Slide) -> Optional[str]: ...

    def suggest_title(self, slide: Slide) -> Optional[str]: ...


class AltTextCache:
    """
    Cache für generierte Alt-Texte basierend auf Bild-Hash.

    Spart KI-Calls wenn identische Bilder mehrfach vorkommen
    (sehr häufig in Präsentationen: Logos, wiederkehrende Grafiken).
    """

    def __init__(self):
        self._memory_cache: dict[str, str] = {}

    def get(self, image_hash: str) -> Optional[str]:
        return self._memory_cache.get(image_hash)

    def set(self, image_hash: str, alt_text: str):
        self._memory_cache[image_hash] = alt_text

    def __len__(self) -> int:
        return len(self._memory_cache)

    @staticmethod
    def compute_hash(image_data: bytes) -> str:
        """Berechnet Hash für Bild-Daten."""
        return hashlib.md5(image_data).hexdigest()


_ELEMENT_NAMES_DE = {
    ElementType.IMAGE: "Bild",
    ElementType.CHART: "Diagramm",
    ElementType.SMARTART: "SmartArt-Grafik",
}

_ELEMENT_NAMES_EN = {
    ElementType.IMAGE: "image",
    ElementType.CHART: "chart",
    ElementType.SMARTART: "SmartArt graphic",
}


def rule_based_polish(draft: str) -> str:
    """
    Regelbasierte Bereinigung ohne LLM.

    >>> rule_based_polish("Das Bild zeigt einen roten Apfel")
    'Einen roten Apfel.'
    """
    text = draft.strip().strip('"').strip()

    # Entferne typische Präfixe
    prefixes = (
        "Das Bild zeigt ",
        "Auf dem Bild ist ",
        "Zu sehen ist ",
        "Dieses Bild zeigt ",
        "Die Abbildung zeigt ",
        "Es ist ",
        "Es zeigt ",
        "The image shows ",
        "This image shows ",
        "The picture shows ",
        "We can see ",
        "This is ",
        "It shows ",
    )
    for prefix in prefixes:
        if text.lower().startswith(prefix.lower()):
            text = text[len(prefix):]
            break

    # Erster Buchstabe groß
    if text:
        text = text[0].upper() + text[1:]

    # Punkt am Ende falls keiner
    if text and text[-1] not in ".!?":
        text += "."

    return text


def clean_title(raw: str) -> str:
    """Erste Zeile, ohne Anführungszeichen und Schlusspunkt."""
    lines = [line.strip() for line in raw.strip().splitlines() if line.strip()]
    if not lines:
        return ""
    title = lines[0].strip('"\'„“”').strip()
    return title.rstrip(".").strip()


class OllamaClient:
    """
    Ollama-Client für Beschreibungen und Titelvorschläge.

    Netzwerkfehler werden geloggt und als None gemeldet,
    nie als Exception weitergereicht.

    Unterstützte Vision-Modelle:
    - llava:7b / llava:13b (Standard, gut getestet)
    - bakllava (schneller, etwas weniger genau)
    - llama3.2-vision (neu, sehr gut)
    - qwen2-vl (sehr gut für Dokumente/Charts)
    """

    VISION_PROMPT_DE = """Beschreibe dieses Bild für sehbehinderte Menschen.

Regeln:
- Maximal 2 Sätze
- Beschreibe WAS zu sehen ist und WARUM es relevant ist
- Bei Diagrammen/Charts: Nenne den Typ und die Kernaussage
- Bei Fotos: Beschreibe Motiv und Kontext
- Bei Logos/Icons: Nenne was es darstellt
- WICHTIG: Wenn du etwas nicht sicher erkennen kannst, sage es ehrlich
{context}
Antworte NUR mit der Beschreibung, ohne Einleitung."""

    VISION_PROMPT_EN = """Describe this image for visually impaired users.

Rules:
- Maximum 2 sentences
- Describe WHAT is shown and WHY it's relevant
- For charts/diagrams: State the type and key message
- For photos: Describe subject and context
- For logos/icons: State what it represents
- IMPORTANT: If uncertain about something, say so honestly
{context}
Reply ONLY with the description, no introduction."""

    ELEMENT_PROMPT_DE = """Schreibe einen kurzen Alternativtext (maximal 2 Sätze) für ein {kind} auf einer Präsentationsfolie.

Folientitel: {title}
Weiterer Text auf der Folie: {text}
{detail}
Antworte NUR mit dem Alternativtext."""

    ELEMENT_PROMPT_EN = """Write a short alternative text (maximum 2 sentences) for a {kind} on a presentation slide.

Slide title: {title}
Other text on the slide: {text}
{detail}
Reply ONLY with the alternative text."""

    TITLE_PROMPT_DE = """Schlage einen kurzen, aussagekräftigen Titel (maximal 8 Wörter) für eine Präsentationsfolie mit diesem Inhalt vor:

{text}

Antworte NUR mit dem Titel, ohne Anführungszeichen."""

    TITLE_PROMPT_EN = """Suggest a short, meaningful title (maximum 8 words) for a presentation slide with this content:

{text}

Reply ONLY with the title, no quotes."""

    def __init__(self, config: Optional[EnricherConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or EnricherConfig()
        self.session = session or requests.Session()
        self._models: Optional[list[str]] = None

    @property
    def _german(self) -> bool:
        return self.config.language.lower().startswith("de")

    # === Verfügbarkeit ===

    def list_models(self) -> list[str]:
        """Namen der geladenen Modelle (leer wenn nicht erreichbar)."""
        if self._models is not None:
            return self._models
        try:
            response = self.session.get(
                f"{self.config.ollama_url}/api/tags",
                timeout=self.config.tags_timeout,
            )
            response.raise_for_status()
            models = response.json().get("models", [])
        except (requests.RequestException, ValueError) as e:
            logger.warning("Ollama nicht erreichbar (%s): %s", self.config.ollama_url, e)
            self._models = []
            return self._models
        self._models = [m.get("name", "") for m in models]
        return self._models

    def has_model(self, model: str) -> bool:
        # Check mit und ohne Tag
        base_model = model.split(":")[0]
        return any(base_model in name for name in self.list_models())

    def is_available(self) -> bool:
        """Server erreichbar und mindestens ein konfiguriertes Modell geladen."""
        return self.has_model(self.config.vision_model) or self.has_model(self.config.text_model)

    # === Vorschläge ===

    def describe(self, element: SlideElement, slide: Slide) -> Optional[str]:
        """
        Alt-Text-Vorschlag für ein Bild, Diagramm oder SmartArt.

        Mit Bilddaten über das Vision-Modell, sonst über das
        Text-Modell aus dem Folienkontext.
        """
        if element.image_data and self.has_model(self.config.vision_model):
            draft = self._describe_image(element.image_data, slide)
        elif self.has_model(self.config.text_model):
            draft = self._describe_from_context(element, slide)
        else:
            return None
        if not draft:
            return None
        return rule_based_polish(draft)

    def suggest_title(self, slide: Slide) -> Optional[str]:
        text = _slide_text(slide)
        if not text or not self.has_model(self.config.text_model):
            return None
        template = self.TITLE_PROMPT_DE if self._german else self.TITLE_PROMPT_EN
        raw = self._generate(
            self.config.text_model,
            template.format(text=text[:1000]),
            timeout=self.config.text_timeout,
            temperature=0.3,
            num_predict=30,
        )
        if not raw:
            return None
        return clean_title(raw) or None

    def _describe_image(self, image_data: bytes, slide: Slide) -> Optional[str]:
        template = self.VISION_PROMPT_DE if self._german else self.VISION_PROMPT_EN
        context = ""
        if slide.title:
            label = "Folientitel" if self._german else "Slide title"
            context = f"\n{label}: {slide.title}\n"
        return self._generate(
            self.config.vision_model,
            template.format(context=context),
            timeout=self.config.vision_timeout,
            images=[base64.b64encode(image_data).decode("utf-8")],
            temperature=0.3,  # Niedrig für Konsistenz
            num_predict=200,  # Kurze Antworten
        )

    def _describe_from_context(self, element: SlideElement, slide: Slide) -> Optional[str]:
        if self._german:
            template, names = self.ELEMENT_PROMPT_DE, _ELEMENT_NAMES_DE
        else:
            template, names = self.ELEMENT_PROMPT_EN, _ELEMENT_NAMES_EN
        detail = ""
        if element.smartart_items:
            detail = "\n".join(f"- {item.text}" for item in element.smartart_items)
        elif element.content.long_description:
            detail = element.content.long_description
        prompt = template.format(
            kind=names.get(element.type, names[ElementType.IMAGE]),
            title=slide.title or "-",
            text=_slide_text(slide)[:500] or "-",
            detail=detail,
        )
        return self._generate(
            self.config.text_model,
            prompt,
            timeout=self.config.text_timeout,
            temperature=0.2,
            num_predict=150,
        )

    def _generate(
        self,
        model: str,
        prompt: str,
        timeout: int,
        images: Optional[list[str]] = None,
        temperature: float = 0.3,
        num_predict: int = 200,
    ) -> Optional[str]:
        payload = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": temperature,
                "num_predict": num_predict,
            },
        }
        if images:
            payload["images"] = images

        try:
            response = self.session.post(
                f"{self.config.ollama_url}/api/generate",
                json=payload,
                timeout=timeout,
            )
            response.raise_for_status()
            text = response.json().get("response", "").strip()
        except requests.Timeout:
            logger.warning("%s Timeout (%ss)", model, timeout)
            return None
        except (requests.RequestException, ValueError) as e:
            logger.warning("%s Fehler: %s", model, e)
            return None

        # Sanity Check
        if len(text) <= 3:
            return None
        return text


def _slide_text(slide: Slide) -> str:
    parts = []
    for element in slide.ordered_elements:
        if element.type == ElementType.TITLE or element.is_decorative:
            continue
        if element.text.strip():
            parts.append(element.text.strip())
        elif element.list_data is not None:
            parts.extend(item.text for item in element.list_data.items if item.text.strip())
    return "\n".join(parts)


@dataclass(frozen=True)
class Enhancement:
    """Ein Vorschlag der Anreicherung (alt_text oder title)."""
    kind: str
    slide_number: int
    element_id: Optional[str]
    new_value: str
    original_value: Optional[str] = None
    confidence: float = 0.0

    ALT_TEXT = "alt_text"
    TITLE = "title"

    def to_dict(self) -> dict:
        return {
            "type": self.kind,
            "slideNumber": self.slide_number,
            "elementId": self.element_id,
            "originalValue": self.original_value,
            "newValue": self.new_value,
            "confidence": self.confidence,
        }


@dataclass
class EnhancementStats:
    alt_texts_generated: int = 0
    titles_generated: int = 0
    processing_time_ms: int = 0
    from_cache: int = 0

    def to_dict(self) -> dict:
        return {
            "altTextsGenerated": self.alt_texts_generated,
            "titlesGenerated": self.titles_generated,
            "processingTimeMs": self.processing_time_ms,
            "fromCache": self.from_cache,
        }


@dataclass
class EnhancementResult:
    presentation: Presentation
    enhancements: list[Enhancement] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    stats: EnhancementStats = field(default_factory=EnhancementStats)


class Enricher:
    """
    Erzeugt Vorschläge für fehlende Alt-Texte und Folientitel.

    Usage:
        enricher = Enricher(OllamaClient())
        result = enricher.enhance(presentation)
        presentation = result.presentation
    """

    def __init__(self, client: Optional[EnhancementClient], config: Optional[EnricherConfig] = None):
        self.client = client
        self.config = config or getattr(client, "config", None) or EnricherConfig()
        self.cache = AltTextCache()

    def enhance(self, presentation: Presentation) -> EnhancementResult:
        """Vorschläge erzeugen und auf eine Kopie anwenden."""
        started = time.monotonic()
        enhancements: list[Enhancement] = []
        errors: list[str] = []
        stats = EnhancementStats()

        if self.client is None or not self.client.is_available():
            logger.warning("KI-Anreicherung übersprungen: Ollama nicht verfügbar")
            errors.append(UNAVAILABLE_MESSAGE_DE)
        else:
            enhancements = self._propose(presentation, errors, stats)

        enhanced = apply_enhancements(presentation, enhancements)
        stats.alt_texts_generated = sum(1 for e in enhancements if e.kind == Enhancement.ALT_TEXT)
        stats.titles_generated = sum(1 for e in enhancements if e.kind == Enhancement.TITLE)
        stats.processing_time_ms = int((time.monotonic() - started) * 1000)
        return EnhancementResult(enhanced, enhancements, errors, stats)

    def propose(self, presentation: Presentation) -> list[Enhancement]:
        """Nur Vorschläge, ohne das Modell anzufassen."""
        if self.client is None or not self.client.is_available():
            logger.warning("KI-Anreicherung übersprungen: Ollama nicht verfügbar")
            return []
        return self._propose(presentation, [], EnhancementStats())

    def _propose(self, presentation: Presentation, errors: list[str], stats: EnhancementStats) -> list[Enhancement]:
        enhancements = []
        for slide in presentation.slides:
            budget = self.config.max_calls_per_slide

            if self.config.generate_alt_texts:
                for element in self._alt_text_targets(slide):
                    if budget <= 0:
                        logger.debug("Folie %d: Aufruf-Limit erreicht", slide.number)
                        break
                    cached = self.cache.get(element.image_hash) if element.image_hash else None
                    if cached:
                        stats.from_cache += 1
                        alt_text = cached
                    else:
                        budget -= 1
                        alt_text = self.client.describe(element, slide)
                    if not alt_text:
                        errors.append(f"Folie {slide.number}: keine Beschreibung für {element.id}")
                        continue
                    if element.image_hash:
                        self.cache.set(element.image_hash, alt_text)
                    enhancements.append(Enhancement(
                        Enhancement.ALT_TEXT,
                        slide.number,
                        element.id,
                        alt_text,
                        original_value=element.content.alt_text,
                        confidence=CONFIDENCE_VISION if element.image_data else CONFIDENCE_TEXT,
                    ))

            if self.config.generate_titles and slide.title is None and budget > 0:
                if not _slide_text(slide):
                    continue
                title = self.client.suggest_title(slide)
                if not title:
                    errors.append(f"Folie {slide.number}: kein Titelvorschlag")
                    continue
                existing = _title_element(slide)
                enhancements.append(Enhancement(
                    Enhancement.TITLE,
                    slide.number,
                    existing.id if existing else None,
                    title,
                    original_value=existing.text if existing else None,
                    confidence=CONFIDENCE_TITLE,
                ))

        logger.debug("%d Vorschläge, %d Fehler", len(enhancements), len(errors))
        return enhancements

    @staticmethod
    def _alt_text_targets(slide: Slide) -> list[SlideElement]:
        return [
            element for element in slide.elements
            if element.is_image_like
            and not element.is_decorative
            and not (element.content.alt_text or "").strip()
        ]


def _title_element(slide: Slide) -> Optional[SlideElement]:
    for element in slide.elements:
        if element.type == ElementType.TITLE:
            return element
    return None


def apply_enhancements(presentation: Presentation, enhancements: list[Enhancement]) -> Presentation:
    """
    Wendet Vorschläge deterministisch auf eine Kopie an.

    Alt-Texte erhalten den Status needs_review. Fehlende Titel
    werden als neues Titel-Element vorne in die Lesereihenfolge
    gesetzt. Überholte Parser-Befunde werden entfernt.
    """
    result = copy.deepcopy(presentation)
    slides = {slide.number: slide for slide in result.slides}

    for enhancement in enhancements:
        slide = slides.get(enhancement.slide_number)
        if slide is None:
            logger.warning("Vorschlag für unbekannte Folie %d ignoriert", enhancement.slide_number)
            continue

        if enhancement.kind == Enhancement.ALT_TEXT:
            element = slide.element(enhancement.element_id or "")
            if element is None:
                logger.warning("Vorschlag für unbekanntes Element %s ignoriert", enhancement.element_id)
                continue
            element.content.alt_text = enhancement.new_value
            element.content.alt_text_status = AltTextStatus.NEEDS_REVIEW
            element.issues = [i for i in element.issues if i.type != IssueType.MISSING_ALT_TEXT]

        elif enhancement.kind == Enhancement.TITLE:
            existing = slide.element(enhancement.element_id) if enhancement.element_id else None
            if existing is not None:
                existing.content.text = enhancement.new_value
                if existing.id in slide.reading_order:
                    slide.reading_order.remove(existing.id)
                slide.reading_order.insert(0, existing.id)
            else:
                element = SlideElement(
                    id=f"generated-title-{slide.number}",
                    type=ElementType.TITLE,
                    semantic_role=SemanticRole.H1,
                    position=Position(*GENERATED_TITLE_POSITION),
                    content=ElementContent(text=enhancement.new_value),
                    name="Generierter Titel",
                )
                slide.elements.insert(0, element)
                slide.reading_order.insert(0, element.id)
            slide.issues = [i for i in slide.issues if i.type != IssueType.MISSING_TITLE]

        else:
            raise ValueError(f"Unbekannte Anreicherung: {enhancement.kind}")

    result.refresh_stats()
    return result
