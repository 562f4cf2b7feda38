"""
Konvertierungsprofile
=====================
Benannte, unveränderliche Bündel aus Tag-Mapping, Auto-Fix-Schaltern
und Export-Optionen. Profile sind Daten, kein Code.

    >>> from pptx_a11y.profiles import get_profile
    >>> get_profile("strict").export.linearized
    True
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from .models import ElementType, SemanticRole, SlideElement


# Eingebautes Mapping ElementType → Strukturrolle
DEFAULT_ROLE_MAP: Mapping[ElementType, SemanticRole] = MappingProxyType({
    ElementType.TITLE: SemanticRole.H1,
    ElementType.SUBTITLE: SemanticRole.H2,
    ElementType.BODY: SemanticRole.P,
    ElementType.PARAGRAPH: SemanticRole.P,
    ElementType.TEXTBOX: SemanticRole.P,
    ElementType.LIST: SemanticRole.L,
    ElementType.LIST_ITEM: SemanticRole.LI,
    ElementType.TABLE: SemanticRole.TABLE,
    ElementType.IMAGE: SemanticRole.FIGURE,
    ElementType.SHAPE: SemanticRole.FIGURE,
    ElementType.CHART: SemanticRole.FIGURE,
    ElementType.SMARTART: SemanticRole.FIGURE,
    ElementType.GROUP: SemanticRole.SECT,
    ElementType.FOOTER: SemanticRole.ARTIFACT,
    ElementType.SLIDE_NUMBER: SemanticRole.ARTIFACT,
    ElementType.DATE: SemanticRole.ARTIFACT,
    ElementType.UNKNOWN: SemanticRole.SPAN,
})


def default_role(element_type: ElementType) -> SemanticRole:
    return DEFAULT_ROLE_MAP.get(element_type, SemanticRole.SPAN)


@dataclass(frozen=True)
class AutoFixOptions:
    mark_uncaptioned_as_decorative: bool = False
    fix_empty_titles: bool = False
    set_document_language: bool = True
    fix_reading_order: bool = False


@dataclass(frozen=True)
class ExportOptions:
    pdf_version: str = "1.7"
    embed_fonts: bool = True
    include_bookmarks: bool = True
    include_links: bool = True
    linearized: bool = False


@dataclass(frozen=True)
class ConversionProfile:
    """Ein Konvertierungsprofil. Wird pro Job einmal gewählt."""
    id: str
    name: str
    description: str = ""
    tag_mapping: Mapping[ElementType, SemanticRole] = field(
        default_factory=lambda: MappingProxyType({})
    )
    auto_fix: AutoFixOptions = field(default_factory=AutoFixOptions)
    export: ExportOptions = field(default_factory=ExportOptions)
    default_language: str = "de"

    def __post_init__(self):
        # Mapping einfrieren, auch wenn ein dict übergeben wurde
        if not isinstance(self.tag_mapping, MappingProxyType):
            object.__setattr__(self, "tag_mapping", MappingProxyType(dict(self.tag_mapping)))

    def role_for(self, element: SlideElement | ElementType) -> SemanticRole:
        """
        Strukturrolle für ein Element.

        Profil-Mapping hat Vorrang, danach die beim Parsen
        abgeleitete Rolle bzw. das eingebaute Mapping.
        """
        if isinstance(element, SlideElement):
            role = self.tag_mapping.get(element.type)
            return role if role is not None else element.semantic_role
        return self.tag_mapping.get(element) or default_role(element)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "tagMapping": {t.value: r.value for t, r in self.tag_mapping.items()},
            "autoFixOptions": {
                "markUncaptionedAsDecorative": self.auto_fix.mark_uncaptioned_as_decorative,
                "fixEmptyTitles": self.auto_fix.fix_empty_titles,
                "setDocumentLanguage": self.auto_fix.set_document_language,
                "fixReadingOrder": self.auto_fix.fix_reading_order,
            },
            "exportOptions": {
                "pdfVersion": self.export.pdf_version,
                "embedFonts": self.export.embed_fonts,
                "includeBookmarks": self.export.include_bookmarks,
                "includeLinks": self.export.include_links,
                "linearized": self.export.linearized,
            },
            "defaultLanguage": self.default_language,
        }


_FULL_MAPPING = {
    ElementType.TITLE: SemanticRole.H1,
    ElementType.SUBTITLE: SemanticRole.H2,
    ElementType.BODY: SemanticRole.P,
    ElementType.LIST: SemanticRole.L,
    ElementType.LIST_ITEM: SemanticRole.LI,
    ElementType.TABLE: SemanticRole.TABLE,
    ElementType.IMAGE: SemanticRole.FIGURE,
    ElementType.CHART: SemanticRole.FIGURE,
    ElementType.SMARTART: SemanticRole.FIGURE,
}

STANDARD = ConversionProfile(
    id="standard",
    name="Standard",
    description="Ausgewogene Einstellungen für die meisten Präsentationen",
    tag_mapping=_FULL_MAPPING,
    auto_fix=AutoFixOptions(
        set_document_language=True,
        fix_reading_order=True,
    ),
    export=ExportOptions(),
)

STRICT = ConversionProfile(
    id="strict",
    name="Streng (BITV)",
    description="Maximale Konformität für Behörden nach BITV 2.0",
    tag_mapping=_FULL_MAPPING,
    auto_fix=AutoFixOptions(
        fix_empty_titles=True,
        set_document_language=True,
        fix_reading_order=True,
    ),
    export=ExportOptions(linearized=True),
)

QUICK = ConversionProfile(
    id="quick",
    name="Schnell",
    description="Schnelle Konvertierung mit reduziertem Tag-Mapping",
    tag_mapping={
        ElementType.TITLE: SemanticRole.H1,
        ElementType.SUBTITLE: SemanticRole.H2,
        ElementType.BODY: SemanticRole.P,
    },
    auto_fix=AutoFixOptions(
        set_document_language=True,
        fix_reading_order=False,
    ),
    export=ExportOptions(include_bookmarks=False),
)

PROFILES: Mapping[str, ConversionProfile] = MappingProxyType({
    STANDARD.id: STANDARD,
    STRICT.id: STRICT,
    QUICK.id: QUICK,
})


def get_profile(name: Optional[str] = None) -> ConversionProfile:
    """
    Liefert ein Profil nach Name.

    Raises:
        KeyError: unbekannter Profilname
    """
    if name is None:
        return STANDARD
    try:
        return PROFILES[name.lower()]
    except KeyError:
        known = ", ".join(sorted(PROFILES))
        raise KeyError(f"Unbekanntes Profil '{name}' (verfügbar: {known})") from None
