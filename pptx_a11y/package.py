"""
PPTX Paket-Zugriff
==================
Öffnet das ZIP-Paket, löst Relationships auf und liefert
XML- bzw. Binär-Parts auf Anfrage.

XML wird als XmlNode gekapselt: fehlende Kinder liefern einen
"abwesenden" Knoten statt None, dadurch bleiben Pfadzugriffe
im Parser flach und typisiert.
"""

import posixpath
import zipfile
from dataclasses import dataclass
from io import BytesIO
from typing import Iterator, Optional
from xml.etree import ElementTree as ET

from .errors import MalformedPackageError, MissingPartError, PartParseError


NAMESPACES = {
    "p": "http://schemas.openxmlformats.org/presentationml/2006/main",
    "a": "http://schemas.openxmlformats.org/drawingml/2006/main",
    "r": "http://schemas.openxmlformats.org/officeDocument/2006/relationships",
    "c": "http://schemas.openxmlformats.org/drawingml/2006/chart",
    "dgm": "http://schemas.openxmlformats.org/drawingml/2006/diagram",
    "rel": "http://schemas.openxmlformats.org/package/2006/relationships",
    "ct": "http://schemas.openxmlformats.org/package/2006/content-types",
    "cp": "http://schemas.openxmlformats.org/package/2006/metadata/core-properties",
    "dc": "http://purl.org/dc/elements/1.1/",
    "dcterms": "http://purl.org/dc/terms/",
    "adec": "http://schemas.microsoft.com/office/drawing/2017/decorative",
}

CONTENT_TYPES_PART = "[Content_Types].xml"
PRESENTATION_PART = "ppt/presentation.xml"
REQUIRED_PARTS = (CONTENT_TYPES_PART, PRESENTATION_PART)

RELTYPE_THEME = f"{NAMESPACES['r']}/theme"

DIAGRAM_URI = "http://schemas.openxmlformats.org/drawingml/2006/diagram"


def qname(tag: str) -> str:
    """'a:t' → '{http://...drawingml/2006/main}t'"""
    if tag.startswith("{") or ":" not in tag:
        return tag
    prefix, local = tag.split(":", 1)
    return f"{{{NAMESPACES[prefix]}}}{local}"


class XmlNode:
    """
    Typisierter Zugriff auf ein XML-Element.

    Funktioniert mit ElementTree- und lxml-Elementen
    (python-pptx liefert lxml über shape._element).
    """

    __slots__ = ("_element",)

    def __init__(self, element=None):
        self._element = element

    @property
    def present(self) -> bool:
        return self._element is not None

    def __bool__(self) -> bool:
        return self.present

    @property
    def element(self):
        return self._element

    @property
    def tag(self) -> str:
        if self._element is None:
            return ""
        tag = self._element.tag
        return tag.split("}", 1)[1] if isinstance(tag, str) and "}" in tag else str(tag)

    @property
    def text(self) -> str:
        if self._element is None:
            return ""
        return self._element.text or ""

    def attr(self, name: str, default: Optional[str] = None) -> Optional[str]:
        if self._element is None:
            return default
        return self._element.get(qname(name), default)

    def child(self, tag: str) -> "XmlNode":
        if self._element is None:
            return ABSENT
        return XmlNode(self._element.find(qname(tag)))

    def children(self, tag: Optional[str] = None) -> list["XmlNode"]:
        if self._element is None:
            return []
        if tag is None:
            return [XmlNode(e) for e in self._element if isinstance(e.tag, str)]
        return [XmlNode(e) for e in self._element.findall(qname(tag))]

    def path(self, *tags: str) -> "XmlNode":
        node = self
        for tag in tags:
            node = node.child(tag)
        return node

    def descendant(self, tag: str) -> "XmlNode":
        if self._element is None:
            return ABSENT
        return XmlNode(self._element.find(".//" + qname(tag)))

    def descendants(self, tag: str) -> Iterator["XmlNode"]:
        if self._element is None:
            return
        for element in self._element.iter(qname(tag)):
            yield XmlNode(element)

    def __repr__(self) -> str:
        return f"XmlNode({self.tag or 'absent'})"


ABSENT = XmlNode(None)


@dataclass(frozen=True)
class Relationship:
    """Eine OPC-Relationship mit aufgelöstem Ziel."""
    source_part: str
    r_id: str
    rel_type: str
    target: str
    is_external: bool = False

    @property
    def target_part(self) -> Optional[str]:
        if self.is_external:
            return None
        return resolve_target(self.source_part, self.target)


def rels_part_for(source_part: str) -> str:
    """'ppt/slides/slide1.xml' → 'ppt/slides/_rels/slide1.xml.rels'"""
    folder, name = posixpath.split(source_part)
    return posixpath.join(folder, "_rels", f"{name}.rels")


def resolve_target(source_part: str, target: str) -> str:
    """Löst ein relatives Ziel gegen das Verzeichnis des Quell-Parts auf."""
    if target.startswith("/"):
        return target.lstrip("/")
    base = posixpath.dirname(source_part)
    return posixpath.normpath(posixpath.join(base, target))


class PackageReader:
    """
    Lesezugriff auf ein PPTX-Paket.

    Usage:
        reader = PackageReader.from_bytes(data)
        for part in reader.slide_part_names():
            root = reader.xml(part)
    """

    def __init__(self, archive: zipfile.ZipFile):
        self._zip = archive
        self._names = set(archive.namelist())
        self._xml_cache: dict[str, XmlNode] = {}
        self._rels_cache: dict[str, dict[str, Relationship]] = {}

        for part in REQUIRED_PARTS:
            if part not in self._names:
                raise MissingPartError(part)

    @classmethod
    def from_bytes(cls, data: bytes) -> "PackageReader":
        """
        Raises:
            MalformedPackageError: kein ZIP (z.B. altes .ppt-Format)
            MissingPartError: Pflicht-Part fehlt
        """
        try:
            archive = zipfile.ZipFile(BytesIO(data))
        except zipfile.BadZipFile as e:
            hint = " (old binary .ppt?)" if data[:4] == b"\xd0\xcf\x11\xe0" else ""
            hint_de = " (altes .ppt-Format?)" if hint else ""
            raise MalformedPackageError(
                f"Not a valid .pptx file: not a zip container{hint}",
                f"Keine gültige .pptx-Datei: kein ZIP-Container{hint_de}",
            ) from e
        return cls(archive)

    def part_names(self) -> list[str]:
        return sorted(self._names)

    def has_part(self, name: str) -> bool:
        return name in self._names

    def read(self, name: str) -> bytes:
        if name not in self._names:
            raise MissingPartError(name)
        return self._zip.read(name)

    def xml(self, name: str) -> XmlNode:
        """Geparster XML-Part (gecacht)."""
        if name not in self._xml_cache:
            try:
                root = ET.fromstring(self.read(name))
            except ET.ParseError as e:
                raise PartParseError(name, str(e)) from e
            self._xml_cache[name] = XmlNode(root)
        return self._xml_cache[name]

    def relationships(self, source_part: str) -> dict[str, Relationship]:
        """Alle Relationships eines Parts, nach rId."""
        if source_part in self._rels_cache:
            return self._rels_cache[source_part]

        rels: dict[str, Relationship] = {}
        rels_name = rels_part_for(source_part)
        if rels_name in self._names:
            for node in self.xml(rels_name).children("rel:Relationship"):
                r_id = node.attr("Id")
                if not r_id:
                    continue
                rels[r_id] = Relationship(
                    source_part=source_part,
                    r_id=r_id,
                    rel_type=node.attr("Type", ""),
                    target=node.attr("Target", ""),
                    is_external=node.attr("TargetMode") == "External",
                )
        self._rels_cache[source_part] = rels
        return rels

    def related_part(self, source_part: str, r_id: str) -> Optional[str]:
        rel = self.relationships(source_part).get(r_id)
        if rel is None:
            return None
        return rel.target_part

    def slide_part_names(self) -> list[str]:
        """
        Folien-Parts in deklarierter Reihenfolge (p:sldIdLst).

        Raises:
            MissingPartError: referenzierte Folie fehlt
            PartParseError: Folie ist kein lesbares XML
        """
        presentation = self.xml(PRESENTATION_PART)
        parts = []
        for sld_id in presentation.path("p:sldIdLst").children("p:sldId"):
            r_id = sld_id.attr("r:id")
            part = self.related_part(PRESENTATION_PART, r_id) if r_id else None
            if part is None:
                raise MalformedPackageError(
                    f"Slide reference {r_id!r} cannot be resolved",
                    f"Folienverweis {r_id!r} ist nicht auflösbar",
                )
            self.xml(part)
            parts.append(part)
        return parts

    def theme_part_name(self) -> Optional[str]:
        for rel in self.relationships(PRESENTATION_PART).values():
            if rel.rel_type == RELTYPE_THEME and rel.target_part in self._names:
                return rel.target_part
        themes = sorted(n for n in self._names if n.startswith("ppt/theme/") and n.endswith(".xml"))
        return themes[0] if themes else None

    def close(self):
        self._zip.close()
