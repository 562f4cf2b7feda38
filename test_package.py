"""
Tests für den Paketzugriff
==========================
"""

import zipfile
from io import BytesIO

import pytest

from pptx_a11y.errors import MalformedPackageError, MissingPartError, PartParseError
from pptx_a11y.package import PackageReader, XmlNode, qname, resolve_target
from pptx_a11y.parser import parse_presentation


def rezip(data: bytes, replace: dict = None, drop: tuple = ()) -> bytes:
    """Kopie eines Pakets mit ersetzten bzw. entfernten Parts."""
    replace = replace or {}
    source = zipfile.ZipFile(BytesIO(data))
    out = BytesIO()
    with zipfile.ZipFile(out, "w") as target:
        for name in source.namelist():
            if name in drop:
                continue
            target.writestr(name, replace.get(name, source.read(name)))
    return out.getvalue()


class TestPackageReader:
    """Tests für PackageReader."""

    def test_slide_order(self, scenario_pptx):
        """Folien in deklarierter Reihenfolge."""
        reader = PackageReader.from_bytes(scenario_pptx)
        assert reader.slide_part_names() == [
            "ppt/slides/slide1.xml",
            "ppt/slides/slide2.xml",
            "ppt/slides/slide3.xml",
        ]

    def test_not_a_zip(self):
        """Kein ZIP → MalformedPackageError."""
        with pytest.raises(MalformedPackageError) as exc:
            PackageReader.from_bytes(b"kein zip")
        assert "ZIP" in exc.value.message_de

    def test_old_ppt_hint(self):
        """Altes .ppt-Format wird benannt."""
        with pytest.raises(MalformedPackageError) as exc:
            PackageReader.from_bytes(b"\xd0\xcf\x11\xe0" + b"\x00" * 100)
        assert ".ppt" in exc.value.message

    def test_missing_presentation_part(self, scenario_pptx):
        """Fehlender Pflicht-Part wird benannt."""
        data = rezip(scenario_pptx, drop=("ppt/presentation.xml",))
        with pytest.raises(MissingPartError) as exc:
            PackageReader.from_bytes(data)
        assert exc.value.part_name == "ppt/presentation.xml"

    def test_broken_slide_xml(self, scenario_pptx):
        """Kaputtes Folien-XML → PartParseError mit Part-Name."""
        data = rezip(scenario_pptx, replace={"ppt/slides/slide2.xml": b"<p:sld"})
        with pytest.raises(PartParseError) as exc:
            parse_presentation(data)
        assert exc.value.part_name == "ppt/slides/slide2.xml"
        assert isinstance(exc.value, MalformedPackageError)


class TestXmlNode:
    """Tests für den typisierten XML-Zugriff."""

    def test_absent_child(self):
        """Fehlende Kinder liefern einen abwesenden Knoten."""
        from xml.etree import ElementTree as ET

        root = XmlNode(ET.fromstring(
            '<a:p xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main">'
            "<a:r><a:t>Hallo</a:t></a:r></a:p>"
        ))
        assert root.path("a:r", "a:t").text == "Hallo"
        missing = root.path("a:pPr", "a:buChar")
        assert not missing
        assert missing.attr("char") is None
        assert missing.children() == []

    def test_qname(self):
        assert qname("a:t") == "{http://schemas.openxmlformats.org/drawingml/2006/main}t"
        assert qname("plain") == "plain"

    def test_resolve_target(self):
        """Relative Targets werden gegen den Quell-Part aufgelöst."""
        assert resolve_target("ppt/slides/slide1.xml", "../media/image1.png") == "ppt/media/image1.png"
