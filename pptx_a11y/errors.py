"""
Fehlerklassen
=============
Nur echte Abbrüche sind Exceptions. Barrierefreiheitsprobleme sind
Daten (AccessibilityIssue) und werden nie geworfen.
"""

from typing import Optional


class MalformedPackageError(Exception):
    """Eingabe ist kein gültiges PPTX-Paket."""

    def __init__(self, message: str, message_de: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.message_de = message_de or message


class MissingPartError(MalformedPackageError):
    """Ein Pflicht-Part fehlt im Paket."""

    def __init__(self, part_name: str):
        self.part_name = part_name
        super().__init__(
            f"Required package part is missing: {part_name}",
            f"Pflichtbestandteil fehlt im Paket: {part_name}",
        )


class PartParseError(MalformedPackageError):
    """Ein Part enthält kein lesbares XML."""

    def __init__(self, part_name: str, detail: str = ""):
        self.part_name = part_name
        suffix = f" ({detail})" if detail else ""
        super().__init__(
            f"Package part could not be parsed: {part_name}{suffix}",
            f"Paketbestandteil ist nicht lesbar: {part_name}{suffix}",
        )


class RenderError(Exception):
    """PDF-Erzeugung fehlgeschlagen (z.B. Schrift nicht einbettbar)."""

    def __init__(self, message: str, message_de: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.message_de = message_de or message
