"""
Zeichenbereinigung
==================
Text für die PDF-Ausgabe auf Latin-1 (0x00-0xFF) abbilden.

Bekannte Symbole werden ersetzt, alles andere außerhalb des
Zeichenvorrats wird stillschweigend entfernt. Nie ein Fehler.
"""

import re


UNICODE_REPLACEMENTS: dict[str, str] = {
    "\U0001F4CA": "[chart]",          # 📊
    "\U0001F4C8": "[upward trend]",   # 📈
    "\U0001F4C9": "[downward trend]", # 📉
    "\U0001F4C1": "[folder]",         # 📁
    "\U0001F4C4": "[document]",       # 📄
    "\U0001F4F7": "[photo]",          # 📷
    "\U0001F5BC": "[picture]",        # 🖼
    "✓": "x",                    # ✓
    "✔": "x",                    # ✔
    "✗": "-",                    # ✗
    "✘": "-",                    # ✘
    "→": "->",                   # →
    "←": "<-",                   # ←
    "↑": "^",                    # ↑
    "↓": "v",                    # ↓
    "•": "-",                    # •
    "–": "-",                    # –
    "—": "-",                    # —
    "…": "...",                  # …
    "„": '"',                    # „
    "“": '"',                    # “
    "”": '"',                    # ”
    "‘": "'",                    # ‘
    "’": "'",                    # ’
    "«": "<<",                   # «
    "»": ">>",                   # »
}

_REPLACEMENT_PATTERN = re.compile(
    "|".join(re.escape(char) for char in UNICODE_REPLACEMENTS)
)
_OUTSIDE_LATIN1 = re.compile(r"[^\x00-\xFF]")


def sanitize_text(text: str | None) -> str:
    """
    >>> sanitize_text("Umsatz 📈 „gut“ → weiter")
    'Umsatz [upward trend] "gut" -> weiter'
    """
    if not text:
        return ""
    result = _REPLACEMENT_PATTERN.sub(lambda m: UNICODE_REPLACEMENTS[m.group(0)], text)
    return _OUTSIDE_LATIN1.sub("", result)
