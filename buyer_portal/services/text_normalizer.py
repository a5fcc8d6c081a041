"""
Splits raw OCR output into lines the field heuristics can scan.

Each line keeps its original casing for value capture and a case-folded copy
for marker matching. OCR engines sometimes emit decomposed diacritics
("o" + combining diaeresis), so text is NFC-normalized first; otherwise a
marker such as "förfallodatum" would never match.
"""

import re
import unicodedata
from pydantic import BaseModel, ConfigDict

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class NormalizedLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    text: str
    folded: str


def normalize_text(raw: str | None) -> list[NormalizedLine]:
    """
    Turn a (possibly multi-page) OCR text blob into ordered line records.

    Blank lines are dropped, so `index` is the position among kept lines.
    Empty or whitespace-only input yields an empty list.
    """
    if not raw or not raw.strip():
        return []

    text = unicodedata.normalize("NFC", raw)
    lines = []
    for chunk in _LINE_BREAK.split(text):
        stripped = chunk.strip()
        if not stripped:
            continue
        lines.append(NormalizedLine(index=len(lines), text=stripped, folded=stripped.casefold()))
    return lines
