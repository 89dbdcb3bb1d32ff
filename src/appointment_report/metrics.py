"""Text measurement under width constraints using fpdf2 font metrics."""

import logging
from collections.abc import Sequence

from fpdf import FPDF

from appointment_report.models import MeasuredText
from appointment_report.settings import FontSpec, ReportSettings

log = logging.getLogger(__name__)

# Core (non-TTF) fonts cover this code page; it includes the bullet glyph.
CORE_ENCODING = "windows-1252"


def apply_font(pdf: FPDF, font: FontSpec, fallback: FontSpec) -> FontSpec:
    """Select `font` on `pdf` and return the font actually in use.

    TTF fonts are registered on first use. A family that cannot be loaded is
    replaced by `fallback`, keeping the requested size and style.
    """
    try:
        if font.path is not None and _font_key(font) not in pdf.fonts:
            pdf.add_font(font.family, font.style, str(font.path))
        pdf.set_font(font.family, font.style, font.size)
        return font
    except Exception as e:
        log.warning("[METRICS] Font %s unavailable, using %s: %s", font.family, fallback.family, e)
        used = fallback.model_copy(update={"style": font.style, "size": font.size})
        pdf.set_font(used.family, used.style, used.size)
        return used


def printable(text: str, font: FontSpec) -> str:
    """Replace characters the font cannot encode."""
    if not font.is_core:
        return text
    return text.encode(CORE_ENCODING, errors="replace").decode(CORE_ENCODING)


def _font_key(font: FontSpec) -> str:
    return f"{font.family.lower()}{''.join(sorted(font.style.upper()))}"


class TextMetrics:
    """Measures wrapped text against a private measuring document.

    The measuring document is never output, so measurement has no effect on
    the report being drawn. One instance serves a single report.
    """

    def __init__(self, settings: ReportSettings):
        self._fallback = settings.fallback_font
        self._line_height_factor = settings.line_height_factor
        self._resolved: dict[FontSpec, FontSpec] = {}
        self._pdf = FPDF(unit="pt", format=settings.page.format)
        self._pdf.core_fonts_encoding = CORE_ENCODING
        self._pdf.add_page()

    def line_height(self, font: FontSpec) -> float:
        return font.size * self._line_height_factor

    def measure(self, text: str, max_width: float, font: FontSpec) -> float:
        """Height `text` occupies when wrapped to `max_width`."""
        return self.wrap(text, max_width, font).height

    def wrap(self, text: str, max_width: float, font: FontSpec) -> MeasuredText:
        """Wrap `text` to `max_width` and return its lines and height."""
        used = self._use(font)
        lines = _wrap_lines(self._pdf, printable(text, used).split("\n") if text else [], max_width)
        return MeasuredText(text=text, lines=tuple(lines), height=len(lines) * self.line_height(used))

    def _use(self, font: FontSpec) -> FontSpec:
        if font not in self._resolved:
            self._resolved[font] = apply_font(self._pdf, font, self._fallback)
        else:
            used = self._resolved[font]
            self._pdf.set_font(used.family, used.style, used.size)
        return self._resolved[font]


def _wrap_lines(pdf: FPDF, paragraphs: Sequence[str], max_width: float) -> list[str]:
    return [line for paragraph in paragraphs for line in _wrap_paragraph(pdf, paragraph, max_width)]


def _wrap_paragraph(pdf: FPDF, paragraph: str, max_width: float) -> list[str]:
    """Greedy fill: words join the open line until it would exceed the width."""
    lines: list[str] = []
    line = ""
    for word in paragraph.split(" "):
        joined = f"{line} {word}" if line else word
        if pdf.get_string_width(joined) <= max_width:
            line = joined
            continue
        if line:
            lines.append(line)
        # The last chunk of a split word stays open for the words that follow
        *full, line = _split_word(pdf, word, max_width)
        lines.extend(full)
    lines.append(line)
    return lines


def _split_word(pdf: FPDF, word: str, max_width: float) -> list[str]:
    """Chunks of `word` no wider than `max_width`; a chunk holds at least one glyph."""
    chunks = [""]
    for glyph in word:
        if chunks[-1] and pdf.get_string_width(chunks[-1] + glyph) > max_width:
            chunks.append(glyph)
        else:
            chunks[-1] += glyph
    return chunks
