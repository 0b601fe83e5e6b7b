"""
Quote card rendering.

Turns a single Quote into a portrait image: the quote text in typographic
quotes, word-wrapped to the card width, with the author right-aligned
beneath it. Rendering is a pure function of the quote and the export
settings; only ``export_quote_image`` touches the filesystem.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import List, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from database.models import Quote
from utils import (
    config_manager, export_logger, export_metrics, ExportConfig, ExportError, ErrorCodes,
    resolve_project_path
)

ELLIPSIS = "…"
LINE_SPACING = 1.25
AUTHOR_GAP = 18

# 依次尝试的字体，找不到时退回 Pillow 内置字体
_QUOTE_FONTS = ("DejaVuSerif-Italic.ttf", "DejaVuSerif.ttf", "DejaVuSans.ttf")
_AUTHOR_FONTS = ("DejaVuSerif-Italic.ttf", "DejaVuSans.ttf")


def _load_font(candidates: Tuple[str, ...], size: int, font_path: Optional[str] = None):
    if font_path:
        candidates = (font_path,) + candidates
    for name in candidates:
        try:
            return ImageFont.truetype(name, size=size)
        except OSError:
            continue
    export_logger.debug(f"[Exporter] No TrueType font found, using Pillow default (size {size})")
    return ImageFont.load_default(size=size)


def _line_height(font) -> int:
    left, top, right, bottom = font.getbbox("Ag")
    return max(1, int((bottom - top) * LINE_SPACING))


def _split_long_word(draw: ImageDraw.ImageDraw, word: str, font, max_width: int) -> List[str]:
    # 没有空格的长串（例如中日文）按字符切分
    pieces = []
    current = ""
    for char in word:
        if current and draw.textlength(current + char, font=font) > max_width:
            pieces.append(current)
            current = char
        else:
            current += char
    if current:
        pieces.append(current)
    return pieces


def wrap_text(draw: ImageDraw.ImageDraw, text: str, font, max_width: int) -> List[str]:
    """按像素宽度折行，保留原有换行"""
    lines: List[str] = []
    for paragraph in text.split("\n"):
        words = paragraph.split(" ")
        current = ""
        for word in words:
            candidate = f"{current} {word}" if current else word
            if draw.textlength(candidate, font=font) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
            if draw.textlength(word, font=font) <= max_width:
                current = word
            else:
                pieces = _split_long_word(draw, word, font, max_width)
                lines.extend(pieces[:-1])
                current = pieces[-1] if pieces else ""
        lines.append(current)
    return lines


def _truncate(draw: ImageDraw.ImageDraw, lines: List[str], max_lines: int, font, max_width: int) -> List[str]:
    if len(lines) <= max_lines:
        return lines
    kept = lines[:max(1, max_lines)]
    last = kept[-1]
    while last and draw.textlength(last + ELLIPSIS, font=font) > max_width:
        last = last[:-1]
    kept[-1] = last.rstrip() + ELLIPSIS
    return kept


def render_quote_card(quote: Quote, config: Optional[ExportConfig] = None) -> Image.Image:
    """Render ``quote`` onto a new RGB image sized by ``config``."""
    config = config or config_manager.get_export_config()

    try:
        img = Image.new("RGB", (config.width, config.height), config.background)
    except (ValueError, TypeError) as e:
        raise ExportError(
            f"Invalid card settings: {e}",
            ErrorCodes.EXPORT_RENDER_FAILED,
            {"width": config.width, "height": config.height}
        ) from e

    draw = ImageDraw.Draw(img)
    quote_font = _load_font(_QUOTE_FONTS, config.font_size, config.font_path)
    author_font = _load_font(_AUTHOR_FONTS, config.author_font_size, config.font_path)

    max_width = config.width - config.padding * 2
    quote_line_h = _line_height(quote_font)
    author_line_h = _line_height(author_font)

    available = config.height - config.padding * 2 - AUTHOR_GAP - author_line_h
    max_lines = max(1, available // quote_line_h)

    lines = wrap_text(draw, f"“{quote.text}”", quote_font, max_width)
    lines = _truncate(draw, lines, max_lines, quote_font, max_width)

    block_h = len(lines) * quote_line_h + AUTHOR_GAP + author_line_h
    y = max(config.padding, (config.height - block_h) // 2)

    try:
        for line in lines:
            draw.text((config.padding, y), line, font=quote_font, fill=config.text_color)
            y += quote_line_h

        author_text = f"— {quote.author}"
        author_lines = _truncate(draw, wrap_text(draw, author_text, author_font, max_width), 1,
                                 author_font, max_width)
        author_w = draw.textlength(author_lines[0], font=author_font)
        draw.text((config.width - config.padding - author_w, y + AUTHOR_GAP), author_lines[0],
                  font=author_font, fill=config.author_color)
    except ValueError as e:
        raise ExportError(
            f"Failed to draw quote {quote.id}: {e}",
            ErrorCodes.EXPORT_RENDER_FAILED,
            {"id": quote.id}
        ) from e

    export_metrics.increment("rendered")
    return img


def quote_card_png(quote: Quote, config: Optional[ExportConfig] = None) -> bytes:
    """PNG-encoded quote card."""
    buffer = io.BytesIO()
    render_quote_card(quote, config).save(buffer, format="PNG")
    return buffer.getvalue()


def export_quote_image(quote: Quote, output_path: Optional[str] = None,
                       config: Optional[ExportConfig] = None) -> Path:
    """Write the quote card as a PNG file and return its path."""
    config = config or config_manager.get_export_config()
    if output_path:
        path = Path(output_path).expanduser()
    else:
        path = resolve_project_path(config.output_dir) / f"quote_{quote.id}.png"

    card = render_quote_card(quote, config)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        card.save(path, format="PNG")
    except OSError as e:
        export_logger.error(f"[Exporter] Failed to write {path}: {e}")
        raise ExportError(
            f"Failed to write quote image to {path}: {e}",
            ErrorCodes.EXPORT_WRITE_FAILED,
            {"id": quote.id, "path": str(path)}
        ) from e

    export_metrics.increment("exported")
    export_logger.info(f"[Exporter] Quote {quote.id} exported to {path}")
    return path
