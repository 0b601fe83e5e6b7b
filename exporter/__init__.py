"""
Quote image export.
Renders a quote as a PNG card with Pillow.
"""

from .card_renderer import render_quote_card, quote_card_png, export_quote_image, wrap_text

__all__ = ['render_quote_card', 'quote_card_png', 'export_quote_image', 'wrap_text']
