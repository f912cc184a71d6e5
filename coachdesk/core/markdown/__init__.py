"""
Markdown rendering for coach-authored text.

Plans, notes, exercise descriptions and recipes are all written in a small
Markdown dialect and rendered server-side into escaped HTML.
"""

from .recipes import RecipeSections, extract_image_urls, split_recipe_sections
from .renderer import MarkdownRenderer, escape_html, render

__all__ = [
    "MarkdownRenderer",
    "RecipeSections",
    "escape_html",
    "extract_image_urls",
    "render",
    "split_recipe_sections",
]
