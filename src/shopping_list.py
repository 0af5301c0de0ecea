#!/usr/bin/env python3
"""
Shopping list export for scaled ingredients.
Tracks which scaled lines are selected and renders them as clipboard text or
a printable HTML page.
"""

from typing import Iterable, List, Set

from jinja2 import Environment

BULLET = "• "

PRINT_TEMPLATE = '''<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <title>{{ title }}</title>
    <style>
      body { font-family: system-ui, sans-serif; padding: 20px; }
      h1 { font-size: 24px; margin-bottom: 20px; }
      pre { white-space: pre-wrap; line-height: 1.8; }
    </style>
  </head>
  <body>
    <h1>{{ title }}</h1>
    <pre>{{ text }}</pre>
  </body>
</html>
'''

_environment = Environment(autoescape=True)
_print_template = _environment.from_string(PRINT_TEMPLATE)


class ShoppingListSelection:
    """Selected ingredient indices for a shopping list."""

    def __init__(self, selected: Iterable[int] = ()):
        self.selected: Set[int] = set(selected)
        self.shopping_mode = bool(self.selected)

    def toggle(self, index: int) -> bool:
        """Toggle an index; returns True when it is now selected."""
        if index in self.selected:
            self.selected.discard(index)
            return False
        self.selected.add(index)
        self.shopping_mode = True
        return True

    def select_all(self, count: int):
        self.selected = set(range(count))
        self.shopping_mode = True

    def clear(self):
        self.selected = set()
        self.shopping_mode = False

    def selected_indices(self) -> List[int]:
        return sorted(self.selected)

    def __len__(self) -> int:
        return len(self.selected)


def build_shopping_list_text(scaled_lines: List[str], selected: Iterable[int]) -> str:
    """
    Build clipboard text from the selected scaled lines.

    Lines are emitted in ascending index order, one bullet per line.
    Indices outside the list are ignored.
    """
    indices = sorted(set(selected))
    return "\n".join(
        f"{BULLET}{scaled_lines[i]}" for i in indices
        if 0 <= i < len(scaled_lines)
    )


def render_print_document(text: str, title: str = "Shopping List") -> str:
    """Render a standalone printable HTML page for a shopping list."""
    return _print_template.render(title=title, text=text)
