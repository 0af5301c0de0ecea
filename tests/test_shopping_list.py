"""Tests for shopping list selection and export."""
from shopping_list import (
    ShoppingListSelection, build_shopping_list_text, render_print_document
)

SCALED = ["3 cups flour", "1 1/2 tsp salt", "4 eggs"]


def test_text_uses_bullets_in_index_order():
    assert build_shopping_list_text(SCALED, [2, 0]) == "• 3 cups flour\n• 4 eggs"


def test_text_ignores_out_of_range_and_duplicates():
    assert build_shopping_list_text(SCALED, [1, 1, 7, -1]) == "• 1 1/2 tsp salt"
    assert build_shopping_list_text(SCALED, []) == ""


def test_selection_toggle_and_clear():
    selection = ShoppingListSelection()
    assert not selection.shopping_mode

    assert selection.toggle(2) is True
    assert selection.toggle(0) is True
    assert selection.shopping_mode
    assert selection.selected_indices() == [0, 2]

    assert selection.toggle(2) is False
    assert len(selection) == 1

    selection.clear()
    assert selection.selected_indices() == []
    assert not selection.shopping_mode


def test_select_all():
    selection = ShoppingListSelection()
    selection.select_all(len(SCALED))
    assert build_shopping_list_text(SCALED, selection.selected_indices()).count("\n") == 2


def test_print_document_escapes_text():
    html = render_print_document("• <b>2 eggs</b> & milk")
    assert "<title>Shopping List</title>" in html
    assert "&lt;b&gt;2 eggs&lt;/b&gt; &amp; milk" in html
    assert "<b>" not in html
