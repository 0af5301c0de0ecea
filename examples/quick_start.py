#!/usr/bin/env python3
"""
Quick start guide for the ingredient scaler.
Minimal example scaling a recipe and building a shopping list.
"""

import sys
from pathlib import Path

# Add src to path
sys.path.append(str(Path(__file__).parent.parent / 'src'))

from ingredient_scaler import scale_ingredient
from recipe_scaler import RecipeScaler
from shopping_list import ShoppingListSelection, build_shopping_list_text


INGREDIENTS = [
    "1 1/2 cups flour, sifted",
    "3/4 tsp salt",
    "2 eggs",
    "2.5 cups milk",
    "Salt to taste",
]


def quick_start():
    """Scale a single line and a whole recipe."""

    print("Ingredient Scaler - Quick Start")
    print("=" * 40)

    # 1. Scale one line
    print("1. Single line:")
    print(f"   {scale_ingredient('1/2 cup sugar', 2)}")

    # 2. Step the scale control like the recipe page buttons do
    scaler = RecipeScaler()
    control = scaler.create_control(initial_servings=4)
    control.increment()
    control.increment()
    print(f"\n2. Scale control: {control.label}")

    # 3. Scale the whole list
    recipe = scaler.scale_recipe(INGREDIENTS, control.initial_servings, control.scale)
    print("\n3. Scaled recipe:")
    print(scaler.export_scaled_recipe(recipe, "text"))

    # 4. Pick items for a shopping list
    selection = ShoppingListSelection()
    selection.toggle(0)
    selection.toggle(3)
    print("\n4. Shopping list:")
    print(build_shopping_list_text(recipe.scaled_ingredients, selection.selected_indices()))


def command_line_usage():
    """Show command line usage."""

    print("\n" + "=" * 40)
    print("Command Line Usage")
    print("=" * 40)

    print("# Scale a file of ingredient lines")
    print("recipe-scaler --input ingredients.txt --scale 2 --servings 4")
    print("")
    print("# Markdown output")
    print("recipe-scaler -i ingredients.txt --scale 1.5 --format markdown")
    print("")
    print("# Shopping list of the first and third lines")
    print("recipe-scaler -i ingredients.txt --scale 2 --shopping-list 0 2")
    print("")
    print("# Web interface")
    print("recipe-scaler-web --port 5000")


if __name__ == "__main__":
    quick_start()
    command_line_usage()
