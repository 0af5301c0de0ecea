#!/usr/bin/env python3
"""
Recipe Scaling
Serving-size scale control and whole-recipe scaling of ingredient lists,
with export to JSON, plain text and Markdown.
"""

import json
import math
import sys
from pathlib import Path
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, asdict, field
import logging

from ingredient_scaler import parse_quantity, scale_ingredient


@dataclass
class ScalingOptions:
    """Scale control options."""
    step: float = 0.5
    floor: float = 0.5
    initial_scale: float = 1.0

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "ScalingOptions":
        config = config or {}
        return cls(
            step=float(config.get('step', cls.step)),
            floor=float(config.get('floor', cls.floor)),
            initial_scale=float(config.get('initial_scale', cls.initial_scale))
        )


@dataclass
class ScaledRecipe:
    """Ingredient list scaled by one factor."""
    original_servings: Optional[int]
    scaled_servings: Optional[int]
    scale_factor: float
    ingredients: List[str]
    scaled_ingredients: List[str]
    scaling_notes: List[str] = field(default_factory=list)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def format_factor(factor: float) -> str:
    """Render a scale factor without a trailing ".0" (1.0 -> "1", 1.5 -> "1.5")."""
    text = repr(float(factor))
    return text[:-2] if text.endswith(".0") else text


def scale_ingredients(ingredients: List[str], scale_factor: float) -> List[str]:
    """Scale every line of an ingredient list, keeping its order."""
    return [scale_ingredient(line, scale_factor) for line in ingredients]


class ScaleControl:
    """Increment/decrement scale state for one recipe view."""

    def __init__(self, initial_servings: Optional[int] = None,
                 options: Optional[ScalingOptions] = None,
                 scale: Optional[float] = None):
        self.options = options or ScalingOptions()
        self.initial_servings = initial_servings
        self.scale = self.options.initial_scale
        if scale is not None:
            self.set_scale(scale)

    def set_scale(self, scale: float):
        self.scale = max(self.options.floor, scale)

    def increment(self) -> float:
        self.scale += self.options.step
        return self.scale

    def decrement(self) -> float:
        self.scale = max(self.options.floor, self.scale - self.options.step)
        return self.scale

    def reset(self) -> float:
        self.scale = self.options.initial_scale
        return self.scale

    def apply_action(self, action: Optional[str]) -> float:
        """Apply a named control action ("increment", "decrement" or "reset")."""
        actions = {
            'increment': self.increment,
            'decrement': self.decrement,
            'reset': self.reset,
        }
        if action in actions:
            return actions[action]()
        return self.scale

    @property
    def can_decrement(self) -> bool:
        return self.scale > self.options.floor

    @property
    def is_scaled(self) -> bool:
        return self.scale != self.options.initial_scale

    @property
    def scaled_servings(self) -> Optional[int]:
        if self.initial_servings is None:
            return None
        return round_half_up(self.initial_servings * self.scale)

    @property
    def label(self) -> str:
        if self.scaled_servings is None:
            return f"{format_factor(self.scale)}x"
        return f"{format_factor(self.scale)}x ({self.scaled_servings} servings)"


class RecipeScaler:
    """Scales ingredient lists and exports the result."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize recipe scaler.

        Args:
            config: Configuration dictionary (step, floor, initial_scale)
        """
        self.config = config or {}
        self.logger = self._setup_logging()
        self.options = ScalingOptions.from_config(self.config)

        self.logger.info("Initialized RecipeScaler")

    def _setup_logging(self) -> logging.Logger:
        """Setup logging for scaler."""
        logger = logging.getLogger('recipe_scaler')
        logger.setLevel(logging.INFO)

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        if not logger.handlers:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

        return logger

    def create_control(self, initial_servings: Optional[int] = None,
                       scale: Optional[float] = None) -> ScaleControl:
        return ScaleControl(initial_servings, self.options, scale)

    def scale_recipe(self, ingredients: List[str],
                     original_servings: Optional[int],
                     scale_factor: float) -> ScaledRecipe:
        """
        Scale a recipe's ingredient list.

        Args:
            ingredients: Ingredient lines in authored order
            original_servings: Servings the recipe was written for
            scale_factor: Multiplier for every quantity

        Returns:
            Scaled recipe
        """
        scaled_ingredients = scale_ingredients(ingredients, scale_factor)

        scaled_servings = None
        if original_servings is not None:
            scaled_servings = round_half_up(original_servings * scale_factor)

        scaling_notes = []
        if scale_factor != 1:
            scaling_notes.append(f"Scaled by factor of {format_factor(scale_factor)}")

        unscaled = sum(1 for line in ingredients if parse_quantity(line) is None)
        if unscaled:
            scaling_notes.append(f"{unscaled} ingredient(s) without a quantity left unchanged")

        self.logger.debug(f"Scaled {len(ingredients)} ingredients by {scale_factor}")

        return ScaledRecipe(
            original_servings=original_servings,
            scaled_servings=scaled_servings,
            scale_factor=scale_factor,
            ingredients=list(ingredients),
            scaled_ingredients=scaled_ingredients,
            scaling_notes=scaling_notes
        )

    def export_scaled_recipe(self, recipe: ScaledRecipe, format: str = "json") -> str:
        """Export scaled recipe in specified format."""
        if format == "json":
            return json.dumps(asdict(recipe), indent=2, ensure_ascii=False)
        elif format == "text":
            return self._format_recipe_as_text(recipe)
        elif format == "markdown":
            return self._format_recipe_as_markdown(recipe)
        else:
            raise ValueError(f"Unsupported format: {format}")

    def _format_recipe_as_text(self, recipe: ScaledRecipe) -> str:
        """Format recipe as plain text."""
        lines = []

        # Header
        if recipe.scaled_servings is not None:
            lines.append(f"Recipe for {recipe.scaled_servings} servings")
        if recipe.scale_factor != 1:
            lines.append(f"Scaled by factor of {format_factor(recipe.scale_factor)}")
        lines.append("")

        lines.append("Ingredients:")
        lines.append("-" * 20)
        for ingredient in recipe.scaled_ingredients:
            lines.append(f"• {ingredient}")

        return "\n".join(lines)

    def _format_recipe_as_markdown(self, recipe: ScaledRecipe) -> str:
        """Format recipe as Markdown."""
        lines = []

        # Header
        if recipe.scaled_servings is not None:
            lines.append(f"# Recipe for {recipe.scaled_servings} servings")
        if recipe.scale_factor != 1:
            lines.append(f"*Scaled by factor of {format_factor(recipe.scale_factor)}*")
        lines.append("")

        lines.append("## Ingredients")
        lines.append("")
        for ingredient in recipe.scaled_ingredients:
            lines.append(f"- {ingredient}")

        if recipe.scaling_notes:
            lines.append("")
            lines.append("## Scaling Notes")
            lines.append("")
            for note in recipe.scaling_notes:
                lines.append(f"- {note}")

        return "\n".join(lines)


def _read_ingredients(path: Optional[str]) -> List[str]:
    if path and path != '-':
        text = Path(path).read_text(encoding='utf-8')
    else:
        text = sys.stdin.read()
    return [line for line in text.splitlines() if line.strip()]


def main(argv: Optional[List[str]] = None) -> int:
    """Main recipe scaling script."""
    import argparse

    from shopping_list import build_shopping_list_text

    parser = argparse.ArgumentParser(description='Scale ingredient quantities')
    parser.add_argument('--input', '-i', help='File with one ingredient per line (default: stdin)')
    parser.add_argument('--scale', type=float, default=1.0, help='Scale factor')
    parser.add_argument('--servings', '-s', type=int, help='Servings the recipe was written for')
    parser.add_argument('--format', choices=['json', 'text', 'markdown'], default='text', help='Output format')
    parser.add_argument('--shopping-list', nargs='*', type=int, metavar='INDEX',
                        help='Print a shopping list of the selected ingredient indices (all when empty)')
    parser.add_argument('--output', '-o', help='Output file')
    parser.add_argument('--config', help='Configuration file (JSON)')

    args = parser.parse_args(argv)

    config = {}
    if args.config:
        with open(args.config, 'r') as f:
            config = json.load(f)

    scaler = RecipeScaler(config)
    ingredients = _read_ingredients(args.input)
    recipe = scaler.scale_recipe(ingredients, args.servings, args.scale)

    if args.shopping_list is not None:
        selected = args.shopping_list or range(len(recipe.scaled_ingredients))
        output = build_shopping_list_text(recipe.scaled_ingredients, selected)
    else:
        output = scaler.export_scaled_recipe(recipe, args.format)

    if args.output:
        Path(args.output).write_text(output + "\n", encoding='utf-8')
        scaler.logger.info(f"Wrote scaled recipe to {args.output}")
    else:
        print(output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
