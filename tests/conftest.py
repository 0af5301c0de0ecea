"""
Pytest configuration and shared fixtures for the recipe scaler tests.
"""
import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.append(str(Path(__file__).parent.parent / "src"))

from recipe_web_interface import RecipeWebInterface


@pytest.fixture
def web_interface():
    return RecipeWebInterface({'testing': True, 'secret_key': 'test-secret-key', 'max_ingredients': 5})


@pytest.fixture
def client(web_interface):
    return web_interface.app.test_client()


@pytest.fixture
def ingredients():
    return [
        "1 1/2 cups flour, sifted",
        "3/4 tsp salt",
        "2 eggs",
        "Pepper to taste",
    ]
