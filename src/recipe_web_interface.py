#!/usr/bin/env python3
"""
Recipe Web Interface
Flask application serving the ingredient scaler page, the JSON scaling and
shopping-list endpoints, and the printable shopping list.
"""

import os
import json
import hashlib
from typing import Dict, List, Optional, Any

from flask import Flask, Response, jsonify, redirect, render_template_string, request, url_for
from marshmallow import Schema, fields, validate, EXCLUDE
import structlog

from ingredient_scaler import scale_ingredient
from recipe_scaler import RecipeScaler, format_factor, scale_ingredients
from shopping_list import ShoppingListSelection, build_shopping_list_text, render_print_document
from api.caching_system import QueryCache, CacheKey
from api.error_handling import (
    ValidationError, create_error_context, handle_known_errors,
    init_error_tracking, register_error_handlers
)
from api.monitoring_logging import (
    RequestMonitoring, get_health_status, get_metrics, record_scaled_lines,
    track_execution_time
)

logger = structlog.get_logger(__name__)


# Configuration
class WebConfig:
    """Configuration for the web interface."""

    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "5000"))
    MAX_INGREDIENTS = int(os.getenv("MAX_INGREDIENTS", "200"))
    SCALE_CACHE_TTL = float(os.getenv("SCALE_CACHE_TTL", "300"))


# API Schemas
class ScaleRequestSchema(Schema):
    """Schema for a JSON scaling request."""
    class Meta:
        unknown = EXCLUDE

    ingredients = fields.List(fields.Str(), required=True)
    scale_factor = fields.Float(required=True, validate=validate.Range(min=0, min_inclusive=False))
    servings = fields.Int(allow_none=True, load_default=None, validate=validate.Range(min=1))


class ShoppingListRequestSchema(ScaleRequestSchema):
    """Schema for a shopping list request."""
    selected = fields.List(fields.Int(), load_default=list)


class ExportRequestSchema(ScaleRequestSchema):
    """Schema for a recipe export request."""
    format = fields.Str(load_default="text")


class ScaleFormSchema(Schema):
    """Schema for the scaler page form."""
    class Meta:
        unknown = EXCLUDE

    ingredients = fields.Str(load_default="")
    servings = fields.Int(allow_none=True, load_default=None, validate=validate.Range(min=1))
    scale = fields.Float(load_default=1.0, validate=validate.Range(min=0, min_inclusive=False))
    action = fields.Str(allow_none=True, load_default=None)
    selected = fields.List(fields.Int(), load_default=list)


SCALE_PAGE_TEMPLATE = '''<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Ingredient Scaler</title>
</head>
<body>
  <h1>Ingredient Scaler</h1>
  {% if errors %}
  <ul class="errors">
    {% for error in errors %}<li>{{ error }}</li>{% endfor %}
  </ul>
  {% endif %}
  <form method="post" action="{{ url_for('scale_page') }}">
    <label for="servings">Servings</label>
    <input id="servings" name="servings" type="number" min="1" value="{{ servings if servings is not none else '' }}">
    <input type="hidden" name="scale" value="{{ scale }}">

    <div class="scale-controls">
      <span>Scale recipe:</span>
      <button type="submit" name="action" value="decrement" {% if not can_decrement %}disabled{% endif %}>&minus;</button>
      <span class="scale-label">{{ label }}</span>
      <button type="submit" name="action" value="increment">+</button>
      {% if is_scaled %}<button type="submit" name="action" value="reset">Reset</button>{% endif %}
    </div>

    <label for="ingredients">Ingredients (one per line)</label>
    <textarea id="ingredients" name="ingredients" rows="10" cols="60">{{ ingredients_text }}</textarea>

    <ul class="ingredients">
      {% for line in scaled_ingredients %}
      <li>
        <label>
          <input type="checkbox" name="selected" value="{{ loop.index0 }}" {% if loop.index0 in selected %}checked{% endif %}>
          {{ line }}
        </label>
      </li>
      {% endfor %}
    </ul>

    <button type="submit" name="action" value="apply">Update</button>
    <button type="submit" formaction="{{ url_for('print_shopping_list') }}" formtarget="_blank">Print shopping list</button>
  </form>

  {% if shopping_list %}
  <h2>Shopping List ({{ selected|length }} items)</h2>
  <pre class="shopping-list">{{ shopping_list }}</pre>
  {% endif %}
</body>
</html>
'''

NOT_FOUND_TEMPLATE = '''<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>Not Found</title></head>
<body>
  <h1>Page not found</h1>
  <p><a href="{{ url_for('scale_page') }}">Back to the ingredient scaler</a></p>
</body>
</html>
'''


def _split_lines(text: str) -> List[str]:
    return [line for line in text.splitlines() if line.strip()]


def _form_data() -> Dict[str, Any]:
    """Collect form fields, dropping empty values so defaults apply."""
    data = {key: value for key, value in request.form.items() if value != ''}
    data['selected'] = request.form.getlist('selected')
    return data


class RecipeWebInterface:
    """Flask web interface for ingredient scaling."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize web interface.

        Args:
            config: Configuration dictionary
        """
        self.config = config or {}
        self.app = Flask(__name__)
        self.app.secret_key = self.config.get('secret_key', WebConfig.SECRET_KEY)
        self.app.config['TESTING'] = self.config.get('testing', False)

        self.max_ingredients = self.config.get('max_ingredients', WebConfig.MAX_INGREDIENTS)

        # Initialize components
        self.scaler = RecipeScaler(self.config.get('scaler', {}))
        self.cache = QueryCache(default_ttl=self.config.get('scale_cache_ttl', WebConfig.SCALE_CACHE_TTL))

        RequestMonitoring(self.app)
        register_error_handlers(self.app)
        init_error_tracking(self.config.get('sentry_dsn'))

        # Register routes
        self._register_routes()

        logger.info("Initialized RecipeWebInterface", max_ingredients=self.max_ingredients)

    def _check_size(self, ingredients: List[str]):
        if len(ingredients) > self.max_ingredients:
            raise ValidationError(
                "Too many ingredients",
                validation_errors=[f"ingredients: at most {self.max_ingredients} lines are accepted"]
            )

    @track_execution_time("scale_recipe")
    def _scale_cached(self, ingredients: List[str], servings: Optional[int], scale_factor: float):
        """Scale an ingredient list, reusing a recent identical result."""
        key_data = json.dumps([ingredients, servings, scale_factor])
        key = str(CacheKey("scale", hashlib.sha256(key_data.encode()).hexdigest()))

        with create_error_context("scale_recipe", component="web"):
            return self.cache.get_or_fetch(
                key, lambda: self.scaler.scale_recipe(ingredients, servings, scale_factor)
            )

    def _register_routes(self):
        """Register Flask routes."""

        @self.app.route('/')
        def index():
            """Main page."""
            return redirect(url_for('scale_page'))

        @self.app.route('/scale', methods=['GET', 'POST'])
        def scale_page():
            """Server-rendered scaler page."""
            errors = []
            form = {}
            if request.method == 'POST':
                form_errors = ScaleFormSchema().validate(_form_data())
                if form_errors:
                    errors = [f"{field}: {', '.join(map(str, messages))}"
                              for field, messages in form_errors.items()]
                else:
                    form = ScaleFormSchema().load(_form_data())

            ingredients_text = form.get('ingredients', request.form.get('ingredients', ''))
            ingredients = _split_lines(ingredients_text)[:self.max_ingredients]

            control = self.scaler.create_control(form.get('servings'), form.get('scale'))
            control.apply_action(form.get('action'))

            scaled = scale_ingredients(ingredients, control.scale)
            record_scaled_lines(ingredients, scaled, source="page")

            selection = ShoppingListSelection(
                i for i in form.get('selected', []) if 0 <= i < len(scaled)
            )
            shopping_list = build_shopping_list_text(scaled, selection.selected_indices())

            html = render_template_string(
                SCALE_PAGE_TEMPLATE,
                errors=errors,
                servings=control.initial_servings,
                scale=format_factor(control.scale),
                label=control.label,
                can_decrement=control.can_decrement,
                is_scaled=control.is_scaled,
                ingredients_text=ingredients_text,
                scaled_ingredients=scaled,
                selected=selection.selected,
                shopping_list=shopping_list,
            )
            return html, 400 if errors else 200

        @self.app.route('/api/scale', methods=['POST'])
        def api_scale():
            """Scale an ingredient list."""
            data = ScaleRequestSchema().load(request.get_json(silent=True) or {})
            self._check_size(data['ingredients'])

            recipe = self._scale_cached(data['ingredients'], data['servings'], data['scale_factor'])
            record_scaled_lines(recipe.ingredients, recipe.scaled_ingredients, source="api")

            return jsonify({
                'scaled_ingredients': recipe.scaled_ingredients,
                'scale_factor': recipe.scale_factor,
                'original_servings': recipe.original_servings,
                'scaled_servings': recipe.scaled_servings,
                'scaling_notes': recipe.scaling_notes,
            })

        @self.app.route('/api/shopping-list', methods=['POST'])
        def api_shopping_list():
            """Build shopping list text from selected scaled lines."""
            data = ShoppingListRequestSchema().load(request.get_json(silent=True) or {})
            self._check_size(data['ingredients'])

            scaled = [scale_ingredient(line, data['scale_factor']) for line in data['ingredients']]
            text = build_shopping_list_text(scaled, data['selected'])

            return jsonify({
                'text': text,
                'count': len({i for i in data['selected'] if 0 <= i < len(scaled)}),
            })

        @self.app.route('/api/export', methods=['POST'])
        @handle_known_errors
        def api_export():
            """Export a scaled recipe as JSON, text or Markdown."""
            data = ExportRequestSchema().load(request.get_json(silent=True) or {})
            self._check_size(data['ingredients'])

            recipe = self._scale_cached(data['ingredients'], data['servings'], data['scale_factor'])
            content = self.scaler.export_scaled_recipe(recipe, data['format'])

            mimetypes = {'json': 'application/json', 'markdown': 'text/markdown'}
            return Response(content, mimetype=mimetypes.get(data['format'], 'text/plain'))

        @self.app.route('/shopping-list/print', methods=['POST'])
        def print_shopping_list():
            """Printable shopping list page."""
            if request.is_json:
                data = ShoppingListRequestSchema().load(request.get_json(silent=True) or {})
                ingredients = data['ingredients']
                scale_factor = data['scale_factor']
            else:
                data = ScaleFormSchema().load(_form_data())
                ingredients = _split_lines(data['ingredients'])
                scale_factor = data['scale']
            self._check_size(ingredients)

            scaled = scale_ingredients(ingredients, scale_factor)
            text = build_shopping_list_text(scaled, data['selected'])
            return render_print_document(text)

        @self.app.route('/health')
        def health():
            """Health check."""
            return jsonify(get_health_status())

        @self.app.route('/metrics')
        def metrics():
            """Prometheus metrics."""
            payload, content_type = get_metrics()
            return Response(payload, content_type=content_type)

        @self.app.errorhandler(404)
        def not_found(e):
            """Handle 404 errors."""
            if request.path.startswith('/api/'):
                return jsonify({'error': 'Not found'}), 404
            return render_template_string(NOT_FOUND_TEMPLATE), 404

    def run(self, host: str = None, port: int = None, debug: bool = False):
        """
        Run the Flask application.

        Args:
            host: Host address
            port: Port number
            debug: Debug mode
        """
        host = host or WebConfig.HOST
        port = port or WebConfig.PORT
        logger.info(f"Starting Recipe Web Interface on {host}:{port}")
        self.app.run(host=host, port=port, debug=debug)


def create_app(config: Optional[Dict[str, Any]] = None) -> Flask:
    """Application factory for WSGI servers."""
    return RecipeWebInterface(config).app


def main():
    """Main web interface script."""
    import argparse

    parser = argparse.ArgumentParser(description='Ingredient scaler web interface')
    parser.add_argument('--host', default=WebConfig.HOST, help='Host address')
    parser.add_argument('--port', type=int, default=WebConfig.PORT, help='Port number')
    parser.add_argument('--debug', action='store_true', help='Debug mode')
    parser.add_argument('--config', help='Configuration file (JSON)')

    args = parser.parse_args()

    # Load configuration
    config = {}
    if args.config:
        with open(args.config, 'r') as f:
            config = json.load(f)

    web_interface = RecipeWebInterface(config)
    web_interface.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
