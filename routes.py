"""
routes.py - Catalog API Routes
Snippet Catalog

Provides REST API endpoints for browsing and authoring the catalog:
- GET  /api/categories          - List categories
- GET  /api/categories/<slug>   - Category with its snippets
- POST /api/categories          - Create category
- GET  /api/snippets            - List snippets (?search= filters)
- GET  /api/snippets/<id>       - Get snippet (counts a view)
- POST /api/snippets            - Create snippet
- GET  /api/health              - Health check

All endpoints return JSON with consistent structure:
    Success: {"success": true, ...data}
    Error: {"success": false, "error": "message"}
"""

from flask import Blueprint, request, jsonify, current_app

import storage
from storage import CategoryExistsError, CategoryNotFoundError
from validation import ValidationError, validate_category, validate_snippet

# Create Flask Blueprint
catalog_bp = Blueprint('catalog', __name__, url_prefix='/api')


def validation_failed(error: ValidationError, message: str):
    """Standard 400 response for a payload that failed validation."""
    return jsonify({
        'success': False,
        'error': message,
        'errors': error.errors
    }), 400


# ============ CATEGORY ROUTES ============

@catalog_bp.route('/categories', methods=['GET'])
def list_categories():
    """Get all categories."""
    return jsonify({'success': True, 'categories': storage.list_categories()})


@catalog_bp.route('/categories/<slug>', methods=['GET'])
def get_category(slug):
    """Get a category and the snippets filed under it."""
    category = storage.get_category_by_slug(slug)
    if not category:
        return jsonify({'success': False, 'error': 'Category not found'}), 404

    return jsonify({
        'success': True,
        'category': category,
        'snippets': storage.get_snippets_by_category(category['id'])
    })


@catalog_bp.route('/categories', methods=['POST'])
def create_category():
    """
    POST /api/categories

    Request Body (JSON):
        {"name": "Cart Functionality", "slug": "cart-functionality"}

    The slug is optional and derived from the name when omitted.
    """
    try:
        data = validate_category(request.get_json(silent=True))
    except ValidationError as e:
        return validation_failed(e, 'Invalid category data')

    try:
        category = storage.create_category(data['name'], data['slug'])
    except CategoryExistsError as e:
        return jsonify({'success': False, 'error': str(e)}), 409

    current_app.logger.info(f"Created category {category['slug']}")
    return jsonify({'success': True, 'category': category}), 201


# ============ SNIPPET ROUTES ============

@catalog_bp.route('/snippets', methods=['GET'])
def list_snippets():
    """Get all snippets, or those matching ?search= in title or description."""
    search = request.args.get('search', '').strip()
    if search:
        snippets = storage.search_snippets(search)
    else:
        snippets = storage.list_snippets()

    return jsonify({'success': True, 'snippets': snippets})


@catalog_bp.route('/snippets/<snippet_id>', methods=['GET'])
def get_snippet(snippet_id):
    """
    GET /api/snippets/<id>

    Returns the snippet and counts one view. The returned record already
    includes the new view_count.
    """
    try:
        snippet_id = int(snippet_id)
    except ValueError:
        return jsonify({'success': False, 'error': 'Invalid snippet ID'}), 400

    snippet = storage.increment_view_count(snippet_id)
    if not snippet:
        return jsonify({'success': False, 'error': 'Snippet not found'}), 404

    return jsonify({'success': True, 'snippet': snippet})


@catalog_bp.route('/snippets', methods=['POST'])
def create_snippet():
    """
    POST /api/snippets

    Request Body (JSON):
        {
            "title": "string (3+ chars)",
            "description": "string (10+ chars)",
            "category_id": 1,
            "compatibility": "Shopify 2.0+",
            "html": "...", "css": "...", "javascript": "...",
            "installation": "...", "how_it_works": "...",
            "tags": ["..."]
        }

    Response:
        Success (201): {"success": true, "snippet": {...}}
        Error (400): {"success": false, "error": "...", "errors": [...]}
    """
    try:
        data = validate_snippet(request.get_json(silent=True))
    except ValidationError as e:
        return validation_failed(e, 'Invalid snippet data')

    try:
        snippet = storage.create_snippet(data)
    except CategoryNotFoundError as e:
        return jsonify({'success': False, 'error': str(e)}), 400

    current_app.logger.info(f"Created snippet {snippet['id']}: {snippet['title']}")
    return jsonify({'success': True, 'snippet': snippet}), 201


# Health check endpoint
@catalog_bp.route('/health', methods=['GET'])
def health_check():
    """
    GET /api/health

    Simple health check endpoint.
    """
    return jsonify({
        'status': 'ok',
        'service': 'snippet-catalog'
    }), 200
