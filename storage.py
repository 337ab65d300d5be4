"""
storage.py - Snippet Store
Snippet Catalog

Provides category and snippet persistence on top of database.py:
listing, lookup, creation, search, the view counter and seed data.
"""

import json
import sqlite3
from typing import List, Optional

from database import get_db, row_to_dict

SNIPPET_COLUMNS = (
    'title', 'description', 'html', 'css', 'javascript',
    'installation', 'how_it_works', 'category_id', 'tags', 'compatibility',
)


class StorageError(Exception):
    """Base exception for snippet store errors."""
    pass


class CategoryExistsError(StorageError):
    """Raised when a category name or slug is already taken."""
    pass


class CategoryNotFoundError(StorageError):
    """Raised when a snippet references a category that does not exist."""
    pass


def _snippet_from_row(row: sqlite3.Row) -> Optional[dict]:
    snippet = row_to_dict(row)
    if snippet is not None:
        snippet['tags'] = json.loads(snippet['tags'] or '[]')
    return snippet


def _escape_like(query: str) -> str:
    return query.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


# ============== CATEGORIES ==============

def list_categories() -> List[dict]:
    """Get all categories in creation order."""
    with get_db() as db:
        db.execute('SELECT id, name, slug FROM categories ORDER BY id')
        return [row_to_dict(row) for row in db.fetchall()]


def get_category_by_slug(slug: str) -> Optional[dict]:
    """
    Look up a category by its slug.

    Returns:
        dict: Category data, or None if not found
    """
    with get_db() as db:
        db.execute('SELECT id, name, slug FROM categories WHERE slug = ?', (slug,))
        return row_to_dict(db.fetchone())


def create_category(name: str, slug: str) -> dict:
    """
    Create a new category.

    Raises:
        CategoryExistsError: If the name or slug is already used
    """
    with get_db() as db:
        try:
            db.execute('INSERT INTO categories (name, slug) VALUES (?, ?)', (name, slug))
        except sqlite3.IntegrityError:
            raise CategoryExistsError(f"Category '{name}' ({slug}) already exists")
        db.execute('SELECT id, name, slug FROM categories WHERE id = ?', (db.lastrowid,))
        return row_to_dict(db.fetchone())


# ============== SNIPPETS ==============

def list_snippets() -> List[dict]:
    """Get all snippets in creation order."""
    with get_db() as db:
        db.execute('SELECT * FROM snippets ORDER BY id')
        return [_snippet_from_row(row) for row in db.fetchall()]


def get_snippet(snippet_id: int) -> Optional[dict]:
    """
    Get a snippet by ID. Does not touch the view counter.

    Returns:
        dict: Snippet data, or None if not found
    """
    with get_db() as db:
        db.execute('SELECT * FROM snippets WHERE id = ?', (snippet_id,))
        return _snippet_from_row(db.fetchone())


def get_snippets_by_category(category_id: int) -> List[dict]:
    """Get all snippets filed under a category."""
    with get_db() as db:
        db.execute('SELECT * FROM snippets WHERE category_id = ? ORDER BY id', (category_id,))
        return [_snippet_from_row(row) for row in db.fetchall()]


def create_snippet(snippet: dict) -> dict:
    """
    Store a validated snippet payload (see validation.validate_snippet).

    Returns:
        dict: The created snippet with id, updated_at and view_count

    Raises:
        CategoryNotFoundError: If category_id does not exist
    """
    values = dict(snippet)
    values['tags'] = json.dumps(values.get('tags') or [])

    with get_db() as db:
        db.execute('SELECT id FROM categories WHERE id = ?', (values['category_id'],))
        if db.fetchone() is None:
            raise CategoryNotFoundError(f"Category {values['category_id']} does not exist")

        db.execute(
            f"INSERT INTO snippets ({', '.join(SNIPPET_COLUMNS)}) "
            f"VALUES ({', '.join('?' for _ in SNIPPET_COLUMNS)})",
            [values.get(column, '') for column in SNIPPET_COLUMNS]
        )
        db.execute('SELECT * FROM snippets WHERE id = ?', (db.lastrowid,))
        return _snippet_from_row(db.fetchone())


def increment_view_count(snippet_id: int) -> Optional[dict]:
    """
    Add one to a snippet's view counter.

    Returns:
        dict: The updated snippet, or None if not found
    """
    with get_db() as db:
        db.execute(
            'UPDATE snippets SET view_count = view_count + 1 WHERE id = ?',
            (snippet_id,)
        )
        if db.rowcount == 0:
            return None
        db.execute('SELECT * FROM snippets WHERE id = ?', (snippet_id,))
        return _snippet_from_row(db.fetchone())


def search_snippets(query: str) -> List[dict]:
    """
    Case-insensitive substring search over title and description.
    Wildcard characters in the query match literally.
    """
    pattern = f'%{_escape_like(query)}%'
    with get_db() as db:
        db.execute('''
            SELECT * FROM snippets
            WHERE title LIKE ? ESCAPE '\\' OR description LIKE ? ESCAPE '\\'
            ORDER BY id
        ''', (pattern, pattern))
        return [_snippet_from_row(row) for row in db.fetchall()]


# ============== SEED DATA ==============

SEED_CATEGORIES = [
    ('Product Pages', 'product-pages'),
    ('Collections', 'collections'),
    ('Cart Functionality', 'cart-functionality'),
    ('Customer Accounts', 'customer-accounts'),
    ('Checkout Customization', 'checkout-customization'),
    ('Analytics', 'analytics'),
]

SEED_SNIPPETS = [
    {
        'title': 'Add to Cart Button Enhancement',
        'description': (
            'Enhances the product "Add to Cart" button with a loading animation and '
            'success/error states, adding the item to the cart without a page refresh.'
        ),
        'html': (
            '<button class="add-to-cart-button">\n'
            '  Add to Cart\n'
            '</button>'
        ),
        'css': (
            '.add-to-cart-button {\n'
            '  background: #2563eb;\n'
            '  color: white;\n'
            '  padding: 12px 16px;\n'
            '  border: 0;\n'
            '  border-radius: 6px;\n'
            '  transition: all 0.3s ease;\n'
            '}\n\n'
            '.add-to-cart-button.is-loading {\n'
            '  opacity: 0.8;\n'
            '}\n\n'
            '.add-to-cart-button.is-success {\n'
            '  background-color: #34c759;\n'
            '}\n\n'
            '.add-to-cart-button.is-error {\n'
            '  background-color: #ff3b30;\n'
            '}'
        ),
        'javascript': (
            "document.addEventListener('DOMContentLoaded', function() {\n"
            "  document.querySelectorAll('.add-to-cart-button').forEach(function(button) {\n"
            "    button.addEventListener('click', function(event) {\n"
            "      event.preventDefault();\n"
            "      var originalText = button.innerHTML;\n"
            "      button.innerHTML = 'Adding...';\n"
            "      button.classList.add('is-loading');\n"
            "      button.disabled = true;\n"
            "\n"
            "      fetch('/cart/add.js', { method: 'POST', credentials: 'same-origin' })\n"
            "        .then(function(response) { return response.json(); })\n"
            "        .then(function() {\n"
            "          button.innerHTML = 'Added!';\n"
            "          button.classList.add('is-success');\n"
            "        })\n"
            "        .catch(function() {\n"
            "          button.innerHTML = 'Error! Try again';\n"
            "          button.classList.add('is-error');\n"
            "        })\n"
            "        .finally(function() {\n"
            "          button.classList.remove('is-loading');\n"
            "          setTimeout(function() {\n"
            "            button.innerHTML = originalText;\n"
            "            button.classList.remove('is-success', 'is-error');\n"
            "            button.disabled = false;\n"
            "          }, 2000);\n"
            "        });\n"
            "    });\n"
            "  });\n"
            "});"
        ),
        'installation': (
            '<p>To install this Add to Cart Button Enhancement:</p><ol>'
            '<li>Add the JavaScript to your theme.js file.</li>'
            "<li>Add the CSS to your theme's stylesheet.</li>"
            '<li>Replace your current Add to Cart button with the HTML template.</li></ol>'
        ),
        'how_it_works': (
            '<p>The script intercepts the button click, shows a loading state, posts the '
            "form to the store's cart API with fetch, and shows success or error feedback "
            'before resetting the button.</p>'
        ),
        'category_slug': 'product-pages',
        'tags': ['Product Page', 'Add to Cart', 'Animation', 'UX'],
        'compatibility': 'Shopify 2.0+',
    },
    {
        'title': 'Image Zoom on Hover',
        'description': (
            'Adds a smooth zoom effect when hovering over product images for a better '
            'product browsing experience.'
        ),
        'html': (
            '<div class="zoom-container" data-zoom-factor="1.5">\n'
            '  <img src="{{ product.featured_image | img_url: \'large\' }}" '
            'alt="{{ product.featured_image.alt }}" class="zoom-image">\n'
            '</div>'
        ),
        'css': (
            '.zoom-container {\n'
            '  position: relative;\n'
            '  overflow: hidden;\n'
            '  cursor: zoom-in;\n'
            '  border: 1px solid #e5e5e5;\n'
            '  border-radius: 4px;\n'
            '}\n\n'
            '.zoom-image {\n'
            '  width: 100%;\n'
            '  display: block;\n'
            '  transition: transform 0.3s ease;\n'
            '}'
        ),
        'javascript': (
            "document.addEventListener('DOMContentLoaded', function() {\n"
            "  document.querySelectorAll('.zoom-container').forEach(function(container) {\n"
            "    var image = container.querySelector('.zoom-image');\n"
            "    var zoomFactor = container.dataset.zoomFactor || 1.5;\n"
            "\n"
            "    container.addEventListener('mouseenter', function() {\n"
            "      image.style.transform = 'scale(' + zoomFactor + ')';\n"
            "    });\n"
            "    container.addEventListener('mouseleave', function() {\n"
            "      image.style.transform = 'scale(1)';\n"
            "    });\n"
            "    container.addEventListener('mousemove', function(e) {\n"
            "      var rect = container.getBoundingClientRect();\n"
            "      var x = (e.clientX - rect.left) / rect.width;\n"
            "      var y = (e.clientY - rect.top) / rect.height;\n"
            "      image.style.transformOrigin = (x * 100) + '% ' + (y * 100) + '%';\n"
            "    });\n"
            "  });\n"
            "});"
        ),
        'installation': (
            '<p>To add the zoom effect:</p><ol>'
            '<li>Add the JavaScript to your theme.js file.</li>'
            "<li>Add the CSS to your theme's stylesheet.</li>"
            '<li>Wrap product images in the <code>zoom-container</code> div.</li>'
            '<li>Tune the zoom with the <code>data-zoom-factor</code> attribute (default 1.5).</li></ol>'
        ),
        'how_it_works': (
            '<p>Hovering scales the image with a CSS transform, and the transform origin '
            'follows the cursor so the area under it stays in focus.</p>'
        ),
        'category_slug': 'product-pages',
        'tags': ['Product Images', 'Zoom', 'Product Page', 'UX Enhancement'],
        'compatibility': 'All versions',
    },
]


def seed_initial_data() -> bool:
    """
    Populate an empty catalog with the default categories and sample snippets.

    Returns:
        bool: True if data was inserted, False if categories already existed
    """
    if list_categories():
        return False

    categories = {}
    for name, slug in SEED_CATEGORIES:
        categories[slug] = create_category(name, slug)['id']

    for sample in SEED_SNIPPETS:
        snippet = {key: value for key, value in sample.items() if key != 'category_slug'}
        snippet['category_id'] = categories[sample['category_slug']]
        create_snippet(snippet)

    return True
