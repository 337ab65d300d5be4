"""
drafts.py - Snippet Editor Draft
Snippet Catalog

Holds the live, possibly incomplete state of the create-snippet form and
announces every change to its subscribers. A preview renderer bound to a
draft receives a fresh SnippetCode snapshot after each edit.
"""

import threading
from typing import Callable, List

from sandbox import SnippetCode
from validation import ValidationError, normalize_keys, validate_snippet

DEFAULT_HTML = """<!-- HTML markup for your Shopify snippet -->

<div class="custom-product-container">
  <button class="custom-button">Add to Cart</button>
</div>"""

DEFAULT_CSS = """/* CSS styles for your Shopify snippet */

.custom-button {
  background-color: #5c6ac4;
  color: white;
  padding: 10px 20px;
  border-radius: 4px;
  cursor: pointer;
  transition: all 0.3s ease;
}

.custom-button:hover {
  background-color: #4959bd;
  transform: translateY(-2px);
}"""

DEFAULT_JAVASCRIPT = """// JavaScript code for your Shopify snippet

document.addEventListener('DOMContentLoaded', function() {
  // Your code here
  console.log('Snippet initialized');
});"""

DEFAULT_INSTALLATION = (
    "<p>To install this snippet, add the code to your theme files:</p>"
    "<ol><li>Add the JavaScript to theme.js</li><li>Add the CSS to theme.css</li>"
    "<li>Add the HTML to your product template</li></ol>"
)

DEFAULT_HOW_IT_WORKS = (
    "<p>This snippet works by:</p><ul><li>Enhancing the Add to Cart button with animations</li>"
    "<li>Providing visual feedback to users</li><li>Improving the overall user experience</li></ul>"
)

DRAFT_DEFAULTS = {
    'title': '',
    'description': '',
    'category_id': 1,
    'compatibility': 'Shopify 2.0+',
    'html': DEFAULT_HTML,
    'css': DEFAULT_CSS,
    'javascript': DEFAULT_JAVASCRIPT,
    'installation': DEFAULT_INSTALLATION,
    'how_it_works': DEFAULT_HOW_IT_WORKS,
}

CODE_FIELDS = ('html', 'css', 'javascript')

Listener = Callable[[SnippetCode], None]


class SnippetDraft:
    """Editable snippet form state that publishes triple snapshots."""

    def __init__(self, tags=None, **fields):
        self._fields = dict(DRAFT_DEFAULTS)
        self._tags: List[str] = []
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()
        if tags is not None and not isinstance(tags, list):
            raise ValidationError(['Tags must be a list'])
        self._apply(fields)
        for tag in tags or []:
            self._add_tag(tag)

    @classmethod
    def from_snippet(cls, snippet: dict) -> 'SnippetDraft':
        """Start a draft from a stored snippet record."""
        fields = {name: snippet.get(name) for name in DRAFT_DEFAULTS}
        return cls(tags=list(snippet.get('tags') or []), **fields)

    @property
    def code(self) -> SnippetCode:
        with self._lock:
            return SnippetCode.from_record(self._fields)

    @property
    def tags(self) -> List[str]:
        with self._lock:
            return list(self._tags)

    def as_dict(self) -> dict:
        with self._lock:
            data = dict(self._fields)
            data['tags'] = list(self._tags)
        return data

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with the new triple after every change."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def update(self, **changes) -> None:
        """
        Change one or more draft fields.

        Raises:
            ValidationError: For unknown field names or non-text code fields
        """
        self._apply(changes)
        self._notify()

    def add_tag(self, tag: str) -> bool:
        """
        Add a tag if it is non-empty after trimming and not already present.

        Returns:
            bool: True if the tag was added
        """
        added = self._add_tag(tag)
        if added:
            self._notify()
        return added

    def remove_tag(self, tag: str) -> bool:
        with self._lock:
            if tag not in self._tags:
                return False
            self._tags.remove(tag)
        self._notify()
        return True

    def to_payload(self) -> dict:
        """
        Validated create-snippet payload for this draft.

        Raises:
            ValidationError: If the draft is not ready to publish
        """
        return validate_snippet(self.as_dict())

    def _add_tag(self, tag) -> bool:
        if not isinstance(tag, str):
            raise ValidationError(['Tag must be text'])
        tag = tag.strip()
        with self._lock:
            if not tag or tag in self._tags:
                return False
            self._tags.append(tag)
        return True

    def _apply(self, changes: dict) -> None:
        changes = normalize_keys(changes)
        unknown = sorted(set(changes) - set(DRAFT_DEFAULTS))
        if unknown:
            raise ValidationError([f'Unknown draft field: {name}' for name in unknown])
        for name in CODE_FIELDS:
            value = changes.get(name)
            if value is not None and not isinstance(value, str):
                raise ValidationError([f'{name} must be text'])

        with self._lock:
            for name, value in changes.items():
                if value is None and name in CODE_FIELDS:
                    value = ''
                self._fields[name] = value

    def _notify(self) -> None:
        code = self.code
        for listener in list(self._listeners):
            listener(code)
