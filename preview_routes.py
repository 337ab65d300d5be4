"""
preview_routes.py - Live Preview API Routes
Snippet Catalog

Provides endpoints for:
- Preview sessions (an editor draft bound to a preview renderer)
- Draft editing, tag editing and publishing a draft to the catalog
- Serving the sandboxed preview frame documents
"""

from functools import wraps
from flask import Blueprint, Response, current_app, jsonify, request, url_for

import storage
from drafts import SnippetDraft
from preview import MountError
from sandbox import PREVIEW_HEADERS, frame_tag
from storage import CategoryNotFoundError
from validation import ValidationError


# Create blueprints
preview_bp = Blueprint('previews', __name__, url_prefix='/api/previews')
frame_bp = Blueprint('frames', __name__, url_prefix='/preview')


def get_registry():
    """The PreviewRegistry created for this app in create_app()."""
    return current_app.extensions['snippet_previews']


def with_session(f):
    """Decorator that resolves <mount_id> to an open preview session (404 otherwise)."""
    @wraps(f)
    def decorated(mount_id, *args, **kwargs):
        session = get_registry().get(mount_id)
        if session is None:
            return jsonify({"success": False, "error": "Preview session not found"}), 404
        try:
            return f(session, *args, **kwargs)
        except MountError as e:
            return jsonify({"success": False, "error": str(e)}), 409
    return decorated


def session_payload(session) -> dict:
    """Serializable state of a preview session for the host UI."""
    renderer = session.renderer
    frame = renderer.frame
    frame_url = None
    if frame is not None:
        frame_url = url_for('frames.serve_frame', mount_id=session.mount_id, frame_id=frame.frame_id)

    return {
        "mount_id": session.mount_id,
        "generation": renderer.generation,
        "pending": renderer.pending,
        "frame_url": frame_url,
        "embed": frame_tag(frame_url) if frame_url else None,
        "code": renderer.code.to_dict() if renderer.code else None,
        "draft": session.draft.as_dict(),
    }


# ============ SESSION ROUTES ============

@preview_bp.route('', methods=['POST'])
def open_preview():
    """
    Open a preview session and render it.

    Request Body (JSON, optional):
        {"snippet_id": 3}                     - preview a stored snippet
        {"html": "...", "css": "...", ...}    - start a draft from these fields
        {"title": "...", "tags": ["Cart"]}    - tags are trimmed and deduplicated
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"success": False, "error": "Request body must be a JSON object"}), 400

    if 'snippet_id' in data:
        snippet_id = data['snippet_id']
        # bool is an int subclass; reject it explicitly
        if not isinstance(snippet_id, int) or isinstance(snippet_id, bool):
            return jsonify({"success": False, "error": "snippet_id must be an integer"}), 400
        snippet = storage.get_snippet(snippet_id)
        if not snippet:
            return jsonify({"success": False, "error": "Snippet not found"}), 404
        draft = SnippetDraft.from_snippet(snippet)
    else:
        try:
            draft = SnippetDraft(**data)
        except ValidationError as e:
            return jsonify({"success": False, "error": "Invalid draft", "errors": e.errors}), 400

    session = get_registry().open(draft)
    current_app.logger.debug(f"Opened preview session {session.mount_id}")
    return jsonify({"success": True, "preview": session_payload(session)}), 201


@preview_bp.route('/<mount_id>', methods=['GET'])
@with_session
def get_preview(session):
    """Get the current preview state."""
    return jsonify({"success": True, "preview": session_payload(session)})


@preview_bp.route('/<mount_id>', methods=['PATCH'])
@with_session
def update_preview(session):
    """
    Apply draft edits. The preview re-renders only if html, css or
    javascript actually changed.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify({"success": False, "error": "No fields to update"}), 400

    try:
        session.draft.update(**data)
    except ValidationError as e:
        return jsonify({"success": False, "error": "Invalid draft", "errors": e.errors}), 400

    return jsonify({"success": True, "preview": session_payload(session)})


@preview_bp.route('/<mount_id>/refresh', methods=['POST'])
@with_session
def refresh_preview(session):
    """Re-render the current triple into a fresh frame."""
    session.renderer.refresh()
    return jsonify({"success": True, "preview": session_payload(session)})


@preview_bp.route('/<mount_id>', methods=['DELETE'])
def close_preview(mount_id):
    """Unmount and discard a preview session."""
    if not get_registry().close(mount_id):
        return jsonify({"success": False, "error": "Preview session not found"}), 404
    return jsonify({"success": True})


# ============ DRAFT ROUTES ============

@preview_bp.route('/<mount_id>/tags', methods=['POST'])
@with_session
def add_tag(session):
    """Add a tag to the draft. Blank and duplicate tags are ignored."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or 'tag' not in data:
        return jsonify({"success": False, "error": "Tag is required"}), 400

    try:
        added = session.draft.add_tag(data['tag'])
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400

    return jsonify({"success": True, "added": added, "tags": session.draft.tags})


@preview_bp.route('/<mount_id>/tags/<path:tag>', methods=['DELETE'])
@with_session
def remove_tag(session, tag):
    """Remove a tag from the draft."""
    if not session.draft.remove_tag(tag):
        return jsonify({"success": False, "error": "Tag not found"}), 404
    return jsonify({"success": True, "tags": session.draft.tags})


@preview_bp.route('/<mount_id>/publish', methods=['POST'])
@with_session
def publish_draft(session):
    """Validate the draft and create a catalog snippet from it."""
    try:
        payload = session.draft.to_payload()
    except ValidationError as e:
        return jsonify({"success": False, "error": "Invalid snippet data", "errors": e.errors}), 400

    try:
        snippet = storage.create_snippet(payload)
    except CategoryNotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 400

    current_app.logger.info(f"Published draft {session.mount_id} as snippet {snippet['id']}")
    return jsonify({"success": True, "snippet": snippet}), 201


# ============ FRAME DOCUMENTS ============

@frame_bp.route('/<mount_id>/<frame_id>', methods=['GET'])
def serve_frame(mount_id, frame_id):
    """
    Serve one preview frame document with the sandbox headers.

    Only the current frame of a session is served; torn-down frames
    answer 410 so a stale iframe cannot keep running old code.
    """
    session = get_registry().get(mount_id)
    if session is None:
        return Response('Preview not found', status=404, mimetype='text/plain')

    frame = session.renderer.frame
    if frame is None or frame.frame_id != frame_id:
        return Response('Preview frame has been replaced', status=410, mimetype='text/plain')

    return Response(
        frame.document,
        mimetype='text/html',
        headers=PREVIEW_HEADERS
    )
