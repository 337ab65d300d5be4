#!/usr/bin/env python3
"""
test_sandbox.py - Test preview document synthesis and the isolation policy
"""

import sys

from sandbox import (
    PREVIEW_CSP, PREVIEW_HEADERS, RESET_CSS, SANDBOX_FLAGS,
    SnippetCode, build_document, frame_tag
)


def test_button_scenario_document():
    """The red-button example ends up styled, in the body, with its script after it."""
    code = SnippetCode(
        html="<button id='b'>Go</button>",
        css="#b{color:red}",
        javascript="document.getElementById('b').textContent='Clicked'",
    )
    document = build_document(code)

    assert document.startswith('<!doctype html>')
    assert '<style id="preview-styles">\n#b{color:red}\n</style>' in document
    assert "<button id='b'>Go</button>" in document
    assert "document.getElementById('b').textContent='Clicked'" in document

    body = document.index('<body>')
    button = document.index("<button id='b'>")
    script = document.index('<script id="preview-script">')
    assert body < button < script, "Script must run after the markup it queries"


def test_reset_comes_before_author_css():
    """Author CSS can override the baseline stylesheet."""
    document = build_document(SnippetCode(css='body { padding: 0; }'))
    assert document.index(RESET_CSS) < document.index('body { padding: 0; }')
    assert document.index('</head>') > document.index('body { padding: 0; }')


def test_empty_triple_renders_valid_document():
    """An empty triple still yields a complete document."""
    document = build_document(SnippetCode())
    for part in ('<!doctype html>', '<html lang="en">', '<head>', '</head>',
                 '<body>', '</body>', '</html>'):
        assert part in document


def test_document_is_self_contained():
    """No external stylesheet or script is pulled into the preview."""
    document = build_document(SnippetCode(html='<p>hi</p>', css='p{}', javascript='1;'))
    assert '<link' not in document
    assert 'src=' not in document


def test_braces_in_author_code_are_kept_verbatim():
    """Author code with braces and format markers passes through untouched."""
    code = SnippetCode(
        html='{{ product.title }}',
        css='.a { color: {red}; }',
        javascript='const t = `${x}`; const o = {a: 1};',
    )
    document = build_document(code)
    assert '{{ product.title }}' in document
    assert '.a { color: {red}; }' in document
    assert 'const t = `${x}`; const o = {a: 1};' in document


def test_build_document_is_deterministic():
    """Same triple, same document."""
    code = SnippetCode(html='<b>x</b>', css='b{}', javascript='void 0')
    assert build_document(code) == build_document(SnippetCode(**code.to_dict()))


def test_throwing_script_is_just_content():
    """A throwing script is inlined like any other; nothing is raised here."""
    document = build_document(SnippetCode(javascript='throw new Error("x")'))
    assert 'throw new Error("x")' in document


def test_from_record_treats_none_as_empty():
    """Stored records may carry NULL code fields."""
    code = SnippetCode.from_record({'html': None, 'css': 'a{}', 'title': 'ignored'})
    assert code == SnippetCode(html='', css='a{}', javascript='')


def test_sandbox_flags_only_allow_scripts():
    """The frame may run scripts and nothing else."""
    assert SANDBOX_FLAGS == ('allow-scripts',)
    for denied in ('allow-same-origin', 'allow-top-navigation', 'allow-popups', 'allow-forms'):
        assert denied not in PREVIEW_CSP


def test_csp_blocks_network_and_navigation():
    """Frame responses carry the sandbox and deny network calls."""
    assert PREVIEW_CSP.startswith('sandbox allow-scripts;')
    assert "connect-src 'none'" in PREVIEW_CSP
    assert "form-action 'none'" in PREVIEW_CSP
    assert "base-uri 'none'" in PREVIEW_CSP
    assert "frame-ancestors 'self'" in PREVIEW_CSP
    assert PREVIEW_HEADERS['Cache-Control'] == 'no-store'
    assert PREVIEW_HEADERS['Referrer-Policy'] == 'no-referrer'


def test_frame_tag_markup():
    """The embed markup is sandboxed and escapes its attributes."""
    tag = frame_tag('/preview/m/f?a=1&b=2', title='Demo "preview"')
    assert 'sandbox="allow-scripts"' in tag
    assert 'src="/preview/m/f?a=1&amp;b=2"' in tag
    assert 'title="Demo &quot;preview&quot;"' in tag
    assert 'referrerpolicy="no-referrer"' in tag


def run_all_tests():
    """Run all sandbox tests."""
    tests = [
        test_button_scenario_document,
        test_reset_comes_before_author_css,
        test_empty_triple_renders_valid_document,
        test_document_is_self_contained,
        test_braces_in_author_code_are_kept_verbatim,
        test_build_document_is_deterministic,
        test_throwing_script_is_just_content,
        test_from_record_treats_none_as_empty,
        test_sandbox_flags_only_allow_scripts,
        test_csp_blocks_network_and_navigation,
        test_frame_tag_markup,
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except AssertionError as e:
            print(f"FAILED {test.__name__}: {e}")
            failed += 1

    print(f"Results: {passed} passed, {failed} failed")
    return failed == 0


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
