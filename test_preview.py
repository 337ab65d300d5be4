"""
test_preview.py - Preview renderer, mount and session registry tests
"""

import threading

import pytest

import preview
from drafts import SnippetDraft
from preview import (
    MountError, PreviewMount, PreviewRegistry, PreviewRenderer, PreviewState
)
from sandbox import SnippetCode, build_document


BUTTON = SnippetCode(
    html="<button id='b'>Go</button>",
    css="#b{color:red}",
    javascript="document.getElementById('b').textContent='Clicked'",
)


@pytest.fixture
def renderer():
    return PreviewRenderer(PreviewMount())


def test_render_attaches_built_document(renderer):
    """render() loads the synthesized document into a new frame."""
    renderer.render(BUTTON)

    frame = renderer.frame
    assert frame is not None
    assert frame.document == build_document(BUTTON)
    assert frame.code == BUTTON
    assert frame.generation == 1
    assert renderer.code == BUTTON


def test_render_replaces_previous_frame(renderer):
    """Each render tears the old frame down entirely."""
    renderer.render(SnippetCode(html='<p>one</p>'))
    first = renderer.frame

    renderer.render(SnippetCode(html='<p>two</p>'))
    second = renderer.frame

    assert first.closed
    assert not second.closed
    assert first.frame_id != second.frame_id
    assert second.generation == first.generation + 1
    assert '<p>one</p>' not in second.document


def test_empty_triple_renders(renderer):
    """An all-empty triple renders without error."""
    renderer.render(SnippetCode(html='', css='', javascript=''))
    assert '<body>' in renderer.frame.document


def test_throwing_script_does_not_block_later_renders(renderer):
    """Author exceptions stay inside the document."""
    renderer.render(SnippetCode(javascript='throw new Error("x")'))
    renderer.render(BUTTON)
    assert renderer.frame.code == BUTTON
    assert renderer.generation == 2


def test_render_on_unmounted_surface_raises():
    """Rendering without a mount point is a usage error."""
    mount = PreviewMount()
    renderer = PreviewRenderer(mount)
    renderer.render(BUTTON)

    mount.unmount()
    assert renderer.frame is None
    with pytest.raises(MountError):
        renderer.render(BUTTON)


def test_refresh_is_idempotent(renderer):
    """refresh() reproduces the same document in a fresh frame."""
    renderer.render(BUTTON)
    before = renderer.frame

    renderer.refresh()
    after = renderer.frame

    assert after.document == before.document
    assert after.frame_id != before.frame_id
    assert before.closed
    assert renderer.pending is False


def test_refresh_without_prior_triple_renders_empty(renderer):
    """Nothing supplied yet means an empty preview."""
    renderer.refresh()
    assert renderer.frame.code == SnippetCode()


def test_refresh_publishes_pending_transitions(renderer):
    """Subscribers see pending go True then back to False."""
    renderer.render(BUTTON)
    states = []
    renderer.subscribe(states.append)

    renderer.refresh()

    pending = [state.pending for state in states]
    assert pending[0] is True
    assert pending[-1] is False
    assert all(isinstance(state, PreviewState) for state in states)


def test_refresh_clears_pending_when_render_fails():
    """pending is cosmetic and never sticks."""
    mount = PreviewMount()
    renderer = PreviewRenderer(mount)
    mount.unmount()

    with pytest.raises(MountError):
        renderer.refresh()
    assert renderer.pending is False


def test_triple_supplied_during_refresh_ends_on_screen(renderer, monkeypatch):
    """A draft edit racing a refresh is never overwritten by the older triple."""
    draft = SnippetDraft(html='A', css='', javascript='')
    renderer.bind(draft)
    renderer.render(draft.code)

    entered = threading.Event()
    release = threading.Event()
    calls = []

    def slow_build(code):
        calls.append(code)
        if len(calls) == 1:
            entered.set()
            release.wait(5)
        return build_document(code)

    monkeypatch.setattr(preview, 'build_document', slow_build)

    refreshing = threading.Thread(target=renderer.refresh)
    refreshing.start()
    assert entered.wait(5)

    editing = threading.Thread(target=draft.update, kwargs={'html': 'B'})
    editing.start()
    editing.join(0.1)
    release.set()
    refreshing.join(5)
    editing.join(5)

    assert renderer.frame.code == draft.code
    assert renderer.frame.document == build_document(draft.code)
    assert renderer.pending is False


def test_overlapping_refreshes_keep_pending(renderer):
    """pending stays set until the last overlapping refresh finishes."""
    renderer.render(BUTTON)
    observed = []

    def on_state(state):
        if state.pending and not observed:
            observed.append(None)
            renderer.refresh()
            observed.append(renderer.pending)

    renderer.subscribe(on_state)
    renderer.refresh()

    assert observed == [None, True]
    assert renderer.pending is False


def test_unsubscribe_stops_notifications(renderer):
    states = []
    unsubscribe = renderer.subscribe(states.append)
    renderer.render(BUTTON)
    unsubscribe()
    renderer.render(SnippetCode())
    assert len(states) == 1


def test_schedule_skips_unchanged_triple(renderer):
    """Reactive updates only render when the triple changed."""
    renderer.schedule(BUTTON)
    renderer.schedule(SnippetCode(**BUTTON.to_dict()))
    assert renderer.generation == 1

    renderer.schedule(SnippetCode(html='<p>new</p>'))
    assert renderer.generation == 2


def test_schedule_collapses_reentrant_burst_to_latest(renderer):
    """Triples supplied while a render runs collapse into one final render of the last."""
    burst = [SnippetCode(html=f'<p>{n}</p>') for n in range(5)]
    rendered = []

    def on_state(state):
        rendered.append(renderer.frame.code)
        if len(rendered) == 1:
            # arrive while the first render is still being published
            for code in burst[1:]:
                renderer.schedule(code)

    renderer.subscribe(on_state)
    renderer.schedule(burst[0])

    assert rendered == [burst[0], burst[-1]]
    assert renderer.frame.code == burst[-1]


def test_schedule_from_threads_settles_on_last_triple(renderer):
    """After concurrent updates settle, the last triple supplied is on screen."""
    start = threading.Barrier(4)
    codes = [SnippetCode(html=f'<i>{n}</i>') for n in range(4)]

    def supply(code):
        start.wait()
        renderer.schedule(code)

    threads = [threading.Thread(target=supply, args=(code,)) for code in codes]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    final = SnippetCode(html='<i>final</i>')
    renderer.schedule(final)
    assert renderer.frame.code == final
    # never a mix of two triples
    assert renderer.frame.document == build_document(final)


def test_bind_follows_draft_changes(renderer):
    """A bound renderer re-renders when the draft's code changes, not otherwise."""
    draft = SnippetDraft(html='<p>a</p>', css='', javascript='')
    renderer.bind(draft)

    draft.update(html='<p>b</p>')
    assert renderer.frame.code.html == '<p>b</p>'
    generation = renderer.generation

    draft.update(title='Only the title changed')
    assert renderer.generation == generation


def test_bound_renderer_sees_atomic_triples(renderer):
    """A multi-field update arrives as one consistent triple."""
    draft = SnippetDraft(html='old', css='old', javascript='old')
    renderer.bind(draft)
    seen = []
    renderer.subscribe(lambda state: seen.append(renderer.frame.code))

    draft.update(html='new', css='new', javascript='new')

    assert seen == [SnippetCode(html='new', css='new', javascript='new')]


def test_registry_open_renders_and_closes():
    """Sessions render on open and unmount on close."""
    registry = PreviewRegistry()
    session = registry.open(SnippetDraft(html='<p>x</p>'))

    assert registry.get(session.mount_id) is session
    assert session.renderer.frame.code.html == '<p>x</p>'

    assert registry.close(session.mount_id)
    assert registry.get(session.mount_id) is None
    assert not session.mount.mounted
    assert not registry.close(session.mount_id)


def test_registry_evicts_oldest_session():
    """A full registry closes its oldest session."""
    registry = PreviewRegistry(max_sessions=2)
    first = registry.open()
    second = registry.open()
    third = registry.open()

    assert len(registry) == 2
    assert registry.get(first.mount_id) is None
    assert not first.mount.mounted
    assert registry.get(second.mount_id) is second
    assert registry.get(third.mount_id) is third


def test_closed_session_ignores_draft_edits():
    """Once closed, the draft is no longer bound to the renderer."""
    registry = PreviewRegistry()
    session = registry.open()
    registry.close(session.mount_id)

    session.draft.update(html='<p>after close</p>')
    assert session.renderer.frame is None
