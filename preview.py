"""
preview.py - Live Preview Renderer
Snippet Catalog

Owns the isolated preview frame of one mount point and keeps it in sync
with the latest HTML/CSS/JavaScript triple.

Each render is a full teardown-and-recreate: the previous frame is detached
and closed, and a new frame with a fresh id (and therefore a fresh URL) is
attached. The host reloads its sandboxed iframe from that URL, so the
browser throws away everything the old document was running. Nothing the
author code does inside the frame is observed, caught or logged here.
"""

import logging
import secrets
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional

from drafts import SnippetDraft
from sandbox import SnippetCode, build_document

logger = logging.getLogger(__name__)


class PreviewError(Exception):
    """Base exception for preview errors."""
    pass


class MountError(PreviewError):
    """Raised when rendering without a mounted surface to render into."""
    pass


@dataclass(frozen=True)
class PreviewState:
    """Snapshot published to renderer subscribers."""

    mount_id: str
    generation: int
    frame_id: Optional[str]
    pending: bool


@dataclass
class PreviewFrame:
    """One isolated document instance. Closed frames are never served again."""

    frame_id: str
    generation: int
    code: SnippetCode
    document: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    closed: bool = False


class PreviewMount:
    """
    The host surface a renderer draws into.

    The mount outlives individual frames; only unmount() ends it.
    """

    def __init__(self, mount_id: str = None):
        self.mount_id = mount_id or secrets.token_urlsafe(12)
        self.mounted = True
        self._frame: Optional[PreviewFrame] = None

    @property
    def frame(self) -> Optional[PreviewFrame]:
        return self._frame

    def attach(self, frame: PreviewFrame) -> None:
        if not self.mounted:
            raise MountError(f"Preview mount {self.mount_id} is not mounted")
        self._frame = frame

    def detach(self) -> Optional[PreviewFrame]:
        """Remove and close the current frame, returning it."""
        frame, self._frame = self._frame, None
        if frame is not None:
            frame.closed = True
        return frame

    def unmount(self) -> None:
        self.detach()
        self.mounted = False


class PreviewRenderer:
    """
    Renders SnippetCode triples into a PreviewMount.

    render() always performs a render cycle; schedule() is the reactive
    entry point, skipping unchanged triples and collapsing bursts so the
    last triple supplied is the one left on screen.
    """

    def __init__(self, mount: PreviewMount, refresh_delay: float = 0.0):
        self.mount = mount
        self.refresh_delay = refresh_delay
        self._generation = 0
        self._pending = 0
        self._code: Optional[SnippetCode] = None
        self._rendered: Optional[SnippetCode] = None
        self._listeners: List[Callable[[PreviewState], None]] = []
        self._render_lock = threading.RLock()
        self._queue_lock = threading.Lock()
        self._queued: Optional[SnippetCode] = None
        self._draining = False

    @property
    def pending(self) -> bool:
        return self._pending > 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def frame(self) -> Optional[PreviewFrame]:
        return self.mount.frame

    @property
    def code(self) -> Optional[SnippetCode]:
        """Most recently supplied triple."""
        return self._code

    @property
    def state(self) -> PreviewState:
        frame = self.mount.frame
        return PreviewState(
            mount_id=self.mount.mount_id,
            generation=self._generation,
            frame_id=frame.frame_id if frame else None,
            pending=self._pending > 0,
        )

    def subscribe(self, listener: Callable[[PreviewState], None]) -> Callable[[], None]:
        """Register a listener for state changes. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def bind(self, source: SnippetDraft) -> Callable[[], None]:
        """Follow a triple supplier: every change it announces is scheduled."""
        return source.subscribe(self.schedule)

    def render(self, code: SnippetCode) -> None:
        """
        Tear down the current frame and load a new one built from code.

        Raises:
            MountError: If the mount point has been unmounted
        """
        if not self.mount.mounted:
            raise MountError(f"Preview mount {self.mount.mount_id} is not mounted")

        with self._render_lock:
            document = build_document(code)
            self._code = code
            old = self.mount.detach()
            self._generation += 1
            frame = PreviewFrame(
                frame_id=secrets.token_urlsafe(12),
                generation=self._generation,
                code=code,
                document=document,
            )
            self.mount.attach(frame)
            self._rendered = code
            logger.debug(
                "Mount %s: frame %s replaced by generation %d",
                self.mount.mount_id, old.frame_id if old else None, frame.generation
            )
        self._publish()

    def schedule(self, code: SnippetCode) -> None:
        """
        Render code unless it matches what is already on screen.

        While a drain is running (on this or another thread), newer triples
        replace the queued one; the drain keeps going until nothing newer
        is waiting.
        """
        with self._queue_lock:
            self._queued = code
            if self._draining:
                return
            self._draining = True

        try:
            while True:
                with self._queue_lock:
                    code, self._queued = self._queued, None
                    if code is None:
                        self._draining = False
                        return
                if code != self._rendered or self.mount.frame is None:
                    self.render(code)
        except Exception:
            with self._queue_lock:
                self._draining = False
            raise

    def refresh(self) -> None:
        """
        Re-render the most recently supplied triple.

        pending stays True for the whole cycle, including the cosmetic delay,
        and until every overlapping refresh has finished.
        """
        self._set_pending(1)
        try:
            if self.refresh_delay > 0:
                time.sleep(self.refresh_delay)
            # read and render under one lock so a triple supplied meanwhile
            # is either already on screen or rendered after this one
            with self._render_lock:
                self.render(self._code if self._code is not None else SnippetCode())
        finally:
            self._set_pending(-1)

    def _set_pending(self, delta: int) -> None:
        with self._queue_lock:
            self._pending += delta
        self._publish()

    def _publish(self) -> None:
        state = self.state
        for listener in list(self._listeners):
            listener(state)


class PreviewSession:
    """A mount, its editor draft and the renderer bound to that draft."""

    def __init__(self, draft: SnippetDraft, refresh_delay: float = 0.0):
        self.mount = PreviewMount()
        self.draft = draft
        self.renderer = PreviewRenderer(self.mount, refresh_delay=refresh_delay)
        self._unbind = self.renderer.bind(draft)
        self.opened_at = datetime.now(timezone.utc)

    @property
    def mount_id(self) -> str:
        return self.mount.mount_id

    def start(self) -> None:
        """Initial render of the draft's current triple."""
        self.renderer.render(self.draft.code)

    def close(self) -> None:
        self._unbind()
        self.mount.unmount()


class PreviewRegistry:
    """
    In-memory store of open preview sessions (per process).

    When full, the oldest session is closed to make room.
    """

    def __init__(self, max_sessions: int = 256, refresh_delay: float = 0.0):
        self.max_sessions = max(1, int(max_sessions))
        self.refresh_delay = refresh_delay
        self._sessions: 'OrderedDict[str, PreviewSession]' = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def open(self, draft: SnippetDraft = None) -> PreviewSession:
        session = PreviewSession(draft or SnippetDraft(), refresh_delay=self.refresh_delay)
        evicted = []
        with self._lock:
            while len(self._sessions) >= self.max_sessions:
                _, oldest = self._sessions.popitem(last=False)
                evicted.append(oldest)
            self._sessions[session.mount_id] = session

        for oldest in evicted:
            logger.info("Evicting preview session %s", oldest.mount_id)
            oldest.close()

        session.start()
        return session

    def get(self, mount_id: str) -> Optional[PreviewSession]:
        with self._lock:
            return self._sessions.get(mount_id)

    def close(self, mount_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(mount_id, None)
        if session is None:
            return False
        session.close()
        return True
