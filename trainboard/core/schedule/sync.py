# trainboard/core/schedule/sync.py
"""
Live sync coordinator: decides when a refresh cycle may run.

Two states per authoritative list, ``idle`` and ``editing``. While a
surface edits, timer ticks and push signals do not re-fetch or recompute;
pushes are dropped, not queued. Leaving ``editing`` persists the full
lists, runs one cycle and re-opens the detail view if its id survived.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from .announcements import ADDITIONAL_SERVICE_MARKER, PAGE_SIZE
from .editing import prepare_for_persist, update_field
from .errors import PersistenceFailure, ScheduleError, StaleIdentity
from .occupancy import countdown, is_currently_occupying
from .pipeline import run_cycle
from .projector import DEFAULT_WINDOW_DAYS
from .schemas import BoardInputs, BoardState, Countdown, Event, ScheduleLists

log = logging.getLogger(__name__)

FetchFn = Callable[[], Awaitable[BoardInputs]]
PersistFn = Callable[[ScheduleLists], Awaitable[None]]
Reducer = Callable[..., ScheduleLists]


class SyncState(str, Enum):
    IDLE = "idle"
    EDITING = "editing"


class BoardPresenter(ABC):
    """Presentation collaborator; receives read-only derived structures."""

    @abstractmethod
    def render(self, state: BoardState) -> None:
        ...

    @abstractmethod
    def report_error(self, error: ScheduleError) -> None:
        ...

    @abstractmethod
    def show_detail(self, event: Event) -> None:
        ...

    @abstractmethod
    def close_detail(self, event_id: str) -> None:
        ...


class RecordingPresenter(BoardPresenter):
    """Keeps the last state and notifications in memory; used headless and in tests."""

    def __init__(self) -> None:
        self.states: list[BoardState] = []
        self.errors: list[ScheduleError] = []
        self.detail: Optional[Event] = None
        self.closed: list[str] = []

    def render(self, state: BoardState) -> None:
        self.states.append(state)

    def report_error(self, error: ScheduleError) -> None:
        log.warning("Presenter notified of error: %s", error)
        self.errors.append(error)

    def show_detail(self, event: Event) -> None:
        self.detail = event

    def close_detail(self, event_id: str) -> None:
        self.detail = None
        self.closed.append(event_id)

    @property
    def last(self) -> Optional[BoardState]:
        return self.states[-1] if self.states else None


class LiveSyncCoordinator:
    """
    Session context for one board: authoritative lists, edit state,
    current page, open detail view and the timers.
    """

    def __init__(
        self,
        fetch: FetchFn,
        persist: PersistFn,
        presenter: Optional[BoardPresenter] = None,
        *,
        clock: Callable[[], datetime] = datetime.now,
        window_days: int = DEFAULT_WINDOW_DAYS,
        page_size: int = PAGE_SIZE,
        marker: str = ADDITIONAL_SERVICE_MARKER,
        debounce_seconds: float = 0.8,
        blur_grace_seconds: float = 0.05,
        refresh_interval_seconds: float = 60.0,
        rotation_seconds: float = 16.0,
    ) -> None:
        self._fetch = fetch
        self._persist = persist
        self.presenter: BoardPresenter = presenter or RecordingPresenter()
        self._clock = clock
        self._window_days = window_days
        self._page_size = page_size
        self._marker = marker
        self._debounce = debounce_seconds
        self._blur_grace = blur_grace_seconds
        self._refresh_interval = refresh_interval_seconds
        self._rotation_interval = rotation_seconds

        self.state = SyncState.IDLE
        self.lists = ScheduleLists()
        self.remote_feed: Optional[list[Event]] = None
        self.board: Optional[BoardState] = None
        self.current_page = 0
        self.detail_id: Optional[str] = None
        self.unsaved: Optional[ScheduleLists] = None
        self.last_error: Optional[PersistenceFailure] = None
        self.dropped_pushes = 0

        self._surface: Optional[str] = None
        self._draft: Optional[ScheduleLists] = None
        self._dirty = False
        self._debounce_handle: Optional[asyncio.TimerHandle] = None
        self._persist_task: Optional[asyncio.Task] = None
        self._persist_lock = asyncio.Lock()
        self._refresh_task: Optional[asyncio.Task] = None
        self._rotation_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------ #
    #                           state & cycles                           #
    # ------------------------------------------------------------------ #
    @property
    def is_editing(self) -> bool:
        return self.state is SyncState.EDITING

    @property
    def editing_surface(self) -> Optional[str]:
        return self._surface

    @property
    def rotation_active(self) -> bool:
        return self._rotation_task is not None

    async def refresh(self, reason: str = "manual") -> Optional[BoardState]:
        """Fetch + recompute, unless a surface is editing."""
        if self.is_editing:
            log.debug("Refresh (%s) suppressed while %s is editing", reason, self._surface)
            return None
        return await self._recompute(reason)

    async def tick(self) -> Optional[BoardState]:
        return await self.refresh("tick")

    async def on_push(self) -> Optional[BoardState]:
        if self.is_editing:
            self.dropped_pushes += 1
            log.warning("Push signal dropped while %s is editing", self._surface)
            return None
        return await self._recompute("push")

    async def rotate_page(self) -> Optional[BoardState]:
        if self.is_editing:
            return None
        self.current_page += 1
        return await self._recompute("page")

    async def clock_tick(self) -> Optional[Countdown]:
        """
        Narrow clock update: countdown of the selected event only.

        A full refresh runs only once the selected event's occupancy has
        ended since the last render, gated like any other timer.
        """
        if self.board is None:
            return None
        selected = self.board.selected
        now = self._clock()
        current = countdown(selected, now)
        if (
            selected is not None
            and not self.is_editing
            and is_currently_occupying(selected, self.board.generated_at)
            and not is_currently_occupying(selected, now)
        ):
            state = await self._recompute("clock")
            current = countdown(state.selected, self._clock())
        return current

    async def _recompute(self, reason: str) -> BoardState:
        # Пока идёт запись, не читаем «полузаписанный» список
        async with self._persist_lock:
            inputs = await self._fetch()
        self.lists = inputs.lists
        self.remote_feed = inputs.remote_feed
        return self._publish(reason)

    def _publish(self, reason: str) -> BoardState:
        state = run_cycle(
            self.lists,
            self.remote_feed,
            self._clock(),
            page=self.current_page,
            window_days=self._window_days,
            page_size=self._page_size,
            marker=self._marker,
        )
        self.current_page = state.announcements.current_page
        self.board = state
        log.debug("Publishing board state (%s)", reason)
        self.presenter.render(state)
        self._sync_rotation_timer()
        if self.detail_id is not None:
            self._reconcile_detail()
        return state

    # ------------------------------------------------------------------ #
    #                             detail view                            #
    # ------------------------------------------------------------------ #
    def _lookup(self, event_id: str) -> Event:
        source = self._draft if self._draft is not None else self.lists
        entry = source.find(event_id)
        if entry is None:
            raise StaleIdentity(event_id)
        return entry

    def open_detail(self, event_id: str) -> Event:
        entry = self._lookup(event_id)
        self.detail_id = event_id
        self.presenter.show_detail(entry)
        return entry

    def close_detail(self) -> None:
        if self.detail_id is not None:
            self.presenter.close_detail(self.detail_id)
        self.detail_id = None

    def _reconcile_detail(self) -> None:
        try:
            entry = self._lookup(self.detail_id)
        except StaleIdentity as exc:
            log.warning("Closing detail view: %s", exc)
            self.presenter.close_detail(exc.event_id)
            self.detail_id = None
            return
        self.presenter.show_detail(entry)

    # ------------------------------------------------------------------ #
    #                               editing                              #
    # ------------------------------------------------------------------ #
    def begin_edit(self, surface: str, event_id: Optional[str] = None) -> bool:
        """
        Idle → Editing on field focus.

        Returns ``False`` when another surface already holds editing.
        """
        if self.is_editing and self._surface != surface:
            log.warning("Edit on %s refused: %s is already editing", surface, self._surface)
            return False
        if event_id is not None:
            self._lookup(event_id)
            self.detail_id = event_id
        if not self.is_editing:
            log.info("Editing started on %s", surface)
            self.state = SyncState.EDITING
            self._surface = surface
            self._draft = self.lists.model_copy()
        return True

    def apply(self, reducer: Reducer, *args: Any, **kwargs: Any) -> ScheduleLists:
        """Run an editing reducer on the draft and (re)arm the debounce timer."""
        if not self.is_editing or self._draft is None:
            raise RuntimeError("apply() requires an active edit session")
        self._draft = reducer(self._draft, *args, **kwargs)
        self._dirty = True
        self._arm_debounce()
        return self._draft

    def apply_edit(self, field: str, value: Any, event_id: Optional[str] = None) -> ScheduleLists:
        target = event_id or self.detail_id
        if target is None:
            raise StaleIdentity("<none>")
        return self.apply(update_field, target, field, value)

    def _arm_debounce(self) -> None:
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        loop = asyncio.get_running_loop()
        self._debounce_handle = loop.call_later(self._debounce, self._debounce_fired)

    def _debounce_fired(self) -> None:
        self._debounce_handle = None
        # Предыдущая запись может ещё идти: новая ждёт её, а не подменяет
        self._persist_task = asyncio.ensure_future(self._persist_after(self._persist_task))

    async def _persist_after(self, previous: Optional[asyncio.Task]) -> bool:
        if previous is not None:
            await previous
        return await self._persist_draft()

    def _keep_unsaved(self, draft: ScheduleLists) -> None:
        self.unsaved = draft
        # Повтор идёт через retry_persist(), а не через следующий blur
        if self._draft is draft:
            self._dirty = False

    async def _persist_draft(self) -> bool:
        draft = self._draft
        if draft is None:
            return True
        payload = prepare_for_persist(draft)
        async with self._persist_lock:
            try:
                await self._persist(payload)
            except PersistenceFailure as exc:
                log.warning("Persist failed, keeping unsaved draft: %s", exc)
                self._keep_unsaved(draft)
                self.last_error = exc
                self.presenter.report_error(exc)
                return False
            except Exception:
                log.exception("Persist raised unexpectedly, keeping unsaved draft")
                self._keep_unsaved(draft)
                raise
        self.lists = payload
        self.unsaved = None
        self.last_error = None
        if self._draft is draft:
            self._dirty = False
        log.info("Persisted %d recurring / %d ad-hoc entries",
                 len(payload.recurring), len(payload.ad_hoc))
        return True

    async def end_edit(
        self,
        surface: str,
        still_focused: Optional[Callable[[], bool]] = None,
    ) -> Optional[BoardState]:
        """
        Blur handler. After the grace delay the focus is re-checked; if no
        editor holds it, Editing → Idle: persist, recompute, re-open detail.

        The session returns to Idle even when the persist collaborator
        raises; the error propagates after that and the draft stays in
        ``unsaved``.
        """
        if not self.is_editing or surface != self._surface:
            return None
        await asyncio.sleep(self._blur_grace)
        if still_focused is not None and still_focused():
            log.debug("Focus moved within %s, staying in editing", surface)
            return None

        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None
        pending, self._persist_task = self._persist_task, None
        try:
            if pending is not None:
                await pending
            if self._dirty:
                await self._persist_draft()
        finally:
            if self._dirty and self._draft is not None:
                self.unsaved = self._draft
            self.state = SyncState.IDLE
            self._surface = None
            self._draft = None
            self._dirty = False
            log.info("Editing finished on %s", surface)
        return await self._recompute("edit-finished")

    async def commit_edit(self, reducer: Reducer, *args: Any, **kwargs: Any) -> Optional[BoardState]:
        """
        One-shot edit from idle (board quick actions): persist immediately,
        then recompute. Inside an edit session it behaves like :meth:`apply`.
        """
        if self.is_editing:
            self.apply(reducer, *args, **kwargs)
            return None
        draft = reducer(self.lists, *args, **kwargs)
        self._draft = draft
        try:
            saved = await self._persist_draft()
        finally:
            self._draft = None
            self._dirty = False
        if not saved:
            return None
        return await self._recompute("quick-edit")

    async def retry_persist(self) -> bool:
        if self.unsaved is None:
            return True
        if self.is_editing:
            return False
        self._draft = self.unsaved
        try:
            saved = await self._persist_draft()
        finally:
            self._draft = None
            self._dirty = False
        if saved:
            await self._recompute("retry")
        return saved

    # ------------------------------------------------------------------ #
    #                               timers                               #
    # ------------------------------------------------------------------ #
    async def _every(self, interval: float, action: Callable[[], Awaitable[Any]]) -> None:
        while True:
            await asyncio.sleep(interval)
            await action()

    def start(self) -> None:
        if self._refresh_task is None:
            self._refresh_task = asyncio.ensure_future(self._every(self._refresh_interval, self.tick))
        self._sync_rotation_timer()

    async def stop(self) -> None:
        for task in (self._refresh_task, self._rotation_task, self._persist_task):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None
        self._refresh_task = self._rotation_task = self._persist_task = None

    def _sync_rotation_timer(self) -> None:
        # Ротация страниц запускается только пока refresh-таймер активен и страниц больше одной
        if self._refresh_task is None:
            return
        wanted = self.board is not None and self.board.announcements.needs_rotation
        if wanted and self._rotation_task is None:
            self._rotation_task = asyncio.ensure_future(self._every(self._rotation_interval, self.rotate_page))
        elif not wanted and self._rotation_task is not None:
            self._rotation_task.cancel()
            self._rotation_task = None


__all__ = [
    "SyncState",
    "BoardPresenter",
    "RecordingPresenter",
    "LiveSyncCoordinator",
]
