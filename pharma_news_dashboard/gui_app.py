from __future__ import annotations

import asyncio
import logging
import queue
import threading
import webbrowser
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

import aiohttp
import tkinter as tk
import tkinter.font as tkfont
from tkinter import ttk

from pharma_news_dashboard.config import PAGE_SIZE_CHOICES, Config, load_config
from pharma_news_dashboard.dashboard import Dashboard, dashboard_from_config
from pharma_news_dashboard.present import api_status_label, image_url, relative_date, results_summary, source_label
from pharma_news_dashboard.share import share_article, share_message
from pharma_news_dashboard.state import (
    Action,
    ClearFilters,
    DashboardState,
    GoToPage,
    NextPage,
    PageView,
    PrevPage,
    SetDateRange,
    SetPageSize,
    SetQuery,
    SetSortMode,
    SetSources,
)
from pharma_news_dashboard.types import ApiStatus, Article, DateRange, SavedArticle, SortMode

logger = logging.getLogger(__name__)

_BADGE_COLORS = {
    ApiStatus.CHECKING: "#64748b",
    ApiStatus.CONNECTED: "#16a34a",
    ApiStatus.ERROR: "#dc2626",
}


@dataclass(frozen=True)
class Snapshot:
    """Everything the tk thread needs to draw, captured on the loop thread."""

    state: DashboardState
    view: PageView
    saved: list[SavedArticle]
    auto_refresh: bool


class ScrollFrame(ttk.Frame):
    def __init__(self, master: tk.Misc):
        super().__init__(master)
        self.canvas = tk.Canvas(self, highlightthickness=0)
        self.scrollbar = ttk.Scrollbar(self, orient="vertical", command=self.canvas.yview)
        self.inner = ttk.Frame(self.canvas, style="App.TFrame")

        self.inner.bind(
            "<Configure>",
            lambda e: self.canvas.configure(scrollregion=self.canvas.bbox("all")),
        )
        self._window = self.canvas.create_window((0, 0), window=self.inner, anchor="nw")
        self.canvas.bind("<Configure>", lambda e: self.canvas.itemconfigure(self._window, width=e.width))
        self.canvas.configure(yscrollcommand=self.scrollbar.set)

        self.canvas.pack(side="left", fill="both", expand=True)
        self.scrollbar.pack(side="right", fill="y")

    def scroll_top(self) -> None:
        self.canvas.yview_moveto(0)


class NewsApp:
    def __init__(self, root: tk.Tk, *, cfg: Config):
        self.root = root
        self.root.title("Pharma News")
        self.root.geometry("1100x760")
        self.cfg = cfg

        # The dashboard lives on its own event loop thread; the tk thread only
        # reads Snapshots from the queue and posts calls back to the loop.
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, daemon=True)
        self._q: queue.Queue[Snapshot] = queue.Queue()
        self._stop = threading.Event()
        self._session: Optional[aiohttp.ClientSession] = None
        self.dashboard: Optional[Dashboard] = None
        self._snapshot: Optional[Snapshot] = None

        self.status = tk.StringVar(value="Ready")
        self.auto_refresh = tk.BooleanVar(value=cfg.auto_refresh)
        self.search_text = tk.StringVar(value="")
        self.date_range = tk.StringVar(value=DateRange.ALL.value)
        self.sort_mode = tk.StringVar(value=SortMode.NEWEST.value)
        self.page_size = tk.StringVar(value=str(cfg.page_size))
        self._listbox_sources: tuple[str, ...] = ()

        self.notebook = ttk.Notebook(root, style="App.TNotebook")
        self.tab_live = ttk.Frame(self.notebook, style="App.TFrame")
        self.tab_saved = ttk.Frame(self.notebook, style="App.TFrame")
        self.notebook.add(self.tab_live, text="News")
        self.notebook.add(self.tab_saved, text="Saved")
        self.notebook.pack(fill="both", expand=True)

        self._build_live()
        self._build_saved()

        status_bar = ttk.Frame(root, style="StatusCard.TFrame", padding=(12, 8))
        self.api_badge = tk.Label(status_bar, text=api_status_label(ApiStatus.CHECKING), fg="white", padx=8, pady=2)
        self.api_badge.configure(bg=_BADGE_COLORS[ApiStatus.CHECKING])
        self.api_badge.pack(side="left", padx=(0, 10))
        ttk.Label(status_bar, textvariable=self.status, style="StatusCard.TLabel").pack(side="left")
        self.retry_button = ttk.Button(status_bar, text="Retry", command=self.fetch_now, style="Danger.TButton")
        status_bar.pack(fill="x", side="bottom", padx=12, pady=(0, 12))

        self._thread.start()
        self._submit_coro(self._setup())

        self.root.after(250, self._drain_queue)
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

    # --- loop-thread side ---------------------------------------------------

    async def _setup(self) -> None:
        self._session = aiohttp.ClientSession()
        self.dashboard = dashboard_from_config(self.cfg, self._session)
        self.dashboard.subscribe(lambda _s: self._publish())
        self._publish()
        if self.cfg.auto_refresh:
            self.dashboard.set_auto_refresh(True)
        await self.dashboard.refresh()

    async def _teardown(self) -> None:
        if self.dashboard is not None:
            self.dashboard.close()
        if self._session is not None:
            await self._session.close()

    def _publish(self) -> None:
        d = self.dashboard
        if d is None or d.closed:
            return
        self._q.put(
            Snapshot(state=d.state, view=d.view(), saved=d.bookmarks.list(), auto_refresh=d.auto_refresh)
        )

    def _submit_coro(self, coro: Any) -> None:
        fut = asyncio.run_coroutine_threadsafe(coro, self._loop)
        fut.add_done_callback(_log_future_error)

    def _submit(self, fn: Callable[[Dashboard], Any]) -> None:
        def run() -> None:
            if self.dashboard is None or self.dashboard.closed:
                return
            fn(self.dashboard)
            self._publish()

        self._loop.call_soon_threadsafe(run)

    def _dispatch(self, action: Action) -> None:
        self._submit(lambda d: d.dispatch(action))

    # --- tk side ------------------------------------------------------------

    def _build_live(self) -> None:
        top = ttk.Frame(self.tab_live, style="ToolbarCard.TFrame", padding=(12, 10))
        top.pack(fill="x", padx=12, pady=(12, 6))

        ttk.Button(top, text="Refresh", command=self.fetch_now, style="Primary.TButton").pack(side="left")
        ttk.Checkbutton(
            top,
            text="Auto-refresh",
            variable=self.auto_refresh,
            command=self._on_auto_refresh_toggle,
            style="Toggle.TCheckbutton",
        ).pack(side="left", padx=(8, 0))

        ttk.Label(top, text="Search:", style="Muted.TLabel").pack(side="left", padx=(16, 6))
        search = ttk.Entry(top, textvariable=self.search_text, width=28)
        search.bind("<KeyRelease>", lambda _e: self._dispatch(SetQuery(self.search_text.get())))
        search.pack(side="left")

        ttk.Label(top, text="Date:", style="Muted.TLabel").pack(side="left", padx=(16, 6))
        date_combo = ttk.Combobox(
            top,
            textvariable=self.date_range,
            values=[d.value for d in DateRange],
            width=8,
            state="readonly",
        )
        date_combo.bind(
            "<<ComboboxSelected>>",
            lambda _e: self._dispatch(SetDateRange(DateRange(self.date_range.get()))),
        )
        date_combo.pack(side="left")

        ttk.Label(top, text="Sort:", style="Muted.TLabel").pack(side="left", padx=(16, 6))
        sort_combo = ttk.Combobox(
            top,
            textvariable=self.sort_mode,
            values=[s.value for s in SortMode],
            width=10,
            state="readonly",
        )
        sort_combo.bind(
            "<<ComboboxSelected>>",
            lambda _e: self._dispatch(SetSortMode(SortMode(self.sort_mode.get()))),
        )
        sort_combo.pack(side="left")

        ttk.Label(top, text="Per page:", style="Muted.TLabel").pack(side="left", padx=(16, 6))
        size_combo = ttk.Combobox(
            top,
            textvariable=self.page_size,
            values=[str(n) for n in PAGE_SIZE_CHOICES],
            width=4,
            state="readonly",
        )
        size_combo.bind(
            "<<ComboboxSelected>>",
            lambda _e: self._dispatch(SetPageSize(int(self.page_size.get()))),
        )
        size_combo.pack(side="left")

        ttk.Button(top, text="Clear filters", command=self._clear_filters, style="Secondary.TButton").pack(
            side="right"
        )

        body = ttk.Frame(self.tab_live, style="App.TFrame")
        body.pack(fill="both", expand=True, padx=12, pady=6)

        side = ttk.Frame(body, style="ToolbarCard.TFrame", padding=(8, 8))
        side.pack(side="left", fill="y", padx=(0, 8))
        ttk.Label(side, text="Sources", style="Muted.TLabel").pack(anchor="w")
        self.source_list = tk.Listbox(side, selectmode="multiple", exportselection=False, width=26)
        self.source_list.bind("<<ListboxSelect>>", lambda _e: self._on_sources_selected())
        self.source_list.pack(fill="y", expand=True, pady=(6, 0))

        main = ttk.Frame(body, style="App.TFrame")
        main.pack(side="left", fill="both", expand=True)

        self.summary = tk.StringVar(value="")
        ttk.Label(main, textvariable=self.summary, style="Muted.TLabel").pack(anchor="w")
        self.live_list = ScrollFrame(main)
        self.live_list.pack(fill="both", expand=True, pady=(6, 6))

        self.pager = ttk.Frame(main, style="App.TFrame")
        self.pager.pack(fill="x")

    def _build_saved(self) -> None:
        top = ttk.Frame(self.tab_saved, style="ToolbarCard.TFrame", padding=(12, 10))
        top.pack(fill="x", padx=12, pady=(12, 10))
        ttk.Button(top, text="Export CSV", command=self._export_saved, style="Primary.TButton").pack(side="left")
        self.saved_count = tk.StringVar(value="")
        ttk.Label(top, textvariable=self.saved_count, style="Muted.TLabel").pack(side="left", padx=(12, 0))

        self.saved_list = ScrollFrame(self.tab_saved)
        self.saved_list.pack(fill="both", expand=True, padx=12, pady=12)

    def _clear(self, frame: ttk.Frame) -> None:
        for child in list(frame.winfo_children()):
            child.destroy()

    def _add_article_card(self, parent: ttk.Frame, article: Article, *, saved: bool) -> None:
        card = ttk.Frame(parent, style="Card.TFrame", padding=(14, 12))
        card.pack(fill="x", pady=6)

        header = ttk.Frame(card, style="Card.TFrame")
        header.pack(fill="x")
        title = ttk.Label(header, text=article.title, style="Title.TLabel", wraplength=640)
        title.pack(side="left", anchor="w", fill="x", expand=True)
        if article.trending:
            tk.Label(
                header,
                text="Trending",
                fg="white",
                bg="#f59e0b",
                padx=8,
                pady=2,
                font=("Segoe UI", 9, "bold"),
            ).pack(side="right", anchor="e")

        meta = f"{source_label(article)} | {relative_date(article.published_at)}"
        ttk.Label(card, text=meta, style="Meta.TLabel").pack(anchor="w", pady=(6, 0))
        ttk.Label(card, text=article.description, style="Meta.TLabel", wraplength=680).pack(anchor="w", pady=(6, 0))

        btn_row = ttk.Frame(card, style="Card.TFrame")
        btn_row.pack(fill="x", pady=(10, 0))
        ttk.Button(btn_row, text="Open link", command=lambda: _open_link(article.url), style="Secondary.TButton").pack(
            side="left"
        )
        ttk.Button(btn_row, text="Share", command=lambda: self._share(article), style="Secondary.TButton").pack(
            side="left", padx=(8, 0)
        )
        ttk.Button(
            btn_row,
            text="Image",
            command=lambda: _open_link(image_url(article)),
            style="Secondary.TButton",
        ).pack(side="left", padx=(8, 0))
        if saved:
            ttk.Button(
                btn_row,
                text="Unsave",
                command=lambda: self._submit(lambda d: d.toggle_bookmark(article)),
                style="Danger.TButton",
            ).pack(side="right")
        else:
            ttk.Button(
                btn_row,
                text="Save",
                command=lambda: self._submit(lambda d: d.toggle_bookmark(article)),
                style="Primary.TButton",
            ).pack(side="right")

    def _render_live(self, snap: Snapshot) -> None:
        state, view = snap.state, snap.view
        self._clear(self.live_list.inner)
        self._sync_sources(state)

        saved_ids = {s.id for s in snap.saved}
        if view.is_empty:
            text = "Loading news..." if state.loading and not state.has_fetched else "No articles found."
            ttk.Label(self.live_list.inner, text=text).pack(anchor="w", padx=12, pady=12)
        for a in view.items:
            self._add_article_card(self.live_list.inner, a, saved=a.id in saved_ids)

        self.summary.set(results_summary(len(view.items), view.total_count, view.page_index, view.total_pages))
        self._render_pager(view)
        self.live_list.scroll_top()

    def _render_pager(self, view: PageView) -> None:
        self._clear(self.pager)
        if view.total_pages <= 1:
            return
        prev = ttk.Button(self.pager, text="< Prev", command=lambda: self._dispatch(PrevPage()))
        prev.pack(side="left")
        if not view.has_prev:
            prev.state(["disabled"])
        for n in view.page_numbers:
            if n is None:
                ttk.Label(self.pager, text="...", style="Muted.TLabel").pack(side="left", padx=4)
                continue
            style = "Primary.TButton" if n == view.page_index else "Secondary.TButton"
            ttk.Button(
                self.pager,
                text=str(n),
                width=3,
                style=style,
                command=lambda n=n: self._dispatch(GoToPage(n)),
            ).pack(side="left", padx=2)
        nxt = ttk.Button(self.pager, text="Next >", command=lambda: self._dispatch(NextPage()))
        nxt.pack(side="left")
        if not view.has_next:
            nxt.state(["disabled"])

    def _render_saved(self, snap: Snapshot) -> None:
        self._clear(self.saved_list.inner)
        self.saved_count.set(f"{len(snap.saved)} saved")
        if not snap.saved:
            ttk.Label(self.saved_list.inner, text="No saved articles yet.").pack(anchor="w", padx=12, pady=12)
            return
        for s in snap.saved:
            self._add_article_card(self.saved_list.inner, s.article, saved=True)

    def _render_status(self, snap: Snapshot) -> None:
        state = snap.state
        self.api_badge.configure(text=api_status_label(state.api_status), bg=_BADGE_COLORS[state.api_status])
        if state.error:
            self.status.set(f"Error: {state.error}")
            self.retry_button.pack(side="right")
            return
        self.retry_button.pack_forget()
        if state.loading:
            self.status.set("Fetching latest news...")
        elif state.last_updated is not None:
            auto = " | auto-refresh on" if snap.auto_refresh else ""
            self.status.set(f"Last updated {state.last_updated.astimezone():%H:%M:%S}{auto}")

    def _sync_sources(self, state: DashboardState) -> None:
        if state.sources != self._listbox_sources:
            self._listbox_sources = state.sources
            self.source_list.delete(0, "end")
            for s in state.sources:
                self.source_list.insert("end", s)
        self.source_list.selection_clear(0, "end")
        for i, s in enumerate(self._listbox_sources):
            if s in state.filters.selected_sources:
                self.source_list.selection_set(i)

    def _on_sources_selected(self) -> None:
        chosen = frozenset(self._listbox_sources[i] for i in self.source_list.curselection())
        self._dispatch(SetSources(chosen))

    def _clear_filters(self) -> None:
        self.search_text.set("")
        self.date_range.set(DateRange.ALL.value)
        self.sort_mode.set(SortMode.NEWEST.value)
        self._dispatch(ClearFilters())

    def _on_auto_refresh_toggle(self) -> None:
        enabled = bool(self.auto_refresh.get())
        self._submit(lambda d: d.set_auto_refresh(enabled))

    def fetch_now(self) -> None:
        self.status.set("Fetching now...")

        async def run() -> None:
            if self.dashboard is not None:
                await self.dashboard.refresh()

        self._submit_coro(run())

    def _share(self, article: Article) -> None:
        def copy(text: str) -> None:
            self.root.clipboard_clear()
            self.root.clipboard_append(text)

        result = share_article(article, clipboard=copy)
        self.status.set(share_message(result))

    def _export_saved(self) -> None:
        snap = self._snapshot
        if snap is None or not snap.saved:
            self.status.set("Nothing to export")
            return

        def export(d: Dashboard) -> None:
            out_dir = Path(self.cfg.output_dir)
            out_dir.mkdir(parents=True, exist_ok=True)
            path = out_dir / "saved.csv"
            d.bookmarks.to_frame().to_csv(path, index=False, encoding="utf-8")
            logger.info("Exported %d bookmarks to %s", len(d.bookmarks), path)

        self._submit(export)
        self.status.set(f"Exported to {Path(self.cfg.output_dir) / 'saved.csv'}")

    def _drain_queue(self) -> None:
        latest: Optional[Snapshot] = None
        try:
            while True:
                latest = self._q.get_nowait()
        except queue.Empty:
            pass

        if latest is not None:
            self._snapshot = latest
            self._render_live(latest)
            self._render_saved(latest)
            self._render_status(latest)
            if bool(self.auto_refresh.get()) != latest.auto_refresh:
                self.auto_refresh.set(latest.auto_refresh)

        if not self._stop.is_set():
            self.root.after(250, self._drain_queue)

    def _on_close(self) -> None:
        self._stop.set()
        fut = asyncio.run_coroutine_threadsafe(self._teardown(), self._loop)
        try:
            fut.result(timeout=5)
        except FutureTimeout:
            logger.warning("Timed out closing the dashboard")
        self._loop.call_soon_threadsafe(self._loop.stop)
        self.root.destroy()


def _log_future_error(fut: Any) -> None:
    if fut.cancelled():
        return
    exc = fut.exception()
    if exc is not None:
        logger.error("Background task failed: %s", exc, exc_info=exc)


def _open_link(url: str) -> None:
    if not url:
        return
    try:
        webbrowser.open(url)
    except webbrowser.Error as e:
        logger.warning("Could not open %s: %s", url, e)


def run_gui(*, config_path: str = "config/config.yaml") -> None:
    cfg = load_config(config_path)
    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    root = tk.Tk()
    try:
        ttk.Style().theme_use("clam")
    except tk.TclError:
        pass

    style = ttk.Style()
    app_bg = "#f6f8fb"
    card_bg = "#ffffff"
    root.configure(background=app_bg)

    try:
        default_font = tkfont.nametofont("TkDefaultFont")
        default_font.configure(family="Segoe UI", size=10)
        root.option_add("*Font", default_font)
    except tk.TclError:
        pass

    style.configure("App.TFrame", background=app_bg)
    style.configure("ToolbarCard.TFrame", background=card_bg)
    style.configure("StatusCard.TFrame", background=card_bg)
    style.configure("Muted.TLabel", background=app_bg, foreground="#475569")
    style.configure("StatusCard.TLabel", background=card_bg, foreground="#0f172a")
    style.configure("Card.TFrame", background=card_bg, relief="flat", borderwidth=0)
    style.configure("Title.TLabel", background=card_bg, foreground="#0f172a", font=("Segoe UI", 11, "bold"))
    style.configure("Meta.TLabel", background=card_bg, foreground="#475569")
    style.configure("Toggle.TCheckbutton", background=card_bg, padding=(6, 4))

    for name, fg, bg, active, pressed in (
        ("Primary.TButton", "white", "#2563eb", "#1d4ed8", "#1e40af"),
        ("Secondary.TButton", "#0f172a", "#e2e8f0", "#cbd5e1", "#94a3b8"),
        ("Danger.TButton", "white", "#dc2626", "#b91c1c", "#991b1b"),
    ):
        style.configure(name, padding=(12, 7), foreground=fg, background=bg, borderwidth=0, focuscolor="none")
        style.map(name, background=[("active", active), ("pressed", pressed)])

    style.configure("App.TNotebook", background=app_bg, borderwidth=0)
    style.configure("TNotebook.Tab", padding=(12, 8))

    root.minsize(900, 560)
    NewsApp(root, cfg=cfg)
    root.mainloop()


def main() -> int:
    run_gui()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
