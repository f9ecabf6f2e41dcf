"""Tkinter GUI for the PDF redaction tool.

Provides a window where the user can open a PDF, page through a preview,
drag rectangles or enter terms to mark redactions (right click removes one),
and export the result in recoverable or secure mode with visual progress
feedback.
"""

from __future__ import annotations

import base64
import logging
import threading
import tkinter as tk
from pathlib import Path
from tkinter import filedialog, messagebox, ttk

import fitz  # PyMuPDF

from pdf_blackout.errors import (
    ExportCancelled,
    ExportFailure,
    InvalidInput,
    ProtectedDocument,
    RenderCancelled,
    UnreadableDocument,
)
from pdf_blackout.document import ensure_pdf_filename
from pdf_blackout.export import ExportMode, redacted_filename
from pdf_blackout.geometry import ViewportTransform, normalize_drag, page_to_viewport
from pdf_blackout.redactor import parse_terms, write_output
from pdf_blackout.render import RenderTicket
from pdf_blackout.session import ExportResult, RedactionSession

logger = logging.getLogger(__name__)

# Layout constants.
_PAD = 10
_ENTRY_WIDTH = 60
_TEXT_HEIGHT = 4
_CANVAS_WIDTH = 640
_CANVAS_HEIGHT = 560
_OVERLAY_COLOR = "#d32f2f"

_MODE_LABELS = {
    ExportMode.RECOVERABLE: "recoverable",
    ExportMode.SECURE: "secure",
}


class RedactorApp:
    """Main application window for PDF redaction.

    Encapsulates all GUI state and delegates redaction work to a
    ``RedactionSession``. Page renders and exports run on background threads
    to keep the UI responsive; their results are handed back through
    ``root.after``.
    """

    def __init__(self, root: tk.Tk) -> None:
        self._root = root
        self._root.title("PDF Redactor")
        self._root.minsize(700, 600)

        self._input_path = tk.StringVar()
        self._page_label = tk.StringVar(value="No document")
        self._session: RedactionSession | None = None
        self._page_index = 0
        self._viewport: ViewportTransform | None = None
        self._photo: tk.PhotoImage | None = None
        self._drag_start: tuple[float, float] | None = None
        self._drag_item: int | None = None
        self._cancel_export: threading.Event | None = None

        self._build_file_selector()
        self._build_terms_input()
        self._build_preview()
        self._build_controls()
        self._build_status_bar()

        self._root.bind("<Control-z>", lambda _event: self._on_undo())

    # ------------------------------------------------------------------
    # UI construction
    # ------------------------------------------------------------------

    def _build_file_selector(self) -> None:
        """Build the input file selection row."""
        frame = tk.Frame(self._root)
        frame.pack(padx=_PAD, pady=_PAD, fill="x")

        tk.Label(frame, text="Input PDF:").pack(side="left")

        entry = tk.Entry(frame, textvariable=self._input_path, width=_ENTRY_WIDTH)
        entry.pack(side="left", padx=5, fill="x", expand=True)

        tk.Button(frame, text="Browse...", command=self._on_browse).pack(side="left")

    def _build_terms_input(self) -> None:
        """Build the redaction terms text area."""
        tk.Label(
            self._root,
            text="Words / phrases to redact (one per line or comma-separated):",
        ).pack(anchor="w", padx=_PAD)

        frame = tk.Frame(self._root)
        frame.pack(padx=_PAD, pady=(0, _PAD), fill="x")

        self._terms_text = tk.Text(frame, height=_TEXT_HEIGHT, width=_ENTRY_WIDTH)
        self._terms_text.pack(side="left", fill="x", expand=True)

        tk.Button(frame, text="Add Matches", command=self._on_add_matches).pack(
            side="left", padx=5
        )

    def _build_preview(self) -> None:
        """Build the page preview canvas with page navigation."""
        nav = tk.Frame(self._root)
        nav.pack(padx=_PAD, fill="x")

        tk.Button(nav, text="< Prev", command=lambda: self._go_to_page(-1)).pack(side="left")
        tk.Label(nav, textvariable=self._page_label).pack(side="left", padx=_PAD)
        tk.Button(nav, text="Next >", command=lambda: self._go_to_page(1)).pack(side="left")

        frame = tk.Frame(self._root)
        frame.pack(padx=_PAD, pady=5, fill="both", expand=True)

        self._canvas = tk.Canvas(
            frame, width=_CANVAS_WIDTH, height=_CANVAS_HEIGHT, background="grey", cursor="crosshair"
        )
        yscroll = ttk.Scrollbar(frame, orient="vertical", command=self._canvas.yview)
        xscroll = ttk.Scrollbar(frame, orient="horizontal", command=self._canvas.xview)
        self._canvas.configure(yscrollcommand=yscroll.set, xscrollcommand=xscroll.set)

        yscroll.pack(side="right", fill="y")
        xscroll.pack(side="bottom", fill="x")
        self._canvas.pack(side="left", fill="both", expand=True)

        self._canvas.bind("<ButtonPress-1>", self._on_drag_start)
        self._canvas.bind("<B1-Motion>", self._on_drag_move)
        self._canvas.bind("<ButtonRelease-1>", self._on_drag_end)
        self._canvas.bind("<Button-3>", self._on_remove_region)

    def _build_controls(self) -> None:
        """Build the action buttons."""
        frame = tk.Frame(self._root)
        frame.pack(pady=(0, 5))

        tk.Button(frame, text="Undo", command=self._on_undo).pack(side="left", padx=5)
        tk.Button(frame, text="Clear", command=self._on_clear).pack(side="left", padx=5)

        self._export_btns = [
            tk.Button(
                frame,
                text="Download Recoverable",
                command=lambda: self._on_export(ExportMode.RECOVERABLE),
            ),
            tk.Button(
                frame,
                text="Download Secure",
                command=lambda: self._on_export(ExportMode.SECURE),
            ),
        ]
        for button in self._export_btns:
            button.pack(side="left", padx=5)

        self._cancel_btn = tk.Button(
            frame, text="Cancel", command=self._on_cancel_export, state="disabled"
        )
        self._cancel_btn.pack(side="left", padx=5)

    def _build_status_bar(self) -> None:
        """Build the bottom progress bar and status label."""
        frame = tk.Frame(self._root)
        frame.pack(fill="x", padx=_PAD, pady=(0, _PAD))

        self._status_label = tk.Label(frame, text="Ready", anchor="w")
        self._status_label.pack(fill="x")

        self._progress = ttk.Progressbar(frame, mode="determinate")
        self._progress.pack(fill="x", pady=(2, 0))

    # ------------------------------------------------------------------
    # Document loading
    # ------------------------------------------------------------------

    def _on_browse(self) -> None:
        """Open a file dialog and load the selected PDF."""
        path = filedialog.askopenfilename(
            title="Select PDF file",
            filetypes=[("PDF files", "*.pdf"), ("All files", "*.*")],
        )
        if path:
            self._input_path.set(path)
            self._load(Path(path))

    def _load(self, path: Path) -> None:
        if self._is_exporting():
            return
        try:
            ensure_pdf_filename(path)
            session = RedactionSession(path.read_bytes(), filename=path.name)
        except ProtectedDocument:
            self._reset()
            messagebox.showerror(
                "Encrypted PDF",
                "This document is password-protected and cannot be modified.\n"
                "Remove the protection and try again.",
            )
            return
        except UnreadableDocument:
            self._reset()
            messagebox.showerror("PDF Parsing Error", "Could not read the content of the PDF file.")
            return
        except (InvalidInput, OSError) as exc:
            messagebox.showerror("Error", str(exc))
            return

        self._reset()
        self._session = session
        self._set_status(f"Loaded {path.name} ({session.page_count} pages)")
        self._show(0)

    def _reset(self) -> None:
        """Drop the current session and clear the preview."""
        if self._session is not None:
            self._session.close()
        self._session = None
        self._page_index = 0
        self._viewport = None
        self._photo = None
        self._canvas.delete("all")
        self._page_label.set("No document")

    # ------------------------------------------------------------------
    # Page preview
    # ------------------------------------------------------------------

    def _go_to_page(self, step: int) -> None:
        if self._session is None:
            return
        target = self._page_index + step
        if 0 <= target < self._session.page_count:
            self._show(target)

    def _show(self, page_index: int) -> None:
        """Start rendering ``page_index``, superseding any render in flight."""
        if self._session is None:
            return
        self._page_index = page_index
        self._page_label.set(f"Page {page_index + 1} / {self._session.page_count}")
        ticket = self._session.renderer.start(page_index)
        threading.Thread(
            target=self._render_thread, args=(self._session, ticket), daemon=True
        ).start()

    def _render_thread(self, session: RedactionSession, ticket: RenderTicket) -> None:
        """Render a page (called from background thread)."""
        try:
            pixmap = session.renderer.render(ticket)
        except RenderCancelled:
            return
        except (RuntimeError, ValueError):
            logger.exception("Rendering page %d failed", ticket.page_index)
            return
        self._root.after(0, self._deliver_render, session, ticket, pixmap)

    def _deliver_render(
        self, session: RedactionSession, ticket: RenderTicket, pixmap: fitz.Pixmap
    ) -> None:
        if session is self._session:
            session.renderer.deliver(ticket, pixmap, self._paint_page)

    def _paint_page(self, page_index: int, pixmap: fitz.Pixmap) -> None:
        """Show a rendered page and its redaction overlays (main thread)."""
        if self._session is None:
            return
        self._photo = tk.PhotoImage(data=base64.b64encode(pixmap.tobytes("png")))
        self._viewport = self._session.renderer.viewport_for(page_index)
        self._canvas.delete("all")
        self._canvas.create_image(0, 0, anchor="nw", image=self._photo, tags="page")
        self._canvas.configure(scrollregion=(0, 0, pixmap.width, pixmap.height))
        self._draw_overlays()

    def _draw_overlays(self) -> None:
        self._canvas.delete("overlay")
        if self._session is None or self._viewport is None:
            return
        for region in self._session.regions.for_page(self._page_index):
            rect = page_to_viewport(region, self._viewport)
            self._canvas.create_rectangle(
                rect.x,
                rect.y,
                rect.x + rect.width,
                rect.y + rect.height,
                fill="black",
                stipple="gray50",
                outline=_OVERLAY_COLOR,
                tags="overlay",
            )

    # ------------------------------------------------------------------
    # Region editing
    # ------------------------------------------------------------------

    def _canvas_point(self, event: tk.Event) -> tuple[float, float]:
        return self._canvas.canvasx(event.x), self._canvas.canvasy(event.y)

    def _on_drag_start(self, event: tk.Event) -> None:
        if self._viewport is None or self._is_exporting():
            return
        self._drag_start = self._canvas_point(event)
        x, y = self._drag_start
        self._drag_item = self._canvas.create_rectangle(
            x, y, x, y, outline=_OVERLAY_COLOR, dash=(4, 2)
        )

    def _on_drag_move(self, event: tk.Event) -> None:
        if self._drag_start is None or self._drag_item is None:
            return
        rect = normalize_drag(self._drag_start, self._canvas_point(event))
        self._canvas.coords(
            self._drag_item, rect.x, rect.y, rect.x + rect.width, rect.y + rect.height
        )

    def _on_drag_end(self, event: tk.Event) -> None:
        if self._drag_start is None:
            return
        rect = normalize_drag(self._drag_start, self._canvas_point(event))
        self._drag_start = None
        if self._drag_item is not None:
            self._canvas.delete(self._drag_item)
            self._drag_item = None

        if self._session is None or self._viewport is None:
            return
        if self._session.add_manual(rect, self._viewport, self._page_index) is not None:
            self._draw_overlays()
            self._set_status(f"{len(self._session.regions)} redactions")

    def _on_remove_region(self, event: tk.Event) -> None:
        """Remove the redaction under the pointer (right click)."""
        if self._session is None or self._viewport is None or self._is_exporting():
            return
        removed = self._session.remove_at(
            self._canvas_point(event), self._viewport, self._page_index
        )
        if removed is not None:
            self._draw_overlays()
            self._set_status(f"{len(self._session.regions)} redactions")

    def _on_add_matches(self) -> None:
        if self._session is None:
            messagebox.showerror("Error", "Please open a PDF file first.")
            return
        terms = parse_terms(self._terms_text.get("1.0", tk.END).strip())
        if not terms:
            messagebox.showerror("Error", "Please enter at least one word or phrase to redact.")
            return

        added = 0
        missing = []
        for term in terms:
            count = len(self._session.redact_term(term))
            added += count
            if count == 0:
                missing.append(term)

        self._draw_overlays()
        status = f"Added {added} redactions ({len(self._session.regions)} total)"
        if missing:
            status += f"; no matches for: {', '.join(missing)}"
        self._set_status(status)

    def _on_undo(self) -> None:
        if self._session is not None and not self._is_exporting():
            self._session.regions.undo()
            self._draw_overlays()

    def _on_clear(self) -> None:
        if self._session is not None and not self._is_exporting():
            self._session.regions.clear()
            self._draw_overlays()

    # ------------------------------------------------------------------
    # Background export
    # ------------------------------------------------------------------

    def _is_exporting(self) -> bool:
        return self._cancel_export is not None

    def _on_export(self, mode: ExportMode) -> None:
        """Pick an output path, then start the export."""
        if self._is_exporting():
            return
        if self._session is None:
            messagebox.showerror("Error", "Please open a PDF file first.")
            return
        if not len(self._session.regions):
            messagebox.showerror("Error", "There are no redactions to apply.")
            return

        input_path = Path(self._input_path.get().strip())
        output_path_str = filedialog.asksaveasfilename(
            title="Save redacted PDF as",
            initialdir=str(input_path.parent),
            initialfile=redacted_filename(self._session.filename, mode),
            defaultextension=".pdf",
            filetypes=[("PDF files", "*.pdf")],
        )
        if not output_path_str:
            return  # User cancelled.

        self._start_export(mode, Path(output_path_str))

    def _start_export(self, mode: ExportMode, output_path: Path) -> None:
        """Run the export on a background thread to keep the UI responsive."""
        self._cancel_export = threading.Event()
        for button in self._export_btns:
            button.config(state="disabled")
        self._cancel_btn.config(state="normal")
        self._progress["value"] = 0
        self._set_status(f"Generating {_MODE_LABELS[mode]} PDF...")

        thread = threading.Thread(
            target=self._run_export_thread,
            args=(self._session, mode, output_path, self._cancel_export),
            daemon=True,
        )
        thread.start()

    def _run_export_thread(
        self,
        session: RedactionSession,
        mode: ExportMode,
        output_path: Path,
        cancel_event: threading.Event,
    ) -> None:
        """Execute the export (called from background thread)."""
        try:
            result = session.export(
                mode, cancel_event=cancel_event, progress_callback=self._on_progress
            )
            write_output(output_path, result.data)
            self._root.after(0, self._on_export_complete, result, output_path)
        except Exception as exc:
            logger.exception("Export failed")
            self._root.after(0, self._on_export_error, mode, exc)

    def _on_progress(self, current_page: int, total_pages: int) -> None:
        """Update the progress bar (called from background thread)."""
        pct = (current_page / total_pages) * 100
        self._root.after(0, self._update_progress, pct, current_page, total_pages)

    def _update_progress(self, pct: float, current_page: int, total_pages: int) -> None:
        """Apply progress update on the main thread."""
        self._progress["value"] = pct
        self._set_status(f"Processing page {current_page} / {total_pages}...")

    def _on_cancel_export(self) -> None:
        if self._cancel_export is not None:
            self._cancel_export.set()

    # ------------------------------------------------------------------
    # Completion handlers (main thread)
    # ------------------------------------------------------------------

    def _finish_export(self) -> None:
        self._cancel_export = None
        for button in self._export_btns:
            button.config(state="normal")
        self._cancel_btn.config(state="disabled")

    def _on_export_complete(self, result: ExportResult, output_path: Path) -> None:
        """Show results after a successful export."""
        self._finish_export()
        self._progress["value"] = 100
        self._set_status("Done")

        lines = [
            f"The {_MODE_LABELS[result.mode]} PDF is ready.\n",
            f"Redactions applied: {result.region_count}",
            f"Pages: {result.page_count}",
        ]
        if result.mode is ExportMode.RECOVERABLE:
            lines.append(
                "\nThe covered text is still present in the file. "
                "Use Download Secure to remove it."
            )
        lines.append(f"\nSaved as:\n{output_path}")
        messagebox.showinfo("Download Ready", "\n".join(lines))

    def _on_export_error(self, mode: ExportMode, exc: Exception) -> None:
        """Show an error dialog after a failed export."""
        self._finish_export()
        self._progress["value"] = 0
        label = _MODE_LABELS[mode]

        if isinstance(exc, ProtectedDocument):
            self._set_status("Error")
            messagebox.showerror(
                "Encrypted PDF", "This document is encrypted and cannot be modified."
            )
        elif isinstance(exc, ExportFailure):
            self._set_status("Error")
            messagebox.showerror(
                "Download Error",
                f"Could not generate the {label} PDF. "
                "Try again or choose the other mode.\n\n"
                f"{exc}",
            )
        elif isinstance(exc, ExportCancelled):
            self._set_status("Cancelled")
        else:
            self._set_status("Error")
            messagebox.showerror("Download Error", f"Could not generate the {label} PDF:\n{exc}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _set_status(self, text: str) -> None:
        """Update the status bar label."""
        self._status_label.config(text=text)
