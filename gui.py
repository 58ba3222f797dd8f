"""
Tkinter UI for the number guessing game.
The UI is a thin layer over guessgame: it drives a RoundEngine with a
one-second ``after()`` tick and renders the ScoreStore leaderboard.
"""

import argparse
import atexit
import os
import sys
import tkinter as tk
from tkinter import filedialog, messagebox, simpledialog, ttk
from typing import Optional

from guessgame import config
from guessgame.engine import InvalidGuessError, Outcome, RoundEngine
from guessgame.levels import LEVELS, level_by_label
from guessgame.scoreboard import DATE_FORMAT, DEFAULT_PLAYER, LeaderboardIOError, ScoreStore
from shared import options as shared_options
from shared.options import PALETTES

TICK_MS = 1000
SCORE_COLUMNS = (
    ("rank", "#", 36, "center"),
    ("name", "Name", 140, "w"),
    ("level", "Level", 70, "w"),
    ("attempts", "Attempts", 70, "e"),
    ("time", "Time(s)", 60, "e"),
    ("date", "Date", 130, "w"),
    ("number", "Correct Number", 110, "e"),
)
NUMERIC_COLUMNS = {"rank", "attempts", "time", "number"}

FONTS = {
    "banner": ("Segoe UI", 22, "bold"),
    "title": ("Segoe UI", 13, "bold"),
    "text": ("Segoe UI", 11, "normal"),
    "feedback": ("Segoe UI", 12, "bold"),
}


class GuessGameGUI:
    def __init__(self, root: tk.Tk, store: Optional[ScoreStore] = None, headless: bool = False) -> None:
        self.root = root
        self.root.title("Number Guessing Game")
        self.root.geometry("960x640")
        self.root.minsize(880, 600)
        self.headless = headless
        self.logger = config.init_logging()
        atexit.register(config.shutdown_logging)
        self.root.report_callback_exception = self._handle_exception

        settings = config.load_game_settings()
        self.muted = tk.BooleanVar(value=settings["muted"])
        self.level_var = tk.StringVar(value=settings["level"].label)
        self.theme_var = tk.StringVar(value=settings["theme"])
        self.status_var = tk.StringVar(value="Hint: Enter your guess then press Guess (or Enter). Good luck!")
        self.feedback_var = tk.StringVar(value="Make a guess!")
        self.range_var = tk.StringVar()
        self.attempts_var = tk.StringVar(value="Attempts: 0")
        self.timer_var = tk.StringVar(value="Time left: --")
        self.guess_var = tk.StringVar()

        self.engine = RoundEngine()
        self.store = store if store is not None else ScoreStore()
        try:
            self.store.load()
        except LeaderboardIOError as exc:
            self.status_var.set(f"Could not load highscores ({exc}).")

        self.pending_tick_id: Optional[str] = None
        self.options_popup: Optional[tk.Toplevel] = None
        self.scores_popup: Optional[tk.Toplevel] = None

        self._configure_style()
        self._build_menu()
        self._build_layout()
        self._bind_keys()
        self._update_level_display()
        self._refresh_scores()
        self.logger.info("GUI started with %d highscores", len(self.store))

    # -- appearance ----------------------------------------------------

    def _color(self, key: str) -> str:
        return shared_options.palette(self.theme_var.get())[key]

    def _configure_style(self) -> None:
        self.root.configure(bg=self._color("BG"))
        style = ttk.Style(self.root)
        try:
            style.theme_use("clam")
        except tk.TclError:
            pass

        style.configure("App.TFrame", background=self._color("BG"))
        style.configure("Panel.TFrame", background=self._color("PANEL"), relief="flat")
        style.configure("App.TLabel", background=self._color("BG"), foreground=self._color("TEXT"), font=FONTS["text"])
        style.configure("Banner.TLabel", background=self._color("BG"), foreground=self._color("ACCENT"), font=FONTS["banner"])
        style.configure("Panel.TLabel", background=self._color("PANEL"), foreground=self._color("TEXT"), font=FONTS["text"])
        style.configure("Title.TLabel", background=self._color("PANEL"), foreground=self._color("TEXT"), font=FONTS["title"])
        style.configure("Muted.TLabel", background=self._color("PANEL"), foreground=self._color("MUTED"), font=FONTS["text"])
        style.configure("Status.TLabel", background=self._color("BG"), foreground=self._color("MUTED"), font=FONTS["text"])
        for key in ("LOW", "HIGH", "WIN"):
            style.configure(
                f"{key.title()}.TLabel", background=self._color("PANEL"), foreground=self._color(key), font=FONTS["feedback"]
            )
        style.configure("Feedback.TLabel", background=self._color("PANEL"), foreground=self._color("ACCENT"), font=FONTS["feedback"])
        style.configure(
            "App.TCheckbutton",
            background=self._color("PANEL"),
            foreground=self._color("TEXT"),
            font=FONTS["text"],
            focuscolor=self._color("PANEL"),
        )
        style.configure("Panel.TButton", padding=8, background=self._color("PANEL"), foreground=self._color("TEXT"))
        style.configure("Accent.TButton", padding=8, background=self._color("BTN"), foreground=self._color("BG"))
        style.map(
            "Accent.TButton",
            background=[("active", self._color("ACCENT"))],
            foreground=[("active", self._color("BG"))],
        )
        style.configure(
            "App.TCombobox",
            fieldbackground=self._color("PANEL"),
            background=self._color("PANEL"),
            foreground=self._color("TEXT"),
        )
        style.configure(
            "Time.Horizontal.TProgressbar",
            troughcolor=self._color("PANEL"),
            background=self._color("ACCENT"),
            bordercolor=self._color("BORDER"),
        )
        style.configure(
            "Scores.Treeview",
            background=self._color("PANEL"),
            fieldbackground=self._color("PANEL"),
            foreground=self._color("TEXT"),
            rowheight=24,
        )
        style.configure("Scores.Treeview.Heading", background=self._color("BG"), foreground=self._color("ACCENT"))

    def _on_theme_change(self, _event=None) -> None:
        self._configure_style()
        self._save_settings()

    def _handle_exception(self, exc_type, exc_value, exc_traceback) -> None:
        self.logger.exception("Unhandled exception", exc_info=(exc_type, exc_value, exc_traceback))
        messagebox.showerror("Error", "An unexpected error occurred. See data/logs/app.log for details.")

    def _copy_diagnostics(self) -> None:
        log_path = config.app_log_path()
        if not os.path.exists(log_path):
            messagebox.showinfo("Diagnostics", "No log file yet.")
            return
        try:
            with open(log_path, "r", encoding="utf-8") as f:
                data = f.read()
            self.root.clipboard_clear()
            self.root.clipboard_append(data)
            messagebox.showinfo("Diagnostics", "Copied app log to clipboard.")
        except OSError:
            messagebox.showinfo("Diagnostics", "No log file available yet.")

    def _play_sound(self) -> None:
        if self.muted.get() or self.headless:
            return
        try:
            self.root.bell()
        except tk.TclError:
            pass

    # -- layout --------------------------------------------------------

    def _build_menu(self) -> None:
        menubar = tk.Menu(self.root)
        game_menu = tk.Menu(menubar, tearoff=0)
        game_menu.add_command(label="New Game", command=lambda: self.start_new_game(True), accelerator="Ctrl+N")
        game_menu.add_separator()
        game_menu.add_command(label="Exit", command=self.root.quit)
        menubar.add_cascade(label="Game", menu=game_menu)

        scores_menu = tk.Menu(menubar, tearoff=0)
        scores_menu.add_command(label="High Scores", command=self._show_scores_popup)
        scores_menu.add_command(label="Export CSV", command=self._export_scores)
        scores_menu.add_command(label="Import CSV", command=self._import_scores)
        scores_menu.add_separator()
        scores_menu.add_command(label="Clear All", command=self._clear_scores)
        menubar.add_cascade(label="Scores", menu=scores_menu)

        view_menu = tk.Menu(menubar, tearoff=0)
        view_menu.add_command(label="Settings", command=self._show_options_popup)
        menubar.add_cascade(label="View", menu=view_menu)
        self.root.config(menu=menubar)

    def _build_layout(self) -> None:
        self.root.columnconfigure(0, weight=1)
        self.root.rowconfigure(1, weight=1)
        ttk.Label(self.root, text="Number Guessing Game", style="Banner.TLabel", anchor="center").grid(
            row=0, column=0, sticky="ew", pady=(12, 4)
        )

        container = ttk.Frame(self.root, padding=10, style="App.TFrame")
        container.grid(row=1, column=0, sticky="nsew")
        container.columnconfigure(0, weight=2)
        container.columnconfigure(1, weight=3)
        container.rowconfigure(0, weight=1)

        self._build_play_panel(container)
        self._build_scores_panel(container)

        ttk.Label(self.root, textvariable=self.status_var, style="Status.TLabel").grid(
            row=2, column=0, sticky="ew", padx=12, pady=(0, 8)
        )

    def _build_play_panel(self, parent: tk.Widget) -> None:
        panel = ttk.Frame(parent, padding=12, style="Panel.TFrame")
        panel.grid(row=0, column=0, sticky="nsew", padx=(0, 8))
        panel.columnconfigure(1, weight=1)

        ttk.Label(panel, text="Play", style="Title.TLabel").grid(row=0, column=0, columnspan=3, sticky="w", pady=(0, 8))
        ttk.Label(panel, text="Level:", style="Panel.TLabel").grid(row=1, column=0, sticky="w")
        level_box = ttk.Combobox(
            panel,
            textvariable=self.level_var,
            state="readonly",
            values=[lvl.label for lvl in LEVELS],
            width=10,
            style="App.TCombobox",
        )
        level_box.grid(row=1, column=1, sticky="w", padx=6)
        level_box.bind("<<ComboboxSelected>>", lambda _e: self._on_level_change())
        ttk.Checkbutton(panel, text="Mute", variable=self.muted, style="App.TCheckbutton", command=self._save_settings).grid(
            row=1, column=2, sticky="e"
        )

        ttk.Label(panel, textvariable=self.range_var, style="Muted.TLabel").grid(row=2, column=0, columnspan=3, sticky="w", pady=(8, 0))
        ttk.Label(panel, textvariable=self.attempts_var, style="Panel.TLabel").grid(row=3, column=0, columnspan=3, sticky="w")
        self.feedback_label = ttk.Label(panel, textvariable=self.feedback_var, style="Feedback.TLabel", wraplength=320)
        self.feedback_label.grid(row=4, column=0, columnspan=3, sticky="w", pady=8)

        ttk.Label(panel, text="Your guess:", style="Panel.TLabel").grid(row=5, column=0, sticky="w")
        self.guess_entry = ttk.Entry(panel, textvariable=self.guess_var, width=10)
        self.guess_entry.grid(row=5, column=1, sticky="w", padx=6)
        self.guess_entry.bind("<Return>", lambda _e: self.handle_guess())
        ttk.Button(panel, text="Guess", style="Accent.TButton", command=self.handle_guess).grid(row=5, column=2, sticky="e")

        btns = ttk.Frame(panel, style="Panel.TFrame")
        btns.grid(row=6, column=0, columnspan=3, sticky="ew", pady=(12, 8))
        ttk.Button(btns, text="New Game", style="Accent.TButton", command=lambda: self.start_new_game(True)).grid(row=0, column=0, padx=(0, 4))
        ttk.Button(btns, text="High Scores", style="Panel.TButton", command=self._show_scores_popup).grid(row=0, column=1, padx=4)
        ttk.Button(btns, text="Settings", style="Panel.TButton", command=self._show_options_popup).grid(row=0, column=2, padx=4)

        ttk.Label(panel, textvariable=self.timer_var, style="Panel.TLabel").grid(row=7, column=0, sticky="w")
        self.time_progress = ttk.Progressbar(panel, style="Time.Horizontal.TProgressbar", length=220, maximum=100)
        self.time_progress.grid(row=7, column=1, columnspan=2, sticky="ew", padx=(6, 0))

    def _build_scores_panel(self, parent: tk.Widget) -> None:
        panel = ttk.Frame(parent, padding=12, style="Panel.TFrame")
        panel.grid(row=0, column=1, sticky="nsew")
        panel.columnconfigure(0, weight=1)
        panel.rowconfigure(1, weight=1)

        ttk.Label(panel, text=f"Leaderboard (Top {self.store.capacity})", style="Title.TLabel").grid(
            row=0, column=0, sticky="w", pady=(0, 8)
        )
        self.score_tree = self._make_score_tree(panel)
        self.score_tree.grid(row=1, column=0, sticky="nsew")

        controls = ttk.Frame(panel, style="Panel.TFrame")
        controls.grid(row=2, column=0, sticky="w", pady=(8, 0))
        ttk.Button(controls, text="Export CSV", style="Panel.TButton", command=self._export_scores).grid(row=0, column=0, padx=(0, 4))
        ttk.Button(controls, text="Import CSV", style="Panel.TButton", command=self._import_scores).grid(row=0, column=1, padx=4)
        ttk.Button(controls, text="Clear All", style="Panel.TButton", command=self._clear_scores).grid(row=0, column=2, padx=4)

    def _make_score_tree(self, parent: tk.Widget) -> ttk.Treeview:
        tree = ttk.Treeview(
            parent, columns=[c[0] for c in SCORE_COLUMNS], show="headings", height=14, style="Scores.Treeview"
        )
        for key, heading, width, anchor in SCORE_COLUMNS:
            tree.heading(key, text=heading, command=lambda k=key, t=tree: self._sort_tree(t, k, False))
            tree.column(key, width=width, anchor=anchor)
        return tree

    def _sort_tree(self, tree: ttk.Treeview, key: str, descending: bool) -> None:
        rows = [(tree.set(item, key), item) for item in tree.get_children("")]
        if key in NUMERIC_COLUMNS:
            rows.sort(key=lambda pair: int(pair[0]), reverse=descending)
        else:
            rows.sort(key=lambda pair: pair[0].lower(), reverse=descending)
        for idx, (_val, item) in enumerate(rows):
            tree.move(item, "", idx)
        tree.heading(key, command=lambda: self._sort_tree(tree, key, not descending))

    def _fill_tree(self, tree: ttk.Treeview) -> None:
        tree.delete(*tree.get_children(""))
        for idx, r in enumerate(self.store, start=1):
            tree.insert(
                "",
                "end",
                values=(idx, r.name, r.level.label, r.attempts, r.time_seconds, r.date.strftime(DATE_FORMAT), r.correct_number),
            )

    def _bind_keys(self) -> None:
        self.root.bind("<Control-n>", lambda _e: self.start_new_game(True))
        self.root.bind("<Control-N>", lambda _e: self.start_new_game(True))

    # -- settings ------------------------------------------------------

    def _selected_level(self):
        return level_by_label(self.level_var.get())

    def _save_settings(self) -> None:
        config.save_game_settings(
            {"muted": self.muted.get(), "level": self._selected_level(), "theme": self.theme_var.get()}
        )

    def _on_level_change(self) -> None:
        self._update_level_display()
        self._save_settings()
        config.log_user_event(f"Level set to {self._selected_level().name}")

    def _update_level_display(self) -> None:
        self.range_var.set(self._selected_level().describe())

    def _show_options_popup(self) -> None:
        shared_options.show_options_popup(
            self,
            toggles=[("Mute sound", self.muted, self._save_settings)],
            choices=[("Default level", self.level_var, [lvl.label for lvl in LEVELS], self._on_level_change)],
            theme_choices=tuple(PALETTES),
        )

    # -- round flow ----------------------------------------------------

    def _cancel_tick(self) -> None:
        if self.pending_tick_id:
            try:
                self.root.after_cancel(self.pending_tick_id)
            except tk.TclError:
                pass
            self.pending_tick_id = None

    def _schedule_tick(self, round_id: int) -> None:
        self.pending_tick_id = self.root.after(TICK_MS, lambda: self._on_tick(round_id))

    def start_new_game(self, user_initiated: bool = False) -> None:
        self._cancel_tick()
        level = self._selected_level()
        round_id = self.engine.start_round(level)
        self.attempts_var.set("Attempts: 0")
        self.feedback_var.set("New number generated. Make your first guess!")
        self.feedback_label.configure(style="Feedback.TLabel")
        self.guess_var.set("")
        self.time_progress.configure(maximum=level.time_seconds, value=level.time_seconds)
        self.timer_var.set(f"Time left: {level.time_seconds} s")
        self.guess_entry.focus_set()
        self._schedule_tick(round_id)
        if user_initiated:
            self._play_sound()
            config.log_user_event(f"New game on {level.name}")

    def _on_tick(self, round_id: int) -> None:
        result = self.engine.tick(round_id)
        if result.outcome is Outcome.IGNORED:
            return
        self.pending_tick_id = None
        self.time_progress.configure(value=result.remaining)
        self.timer_var.set(f"Time left: {result.remaining} s")
        if result.outcome is Outcome.TIME_UP:
            self.feedback_var.set(f"Time's up! Number was {self.engine.secret}")
            self.feedback_label.configure(style="High.TLabel")
            self._play_sound()
            self._finish_round(won=False)
            return
        self._schedule_tick(round_id)

    def handle_guess(self) -> None:
        text = self.guess_var.get().strip()
        if not text:
            return
        try:
            result = self.engine.submit_guess(text)
        except InvalidGuessError:
            self.feedback_var.set("Invalid input: enter a number.")
            self.guess_entry.select_range(0, "end")
            return
        if result.outcome is Outcome.IGNORED:
            self.feedback_var.set("Press New Game to start a round.")
            return
        self.attempts_var.set(f"Attempts: {result.attempts}")
        if result.outcome is Outcome.CORRECT:
            self._cancel_tick()
            self.feedback_var.set(
                f"Correct! You guessed the number {self.engine.secret} in {result.attempts} attempts and {result.elapsed}s."
            )
            self.feedback_label.configure(style="Win.TLabel")
            self._play_sound()
            self._finish_round(won=True)
            return
        if result.outcome is Outcome.TOO_LOW:
            self.feedback_var.set("Too low! Try higher.")
            self.feedback_label.configure(style="Low.TLabel")
        else:
            self.feedback_var.set("Too high! Try lower.")
            self.feedback_label.configure(style="High.TLabel")
        self._shake(self.guess_entry)
        self.guess_entry.select_range(0, "end")

    def _shake(self, widget: tk.Widget, count: int = 0) -> None:
        if self.headless:
            return
        if count >= 6:
            widget.grid_configure(padx=6)
            return
        widget.grid_configure(padx=(12, 0) if count % 2 == 0 else (0, 12))
        self.root.after(20, lambda: self._shake(widget, count + 1))

    def _ask_name(self, won: bool) -> str:
        if self.headless:
            return DEFAULT_PLAYER
        snap = self.engine.current_state()
        details = (
            f"Level: {snap.level.label}\n"
            f"Attempts: {snap.attempts}\n"
            f"Time(s): {snap.elapsed}\n"
            f"Correct Number: {snap.secret}\n\n"
            "Name:"
        )
        name = simpledialog.askstring("You Win!" if won else "Game Over", details, initialvalue=DEFAULT_PLAYER, parent=self.root)
        return (name or "").strip() or DEFAULT_PLAYER

    def _finish_round(self, won: bool) -> None:
        name = self._ask_name(won)
        record = self.engine.build_record(name)
        self.store.add(record)
        self._persist_scores()
        self._refresh_scores()
        config.log_user_event(
            f"{'Won' if won else 'Timed out'} on {record.level.name}: {record.attempts} attempts, {record.time_seconds}s as {record.name}"
        )
        if not self.headless and messagebox.askyesno("Play Again", "Play again?"):
            self.start_new_game(True)

    # -- leaderboard ---------------------------------------------------

    def _persist_scores(self) -> bool:
        try:
            self.store.save()
        except LeaderboardIOError as exc:
            self.status_var.set(f"Could not save highscores ({exc}).")
            if not self.headless:
                messagebox.showwarning("Highscores", f"Could not save highscores.\n{exc}")
            return False
        return True

    def _refresh_scores(self) -> None:
        self._fill_tree(self.score_tree)
        if self.scores_popup and self.scores_popup.winfo_exists():
            self._fill_tree(self.scores_popup.tree)  # type: ignore[attr-defined]

    def _export_scores(self) -> None:
        path = filedialog.asksaveasfilename(
            parent=self.root,
            initialfile="guess_highscores_export.csv",
            defaultextension=".csv",
            filetypes=[("CSV files", "*.csv"), ("All files", "*.*")],
        )
        if not path:
            return
        try:
            self.store.export_file(path)
        except LeaderboardIOError as exc:
            messagebox.showerror("Export", f"Export failed: {exc}")
            return
        messagebox.showinfo("Export", f"Exported to {path}")

    def _import_scores(self) -> None:
        path = filedialog.askopenfilename(parent=self.root, filetypes=[("CSV files", "*.csv"), ("All files", "*.*")])
        if not path:
            return
        try:
            added = self.store.import_file(path)
        except LeaderboardIOError as exc:
            messagebox.showerror("Import", f"Import failed: {exc}")
            return
        if not added:
            messagebox.showinfo("Import", "No valid entries found.")
            return
        self._persist_scores()
        self._refresh_scores()
        messagebox.showinfo("Import", f"Imported {added} entries.")

    def _clear_scores(self) -> None:
        if not messagebox.askyesno("Confirm", "Delete all high scores?"):
            return
        self.store.clear()
        self._persist_scores()
        self._refresh_scores()
        config.log_user_event("Leaderboard cleared")

    def _show_scores_popup(self) -> None:
        if self.scores_popup and self.scores_popup.winfo_exists():
            self.scores_popup.lift()
            self.scores_popup.focus_set()
            return
        top = tk.Toplevel(self.root)
        top.title(f"High Scores (Top {self.store.capacity})")
        top.configure(bg=self._color("BG"))
        top.geometry("720x420")
        self.scores_popup = top
        top.columnconfigure(0, weight=1)
        top.rowconfigure(0, weight=1)
        tree = self._make_score_tree(top)
        tree.grid(row=0, column=0, sticky="nsew", padx=12, pady=12)
        top.tree = tree  # type: ignore[attr-defined]
        self._fill_tree(tree)
        ttk.Button(top, text="Close", style="Panel.TButton", command=lambda: self._close_scores_popup(top)).grid(
            row=1, column=0, pady=(0, 12)
        )

    def _close_scores_popup(self, popup: tk.Toplevel) -> None:
        try:
            popup.destroy()
        finally:
            self.scores_popup = None


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Tkinter GUI for the Number Guessing Game")
    parser.add_argument("--headless", action="store_true", help="Start GUI in withdrawn mode (no visible window).")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = _parse_args(argv)
    try:
        root = tk.Tk()
    except tk.TclError as exc:
        print(
            "Could not start Tkinter. Make sure Tcl/Tk is installed. Details:",
            exc,
            sep="\n",
            file=sys.stderr,
        )
        return
    if args.headless:
        root.withdraw()
    app = GuessGameGUI(root, headless=args.headless)
    app.start_new_game()
    root.mainloop()


if __name__ == "__main__":
    main()
