"""Shared options dialog builder and colour palettes."""

from __future__ import annotations

import tkinter as tk
from tkinter import ttk
from typing import Callable, Sequence


Toggle = tuple[str, tk.Variable, Callable[[], None]]
Choice = tuple[str, tk.StringVar, Sequence[str], Callable[[], None]]
THEME_CHOICES = (
    "default",
    "high_contrast",
    "light",
    "dark",
)
PALETTES = {
    "default": {
        # Vivid but comfortable midnight palette for legibility
        "BG": "#0c1222",
        "PANEL": "#142039",
        "ACCENT": "#7dd3fc",
        "TEXT": "#f8fafc",
        "MUTED": "#cbd5e1",
        "BTN": "#3b82f6",
        "LOW": "#fbbf24",
        "HIGH": "#f87171",
        "WIN": "#4ade80",
        "BORDER": "#2c4163",
    },
    "high_contrast": {
        "BG": "#010409",
        "PANEL": "#0f172a",
        "ACCENT": "#facc15",
        "TEXT": "#f8fafc",
        "MUTED": "#e2e8f0",
        "BTN": "#fb923c",
        "LOW": "#facc15",
        "HIGH": "#f97316",
        "WIN": "#22c55e",
        "BORDER": "#facc15",
    },
    "light": {
        "BG": "#f8fafc",
        "PANEL": "#e5e7eb",
        "ACCENT": "#2563eb",
        "TEXT": "#0f172a",
        "MUTED": "#475569",
        "BTN": "#1d4ed8",
        "LOW": "#b45309",
        "HIGH": "#b91c1c",
        "WIN": "#15803d",
        "BORDER": "#cbd5e1",
    },
    "dark": {
        "BG": "#0b1220",
        "PANEL": "#111a2c",
        "ACCENT": "#67e8f9",
        "TEXT": "#e2e8f0",
        "MUTED": "#94a3b8",
        "BTN": "#38bdf8",
        "LOW": "#f59e0b",
        "HIGH": "#fb7185",
        "WIN": "#34d399",
        "BORDER": "#22304a",
    },
}


def palette(theme: str) -> dict:
    return PALETTES.get(theme, PALETTES["default"])


def show_options_popup(
    gui,
    *,
    toggles: Sequence[Toggle],
    choices: Sequence[Choice] = (),
    title: str = "Settings",
    subtitle: str = "Sound and default level are remembered between sessions.",
    theme_choices: Sequence[str] = THEME_CHOICES,
) -> None:
    """Render a shared options popup with a theme picker plus custom toggles/choices.

    The ``gui`` object is expected to expose:
      - root, _color(str), options_popup
      - theme_var, _on_theme_change
      - _copy_diagnostics
    """
    if getattr(gui, "options_popup", None) and gui.options_popup.winfo_exists():
        gui.options_popup.lift()
        gui.options_popup.focus_set()
        return

    popup = tk.Toplevel(gui.root)
    popup.title(title)
    popup.configure(bg=gui._color("BG"))
    popup.minsize(340, 320)
    gui.options_popup = popup

    frame = ttk.Frame(popup, padding=20, style="Panel.TFrame")
    frame.grid(row=0, column=0, sticky="nsew")
    popup.columnconfigure(0, weight=1)
    popup.rowconfigure(0, weight=1)
    frame.columnconfigure((0, 1), weight=1)

    ttk.Label(frame, text=title, style="Banner.TLabel").grid(row=0, column=0, columnspan=2, sticky="w", pady=(0, 6))
    ttk.Label(frame, text=subtitle, style="Muted.TLabel").grid(row=1, column=0, columnspan=2, sticky="w", pady=(0, 12))

    row = 2
    for text, var, cmd in toggles:
        ttk.Checkbutton(frame, text=text, variable=var, style="App.TCheckbutton", command=cmd).grid(
            row=row, column=0, columnspan=2, sticky="w", pady=2
        )
        row += 1

    for label, var, values, cmd in choices:
        ttk.Label(frame, text=label, style="Title.TLabel").grid(row=row, column=0, columnspan=2, sticky="w", pady=(8, 2))
        row += 1
        box = ttk.Combobox(frame, textvariable=var, state="readonly", values=list(values), style="App.TCombobox", width=20)
        box.grid(row=row, column=0, columnspan=2, sticky="ew", pady=(0, 4))
        box.bind("<<ComboboxSelected>>", lambda _e, fn=cmd: fn())
        row += 1

    ttk.Separator(frame).grid(row=row, column=0, columnspan=2, sticky="ew", pady=(10, 8))
    row += 1

    ttk.Label(frame, text="Theme", style="Title.TLabel").grid(row=row, column=0, columnspan=2, sticky="w", pady=(0, 2))
    row += 1
    theme_box = ttk.Combobox(
        frame,
        textvariable=gui.theme_var,
        state="readonly",
        values=list(theme_choices),
        style="App.TCombobox",
        width=20,
    )
    theme_box.grid(row=row, column=0, columnspan=2, sticky="ew", pady=(0, 4))
    theme_box.bind("<<ComboboxSelected>>", gui._on_theme_change)
    row += 1

    ttk.Button(frame, text="Copy diagnostics", style="Accent.TButton", command=gui._copy_diagnostics).grid(
        row=row, column=0, columnspan=1, sticky="ew", pady=(12, 0)
    )
    ttk.Button(frame, text="Close", style="Accent.TButton", command=lambda: _close_options_popup(gui, popup)).grid(
        row=row, column=1, columnspan=1, sticky="ew", pady=(12, 0)
    )


def _close_options_popup(gui, popup: tk.Toplevel) -> None:
    try:
        popup.destroy()
    finally:
        gui.options_popup = None
