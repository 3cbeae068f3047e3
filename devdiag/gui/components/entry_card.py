"""Card component for a single diagnostics panel entry."""

import customtkinter as ctk
from typing import Callable, Optional

from ...diagnostics.models import RemediationAction, Severity
from ...diagnostics.panel import PanelEntry


class EntryCard(ctk.CTkFrame):
    """
    A compact card showing one entry: status badge, title, detail text and
    any remediation buttons.
    """

    SEVERITY_COLORS = {
        Severity.INFO: {"primary": "#10b981", "bg": "#0b2a22", "icon_bg": "#047857"},
        Severity.WARNING: {"primary": "#f59e0b", "bg": "#2d1a05", "icon_bg": "#b45309"},
        Severity.ERROR: {"primary": "#ef4444", "bg": "#2d0a0a", "icon_bg": "#b91c1c"},
    }

    SEVERITY_ICONS = {
        Severity.INFO: "✓",
        Severity.WARNING: "!",
        Severity.ERROR: "✗",
    }

    def __init__(
        self,
        master,
        entry: PanelEntry,
        on_action: Optional[Callable[[RemediationAction], None]] = None,
        wraplength: int = 380,
        **kwargs
    ):
        colors = self.SEVERITY_COLORS.get(entry.severity, self.SEVERITY_COLORS[Severity.INFO])

        super().__init__(
            master,
            corner_radius=8,
            fg_color=colors["bg"],
            border_width=1,
            border_color=colors["primary"],
            **kwargs
        )

        self._entry = entry
        self._on_action = on_action
        self._wraplength = wraplength
        self._colors = colors

        self._build_ui()

    def _build_ui(self) -> None:
        container = ctk.CTkFrame(self, fg_color="transparent")
        container.pack(fill="x", padx=10, pady=8)

        top_row = ctk.CTkFrame(container, fg_color="transparent")
        top_row.pack(fill="x")

        icon_container = ctk.CTkFrame(
            top_row,
            width=24,
            height=24,
            corner_radius=12,
            fg_color=self._colors["icon_bg"]
        )
        icon_container.pack(side="left", anchor="n")
        icon_container.pack_propagate(False)

        ctk.CTkLabel(
            icon_container,
            text=self.SEVERITY_ICONS.get(self._entry.severity, "○"),
            font=ctk.CTkFont(size=12, weight="bold"),
            text_color="white"
        ).place(relx=0.5, rely=0.5, anchor="center")

        text_container = ctk.CTkFrame(top_row, fg_color="transparent")
        text_container.pack(side="left", fill="x", expand=True, padx=(10, 0))

        ctk.CTkLabel(
            text_container,
            text=self._entry.title,
            font=ctk.CTkFont(size=13, weight="bold"),
            anchor="w",
            justify="left",
            wraplength=self._wraplength,
            text_color="#f8fafc"
        ).pack(anchor="w")

        if self._entry.detail:
            ctk.CTkLabel(
                text_container,
                text=self._entry.detail,
                font=ctk.CTkFont(size=12),
                anchor="w",
                justify="left",
                wraplength=self._wraplength,
                text_color="#cbd5e1"
            ).pack(anchor="w", pady=(2, 0))

        for action in self._entry.actions:
            self._add_action(container, action)

    def _add_action(self, parent, action: RemediationAction) -> None:
        ctk.CTkButton(
            parent,
            text=action.label,
            font=ctk.CTkFont(size=12),
            fg_color="#1f2937",
            hover_color="#374151",
            border_width=1,
            border_color="#374151",
            corner_radius=6,
            height=30,
            command=lambda a=action: self._trigger(a)
        ).pack(fill="x", pady=(8, 0))

        if action.hint:
            ctk.CTkLabel(
                parent,
                text=action.hint,
                font=ctk.CTkFont(size=11),
                anchor="w",
                text_color="#94a3b8"
            ).pack(anchor="w", pady=(2, 0))

    def _trigger(self, action: RemediationAction) -> None:
        if self._on_action:
            self._on_action(action)
