"""Flet session list: search, sort, resume, delete and start sort sessions."""

import base64
from typing import Callable

import flet as ft

from music_memory.domain.errors import SessionNotFoundError
from music_memory.domain.model import ContentType, SortSession, SourceDescriptor, SourceKind
from music_memory.domain.session_listing import SortOption
from music_memory.ui.theme import ACCENT, BG_CARD, BG_INPUT, BORDER, DANGER, FG, FG_DIM
from music_memory.usecases.list_sessions import DeleteSessionUseCase, ListSessionsUseCase

ROW_ARTWORK_SIZE = 44


def session_status(session: SortSession) -> str:
    if session.is_complete:
        return f"{len(session.ranked_ids)} {session.content_type.plural_label.lower()}"
    return f"{int(session.progress * 100)}% complete"


class SessionsView(ft.Column):
    """Stored sort sessions plus a form to start a new one."""

    def __init__(
        self,
        page: ft.Page,
        list_uc: ListSessionsUseCase,
        delete_uc: DeleteSessionUseCase,
        on_open: Callable[[SortSession], None],
        on_create: Callable[[SourceDescriptor, ContentType], None],
    ):
        super().__init__(expand=True, scroll=ft.ScrollMode.AUTO, spacing=0)
        self._page = page
        self.list_uc = list_uc
        self.delete_uc = delete_uc
        self.on_open = on_open
        self.on_create = on_create

        self.sort_by = SortOption.DATE
        self.ascending = False

        self.search_field = ft.TextField(
            hint_text="Search sort sessions",
            on_change=lambda _: self.refresh(),
            bgcolor=BG_INPUT,
            color=FG,
            expand=True,
        )
        self.sort_dropdown = ft.Dropdown(
            value=self.sort_by.value,
            options=[ft.dropdown.Option(opt.value, opt.value.capitalize()) for opt in SortOption],
            on_change=self._on_sort_change,
            width=140,
        )
        self.direction_button = ft.IconButton(
            icon=ft.Icons.ARROW_DOWNWARD,
            tooltip="Toggle ascending / descending",
            on_click=lambda _: self._toggle_direction(),
        )
        self.sessions_column = ft.Column(spacing=6)
        self.empty_label = ft.Text("", size=12, color=FG_DIM, text_align=ft.TextAlign.CENTER)

        self.source_kind = ft.Dropdown(
            label="Source",
            value=SourceKind.PLAYLIST.value,
            options=[ft.dropdown.Option(kind.value, kind.label) for kind in SourceKind],
            width=140,
        )
        self.content_type = ft.Dropdown(
            label="Rank",
            value=ContentType.SONG.value,
            options=[ft.dropdown.Option(ct.value, ct.plural_label) for ct in ContentType],
            width=140,
        )
        self.source_id = ft.TextField(label="Spotify id (or genre name)", bgcolor=BG_INPUT, color=FG, width=240)
        self.source_name = ft.TextField(label="Display name", bgcolor=BG_INPUT, color=FG, width=200)
        self.snack = ft.SnackBar(content=ft.Text(""))

        self._build_ui()
        self.refresh()

    def _build_ui(self):
        toolbar = ft.Container(
            content=ft.Row([self.search_field, self.sort_dropdown, self.direction_button], spacing=8),
            padding=ft.padding.symmetric(horizontal=20, vertical=10),
        )
        new_session = ft.Container(
            bgcolor=BG_CARD,
            border=ft.border.all(1, BORDER),
            border_radius=10,
            padding=14,
            margin=ft.margin.symmetric(horizontal=20, vertical=10),
            content=ft.Column(
                [
                    ft.Text("Start a new sort", size=14, weight=ft.FontWeight.BOLD, color=FG),
                    ft.Row(
                        [self.source_kind, self.content_type, self.source_id, self.source_name],
                        spacing=8,
                        wrap=True,
                    ),
                    ft.ElevatedButton(
                        "Sort",
                        icon=ft.Icons.SWAP_VERT,
                        on_click=lambda _: self._create(),
                        bgcolor=ACCENT,
                        color="white",
                    ),
                ],
                spacing=8,
            ),
        )
        self.controls = [
            toolbar,
            ft.Container(content=self.sessions_column, padding=ft.padding.symmetric(horizontal=20)),
            ft.Container(content=self.empty_label, padding=10),
            new_session,
            self.snack,
        ]

    def refresh(self):
        query = self.search_field.value or ""
        sessions = self.list_uc.execute(query=query, sort_by=self.sort_by, ascending=self.ascending)
        self.sessions_column.controls = [self._session_row(s) for s in sessions]
        if sessions:
            self.empty_label.value = ""
        elif query:
            self.empty_label.value = f"No sessions found matching '{query}'"
        else:
            self.empty_label.value = (
                "No sorting sessions found. Pick an album, artist, genre or playlist below to rank its music."
            )

    def _session_row(self, session: SortSession) -> ft.Control:
        if session.artwork_snapshot:
            artwork: ft.Control = ft.Image(
                src_base64=base64.b64encode(session.artwork_snapshot).decode("ascii"),
                width=ROW_ARTWORK_SIZE,
                height=ROW_ARTWORK_SIZE,
                border_radius=6,
            )
        else:
            artwork = ft.Container(
                width=ROW_ARTWORK_SIZE,
                height=ROW_ARTWORK_SIZE,
                bgcolor=BG_INPUT,
                border_radius=6,
                alignment=ft.Alignment(0, 0),
                content=ft.Icon(ft.Icons.QUEUE_MUSIC, color=FG_DIM),
            )
        return ft.Container(
            bgcolor=BG_CARD,
            border=ft.border.all(1, BORDER),
            border_radius=8,
            padding=10,
            on_click=lambda _, s=session: self.on_open(s),
            content=ft.Row(
                [
                    artwork,
                    ft.Column(
                        [
                            ft.Text(session.title, size=14, color=FG, max_lines=1),
                            ft.Text(session.source_description, size=11, color=FG_DIM, max_lines=1),
                        ],
                        spacing=2,
                        expand=True,
                    ),
                    ft.Column(
                        [
                            ft.Text(session_status(session), size=12, color=ACCENT),
                            ft.Text(session.created_at.strftime("%d/%m/%Y"), size=11, color=FG_DIM),
                        ],
                        spacing=2,
                        horizontal_alignment=ft.CrossAxisAlignment.END,
                    ),
                    ft.IconButton(
                        icon=ft.Icons.DELETE_OUTLINE,
                        icon_color=DANGER,
                        tooltip="Delete session",
                        on_click=lambda _, s=session: self._confirm_delete(s),
                    ),
                ],
                vertical_alignment=ft.CrossAxisAlignment.CENTER,
            ),
        )

    # Actions

    def _on_sort_change(self, e: ft.ControlEvent):
        self.sort_by = SortOption(e.control.value)
        # Dates start newest first, names start at A.
        self._set_direction(self.sort_by is not SortOption.DATE)

    def _toggle_direction(self):
        self._set_direction(not self.ascending)

    def _set_direction(self, ascending: bool):
        self.ascending = ascending
        self.direction_button.icon = ft.Icons.ARROW_UPWARD if ascending else ft.Icons.ARROW_DOWNWARD
        self.refresh()
        self._page.update()

    def _create(self):
        source_id = (self.source_id.value or "").strip()
        if not source_id:
            self._show_snack("Enter the id of the collection to sort.")
            return
        source = SourceDescriptor(
            kind=SourceKind(self.source_kind.value),
            id=source_id,
            display_name=(self.source_name.value or "").strip() or source_id,
        )
        self.on_create(source, ContentType(self.content_type.value))

    def _confirm_delete(self, session: SortSession):
        def confirm_yes(_):
            dialog.open = False
            try:
                self.delete_uc.execute(session.id)
            except SessionNotFoundError:
                self._show_snack("This session was already deleted.")
            self.refresh()
            self._page.update()

        def confirm_no(_):
            dialog.open = False
            self._page.update()

        dialog = ft.AlertDialog(
            title=ft.Text("Delete sort session?"),
            content=ft.Text("This will cancel your sorting progress. This action cannot be undone."),
            actions=[
                ft.TextButton("Cancel", on_click=confirm_no),
                ft.TextButton("Delete", on_click=confirm_yes, style=ft.ButtonStyle(color=DANGER)),
            ],
        )
        self._page.overlay.append(dialog)
        dialog.open = True
        self._page.update()

    def _show_snack(self, msg: str):
        self.snack.content = ft.Text(msg)
        self.snack.open = True
        self._page.update()
