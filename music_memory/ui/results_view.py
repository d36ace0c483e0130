"""Flet results screen for a finished sort session."""

import base64
from typing import Callable

import flet as ft

from music_memory.domain.model import ContentType
from music_memory.domain.progress import format_duration
from music_memory.ui.theme import ACCENT, BG_CARD, BG_INPUT, BORDER, DANGER, FG, FG_DIM
from music_memory.usecases.export_ranking import ExportRankingUseCase, share_text
from music_memory.usecases.resolve_ranking import ResolvedRanking

HEADER_ARTWORK_SIZE = 120


class ResultsView(ft.Column):
    def __init__(
        self,
        page: ft.Page,
        ranking: ResolvedRanking,
        export_uc: ExportRankingUseCase,
        on_back: Callable[[], None],
        on_delete: Callable[[str], None],
    ):
        super().__init__(expand=True, scroll=ft.ScrollMode.AUTO, spacing=0)
        self._page = page
        self.ranking = ranking
        self.export_uc = export_uc
        self.on_back = on_back
        self.on_delete = on_delete
        self.snack = ft.SnackBar(content=ft.Text(""))
        self._build_ui()

    def _build_ui(self):
        session = self.ranking.session
        if session.artwork_snapshot:
            artwork: ft.Control = ft.Image(
                src_base64=base64.b64encode(session.artwork_snapshot).decode("ascii"),
                width=HEADER_ARTWORK_SIZE,
                height=HEADER_ARTWORK_SIZE,
                border_radius=10,
            )
        else:
            artwork = ft.Container(
                width=HEADER_ARTWORK_SIZE,
                height=HEADER_ARTWORK_SIZE,
                bgcolor=BG_INPUT,
                border_radius=10,
                alignment=ft.Alignment(0, 0),
                content=ft.Icon(ft.Icons.EMOJI_EVENTS, color=ACCENT, size=48),
            )

        header = ft.Container(
            content=ft.Column(
                [
                    artwork,
                    ft.Text(session.title, size=20, weight=ft.FontWeight.BOLD, color=FG),
                    ft.Text(session.source_description, size=12, color=FG_DIM),
                    ft.Row(self._stat_chips(), alignment=ft.MainAxisAlignment.CENTER, spacing=16),
                ],
                spacing=6,
                horizontal_alignment=ft.CrossAxisAlignment.CENTER,
            ),
            padding=ft.padding.symmetric(horizontal=20, vertical=16),
        )

        actions = ft.Row(
            [
                ft.ElevatedButton("Back", icon=ft.Icons.ARROW_BACK, on_click=lambda _: self.on_back(), bgcolor=BG_INPUT, color=FG),
                ft.ElevatedButton("Share", icon=ft.Icons.SHARE, on_click=lambda _: self._share(), bgcolor=ACCENT, color="white"),
                ft.ElevatedButton("Export CSV", icon=ft.Icons.DOWNLOAD, on_click=lambda _: self._export(), bgcolor=BG_INPUT, color=FG),
                ft.ElevatedButton("Delete", icon=ft.Icons.DELETE_OUTLINE, on_click=lambda _: self._confirm_delete(), bgcolor=BG_INPUT, color=DANGER),
            ],
            alignment=ft.MainAxisAlignment.CENTER,
            wrap=True,
        )

        rows = [self._ranked_row(rank, item) for rank, item in enumerate(self.ranking.items, start=1)]
        if self.ranking.missing_ids:
            rows.append(
                ft.Text(
                    f"{len(self.ranking.missing_ids)} ranked item(s) are no longer in your library.",
                    size=11,
                    color=FG_DIM,
                    italic=True,
                )
            )

        self.controls = [
            header,
            actions,
            ft.Container(content=ft.Column(rows, spacing=4), padding=ft.padding.symmetric(horizontal=20, vertical=12)),
            self.snack,
        ]

    def _stat_chips(self) -> list[ft.Control]:
        session = self.ranking.session
        stats = self.ranking.stats
        chips = [
            (ft.Icons.FORMAT_LIST_NUMBERED, f"{len(self.ranking.items)} {session.content_type.plural_label}"),
            (ft.Icons.TRENDING_UP, f"{stats.total_plays} popularity"),
        ]
        if session.content_type is ContentType.SONG and stats.total_duration_s is not None:
            chips.append((ft.Icons.TIMER, format_duration(stats.total_duration_s)))
        return [
            ft.Row([ft.Icon(icon, size=14, color=FG_DIM), ft.Text(label, size=12, color=FG_DIM)], spacing=4)
            for icon, label in chips
        ]

    def _ranked_row(self, rank: int, item) -> ft.Control:
        return ft.Container(
            bgcolor=BG_CARD,
            border=ft.border.all(1, BORDER),
            border_radius=6,
            padding=ft.padding.symmetric(horizontal=12, vertical=8),
            content=ft.Row(
                [
                    ft.Text(f"#{rank}", size=14, weight=ft.FontWeight.BOLD, color=ACCENT, width=44),
                    ft.Column(
                        [
                            ft.Text(item.title, size=14, color=FG, max_lines=1),
                            ft.Text(item.subtitle, size=11, color=FG_DIM, max_lines=1),
                        ],
                        spacing=1,
                        expand=True,
                    ),
                    ft.Text(str(item.raw_metric), size=11, color=FG_DIM),
                ],
                vertical_alignment=ft.CrossAxisAlignment.CENTER,
            ),
        )

    # Actions

    def _share(self):
        self._page.set_clipboard(share_text(self.ranking))
        self._show_snack("Ranking copied to the clipboard.")

    def _export(self):
        try:
            path = self.export_uc.execute(self.ranking)
        except OSError as e:
            self._show_snack(f"Export failed: {e}")
            return
        self._show_snack(f"Ranking exported to {path}")

    def _confirm_delete(self):
        def confirm_yes(_):
            dialog.open = False
            self._page.update()
            self.on_delete(self.ranking.session.id)

        def confirm_no(_):
            dialog.open = False
            self._page.update()

        dialog = ft.AlertDialog(
            title=ft.Text("Delete this ranking?"),
            content=ft.Text("The sort session and its results will be removed."),
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
