"""Flet duel screen: pick one of two items, like both, or skip."""

from typing import Callable, Optional

import flet as ft

from music_memory.domain.errors import InvalidStateError, PersistenceFailure, StaleReferenceError
from music_memory.domain.model import Duel, ItemReference, Outcome
from music_memory.ui.theme import ACCENT, BG_CARD, BG_INPUT, BORDER, DANGER, FG, FG_DIM
from music_memory.usecases.duel_controller import DuelController

CARD_SIZE = 180
COMPACT_CARD_SIZE = 132


class DuelView(ft.Column):
    """Main duel interface for one sort session."""

    def __init__(
        self,
        page: ft.Page,
        controller: DuelController,
        items: dict[str, ItemReference],
        on_finished: Callable[[str], None],
        on_exit: Callable[[], None],
    ):
        super().__init__(expand=True, scroll=ft.ScrollMode.AUTO, spacing=0)
        self._page = page
        self.controller = controller
        self.items = items
        self.on_finished = on_finished
        self.on_exit = on_exit
        self.duel: Optional[Duel] = controller.get_next_duel()

        width = int(getattr(page.window, "width", 0) or 0)
        self.card_size = COMPACT_CARD_SIZE if 0 < width < 760 else CARD_SIZE

        self.battle_label = ft.Text("", size=16, weight=ft.FontWeight.BOLD, color=ACCENT)
        self.percent_label = ft.Text("", size=12, color=FG_DIM)
        self.progress_bar = ft.ProgressBar(value=0, bgcolor=BG_INPUT, color=ACCENT, width=float("inf"))
        self.pool_label = ft.Text("", size=11, color=FG_DIM)
        self.left_card = ft.Container(on_click=lambda _: self._decide(Outcome.LEFT))
        self.right_card = ft.Container(on_click=lambda _: self._decide(Outcome.RIGHT))
        self.undo_button = ft.ElevatedButton(
            "Go back [Backspace]",
            icon=ft.Icons.ARROW_BACK,
            on_click=lambda _: self._undo(),
            bgcolor=BG_INPUT,
            color=DANGER,
        )
        self.snack = ft.SnackBar(content=ft.Text(""))

        self._build_ui()
        self._refresh_display()

    def _build_ui(self):
        header = ft.Container(
            content=ft.Column(
                [
                    ft.Row(
                        [
                            self.battle_label,
                            ft.Container(expand=True),
                            self.percent_label,
                            ft.TextButton("Cancel", on_click=lambda _: self._confirm_cancel(), style=ft.ButtonStyle(color=ACCENT)),
                        ],
                    ),
                    self.progress_bar,
                    self.pool_label,
                ],
                spacing=4,
            ),
            padding=ft.padding.symmetric(horizontal=20, vertical=12),
        )

        for card in (self.left_card, self.right_card):
            card.width = self.card_size + 40
            card.bgcolor = BG_CARD
            card.border = ft.border.all(1, BORDER)
            card.border_radius = 10
            card.padding = 14

        duel_row = ft.Container(
            content=ft.Row(
                [self.left_card, ft.Text("vs", size=14, color=FG_DIM), self.right_card],
                alignment=ft.MainAxisAlignment.SPACE_EVENLY,
                vertical_alignment=ft.CrossAxisAlignment.CENTER,
                wrap=True,
            ),
            padding=ft.padding.symmetric(horizontal=16, vertical=24),
        )

        actions = ft.Container(
            content=ft.Column(
                [
                    ft.ElevatedButton(
                        "I like both [B]",
                        on_click=lambda _: self._decide(Outcome.TIE),
                        bgcolor=BG_INPUT,
                        color=FG,
                        width=320,
                    ),
                    ft.ElevatedButton(
                        "No opinion [N]",
                        on_click=lambda _: self._decide(Outcome.SKIP),
                        bgcolor=BG_INPUT,
                        color=FG,
                        width=320,
                    ),
                    self.undo_button,
                    ft.Text(
                        "Click a card or press [<-] / [->] to pick the one you prefer.",
                        size=11,
                        color=FG_DIM,
                        text_align=ft.TextAlign.CENTER,
                    ),
                ],
                spacing=10,
                horizontal_alignment=ft.CrossAxisAlignment.CENTER,
            ),
            padding=ft.padding.symmetric(horizontal=20, vertical=8),
        )

        self.controls = [header, duel_row, actions, self.snack]

    def _refresh_display(self):
        session = self.controller.session
        self.battle_label.value = f"Battle #{session.battle_index + 1}"
        self.percent_label.value = f"{int(self.controller.progress * 100)}% sorted"
        self.progress_bar.value = self.controller.progress
        self.pool_label.value = (
            f"{len(session.ranked_ids)} of {session.total_items} ranked | {len(self.controller.pool)} left in the pool"
        )
        self.undo_button.disabled = not self.controller.can_undo

        if self.duel is None:
            self.left_card.content = None
            self.right_card.content = None
            return
        self.left_card.content = self._card_content(self.duel.left_id)
        self.right_card.content = self._card_content(self.duel.right_id)

    def _card_content(self, item_id: str) -> ft.Control:
        item = self.items.get(item_id)
        if item and item.artwork_ref:
            artwork: ft.Control = ft.Image(
                src=item.artwork_ref,
                width=self.card_size,
                height=self.card_size,
                border_radius=8,
            )
        else:
            artwork = ft.Container(
                width=self.card_size,
                height=self.card_size,
                bgcolor="black",
                border_radius=8,
                alignment=ft.Alignment(0, 0),
                content=ft.Icon(ft.Icons.MUSIC_NOTE, color="white", size=40),
            )
        return ft.Column(
            [
                artwork,
                ft.Text(
                    item.title if item else "Unknown",
                    size=16,
                    weight=ft.FontWeight.W_500,
                    color=FG,
                    text_align=ft.TextAlign.CENTER,
                    max_lines=2,
                    key=f"title-{item_id}",
                ),
                ft.Text(item.subtitle if item else item_id, size=12, color=FG_DIM, text_align=ft.TextAlign.CENTER, max_lines=1),
            ],
            spacing=8,
            horizontal_alignment=ft.CrossAxisAlignment.CENTER,
        )

    def handle_keyboard(self, e: ft.KeyboardEvent):
        if e.key == "Arrow Left":
            self._decide(Outcome.LEFT)
        elif e.key == "Arrow Right":
            self._decide(Outcome.RIGHT)
        elif e.key.lower() == "b":
            self._decide(Outcome.TIE)
        elif e.key.lower() == "n":
            self._decide(Outcome.SKIP)
        elif e.key == "Backspace":
            self._undo()
        elif e.key == "Escape":
            self._confirm_cancel()

    def show_persistence_warning(self, failure: PersistenceFailure):
        self._show_snack(f"{failure} Keep going; we will retry on your next choice.")

    # Actions

    def _decide(self, outcome: Outcome):
        if self.duel is None:
            return
        try:
            self.duel = self.controller.decide(outcome, self.duel.left_id, self.duel.right_id)
        except StaleReferenceError:
            self.duel = self.controller.get_next_duel()
            self._show_snack("That duel was out of date. Here is the current one.")
        except InvalidStateError as error:
            self._show_snack(str(error))
            return

        if self.controller.is_finished:
            self.on_finished(self.controller.session.id)
            return
        self._refresh_display()
        self._page.update()

    def _undo(self):
        if not self.controller.can_undo:
            return
        self.duel = self.controller.undo()
        self._refresh_display()
        self._page.update()

    def _confirm_cancel(self):
        def close(_):
            dialog.open = False
            self._page.update()

        def keep(_):
            close(_)
            self.controller.abandon(keep_progress=True)
            self.on_exit()

        def discard(_):
            close(_)
            self.controller.abandon(keep_progress=False)
            self.on_exit()

        dialog = ft.AlertDialog(
            title=ft.Text("Cancel sorting?"),
            content=ft.Text("What would you like to do with your current sorting progress?"),
            actions=[
                ft.TextButton("Continue sorting", on_click=close),
                ft.TextButton("Save progress", on_click=keep),
                ft.TextButton("Discard", on_click=discard, style=ft.ButtonStyle(color=DANGER)),
            ],
        )
        self._page.overlay.append(dialog)
        dialog.open = True
        self._page.update()

    def _show_snack(self, msg: str):
        self.snack.content = ft.Text(msg)
        self.snack.open = True
        self._page.update()
