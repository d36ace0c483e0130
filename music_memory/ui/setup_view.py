"""Flet Spotify credentials form shown on first launch."""

import webbrowser
from typing import Callable, Optional

import flet as ft
import spotipy
from spotipy.oauth2 import SpotifyClientCredentials, SpotifyOauthError

from music_memory.config import DEFAULT_REDIRECT_URI
from music_memory.domain.ports import ConfigPort
from music_memory.ui.theme import ACCENT, BG_CARD, BG_INPUT, BORDER, DANGER, FG, FG_DIM

DASHBOARD_URL = "https://developer.spotify.com/dashboard"


def _text_field(label: str, value: str, password: bool = False) -> ft.TextField:
    return ft.TextField(
        label=label,
        value=value,
        password=password,
        can_reveal_password=password,
        bgcolor=BG_INPUT,
        color=FG,
        border_color=BORDER,
        focused_border_color=ACCENT,
        label_style=ft.TextStyle(color=FG_DIM),
        cursor_color=FG,
        width=520,
    )


class SetupView(ft.Column):
    """Collects and checks the Spotify Developer app credentials."""

    def __init__(
        self,
        page: ft.Page,
        config: ConfigPort,
        on_complete: Callable[[], None],
        on_cancel: Optional[Callable[[], None]] = None,
        verify: bool = True,
    ):
        super().__init__(expand=True, horizontal_alignment=ft.CrossAxisAlignment.CENTER, spacing=8)
        self._page = page
        self.config = config
        self.on_complete = on_complete
        self.on_cancel = on_cancel
        self.verify = verify
        self.cfg = config.load()

        self.client_id = _text_field("Client ID", self.cfg.get("spotify_client_id", ""))
        self.client_secret = _text_field("Client Secret", self.cfg.get("spotify_client_secret", ""), password=True)
        self.redirect_uri = _text_field("Redirect URI", self.cfg.get("spotify_redirect_uri") or DEFAULT_REDIRECT_URI)
        self.error_text = ft.Text("", color=DANGER, size=12)
        self._build_ui()

    def _build_ui(self):
        steps = [
            "Go to the Spotify Developer Dashboard",
            'Click "Create App"',
            f"Set the Redirect URI to {DEFAULT_REDIRECT_URI}",
            "Copy the Client ID and Client Secret below",
        ]
        step_items = [
            ft.Row([
                ft.Text(f"{i + 1}.", size=12, weight=ft.FontWeight.BOLD, color=ACCENT, width=24),
                ft.Text(txt, size=12, color=FG_DIM),
            ])
            for i, txt in enumerate(steps)
        ]
        buttons = [ft.ElevatedButton("Save", icon=ft.Icons.CHECK, on_click=self._on_finish, bgcolor=ACCENT, color="white")]
        if self.on_cancel:
            buttons.insert(0, ft.TextButton("Cancel", on_click=lambda _: self.on_cancel()))

        self.controls = [
            ft.Container(height=20),
            ft.Text("Spotify configuration", size=22, weight=ft.FontWeight.BOLD, color=FG),
            ft.Text("Music Memory reads your albums, artists and playlists from Spotify.", size=12, color=FG_DIM),
            ft.Container(
                width=560,
                bgcolor=BG_CARD,
                border=ft.border.all(1, BORDER),
                border_radius=10,
                padding=16,
                content=ft.Column([
                    *step_items,
                    ft.TextButton(
                        "Open Spotify Developer Dashboard",
                        on_click=lambda _: webbrowser.open(DASHBOARD_URL),
                        style=ft.ButtonStyle(color=ACCENT),
                    ),
                ]),
            ),
            self.client_id,
            self.client_secret,
            self.redirect_uri,
            self.error_text,
            ft.Row(buttons, alignment=ft.MainAxisAlignment.CENTER),
        ]

    def _on_finish(self, _e):
        if not self._validate_fields():
            self._page.update()
            return
        if self.verify and not self._test_spotify_credentials():
            self._page.update()
            return
        self.config.save(self.cfg)
        self.on_complete()

    def _validate_fields(self) -> bool:
        cid = (self.client_id.value or "").strip()
        secret = (self.client_secret.value or "").strip()
        if not cid or not secret:
            self.error_text.value = "Client ID and Client Secret are required."
            return False
        self.cfg["spotify_client_id"] = cid
        self.cfg["spotify_client_secret"] = secret
        self.cfg["spotify_redirect_uri"] = (self.redirect_uri.value or "").strip() or DEFAULT_REDIRECT_URI
        self.error_text.value = ""
        return True

    def _test_spotify_credentials(self) -> bool:
        """Test the credentials by requesting an app token and running a search."""
        try:
            auth_manager = SpotifyClientCredentials(
                client_id=self.cfg["spotify_client_id"],
                client_secret=self.cfg["spotify_client_secret"],
            )
            spotipy.Spotify(auth_manager=auth_manager).search(q="test", type="track", limit=1)
            return True
        except (spotipy.SpotifyException, SpotifyOauthError) as e:
            error_msg = str(e)
            if "invalid_client" in error_msg.lower():
                self.error_text.value = "Invalid Client ID or Client Secret."
            else:
                self.error_text.value = f"Spotify error: {error_msg[:80]}"
            return False
