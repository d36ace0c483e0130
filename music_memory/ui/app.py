"""Main Flet application: orchestrates setup, session list, duels and results."""

import atexit
import logging
from typing import Optional

import flet as ft
import spotipy
from spotipy.oauth2 import SpotifyOauthError

from music_memory.adapters.config.json_config_adapter import JsonConfigAdapter
from music_memory.adapters.persistence.json_session_adapter import JsonSessionAdapter
from music_memory.adapters.spotify.auth import get_spotify_client
from music_memory.adapters.spotify.library_adapter import SpotifyLibraryAdapter
from music_memory.config import DEFAULT_REDIRECT_URI, SESSIONS_FILE
from music_memory.domain.errors import PersistenceFailure, RankingError
from music_memory.domain.model import ContentType, SortSession, SourceDescriptor
from music_memory.domain.ports import ConfigPort, LibraryProviderPort
from music_memory.storage.session_store import SessionStore
from music_memory.ui.duel_view import DuelView
from music_memory.ui.results_view import ResultsView
from music_memory.ui.sessions_view import SessionsView
from music_memory.ui.setup_view import SetupView
from music_memory.ui.theme import ACCENT, BG, FG, FG_DIM
from music_memory.usecases.create_session import CreateSessionUseCase
from music_memory.usecases.export_ranking import ExportRankingUseCase
from music_memory.usecases.list_sessions import DeleteSessionUseCase, ListSessionsUseCase
from music_memory.usecases.open_session import OpenSessionUseCase
from music_memory.usecases.resolve_ranking import ResolveRankingUseCase
from music_memory.version import __version__

logger = logging.getLogger("music_memory.ui")


def _auth_hint(error: Exception) -> str:
    error_str = str(error)
    if "INVALID_CLIENT" in error_str or "Invalid redirect URI" in error_str:
        return f"The redirect URI in your Spotify app settings doesn't match.\nExpected: {DEFAULT_REDIRECT_URI}"
    if "invalid_client" in error_str.lower():
        return "Your Client ID or Client Secret is incorrect."
    return "Check your Spotify Developer credentials and try again."


class MusicMemoryApp:
    """Navigation between the Flet views for one page.

    The library and the store are injectable so the screens can be driven
    without Spotify.
    """

    def __init__(
        self,
        page: ft.Page,
        config: ConfigPort,
        library: Optional[LibraryProviderPort] = None,
        store: Optional[SessionStore] = None,
    ):
        self.page = page
        self.config = config
        self.library = library
        self.store = store
        self.duel_view: Optional[DuelView] = None
        self.snack = ft.SnackBar(content=ft.Text(""))

    def start(self):
        if self.library is not None and self.store is not None:
            self.show_sessions()
        elif self.config.is_configured():
            self.connect()
        else:
            self.show_setup()

    # Wiring

    def connect(self):
        cfg = self.config.load()
        try:
            sp = get_spotify_client(
                cfg["spotify_client_id"],
                cfg["spotify_client_secret"],
                cfg.get("spotify_redirect_uri") or DEFAULT_REDIRECT_URI,
            )
            user = sp.current_user()
        except (spotipy.SpotifyException, SpotifyOauthError) as e:
            logger.exception("Spotify authentication failed")
            self.show_error(e)
            return
        logger.info("Logged in as %s", user.get("display_name") or user.get("id"))
        self.library = SpotifyLibraryAdapter(sp)
        if self.store is None:
            repository = JsonSessionAdapter(cfg.get("sessions_file") or SESSIONS_FILE)
            self.store = SessionStore(repository, on_persistence_failure=self._on_persistence_failure)
            atexit.register(self.store.close)
        self.show_sessions()

    def _on_persistence_failure(self, failure: PersistenceFailure):
        if self.duel_view is not None:
            self.duel_view.show_persistence_warning(failure)
        else:
            self._show_snack(str(failure))

    def _show(self, view: ft.Control, keyboard=None):
        self.duel_view = view if isinstance(view, DuelView) else None
        self.page.on_keyboard_event = keyboard
        self.page.controls.clear()
        self.page.add(view, self.snack)
        self.page.update()

    # Screens

    def show_setup(self):
        logger.info("Opening Spotify setup")
        cancel = self.connect if self.config.is_configured() else None
        self._show(SetupView(page=self.page, config=self.config, on_complete=self.connect, on_cancel=cancel))

    def show_error(self, error: Exception):
        view = ft.Column(
            [
                ft.Icon(ft.Icons.ERROR_OUTLINE, color="red", size=48),
                ft.Text("Authentication Error", color="red", size=20, weight=ft.FontWeight.BOLD),
                ft.Text(_auth_hint(error), color=FG, size=14, text_align=ft.TextAlign.CENTER),
                ft.Text(f"Technical details: {type(error).__name__}", color=FG_DIM, size=11),
                ft.ElevatedButton(
                    "Reconfigure",
                    icon=ft.Icons.SETTINGS,
                    on_click=lambda _: self.show_setup(),
                    bgcolor=ACCENT,
                    color="white",
                ),
            ],
            expand=True,
            spacing=8,
            horizontal_alignment=ft.CrossAxisAlignment.CENTER,
            alignment=ft.MainAxisAlignment.CENTER,
        )
        self._show(view)

    def show_sessions(self):
        view = SessionsView(
            page=self.page,
            list_uc=ListSessionsUseCase(self.store),
            delete_uc=DeleteSessionUseCase(self.store),
            on_open=self.open_session,
            on_create=self.create_session,
        )
        self._show(view)

    def open_session(self, session: SortSession):
        if session.is_complete:
            self.show_results(session.id)
        else:
            self.show_duel(session.id)

    def create_session(self, source: SourceDescriptor, content_type: ContentType):
        try:
            session = CreateSessionUseCase(self.library, self.store).execute(source, content_type)
        except ValueError as e:
            self._show_snack(str(e))
            return
        except spotipy.SpotifyException as e:
            logger.warning("Could not load %s from Spotify: %s", source.display_name, e)
            self._show_snack(f"Spotify could not load {source.display_name} ({e.http_status}).")
            return
        self.show_duel(session.id)

    def show_duel(self, session_id: str):
        try:
            controller = OpenSessionUseCase(self.store).execute(session_id)
        except RankingError as e:
            self._recover(e)
            return
        if controller.is_finished:
            self.show_results(session_id)
            return
        session = controller.session
        try:
            items = self.library.resolve(session.content_type, list(session.candidate_ids))
        except spotipy.SpotifyException as e:
            self._recover(e, f"Spotify could not load {session.title} ({e.http_status}).")
            return
        view = DuelView(
            page=self.page,
            controller=controller,
            items=items,
            on_finished=self.show_results,
            on_exit=self.show_sessions,
        )
        self._show(view, keyboard=view.handle_keyboard)

    def show_results(self, session_id: str):
        try:
            ranking = ResolveRankingUseCase(self.library, self.store).execute(session_id)
        except RankingError as e:
            self._recover(e)
            return
        except spotipy.SpotifyException as e:
            self._recover(e, f"Spotify could not load the ranking ({e.http_status}).")
            return
        if ranking.missing_ids:
            logger.info("%d ranked ids no longer resolve for session %s", len(ranking.missing_ids), session_id)
        view = ResultsView(
            page=self.page,
            ranking=ranking,
            export_uc=ExportRankingUseCase(),
            on_back=self.show_sessions,
            on_delete=self._delete_and_return,
        )
        self._show(view)

    def _delete_and_return(self, session_id: str):
        try:
            DeleteSessionUseCase(self.store).execute(session_id)
        except RankingError as e:
            logger.warning("Delete failed: %s", e)
        self.show_sessions()

    def _recover(self, error: Exception, message: Optional[str] = None):
        logger.warning("Returning to the session list: %s", error)
        self.show_sessions()
        self._show_snack(message or str(error))

    def _show_snack(self, msg: str):
        self.snack.content = ft.Text(msg)
        self.snack.open = True
        self.page.update()


def run_app():
    logger.info("App boot sequence started")

    def main(page: ft.Page):
        page.title = f"Music Memory {__version__}"
        page.bgcolor = BG
        page.window.width = 980
        page.window.height = 860
        page.window.min_width = 520
        page.window.min_height = 640
        MusicMemoryApp(page, JsonConfigAdapter()).start()

    ft.app(target=main)
