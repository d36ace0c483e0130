"""User journey: app views can be instantiated and driven without a Flet window."""

import random
from types import SimpleNamespace

import pytest
import spotipy

from music_memory.domain.model import ContentType, SourceDescriptor, SourceKind
from music_memory.ui.app import MusicMemoryApp
from music_memory.ui.duel_view import DuelView
from music_memory.ui.results_view import ResultsView
from music_memory.ui.sessions_view import SessionsView
from music_memory.ui.setup_view import SetupView
from music_memory.usecases.list_sessions import DeleteSessionUseCase, ListSessionsUseCase

from conftest import InMemoryConfig, InMemoryLibrary


class DummyPage:
    def __init__(self):
        self.overlay = []
        self.controls = []
        self.window = SimpleNamespace(close=lambda: None, width=980)
        self.on_keyboard_event = None
        self.clipboard = None

    def add(self, *controls):
        self.controls.extend(controls)

    def update(self):
        return None

    def set_clipboard(self, value):
        self.clipboard = value


def key(name: str):
    return SimpleNamespace(key=name)


def current_view(page):
    return page.controls[0]


def row_title(row):
    return row.content.controls[1].controls[0].value


def test_setup_view_instantiates_without_page_setter_error():
    page = DummyPage()

    view = SetupView(page=page, config=InMemoryConfig(), on_complete=lambda: None)

    assert view._page is page


def test_setup_view_requires_credentials():
    page = DummyPage()
    config = InMemoryConfig()
    completed = []
    view = SetupView(page=page, config=config, on_complete=lambda: completed.append(True), verify=False)

    view._on_finish(None)
    assert view.error_text.value
    assert completed == []

    view.client_id.value = "client-id"
    view.client_secret.value = "secret"
    view._on_finish(None)
    assert completed == [True]
    assert config.is_configured()


def test_user_can_sort_from_the_session_list_to_the_results(library, album_source, store):
    page = DummyPage()
    app = MusicMemoryApp(page, InMemoryConfig(), library=library, store=store)
    app.start()
    assert isinstance(current_view(page), SessionsView)

    app.create_session(album_source, ContentType.SONG)
    duel_view = current_view(page)
    assert isinstance(duel_view, DuelView)
    assert page.on_keyboard_event == duel_view.handle_keyboard

    page.on_keyboard_event(key("n"))
    page.on_keyboard_event(key("Backspace"))
    for _ in range(10):
        if isinstance(current_view(page), ResultsView):
            break
        page.on_keyboard_event(key("Arrow Left"))

    results = current_view(page)
    assert isinstance(results, ResultsView)
    assert page.on_keyboard_event is None
    assert len(results.ranking.items) == 4

    results._share()
    assert page.clipboard.startswith("\U0001f3b5 My Top Songs")


def test_opening_a_deleted_session_returns_to_the_list(library, album_source, store):
    page = DummyPage()
    app = MusicMemoryApp(page, InMemoryConfig(), library=library, store=store)
    session = store.create(list(library.items.values()), ContentType.SONG, album_source)
    store.delete(session.id)

    app.show_duel(session.id)

    assert isinstance(current_view(page), SessionsView)
    assert "not found" in app.snack.content.value


def test_sessions_view_lists_and_filters(library, album_source, store):
    store.create(list(library.items.values()), ContentType.SONG, album_source)
    page = DummyPage()
    app = MusicMemoryApp(page, InMemoryConfig(), library=library, store=store)
    app.start()
    view = current_view(page)

    assert len(view.sessions_column.controls) == 1

    view.search_field.value = "jazz"
    view.refresh()
    assert view.sessions_column.controls == []
    assert "jazz" in view.empty_label.value


def test_duel_view_shows_both_items(library, album_source, store):
    from music_memory.usecases.open_session import OpenSessionUseCase

    session = store.create(list(library.items.values()), ContentType.SONG, album_source)
    controller = OpenSessionUseCase(store, rng=random.Random(3)).execute(session.id)
    view = DuelView(
        page=DummyPage(),
        controller=controller,
        items=library.items,
        on_finished=lambda _: None,
        on_exit=lambda: None,
    )

    assert view.battle_label.value == "Battle #1"
    assert view.left_card.content is not None
    assert view.undo_button.disabled is True


def test_sorting_by_name_starts_at_a(store, new_session):
    for session_id, title in [("s1", "Zydeco nights"), ("s2", "Afrobeat")]:
        source = SourceDescriptor(kind=SourceKind.PLAYLIST, id=session_id, display_name=title)
        store.save(new_session(["A", "B"], session_id=session_id, title=title, source=source))
    view = SessionsView(
        page=DummyPage(),
        list_uc=ListSessionsUseCase(store),
        delete_uc=DeleteSessionUseCase(store),
        on_open=lambda _: None,
        on_create=lambda *_: None,
    )

    view._on_sort_change(SimpleNamespace(control=SimpleNamespace(value="title")))
    assert view.ascending is True
    assert [row_title(row) for row in view.sessions_column.controls] == ["Afrobeat", "Zydeco nights"]

    view._toggle_direction()
    assert [row_title(row) for row in view.sessions_column.controls] == ["Zydeco nights", "Afrobeat"]

    view._on_sort_change(SimpleNamespace(control=SimpleNamespace(value="date")))
    assert view.ascending is False


class UnreachableLibrary(InMemoryLibrary):
    def resolve(self, content_type, item_ids):
        raise spotipy.SpotifyException(503, -1, "Service unavailable")


@pytest.mark.parametrize("ranked_ids", [[], ["A", "B"]])
def test_spotify_outage_while_opening_a_session_returns_to_the_list(store, new_session, songs, ranked_ids):
    store.save(new_session(["A", "B"], ranked_ids=ranked_ids, battle_index=len(ranked_ids),
                           is_complete=len(ranked_ids) == 2))
    page = DummyPage()
    app = MusicMemoryApp(page, InMemoryConfig(), library=UnreachableLibrary(songs), store=store)

    app.open_session(store.load("s1"))

    assert isinstance(current_view(page), SessionsView)
    assert "Spotify could not load" in app.snack.content.value
    assert "503" in app.snack.content.value
