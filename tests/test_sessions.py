from builder_api.sessions import Session, SessionStore


def test_get_or_create_mints_unique_ids():
    store = SessionStore()
    sid1, s1 = store.get_or_create()
    sid2, s2 = store.get_or_create(None)
    assert sid1 and sid2 and sid1 != sid2
    assert s1 is not s2
    assert len(store) == 2


def test_new_session_is_empty():
    _, session = SessionStore().get_or_create()
    assert session == Session(description="", extracted_content="", feedback=[])


def test_get_or_create_reuses_existing_session():
    store = SessionStore()
    sid, session = store.get_or_create("abc")
    session.feedback.append("one")
    again_sid, again = store.get_or_create("abc")
    assert again_sid == "abc"
    assert again is session
    assert again.feedback == ["one"]


def test_get_unknown_returns_none_and_does_not_create():
    store = SessionStore()
    assert store.get("missing") is None
    assert store.get(None) is None
    assert store.get("") is None
    assert "missing" not in store
    assert len(store) == 0


def test_client_supplied_id_is_kept():
    store = SessionStore()
    sid, _ = store.get_or_create("client-123")
    assert sid == "client-123"
    assert store.get("client-123") is not None


def test_clear_drops_everything():
    store = SessionStore()
    store.get_or_create("a")
    store.clear()
    assert len(store) == 0
