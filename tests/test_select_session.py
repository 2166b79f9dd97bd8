from common.events import ReplayProgressEvent
from hyperchat.errors import LoadError, ReplayError
from hyperchat.models import Message
from hyperchat.outcome import Status
from hyperchat.titles import DEFAULT_TITLE


def _conversation(*pairs):
    messages = []
    for user, assistant in pairs:
        messages.append(Message(content=user, is_user=True, timestamp="10:00"))
        if assistant is not None:
            messages.append(Message(content=assistant, is_user=False, timestamp="10:01"))
    return messages


async def test_select_replays_user_turns_in_order(sync, completion, seed):
    session_a = await seed("Greeting", _conversation(("hi", "hello!"), ("how are you", "fine")))

    outcome = await sync.select_session(session_a)

    assert outcome.ok
    assert outcome.replayed_turns == 2
    assert completion.calls == [("reset", None), ("send", "hi"), ("send", "how are you")]
    assert sync.session_id == session_a
    assert sync.title == "Greeting"
    assert [m.content for m in sync.messages] == ["hi", "hello!", "how are you", "fine"]
    assert sync.pending is False


async def test_stored_assistant_text_is_kept_over_replay_replies(sync, seed):
    session_a = await seed("Chat", _conversation(("hi", "original answer")))

    await sync.select_session(session_a)

    assert sync.messages[1].content == "original answer"


async def test_select_then_submit_builds_equivalent_context(sync, completion, seed):
    session_a = await seed("Chat", _conversation(("one", "1"), ("two", None), ("three", "3")))

    await sync.select_session(session_a)
    await sync.submit("four")

    assert completion.sends_since_last_reset() == ["one", "two", "three", "four"]


async def test_select_continues_conversation_and_persists(sync, store, seed):
    session_a = await seed("Chat", _conversation(("hi", "hello")))

    await sync.select_session(session_a)
    await sync.submit("more")
    await sync.flush()

    stored = await store.load_messages(session_a)
    assert [m.content for m in stored] == ["hi", "hello", "more", "reply to more"]
    assert (await store.get_session(session_a)).title == "Chat"


async def test_unknown_session_leaves_state_untouched(sync, completion):
    await sync.submit("keep me")
    before = sync.view
    calls_before = list(completion.calls)

    outcome = await sync.select_session("missing")

    assert outcome.status is Status.FAILED
    assert isinstance(outcome.error, LoadError)
    assert sync.view == before
    assert completion.calls == calls_before


async def test_load_failure_leaves_state_untouched(sync, store, completion, seed):
    session_a = await seed("Chat", _conversation(("hi", "hello")))
    store.fail_load = True

    outcome = await sync.select_session(session_a)

    assert outcome.status is Status.FAILED
    assert isinstance(outcome.error, LoadError)
    assert sync.session_id is None
    assert sync.messages == ()
    assert sync.title == DEFAULT_TITLE
    assert completion.calls == []
    assert sync.pending is False


async def test_replay_failure_is_reported_once_and_switch_completes(sync, completion, seed):
    session_a = await seed(
        "Chat", _conversation(("a", "1"), ("b", "2"), ("c", "3"), ("d", "4"))
    )
    completion.fail_on = {"b", "c"}
    progress = []
    sync.subscribe(lambda e: progress.append(e) if isinstance(e, ReplayProgressEvent) else None)

    outcome = await sync.select_session(session_a)

    assert outcome.ok
    assert len(outcome.warnings) == 1
    warning = outcome.warnings[0]
    assert isinstance(warning, ReplayError)
    assert warning.failed_turns == [2, 4]
    assert outcome.failed_turns == (2, 4)
    assert outcome.replayed_turns == 2
    assert [c[1] for c in completion.calls if c[0] == "send"] == ["a", "b", "c", "d"]
    assert [p.success for p in progress] == [True, False, False, True]
    assert sync.session_id == session_a
    assert len(sync.messages) == 8


async def test_loaded_custom_title_is_never_rederived(sync, seed):
    session_a = await seed("My title", [])

    await sync.select_session(session_a)
    await sync.submit("first message")

    assert sync.title == "My title"


async def test_loaded_untitled_empty_session_gets_auto_title(sync, store, seed):
    session_a = await seed(DEFAULT_TITLE, [])

    await sync.select_session(session_a)
    await sync.submit("first message")
    await sync.flush()

    assert sync.title == "first message"
    assert (await store.get_session(session_a)).title == "first message"


async def test_switching_between_sessions_replaces_state(sync, completion, seed):
    session_a = await seed("A", _conversation(("a1", "r1")))
    session_b = await seed("B", _conversation(("b1", "r1"), ("b2", "r2")))

    await sync.select_session(session_a)
    await sync.select_session(session_b)
    await sync.submit("b3")

    assert sync.title == "B"
    assert [m.content for m in sync.messages][:4] == ["b1", "r1", "b2", "r2"]
    assert completion.sends_since_last_reset() == ["b1", "b2", "b3"]


async def test_switching_back_sees_writes_still_queued(sync, store):
    await sync.submit("remember this")
    session_a = sync.session_id
    sync.new_session()

    outcome = await sync.select_session(session_a)

    assert outcome.ok
    assert [m.content for m in sync.messages] == ["remember this", "reply to remember this"]
    assert sync.title == "remember this"

    await sync.submit("next")
    await sync.flush()
    stored = await store.load_messages(session_a)
    assert [m.content for m in stored] == [
        "remember this",
        "reply to remember this",
        "next",
        "reply to next",
    ]
