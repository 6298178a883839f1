"""Tests for the interactive console screen."""

import asyncio

import pytest

from voice_translator.console import ConsoleScreen
from voice_translator.models import language_for_code, ENGLISH, JAPANESE


def _scripted(lines):
    queue = list(lines)

    def read_line(prompt):
        if not queue:
            raise EOFError
        return queue.pop(0)

    return read_line


def _run(session, lines, secrets=()):
    output = []
    screen = ConsoleScreen(
        session,
        read_line=_scripted(lines),
        read_secret=_scripted(secrets),
        write=output.append,
    )

    async def scenario():
        await screen.run()
        await session.drain()

    asyncio.run(scenario())
    return "\n".join(output)


@pytest.mark.unit
class TestConsoleScreen:

    def test_edit_then_translate(self, make_session, translator):
        session = make_session()

        _run(session, ["edit", "Hello", "", "en", "show", "quit"])

        assert session.state.transcript == "Hello"
        assert translator.calls == [("Hello", "English", "VALIDKEY")]
        assert session.state.translation == "[English] Hello"

    def test_play_without_translation_notifies(self, make_session, synthesizer):
        output = _run(make_session(), ["play", "quit"])

        assert "[!] Nothing to play yet" in output
        assert synthesizer.spoken == []

    def test_key_command_stores_masked_entry(self, make_session, store):
        session = make_session()

        output = _run(session, ["key", "quit"], secrets=[" NEWKEY "])

        assert store.get("credential") == "NEWKEY"
        assert "NEWKEY" not in output

    def test_record_transcribes_after_enter(self, make_session, capture):
        session = make_session()

        _run(session, ["rec", "", "quit"])

        assert session.state.transcript == "Good morning"
        assert session.state.recording is False
        assert capture.released == 1

    def test_reset_clears_screen(self, make_session, store):
        session = make_session()

        _run(session, ["edit", "Hello", "", "reset", "quit"])

        assert session.state.transcript == ""
        assert store.get("savedTranscript") == ""

    def test_unknown_command(self, make_session):
        output = _run(make_session(), ["dance"])

        assert "Unknown command: dance" in output


@pytest.mark.unit
def test_language_codes():
    assert language_for_code("en") is ENGLISH
    assert language_for_code("ja-JP") is JAPANESE
    with pytest.raises(KeyError):
        language_for_code("fr")
