"""
tests/test_recognition_session.py
Recognition session lifecycle — exactly one terminal outcome per session.
"""

import asyncio

from roadwatch.voice.session import (
    ConsoleRecognizer,
    OutcomeKind,
    RecognitionConfig,
    SpeechRecognizer,
    start_recognition,
)


class _Scripted(SpeechRecognizer):
    def __init__(self, transcript=None, exc=None, hang=False):
        self.transcript = transcript
        self.exc        = exc
        self.hang       = hang
        self.configs    = []

    async def recognize(self, config):
        self.configs.append(config)
        if self.hang:
            await asyncio.sleep(3600)
        if self.exc:
            raise self.exc
        return self.transcript


def _run(recognizer, config=None):
    async def go():
        session = start_recognition(recognizer, config)
        return await session.wait()
    return asyncio.run(go())


class TestOutcomes:
    def test_result_is_lowercased(self):
        outcome = _run(_Scripted("Ассистент, ЗАФИКСИРУЙ яму"))
        assert outcome.kind is OutcomeKind.RESULT
        assert outcome.transcript == "ассистент, зафиксируй яму"

    def test_blank_is_no_match(self):
        assert _run(_Scripted("   ")).kind is OutcomeKind.NO_MATCH
        assert _run(_Scripted(None)).kind is OutcomeKind.NO_MATCH

    def test_failure_is_error(self):
        outcome = _run(_Scripted(exc=RuntimeError("microphone denied")))
        assert outcome.kind is OutcomeKind.ERROR
        assert outcome.error == "microphone denied"

    def test_cancel(self):
        async def go():
            session = start_recognition(_Scripted(hang=True))
            await asyncio.sleep(0)
            assert session.active
            session.cancel()
            outcome = await session.wait()
            return session, outcome

        session, outcome = asyncio.run(go())
        assert outcome.kind is OutcomeKind.CANCELLED
        assert not session.active

    def test_cancelled_waiter_is_not_a_cancelled_outcome(self):
        async def go():
            session = start_recognition(_Scripted(hang=True))
            waiter  = asyncio.ensure_future(session.wait())
            await asyncio.sleep(0)
            waiter.cancel()
            try:
                await waiter
            except asyncio.CancelledError:
                return session, None
            return session, waiter.result()

        session, outcome = asyncio.run(go())
        assert outcome is None
        assert not session.active


class TestConfig:
    def test_single_utterance_defaults(self):
        config = RecognitionConfig()
        assert config.language == "ru-RU"
        assert config.continuous is False
        assert config.interim_results is False

    def test_language_tag_from_lexicon(self):
        assert RecognitionConfig.for_language("en").language == "en-US"

    def test_config_reaches_recognizer(self):
        recognizer = _Scripted("x")
        config     = RecognitionConfig(language="en-US")
        _run(recognizer, config)
        assert recognizer.configs == [config]


class TestConsoleRecognizer:
    def test_typed_line(self):
        recognizer = ConsoleRecognizer(input_func=lambda prompt: "  Зафиксируй пожар \n")
        outcome = _run(recognizer)
        assert outcome.kind is OutcomeKind.RESULT
        assert outcome.transcript == "зафиксируй пожар"

    def test_end_of_input_is_no_match(self):
        def _eof(prompt):
            raise EOFError

        assert _run(ConsoleRecognizer(input_func=_eof)).kind is OutcomeKind.NO_MATCH
