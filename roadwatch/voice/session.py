"""
roadwatch/voice/session.py
Speech recognition collaborator and the session handle around it.

The host environment supplies a SpeechRecognizer. start_recognition()
returns an explicit RecognitionSession; nothing is kept in module state.
Awaiting session.wait() suspends the caller until exactly one of
RESULT / NO_MATCH / ERROR / CANCELLED happens. session.cancel() abandons it.

One active session at a time is the CALLER's responsibility; starting a
second session while one is active is not guarded here.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from roadwatch.lexicons import DEFAULT_LANGUAGE, get_lexicon

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecognitionConfig:
    language:         str  = 'ru-RU'
    continuous:       bool = False     # stop after the first final result
    interim_results:  bool = False

    @classmethod
    def for_language(cls, language: str = DEFAULT_LANGUAGE) -> 'RecognitionConfig':
        return cls(language=get_lexicon(language).speech_tag)


class SpeechRecognizer(ABC):
    """
    Host-provided speech recognition.
    recognize() yields at most one final transcript per call.
    """

    @abstractmethod
    async def recognize(self, config: RecognitionConfig) -> Optional[str]:
        """
        Return the final transcript, or None / '' when nothing was recognized.
        Raise on recognition failure (microphone, permissions, service).
        """
        ...


class OutcomeKind(str, Enum):
    RESULT    = 'result'
    NO_MATCH  = 'no_match'
    ERROR     = 'error'
    CANCELLED = 'cancelled'


@dataclass(frozen=True)
class RecognitionOutcome:
    kind:        OutcomeKind
    transcript:  Optional[str] = None     # lower-cased, set for RESULT only
    error:       Optional[str] = None     # set for ERROR only


class RecognitionSession:
    """Handle for one in-flight recognition. Create via start_recognition()."""

    def __init__(self, task: 'asyncio.Task', config: RecognitionConfig):
        self._task             = task
        self._cancel_requested = False
        self.config            = config

    @property
    def active(self) -> bool:
        return not self._task.done()

    def cancel(self) -> None:
        if self.active:
            logger.debug("Recognition session cancelled by caller.")
        self._cancel_requested = True
        self._task.cancel()

    async def wait(self) -> RecognitionOutcome:
        try:
            transcript = await self._task
        except asyncio.CancelledError:
            if not self._cancel_requested:
                raise   # the waiter itself was cancelled
            return RecognitionOutcome(kind=OutcomeKind.CANCELLED)
        except Exception as e:
            logger.warning(f"Speech recognition failed: {e}")
            return RecognitionOutcome(kind=OutcomeKind.ERROR, error=str(e) or type(e).__name__)

        text = (transcript or '').strip().lower()
        if not text:
            return RecognitionOutcome(kind=OutcomeKind.NO_MATCH)
        logger.debug(f"Recognized: {text!r}")
        return RecognitionOutcome(kind=OutcomeKind.RESULT, transcript=text)


def start_recognition(
    recognizer: SpeechRecognizer,
    config:     Optional[RecognitionConfig] = None,
) -> RecognitionSession:
    """Must be called from a running event loop."""
    config = config or RecognitionConfig()
    task   = asyncio.ensure_future(recognizer.recognize(config))
    return RecognitionSession(task, config)


class ConsoleRecognizer(SpeechRecognizer):
    """
    Terminal stand-in for a microphone: the 'utterance' is one typed line.
    Used by `roadwatch listen`.
    """

    def __init__(
        self,
        prompt:     str = '🎤 > ',
        input_func: Callable[[str], str] = input,
    ):
        self.prompt     = prompt
        self.input_func = input_func

    async def recognize(self, config: RecognitionConfig) -> Optional[str]:
        try:
            line = await asyncio.to_thread(self.input_func, self.prompt)
        except EOFError:
            return None
        return line.strip() or None
