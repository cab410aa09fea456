"""
roadwatch/voice — utterance interpretation and recognition sessions.
"""

from roadwatch.voice.interpreter import interpret
from roadwatch.voice.session import (
    ConsoleRecognizer,
    OutcomeKind,
    RecognitionConfig,
    RecognitionOutcome,
    RecognitionSession,
    SpeechRecognizer,
    start_recognition,
)

__all__ = [
    "interpret",
    "ConsoleRecognizer",
    "OutcomeKind",
    "RecognitionConfig",
    "RecognitionOutcome",
    "RecognitionSession",
    "SpeechRecognizer",
    "start_recognition",
]
