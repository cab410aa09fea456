"""
roadwatch/voice/interpreter.py
One utterance in, one intent out. Stateless: nothing is carried
between calls, there is no dialogue and no retry.

    delete trigger present → RequestDelete
    record trigger present → RecordHazard(description=<text after trigger>)
    neither                → Unrecognized

The delete trigger wins when both are present. Deletion itself is
authorized and performed by the store, never here.
"""

from typing import Optional

from roadwatch.lexicons import DEFAULT_LANGUAGE, get_lexicon
from roadwatch.models.record import Intent, RecordHazard, RequestDelete, Unrecognized


def interpret(transcript: Optional[str], language: str = DEFAULT_LANGUAGE) -> Intent:
    lexicon = get_lexicon(language)
    text    = str(transcript or '').lower()

    if lexicon.delete_trigger in text:
        return RequestDelete(transcript=text)

    if lexicon.record_trigger in text:
        # Text after the LAST trigger occurrence
        description = text.rsplit(lexicon.record_trigger, 1)[1].strip()
        return RecordHazard(
            description = description or lexicon.placeholder,
            transcript  = text,
        )

    return Unrecognized(transcript=text)
