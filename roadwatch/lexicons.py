"""
roadwatch/lexicons.py
Language packs — pure data. Every piece of free-text matching in roadwatch
(danger stems, urgency boosters, cause keywords, voice triggers) and every
user-facing outcome message is defined here, keyed by language.

Extend freely: add a Lexicon and register it in LEXICONS.
Weights are severity contributions: 1 = trivial nuisance, 10 = severe incident.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple


@dataclass(frozen=True)
class Lexicon:
    language:        str
    speech_tag:      str                  # recognition language, e.g. ru-RU
    alphabet:        str                  # regex class body of letters kept
    folding:         Dict[str, str]       # char → base form, applied first
    weights:         Dict[str, int]       # stem → weight, ordered
    boosters:        Tuple[str, ...]      # urgency adverbs
    reason_words:    Tuple[str, ...]      # explicit cause keywords
    record_trigger:  str
    delete_trigger:  str
    placeholder:     str                  # description when none dictated
    level_names:     Dict[str, str]
    messages:        Dict[str, str] = field(default_factory=dict)


RUSSIAN = Lexicon(
    language   = 'ru',
    speech_tag = 'ru-RU',
    alphabet   = 'а-яё',
    folding    = {'ё': 'е'},
    weights    = {
        'дтп':       10,
        'авари':     10,    # авария, аварии, аварию …
        'столкнов':  10,
        'пожар':     10,
        'взрыв':     10,
        'ранен':      8,
        'травм':      8,
        'перекрыт':   8,
        'убит':       9,
        'затор':      6,
        'пробк':      6,
        'ремонт':     6,
        'обвал':      7,
        'опрокинул':  7,
        'скольз':     5,
        'лед':        5,
        'гололед':    6,
        'ям':         3,
        'выбоин':     3,
        'гряз':       2,
        'луж':        2,
        'мусор':      1,
    },
    boosters       = ('очень', 'срочно', 'немедленно', 'критично', 'опасно'),
    reason_words   = ('лед', 'гололед', 'гололёд', 'туман', 'авар', 'авария',
                      'дтп', 'столкнов', 'пожар'),
    record_trigger = 'зафиксируй',
    delete_trigger = 'удали',
    placeholder    = 'инцидент',
    level_names    = {'high': 'высокий', 'medium': 'средний', 'low': 'низкий'},
    messages       = {
        'recorded':
            'Зафиксировано: {description}\nАдрес: {address}\nУровень: {level}',
        'reason':
            '\nПричина: {reason}',
        'recorded_locally':
            'Сохранение в облако не удалось, метка сохранена локально.',
        'location_missing':
            'Не удалось определить местоположение — включите геолокацию '
            'и попробуйте снова.',
        'delete_denied':
            'Удалять метки могут только администраторы '
            '(войдите под админ-аккаунтом).',
        'delete_guidance':
            'Чтобы удалить метку, выберите её и подтвердите удаление. '
            'Чтобы удалить все — используйте «Удалить все метки».',
        'unrecognized':
            'Команда не распознана.\n'
            'Скажи: «Ассистент, зафиксируй инцидент [описание]»\n'
            'Админы: «Ассистент, удали метку» — затем выберите метку '
            'или «Удалить все метки».',
        'no_speech':
            'Речь не распознана — попробуйте ещё раз.',
        'recognition_failed':
            'Ошибка распознавания речи: {error}',
        'cancelled':
            'Распознавание отменено.',
        'unknown_location':
            'неизвестное место',
    },
)

ENGLISH = Lexicon(
    language   = 'en',
    speech_tag = 'en-US',
    alphabet   = 'a-z',
    folding    = {},
    weights    = {
        'accident':    10,
        'collision':   10,
        'crash':       10,
        'fire':        10,
        'explo':       10,    # explosion, exploded …
        'injur':        8,
        'trauma':       8,
        'block':        8,
        'kill':         9,
        'congestion':   6,
        'jam':          6,
        'repair':       6,
        'landslide':    7,
        'overturn':     7,
        'slipp':        5,
        'ice':          5,
        'black ice':    6,
        'pothole':      3,
        'crater':       3,
        'mud':          2,
        'puddle':       2,
        'litter':       1,
    },
    boosters       = ('very', 'urgent', 'urgently', 'immediately',
                      'critical', 'dangerous'),
    reason_words   = ('ice', 'black ice', 'fog', 'accident', 'crash',
                      'collision', 'fire'),
    record_trigger = 'record',
    delete_trigger = 'delete',
    placeholder    = 'incident',
    level_names    = {'high': 'high', 'medium': 'medium', 'low': 'low'},
    messages       = {
        'recorded':
            'Recorded: {description}\nAddress: {address}\nLevel: {level}',
        'reason':
            '\nCause: {reason}',
        'recorded_locally':
            'Cloud save failed, the hazard was saved on this device only.',
        'location_missing':
            'Could not determine your location — enable geolocation '
            'and try again.',
        'delete_denied':
            'Only administrators can delete hazards (sign in with the '
            'admin account).',
        'delete_guidance':
            'To delete a hazard, select it and confirm the deletion. '
            'To delete everything use "Delete all hazards".',
        'unrecognized':
            'Command not recognized.\n'
            'Say: "Assistant, record incident [description]"\n'
            'Admins: "Assistant, delete hazard" — then pick the hazard '
            'or "Delete all hazards".',
        'no_speech':
            'No speech recognized — please try again.',
        'recognition_failed':
            'Speech recognition error: {error}',
        'cancelled':
            'Recognition cancelled.',
        'unknown_location':
            'unknown location',
    },
)

LEXICONS: Dict[str, Lexicon] = {
    RUSSIAN.language: RUSSIAN,
    ENGLISH.language: ENGLISH,
}

DEFAULT_LANGUAGE = RUSSIAN.language


def get_lexicon(language: str = DEFAULT_LANGUAGE) -> Lexicon:
    """Lookup by language code ('ru', 'ru-RU', 'EN' …). Unknown → ValueError."""
    key = (language or DEFAULT_LANGUAGE).split('-')[0].lower()
    try:
        return LEXICONS[key]
    except KeyError:
        raise ValueError(
            f"Unsupported language '{language}'. Available: {sorted(LEXICONS)}"
        ) from None
