"""
roadwatch/pipeline.py
Hazard intake orchestrator: utterance → intent → record → store.

Stages run strictly one after another, one remote call at a time:
  interpret (pure) → build_record (geocoding I/O, then classify)
  → HazardStore.create (remote I/O, local fallback)

Every terminal state becomes a PipelineOutcome with a localized message
for the user. Nothing here raises for expected conditions: missing
location, unrecognized speech and degraded saves are all outcomes.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence

from roadwatch.builder import build_record, now_ms
from roadwatch.detectors.danger_classifier import classifier_for
from roadwatch.errors import PreconditionError
from roadwatch.geocoding.resolver import AddressResolver
from roadwatch.lexicons import DEFAULT_LANGUAGE
from roadwatch.models.record import (
    HazardRecord, Intent, PrivilegeContext, RecordHazard, RequestDelete,
)
from roadwatch.store.hazard_store import HazardStore
from roadwatch.voice.interpreter import interpret
from roadwatch.voice.session import (
    OutcomeKind, RecognitionConfig, SpeechRecognizer, start_recognition,
)

logger = logging.getLogger(__name__)


class Status(str, Enum):
    RECORDED           = 'recorded'
    RECORDED_LOCALLY   = 'recorded_locally'
    LOCATION_MISSING   = 'location_missing'
    DELETE_GUIDANCE    = 'delete_guidance'
    DELETE_DENIED      = 'delete_denied'
    UNRECOGNIZED       = 'unrecognized'
    NO_SPEECH          = 'no_speech'
    RECOGNITION_FAILED = 'recognition_failed'
    CANCELLED          = 'cancelled'


@dataclass(frozen=True)
class PipelineOutcome:
    status:   Status
    message:  str
    intent:   Optional[Intent]       = None
    record:   Optional[HazardRecord] = None
    error:    Optional[str]          = None    # remote failure on degraded save


class HazardPipeline:

    def __init__(
        self,
        store:    HazardStore,
        resolver: AddressResolver,
        language: str               = DEFAULT_LANGUAGE,
        clock:    Callable[[], int] = now_ms,
    ):
        self.store      = store
        self.resolver   = resolver
        self.language   = language
        self.classifier = classifier_for(language)
        self.lexicon    = self.classifier.lexicon
        self.clock      = clock

    # ── ENTRY: ONE TRANSCRIPT ────────────────────────────────
    def handle_transcript(
        self,
        transcript: str,
        location:   Optional[Sequence[float]],
        context:    PrivilegeContext,
    ) -> PipelineOutcome:
        intent = interpret(transcript, self.language)
        logger.debug(f"Intent: {intent}")

        if isinstance(intent, RequestDelete):
            status = Status.DELETE_GUIDANCE if context.privileged else Status.DELETE_DENIED
            return self._outcome(status, intent=intent)

        if isinstance(intent, RecordHazard):
            return self.record_hazard(intent.description, location, intent=intent)

        return self._outcome(Status.UNRECOGNIZED, intent=intent)

    def record_hazard(
        self,
        description: str,
        location:    Optional[Sequence[float]],
        intent:      Optional[Intent] = None,
    ) -> PipelineOutcome:
        try:
            draft = build_record(
                description, location, self.resolver,
                classifier = self.classifier,
                clock      = self.clock,
            )
        except PreconditionError as e:
            logger.info(f"Hazard not recorded: {e}")
            return self._outcome(Status.LOCATION_MISSING, intent=intent)

        result = self.store.create(draft)
        record = result.value
        message = self._recorded_message(record)
        if result.degraded:
            return PipelineOutcome(
                status  = Status.RECORDED_LOCALLY,
                message = self.lexicon.messages['recorded_locally'] + '\n' + message,
                intent  = intent,
                record  = record,
                error   = result.error,
            )
        return PipelineOutcome(
            status  = Status.RECORDED,
            message = message,
            intent  = intent,
            record  = record,
        )

    # ── ENTRY: LIVE VOICE ────────────────────────────────────
    async def listen(
        self,
        recognizer: SpeechRecognizer,
        location:   Optional[Sequence[float]],
        context:    PrivilegeContext,
        config:     Optional[RecognitionConfig] = None,
    ) -> PipelineOutcome:
        """
        One recognition session, one outcome. The session is cancelled if
        the caller abandons this coroutine.
        """
        session = start_recognition(
            recognizer, config or RecognitionConfig.for_language(self.language)
        )
        try:
            heard = await session.wait()
        finally:
            if session.active:
                session.cancel()

        if heard.kind is OutcomeKind.CANCELLED:
            return self._outcome(Status.CANCELLED)
        if heard.kind is OutcomeKind.NO_MATCH:
            return self._outcome(Status.NO_SPEECH)
        if heard.kind is OutcomeKind.ERROR:
            return PipelineOutcome(
                status  = Status.RECOGNITION_FAILED,
                message = self.lexicon.messages['recognition_failed'].format(error=heard.error),
                error   = heard.error,
            )

        return await asyncio.to_thread(
            self.handle_transcript, heard.transcript, location, context
        )

    # ── MESSAGES ─────────────────────────────────────────────
    def _outcome(self, status: Status, intent: Optional[Intent] = None) -> PipelineOutcome:
        return PipelineOutcome(
            status  = status,
            message = self.lexicon.messages[status.value],
            intent  = intent,
        )

    def _recorded_message(self, record: HazardRecord) -> str:
        msgs = self.lexicon.messages
        text = msgs['recorded'].format(
            description = record.text,
            address     = record.address,
            level       = self.lexicon.level_names.get(record.danger, record.danger),
        )
        if record.reason:
            text += msgs['reason'].format(reason=record.reason)
        return text


def build_pipeline(config: Dict[str, Any]) -> HazardPipeline:
    """Wire concrete adapters from a loaded config dict."""
    from roadwatch.config import remote_configured
    from roadwatch.geocoding.nominatim_adapter import NominatimAdapter
    from roadwatch.store.firestore_adapter import FirestoreAdapter
    from roadwatch.store.local_cache import SqliteLocalCache

    remote = None
    if remote_configured(config):
        remote = FirestoreAdapter(
            project_id  = config['firebase_project_id'],
            api_key     = config.get('firebase_api_key') or None,
            collection  = config.get('collection', 'hazards'),
            timeout_sec = int(config.get('remote_timeout_sec', 15)),
        )
    else:
        logger.warning("Remote store not configured — hazards will be saved locally only.")

    language = config.get('language', DEFAULT_LANGUAGE)
    store = HazardStore(
        remote    = remote,
        cache     = SqliteLocalCache(Path(config.get('cache_path', 'roadwatch_cache.db'))),
        cache_key = config.get('cache_key', 'hazards'),
        language  = language,
    )
    resolver = AddressResolver(NominatimAdapter(
        url         = config.get('geocoder_url', 'https://nominatim.openstreetmap.org/reverse'),
        user_agent  = config.get('geocoder_user_agent', 'SmartCityAI/1.0'),
        timeout_sec = int(config.get('geocoder_timeout_sec', 10)),
    ))
    return HazardPipeline(store=store, resolver=resolver, language=language)
