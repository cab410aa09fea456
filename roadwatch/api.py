"""
roadwatch/api.py
─────────────────────────────────────────────────────────────────────────────
Roadwatch — Dual-mode API layer

TWO USAGE MODES:
  1. Importable module:
         from roadwatch.api import RoadwatchAPI
         api = RoadwatchAPI.from_config()
         hazards = api.list_hazards()

  2. FastAPI HTTP server (map client via fetch()):
         python -m roadwatch.api                   # default: port 8766
         python -m roadwatch.api --port 9000
         uvicorn roadwatch.api:app --port 8766

ENDPOINTS:
  GET    /hazards          — all hazards, newest first (remote, else local cache)
  POST   /hazards/voice    — one recognized transcript + location fix → outcome
  DELETE /hazards/{id}     — delete one hazard (admin only)
  DELETE /hazards          — delete every hazard (admin only)
  POST   /classify         — danger tier + evidence for a piece of text
  GET    /health           — liveness + remote/local mode

AUTHORIZATION:
  Identity arrives already authenticated in the X-User-Email header
  (set by the auth proxy in front of this service). Privilege is a
  case-insensitive match against config admin_email, nothing more.

ERROR MAPPING:
  PrivilegeRequiredError → 403   PreconditionError → 400
  RemoteStoreError       → 502  {"code": …, "message": …}
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from roadwatch.config import is_privileged, load_config, validate_config
from roadwatch.detectors.danger_classifier import classifier_for
from roadwatch.errors import PreconditionError, PrivilegeRequiredError, RemoteStoreError
from roadwatch.models.record import PrivilegeContext
from roadwatch.pipeline import HazardPipeline, build_pipeline
from roadwatch.store.hazard_store import record_to_dict

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


# ═══════════════════════════════════════════════════════════════════════════
# IMPORTABLE CLASS
# ═══════════════════════════════════════════════════════════════════════════

class RoadwatchAPI:
    """
    Pure-Python facade over HazardPipeline + HazardStore.
    No HTTP layer required: import and call directly.
    Every method returns JSON-ready dicts.
    """

    def __init__(self, pipeline: HazardPipeline, admin_email: str = ""):
        self.pipeline    = pipeline
        self.admin_email = admin_email

    @classmethod
    def from_config(cls, project_root: Optional[Path] = None) -> "RoadwatchAPI":
        config = load_config(project_root)
        validate_config(config)
        return cls(build_pipeline(config), admin_email=config.get("admin_email", ""))

    @property
    def store(self):
        return self.pipeline.store

    def context_for(self, email: Optional[str]) -> PrivilegeContext:
        return PrivilegeContext(
            privileged = is_privileged(email, self.admin_email),
            identity   = email,
        )

    # ── QUERY ─────────────────────────────────────────────────────────────

    def list_hazards(self) -> Dict[str, Any]:
        result = self.store.list_hazards()
        hazards: List[Dict[str, Any]] = [record_to_dict(r) for r in result.value]
        return {
            "origin":   result.origin.value,
            "degraded": result.degraded,
            "count":    len(hazards),
            "hazards":  hazards,
        }

    def classify(self, text: str) -> Dict[str, Any]:
        result = classifier_for(self.pipeline.language).classify(text)
        return {
            "tier":     result.tier,
            "score":    result.score,
            "evidence": [asdict(e) for e in result.evidence],
        }

    # ── INTAKE ────────────────────────────────────────────────────────────

    def submit_transcript(
        self,
        transcript: str,
        lat:        Optional[float] = None,
        lon:        Optional[float] = None,
        email:      Optional[str]   = None,
    ) -> Dict[str, Any]:
        location = (lat, lon) if lat is not None and lon is not None else None
        outcome  = self.pipeline.handle_transcript(
            transcript, location, self.context_for(email)
        )
        return {
            "status":  outcome.status.value,
            "message": outcome.message,
            "hazard":  record_to_dict(outcome.record) if outcome.record else None,
            "error":   outcome.error,
        }

    # ── DELETE (privileged) ───────────────────────────────────────────────

    def delete_hazard(self, hazard_id: str, email: Optional[str] = None) -> Dict[str, Any]:
        result = self.store.delete_one(hazard_id, self.context_for(email))
        return {"status": "ok", "deleted": result.deleted,
                "origin": result.origin.value, "ids": result.ids}

    def delete_all(self, email: Optional[str] = None) -> Dict[str, Any]:
        result = self.store.delete_all(self.context_for(email))
        return {"status": "ok", "deleted": result.deleted,
                "origin": result.origin.value, "ids": result.ids}


# ═══════════════════════════════════════════════════════════════════════════
# FASTAPI HTTP APP
# ═══════════════════════════════════════════════════════════════════════════

class VoiceRequest(BaseModel):
    transcript: str
    lat:        Optional[float] = Field(None, ge=-90,  le=90)
    lon:        Optional[float] = Field(None, ge=-180, le=180)


class ClassifyRequest(BaseModel):
    text: str = ""


def build_app(api: Optional[RoadwatchAPI] = None) -> FastAPI:
    """Build the FastAPI application. Config is loaded from cwd when api is None."""
    _api = api or RoadwatchAPI.from_config()

    _app = FastAPI(
        title       = "Roadwatch API",
        description = "Voice hazard intake — classification, geocoding, storage",
        version     = API_VERSION,
        docs_url    = "/docs",
        redoc_url   = None,
    )

    _app.add_middleware(
        CORSMiddleware,
        allow_origins     = ["*"],
        allow_methods     = ["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers     = ["Content-Type", "X-User-Email"],
        allow_credentials = False,
    )

    @_app.get("/hazards", summary="List hazards, newest first")
    def get_hazards():
        return _api.list_hazards()

    @_app.post("/hazards/voice", summary="Submit one recognized utterance")
    def post_voice(req: VoiceRequest, x_user_email: Optional[str] = Header(None)):
        """
        Runs the intake pipeline on a final transcript.
        status is one of: recorded, recorded_locally, location_missing,
        delete_guidance, delete_denied, unrecognized.
        """
        return _api.submit_transcript(req.transcript, req.lat, req.lon, x_user_email)

    @_app.delete("/hazards/{hazard_id}", summary="Delete one hazard (admin)")
    def delete_hazard(hazard_id: str, x_user_email: Optional[str] = Header(None)):
        try:
            return _api.delete_hazard(hazard_id, x_user_email)
        except PrivilegeRequiredError as exc:
            raise HTTPException(status_code=403, detail=str(exc))
        except PreconditionError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except RemoteStoreError as exc:
            raise HTTPException(status_code=502, detail={"code": exc.code, "message": exc.message})

    @_app.delete("/hazards", summary="Delete all hazards (admin)")
    def delete_all(x_user_email: Optional[str] = Header(None)):
        try:
            return _api.delete_all(x_user_email)
        except PrivilegeRequiredError as exc:
            raise HTTPException(status_code=403, detail=str(exc))
        except RemoteStoreError as exc:
            raise HTTPException(status_code=502, detail={"code": exc.code, "message": exc.message})

    @_app.post("/classify", summary="Danger tier for text")
    def post_classify(req: ClassifyRequest):
        return _api.classify(req.text)

    @_app.get("/health", summary="Health check")
    def health():
        return {
            "status":   "ok",
            "remote":   _api.store.remote is not None,
            "language": _api.pipeline.language,
            "version":  API_VERSION,
        }

    return _app


# Module-level app instance, used by uvicorn roadwatch.api:app
app = build_app()


# ═══════════════════════════════════════════════════════════════════════════
# CLI ENTRYPOINT — python -m roadwatch.api
# ═══════════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    import argparse

    import uvicorn

    parser = argparse.ArgumentParser(
        prog        = "roadwatch.api",
        description = "Roadwatch API Server",
    )
    parser.add_argument("--port", type=int, default=8766,
                        help="Port to bind (default: 8766)")
    parser.add_argument("--host", type=str, default="127.0.0.1",
                        help="Host to bind (default: 127.0.0.1)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level   = logging.DEBUG if args.verbose else logging.INFO,
        format  = "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt = "%H:%M:%S",
    )

    print(f"""
+--------------------------------------------------+
|   Roadwatch API Server v{API_VERSION}
+--------------------------------------------------+
|  Local:    http://{args.host}:{args.port}
|  Docs:     http://{args.host}:{args.port}/docs
|  Health:   http://{args.host}:{args.port}/health
+--------------------------------------------------+
""")

    uvicorn.run(app, host=args.host, port=args.port, log_level="info")
