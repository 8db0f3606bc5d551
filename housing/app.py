"""FastAPI application: Twilio voice webhooks for the housing line.

Endpoints:

  POST /twilio/voice          Start of call: greeting + speech <Gather>
  POST /twilio/handle-intent  One caller turn: next question or results
  GET  /health                Health check
  GET  /api/sessions          In-progress calls (admin)
  GET  /api/sessions/{id}     One call's slots and transcript (admin)

The Twilio flow:
  1. Incoming call hits POST /twilio/voice
  2. We return TwiML that speaks the greeting inside <Gather input="speech">
  3. Twilio transcribes the reply and POSTs SpeechResult to /twilio/handle-intent
  4. We answer with another <Gather> (continue) or <Say>...<Hangup/> (conclude)
"""

from __future__ import annotations

# Load .env into os.environ early so every Settings() sees it.
from dotenv import load_dotenv
load_dotenv()

import logging
import secrets
import time
from contextlib import asynccontextmanager
from typing import Optional

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)-20s %(levelname)-7s %(message)s",
)

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response

from listings.catalog import CATALOG

from housing.auth import require_admin_token
from housing.config import Settings, settings
from housing.dialogue import DialogueMachine
from housing.extraction.base import OfflinePreferenceExtractor, PreferenceExtractor
from housing.notify.base import LoggingNotifier, Notifier
from housing.session import SessionStore, redact_pii
from housing.twiml import gather_response, hangup_response

log = logging.getLogger("housing.app")

_START_TIME = time.time()

TURN_PATH = "/twilio/handle-intent"
DISCONNECT_NOTICE = "If you are disconnected, we will text you the best options."


def build_machine(config: Settings = settings) -> DialogueMachine:
    """Wire a DialogueMachine from configuration.

    Missing credentials select the offline extractor / logging notifier;
    ``Settings.validate_startup`` decides whether that is allowed.
    """
    extractor: PreferenceExtractor
    if config.openai_api_key:
        from housing.extraction.openai_extractor import OpenAIPreferenceExtractor
        extractor = OpenAIPreferenceExtractor(
            api_key=config.openai_api_key,
            model=config.extraction_model,
            timeout=config.extraction_timeout_seconds,
        )
    else:
        extractor = OfflinePreferenceExtractor()

    notifier: Notifier
    if config.sms_configured:
        from housing.notify.twilio_sms import TwilioSmsNotifier
        notifier = TwilioSmsNotifier(
            account_sid=config.twilio_account_sid,
            auth_token=config.twilio_auth_token,
            from_number=config.twilio_phone_number,
        )
    else:
        notifier = LoggingNotifier()

    return DialogueMachine(
        store=SessionStore(),
        extractor=extractor,
        notifier=notifier,
        catalog=CATALOG,
        max_turns=config.max_turns,
        extraction_timeout=config.extraction_timeout_seconds,
        tie_break=config.ranking_tie_break,
    )


def _twiml(content: str) -> Response:
    return Response(content=content, media_type="application/xml")


def _resolve_call_id(form, request: Request) -> tuple[str, bool]:
    """Return (call_id, synthetic).

    Twilio always sends CallSid; a request without one still gets a
    synthetic id so the conversation can proceed as a fresh session.
    Synthetic ids travel in the action URL between turns.
    """
    call_sid = str(form.get("CallSid") or "").strip()
    if call_sid:
        return call_sid, False
    carried = request.query_params.get("call_id", "").strip()
    if carried:
        return carried, True
    call_id = f"anon-{secrets.token_urlsafe(12)}"
    log.warning("Request without CallSid, using synthetic id %s", call_id)
    return call_id, True


def _turn_action(call_id: str, synthetic: bool) -> str:
    return f"{TURN_PATH}?call_id={call_id}" if synthetic else TURN_PATH


def create_app(
    machine: Optional[DialogueMachine] = None,
    shutdown_grace: Optional[float] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    On shutdown, result texts still in flight get ``shutdown_grace``
    seconds (default SHUTDOWN_GRACE_SECONDS) to finish sending.
    """
    grace = settings.shutdown_grace_seconds if shutdown_grace is None else shutdown_grace

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.machine.drain_notifications(timeout=grace)

    app = FastAPI(
        lifespan=lifespan,
        title="Student Housing Voice Line",
        description="Voice-driven housing preference collection with SMS results",
        version="0.1.0",
    )
    app.state.machine = machine or build_machine()

    # ── Health check ───────────────────────────────────────────

    @app.get("/health")
    async def health() -> JSONResponse:
        uptime = round(time.time() - _START_TIME, 1)
        return JSONResponse({
            "status": "ok",
            "uptime": uptime,
            "active_calls": len(app.state.machine.store),
        })

    # ── Twilio voice webhooks ──────────────────────────────────

    @app.post("/twilio/voice")
    async def twilio_voice(request: Request) -> Response:
        """Start of call: greet the caller and gather their first answer."""
        form = await request.form()
        call_id, synthetic = _resolve_call_id(form, request)
        greeting = app.state.machine.start_call(call_id)

        log.info(
            "Incoming call %s from %s",
            call_id,
            redact_pii(str(form.get("From") or "")),
        )
        return _twiml(gather_response(greeting, _turn_action(call_id, synthetic), DISCONNECT_NOTICE))

    @app.post(TURN_PATH)
    async def handle_intent(request: Request) -> Response:
        """One caller turn: ask the next question or deliver results."""
        form = await request.form()
        call_id, synthetic = _resolve_call_id(form, request)
        utterance = str(form.get("SpeechResult") or form.get("TranscriptionText") or "")
        contact = str(form.get("From") or "") or None

        outcome = await app.state.machine.handle_turn(call_id, utterance, contact=contact)

        if outcome.is_concluded:
            return _twiml(hangup_response(outcome.speech, outcome.closing))
        return _twiml(gather_response(outcome.speech, _turn_action(call_id, synthetic), DISCONNECT_NOTICE))

    # ── Session inspection API ─────────────────────────────────

    @app.get("/api/sessions", dependencies=[Depends(require_admin_token)])
    async def list_sessions() -> JSONResponse:
        sessions = app.state.machine.store.active()
        return JSONResponse({
            "sessions": [s.to_dict() for s in sessions],
            "count": len(sessions),
        })

    @app.get("/api/sessions/{call_id}", dependencies=[Depends(require_admin_token)])
    async def get_session(call_id: str) -> JSONResponse:
        session = app.state.machine.store.get(call_id)
        if not session:
            return JSONResponse({"error": "Session not found"}, status_code=404)
        return JSONResponse(session.to_dict(detail=True))

    return app


def main() -> None:
    """Validate configuration and serve the app with uvicorn."""
    import uvicorn

    for warning in settings.validate_startup():
        log.warning(warning)

    log_config = uvicorn.config.LOGGING_CONFIG
    log_config["formatters"]["default"]["fmt"] = (
        "%(asctime)s %(name)-12s %(levelname)-8s %(message)s"
    )

    uvicorn.run(
        "housing.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_config=log_config,
    )


# ── Module-level app instance for uvicorn ──────────────────────

app = create_app()


if __name__ == "__main__":
    main()
