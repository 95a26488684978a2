import os
import time
from typing import Optional
from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from loguru import logger
from dotenv import load_dotenv
from pydantic import BaseModel

# Import our modules
from graph.dispatcher import WebhookDispatcher
from tools.accounts import AccountResolver
from tools.activities import ActivityRecorder
from tools.airmeet import AirmeetClient
from tools.devrev import DevRevClient
from tools.errors import InvalidEmail, InvalidPayload, MissingCTAFields
from tools.notifications import NotificationService
from tools.scoring import CTA_CLICK, EVENT_ENTRY, REGISTRATION

# Load environment variables
load_dotenv()

# Configure logging
logger.add("logs/app.log", rotation="1 day", retention="7 days", level="INFO")

# Initialize FastAPI app
app = FastAPI(
    title="Airmeet DevRev Sync",
    description="Syncs Airmeet registrations and engagement into DevRev accounts and contacts",
    version="1.0.0"
)

CLIENT_ERRORS = (InvalidPayload, InvalidEmail, MissingCTAFields)


def build_dispatcher() -> WebhookDispatcher:
    """Wire clients and services; the result is shared by every request in this process."""
    devrev = DevRevClient()
    return WebhookDispatcher(
        airmeet=AirmeetClient(),
        resolver=AccountResolver(devrev),
        recorder=ActivityRecorder(devrev),
        notifier=NotificationService(devrev),
    )


dispatcher = build_dispatcher()


class WebhookRegistrationRequest(BaseModel):
    base_url: Optional[str] = None
    airmeet_id: Optional[str] = None


async def _read_json(req: Request):
    try:
        return await req.json()
    except ValueError:
        return None


async def _handle_webhook(kind: str, req: Request) -> JSONResponse:
    start_time = time.time()
    payload = await _read_json(req)
    try:
        # Store calls are blocking; keep them off the event loop
        result = await run_in_threadpool(dispatcher.handle, kind, payload)
    except CLIENT_ERRORS as e:
        logger.warning(f"Rejected {kind} webhook: {e}")
        return JSONResponse(status_code=400, content={"status": "error", "message": str(e)})
    except Exception as e:
        logger.error(f"{kind} webhook processing failed: {e}")
        return JSONResponse(status_code=500, content={"status": "error", "message": str(e)})

    processing_time = time.time() - start_time
    logger.info(f"{kind} webhook completed in {processing_time:.2f}s: {result['contact_id']}")
    return JSONResponse(status_code=200, content=result)


@app.post("/webhooks/registration")
async def registration_webhook(req: Request):
    """Airmeet attendee-added webhook."""
    return await _handle_webhook(REGISTRATION, req)


@app.post("/webhooks/event-entry")
async def event_entry_webhook(req: Request):
    """Airmeet attendee-entered webhook."""
    return await _handle_webhook(EVENT_ENTRY, req)


@app.post("/webhooks/cta-click")
async def cta_click_webhook(req: Request):
    """Airmeet CTA-clicked webhook."""
    return await _handle_webhook(CTA_CLICK, req)


@app.post("/admin/webhooks/register")
def register_webhooks(body: WebhookRegistrationRequest):
    """Register this service's three webhooks with Airmeet."""
    base_url = body.base_url or os.getenv("WEBHOOK_BASE_URL")
    if not base_url:
        raise HTTPException(status_code=400, detail="base_url or WEBHOOK_BASE_URL is required")

    try:
        registered = dispatcher.register_webhooks(base_url, body.airmeet_id)
    except Exception as e:
        raise HTTPException(status_code=502, detail=f"Webhook registration failed: {e}")
    return {"status": "success", "registered": len(registered)}


@app.get("/admin/webhooks")
def list_webhooks(airmeet_id: Optional[str] = None):
    """List webhooks Airmeet currently has registered."""
    try:
        return {"webhooks": dispatcher.list_webhooks(airmeet_id)}
    except Exception as e:
        raise HTTPException(status_code=502, detail=f"Webhook listing failed: {e}")


@app.get("/admin/registrations/{airmeet_id}/{email}")
def get_registration(airmeet_id: str, email: str):
    """Look up the registration record synced for one attendee (for debugging)."""
    registration = dispatcher.get_registration(airmeet_id, email)
    if not registration:
        raise HTTPException(status_code=404, detail="Registration not found")
    return registration


@app.get("/health")
def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "version": "1.0.0",
        "services": {
            "airmeet": "authenticated" if dispatcher.airmeet.access_token else "not_authenticated",
            "workflow": "ready"
        }
    }


# Error handlers
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"status": "error", "message": "Internal server error"}
    )


if __name__ == "__main__":
    import uvicorn

    # Create logs directory if it doesn't exist
    os.makedirs("logs", exist_ok=True)

    logger.info("Starting Airmeet DevRev Sync")

    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
