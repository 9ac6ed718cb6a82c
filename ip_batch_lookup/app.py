# ip_batch_lookup/app.py
import asyncio
import json
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, StreamingResponse

from .config import Settings
from .geo.ipapi import IpApiClient
from .page import render_index
from .workers.job_manager import JobManager, LookupRejected

logger = logging.getLogger(__name__)

INTERNAL_ERROR = 'Internal server error, please try again later.'

settings = Settings.from_env()

# --- Background tasks: keep a reference so they are not garbage collected mid-flight ---
_background_tasks = set()

def schedule_task(coro):
    """
    Schedule coro as a background task and attach a done-callback that
    logs exceptions and removes the task from the active set.
    """
    task = asyncio.create_task(coro)
    _background_tasks.add(task)

    def _cb(t):
        _background_tasks.discard(t)
        if t.cancelled():
            return
        exc = t.exception()
        if exc is not None:
            logger.error("Background task exception", exc_info=(type(exc), exc, exc.__traceback__))

    task.add_done_callback(_cb)
    return task

def _install_loop_exception_handler():
    loop = asyncio.get_running_loop()

    def _exc_handler(loop, context):
        msg = context.get('message') or str(context.get('exception'))
        logger.error('Loop exception: %s', msg)

    loop.set_exception_handler(_exc_handler)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Startup: shared upstream client and job manager singletons ---
    _install_loop_exception_handler()
    app.state.ipapi = IpApiClient(url=settings.ipapi_url, timeout=settings.ipapi_timeout)
    app.state.job_manager = JobManager(app.state.ipapi, settings)
    logger.info("JobManager initialized (batch=%d, pace=%dms, max=%d)",
                settings.batch_size, settings.pace_ms, settings.max_ips)
    yield

    await shutdown_resources(app.state.ipapi)

async def shutdown_resources(client):
    """Cancel in-flight background lookups, then close the upstream session."""
    tasks = list(_background_tasks)
    if tasks:
        for t in tasks:
            t.cancel()
        # give tasks a short grace period to finish cancellations
        await asyncio.wait(tasks, timeout=0.2)

    if client is not None:
        await client.close()
        logger.info("ip-api session closed")

app = FastAPI(title="Batch IP lookup", lifespan=lifespan)

# Placeholders for singletons that will be created on startup
app.state.ipapi = None
app.state.job_manager = None

def get_job_manager() -> JobManager:
    jm = getattr(app.state, "job_manager", None)
    if jm is None:
        # lazy fallback when the app is served without startup events
        client = app.state.ipapi or IpApiClient(url=settings.ipapi_url, timeout=settings.ipapi_timeout)
        app.state.ipapi = client
        jm = JobManager(client, settings)
        app.state.job_manager = jm
        logger.info("Lazily created JobManager")
    return jm

async def read_input(request: Request):
    """Return (input, None) or (None, error response)."""
    too_large = JSONResponse(status_code=413, content={"error": "Request body too large."})
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > settings.max_body_bytes:
        return None, too_large

    # chunked uploads carry no Content-Length, so count while reading
    chunks = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > settings.max_body_bytes:
            return None, too_large
        chunks.append(chunk)
    body = b"".join(chunks)
    if not body.strip():
        return '', None
    try:
        payload = json.loads(body)
    except (ValueError, RecursionError):
        # RecursionError: nesting too deep for the decoder
        logger.info("Lookup: invalid JSON payload")
        return None, JSONResponse(status_code=400, content={"error": "Invalid JSON body."})
    if not isinstance(payload, dict):
        return '', None
    return payload.get('input') or '', None

# --- Pages ---
@app.get('/', response_class=HTMLResponse)
async def index():
    return HTMLResponse(render_index(settings.max_ips))

@app.get('/healthz')
async def health():
    return JSONResponse({'status':'ok'})

# --- Lookup API ---
@app.post('/api/lookup')
async def lookup(request: Request):
    raw, error = await read_input(request)
    if error is not None:
        return error

    def _progress(done, total):
        logger.debug("Lookup progress %d/%d", done, total)

    try:
        envelope = await get_job_manager().handle_lookup(raw, on_progress=_progress)
    except LookupRejected as e:
        return JSONResponse(status_code=400, content=e.to_dict())
    except Exception:
        logger.exception("Lookup: unexpected failure")
        return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR})
    return JSONResponse(envelope)

@app.post('/api/lookup/stream')
async def lookup_stream(request: Request):
    """
    Same lookup, streamed as newline-delimited JSON:
    - {"event": "progress", "done": n, "total": m} after every batch
    - then one {"event": "result", ...envelope} or {"event": "error", "error": ...}
    Validation errors are still plain 400 responses.
    """
    raw, error = await read_input(request)
    if error is not None:
        return error

    jm = get_job_manager()
    try:
        parsed = jm.prepare(raw)
    except LookupRejected as e:
        return JSONResponse(status_code=400, content=e.to_dict())

    queue = asyncio.Queue()

    def _progress(done, total):
        queue.put_nowait({'event': 'progress', 'done': done, 'total': total})

    async def _run():
        try:
            envelope = await jm.run(parsed, on_progress=_progress)
        except Exception:
            logger.exception("Lookup stream: unexpected failure")
            queue.put_nowait({'event': 'error', 'error': INTERNAL_ERROR})
            return
        queue.put_nowait({'event': 'result', **envelope})

    # the lookup keeps running even if the client goes away
    schedule_task(_run())

    async def _events():
        while True:
            msg = await queue.get()
            yield json.dumps(msg, ensure_ascii=False) + '\n'
            if msg['event'] != 'progress':
                break

    return StreamingResponse(_events(), media_type='application/x-ndjson')

def main():
    import uvicorn

    logging.basicConfig(level=settings.log_level,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    logger.info("Batch IP Lookup running on http://localhost:%d", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())

if __name__ == '__main__':
    main()
