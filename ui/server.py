"""FastAPI server exposing session memory to the sentence-builder UI."""

import logging

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from assistant import config
from memory.schema import MemoryUpdate
from memory.service import InvalidMemoryInput, get_service

logger = logging.getLogger(__name__)

app = FastAPI(title="Sentence Helper Memory")


class SpokenWords(BaseModel):
    words: list[str]


class SpokenUtterance(BaseModel):
    utterance: str = Field(min_length=1)


@app.exception_handler(InvalidMemoryInput)
async def invalid_memory_input(request: Request, exc: InvalidMemoryInput):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.get("/api/health")
def health():
    """Report whether durable persistence is active."""
    return {"status": "ok", "durable_store": get_service().store.durable_available}


@app.get("/api/tools")
def list_tools():
    """List all memory tools exposed to the planner."""
    from tools import get_all_tools

    tools = get_all_tools()
    return [
        {"name": t.name, "description": t.description}
        for t in tools
    ]


@app.get("/api/memory/{session_id}")
def read_memory(session_id: str):
    """Return the session's full memory record."""
    return get_service().read_memory(session_id).to_json_dict()


@app.patch("/api/memory/{session_id}")
def write_memory(session_id: str, updates: MemoryUpdate):
    """Merge a partial update into the session's memory."""
    return {"success": get_service().write_memory_partial(session_id, updates)}


@app.post("/api/memory/{session_id}/words")
def record_words(session_id: str, body: SpokenWords):
    """Count the words of a spoken sentence."""
    return {"success": get_service().record_spoken_words(session_id, body.words)}


@app.post("/api/memory/{session_id}/utterances")
def record_utterance(session_id: str, body: SpokenUtterance):
    """Count the word pairs of a spoken sentence and remember it."""
    return {"success": get_service().record_utterance(session_id, body.utterance)}


@app.get("/api/memory/{session_id}/forecast")
def forecast(session_id: str):
    """Return the mastery forecast for the session."""
    return [
        entry.model_dump(mode="json", by_alias=True)
        for entry in get_service().get_forecast(session_id)
    ]


@app.on_event("startup")
async def startup_event():
    """Configure logging and initialize the memory service (and its schema).

    Building the service connects to the database, so it runs on the threadpool.
    """
    logging.basicConfig(level=config.LOG_LEVEL)
    service = await run_in_threadpool(get_service)
    logger.info(
        "Memory service ready (durable store %s)",
        "enabled" if service.store.durable_available else "disabled",
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
