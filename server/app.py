"""
FastAPI application for the PlantUML class-diagram parser.

Provides a REST API that parses class-diagram text into the nested-tree
AST, and stores named diagrams (source + tree) for later retrieval.
"""

from __future__ import annotations

import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from classdiagram.diagram_ast import Nodes, to_tree
from classdiagram.errors import PumlError
from classdiagram.plantuml_to_ast import convert_plantuml_to_ast
from server.store import DiagramStore


def _load_env() -> None:
    env_path = Path(".env")
    if not env_path.exists():
        for parent in Path.cwd().parents:
            candidate = parent / ".env"
            if candidate.exists():
                env_path = candidate
                break
    if env_path.exists():
        load_dotenv(env_path)


_load_env()

store = DiagramStore()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    print(f"[app] Diagram store at {store.path}", file=sys.stderr)
    try:
        yield
    finally:
        print("[app] Shutting down…", file=sys.stderr)
        store.save()
        print("[app] Shutdown complete", file=sys.stderr)


app = FastAPI(title="PlantUML Class Diagram Parser", lifespan=lifespan)


def _bad_diagram(exc: PumlError) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail={"error": type(exc).__name__, "message": str(exc)},
    )


async def _json_object(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="request body must be a JSON object")
    return body


def _parse_or_400(source) -> Nodes:
    if not isinstance(source, str) or not source.strip():
        raise HTTPException(status_code=400, detail="source is required")
    try:
        return convert_plantuml_to_ast(source)
    except PumlError as exc:
        raise _bad_diagram(exc)


# ──────────────────────────────────────────────────────────────────
# REST API: Parsing
# ──────────────────────────────────────────────────────────────────

@app.get("/api/health")
async def health():
    return {"status": "ok"}


@app.post("/api/parse")
async def parse_diagram(request: Request):
    body = await _json_object(request)
    nodes = _parse_or_400(body.get("source"))
    try:
        entities = to_tree(nodes)
    except PumlError as exc:
        raise _bad_diagram(exc)
    return JSONResponse(content={"entities": entities})


# ──────────────────────────────────────────────────────────────────
# REST API: Stored diagrams
# ──────────────────────────────────────────────────────────────────

@app.get("/api/diagrams")
async def list_diagrams():
    return JSONResponse(content=store.list_diagrams())


@app.post("/api/diagrams")
async def add_diagram(request: Request):
    body = await _json_object(request)
    name = body.get("name")
    if not name:
        raise HTTPException(status_code=400, detail="name is required")
    source = body.get("source")
    nodes = _parse_or_400(source)
    try:
        entry = store.put_diagram(str(name), source, nodes)
    except PumlError as exc:
        raise _bad_diagram(exc)
    print(f"[app] Stored diagram '{name}' ({len(nodes)} entities)", file=sys.stderr)
    return JSONResponse(content=entry, status_code=201)


@app.get("/api/diagrams/{name}")
async def get_diagram(name: str):
    entry = store.get_diagram(name)
    if entry is None:
        raise HTTPException(status_code=404, detail="Diagram not found")
    return JSONResponse(content=entry)


@app.delete("/api/diagrams/{name}")
async def remove_diagram(name: str):
    if store.remove_diagram(name):
        return JSONResponse(content={"removed": name})
    raise HTTPException(status_code=404, detail="Diagram not found")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "server.app:app",
        host=os.environ.get("PUML_HOST", "0.0.0.0"),
        port=int(os.environ.get("PUML_PORT", "8000")),
    )
