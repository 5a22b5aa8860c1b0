"""FastAPI application factory."""

from __future__ import annotations

import json
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

# Load .env file from project root (must be before other imports)
load_dotenv()
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

from rut.api.routes import a109, airports, documents, navaids, routes, waypoints  # noqa: E402
from rut.contracts.document import NavigationDocument  # noqa: E402
from rut.services.navigation_store import NavigationStore  # noqa: E402

logger = logging.getLogger(__name__)


def load_store() -> NavigationStore:
    """Store seeded from ``RUT_DOCUMENT_PATH`` when it points to a document JSON file."""
    store = NavigationStore()
    path = os.environ.get("RUT_DOCUMENT_PATH")
    if not path:
        return store
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.warning("RUT_DOCUMENT_PATH file not found: %s", path)
        return store
    store.replace_document(NavigationDocument.model_validate(data))
    logger.info("Loaded document from %s (%d routes)", path, len(store.routes))
    return store


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the navigation store on startup."""
    app.state.store = load_store()
    yield


app = FastAPI(
    title="Rut API",
    description="A109 route and waypoint interchange",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.environ.get("CORS_ORIGINS", "http://localhost:5173").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(documents.router, prefix="/api")
app.include_router(a109.router, prefix="/api")
app.include_router(routes.router, prefix="/api")
app.include_router(waypoints.router, prefix="/api")
app.include_router(airports.router, prefix="/api")
app.include_router(navaids.router, prefix="/api")


@app.get("/api/health")
async def health():
    store: NavigationStore = app.state.store
    doc = store.document
    return {
        "status": "ok",
        "routes": len(doc.routes),
        "user_airports": len(doc.user_airports),
        "user_navaids": len(doc.user_navaids),
        "user_waypoints": len(doc.user_waypoints),
        "active_route_id": store.active_route_id,
    }
