"""Silsilah - Genealogy Browser Backend.

FastAPI server exposing family tree hierarchies and relationship paths
over an in-memory family snapshot.
"""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("SILSILAH_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("silsilah")

from fastapi import FastAPI, HTTPException, UploadFile, File, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from models import (
    FamilySnapshot,
    Individual,
    Orientation,
    PathNode,
    SnapshotError,
    load_snapshot,
    parse_snapshot,
)
from family_utils import (
    build_hierarchy,
    direct_relations,
    find_individual,
    find_relationship_path,
    find_root_ancestors,
    find_youngest_generation,
    get_all_individuals,
    tree_to_d3,
)
from kinship_terms import annotate_with_kinship_terms

DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173"

# Global state
current_snapshot: FamilySnapshot | None = None


def _cors_origins() -> list[str]:
    raw = os.getenv("SILSILAH_CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - load the configured family data file, if any."""
    global current_snapshot

    data_file = os.getenv("SILSILAH_DATA_FILE")
    if data_file:
        logger.info(f"Loading family data from {data_file}...")
        try:
            current_snapshot = load_snapshot(data_file)
        except SnapshotError as e:
            logger.error(f"Failed to load family data: {e}")
        else:
            logger.info(
                f"Loaded {len(current_snapshot.individuals)} individuals and "
                f"{len(current_snapshot.families)} families"
            )

    yield

    current_snapshot = None


# Create FastAPI app
app = FastAPI(
    title="Silsilah",
    description="Genealogy browser: family trees and relationship paths",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class FamilyUploadResponse(BaseModel):
    """Response after uploading a family data file."""
    message: str
    individual_count: int
    family_count: int
    individuals: list[Individual]


class TreeResponse(BaseModel):
    """Response containing a family tree structure."""
    orientation: Orientation
    tree: dict | None
    root_person: Individual | None


class RelationshipResponse(BaseModel):
    """Response containing the relationship path between two people."""
    found: bool
    hops: int | None
    path: list[PathNode] | None


def _require_snapshot() -> FamilySnapshot:
    if current_snapshot is None:
        logger.warning("Attempted a query without family data loaded")
        raise HTTPException(status_code=400, detail="No family data loaded. Upload one first.")
    return current_snapshot


def _require_person(snapshot: FamilySnapshot, person_id: str) -> Individual:
    individual = snapshot.individuals.get(person_id)
    if individual is None:
        logger.warning(f"Person {person_id} not found")
        raise HTTPException(status_code=404, detail=f"Person with ID {person_id} not found")
    return individual


# Endpoints

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    logger.debug("Health check requested")
    return {
        "status": "healthy",
        "data_loaded": current_snapshot is not None,
    }


@app.post("/upload-family", response_model=FamilyUploadResponse)
async def upload_family(file: UploadFile = File(...)):
    """Upload and parse a JSON family data file."""
    global current_snapshot

    logger.info(f"Received family data upload: {file.filename}")

    if not file.filename or not file.filename.endswith(".json"):
        logger.warning(f"Invalid file type: {file.filename}")
        raise HTTPException(status_code=400, detail="File must be a JSON family data file (.json)")

    content = await file.read()
    logger.debug(f"Read {len(content)} bytes from file")

    try:
        snapshot = parse_snapshot(content)
    except SnapshotError as e:
        logger.error(f"Failed to parse family data: {e}")
        raise HTTPException(status_code=400, detail=f"Failed to parse family data: {e}")

    current_snapshot = snapshot
    individuals = get_all_individuals(snapshot.individuals)
    logger.info(f"Successfully loaded {len(individuals)} individuals")

    return FamilyUploadResponse(
        message=f"Successfully loaded family data: {file.filename}",
        individual_count=len(individuals),
        family_count=len(snapshot.families),
        individuals=individuals,
    )


@app.get("/individuals")
async def get_individuals(q: str | None = None):
    """Get all individuals, or the best match for a name or ID query."""
    snapshot = _require_snapshot()

    if q:
        match = find_individual(snapshot.individuals, q)
        logger.debug(f"Search '{q}' matched {match.id if match else None}")
        return {"individuals": [match] if match else []}

    individuals = get_all_individuals(snapshot.individuals)
    logger.info(f"Returning {len(individuals)} individuals")
    return {"individuals": individuals}


@app.get("/individuals/{person_id}")
async def get_individual(person_id: str):
    """Get the full profile of one person."""
    snapshot = _require_snapshot()
    return _require_person(snapshot, person_id)


@app.get("/individuals/{person_id}/relations")
async def get_relations(person_id: str):
    """Get the direct relations (children, spouses, parents, siblings) of a person."""
    snapshot = _require_snapshot()
    relations = direct_relations(person_id, snapshot.individuals, snapshot.families)
    if relations is None:
        raise HTTPException(status_code=404, detail=f"Person with ID {person_id} not found")
    return {"relations": relations}


@app.get("/tree/{person_id}", response_model=TreeResponse)
async def get_tree(
    person_id: str,
    orientation: Orientation = Orientation.DESCENDANTS,
    max_depth: int | None = Query(default=None, ge=0),
):
    """Get the descendant or ancestor tree for a specific person."""
    snapshot = _require_snapshot()

    logger.info(f"Building {orientation.value} tree for person_id={person_id}, max_depth={max_depth}")

    tree = build_hierarchy(person_id, snapshot.individuals, snapshot.families, orientation, max_depth)
    if tree is None:
        logger.warning(f"Person {person_id} not found")
        raise HTTPException(status_code=404, detail=f"Person with ID {person_id} not found")

    logger.debug(f"Built {orientation.value} tree for {person_id} with {tree.size()} nodes")
    return TreeResponse(orientation=orientation, tree=tree_to_d3(tree), root_person=tree.individual)


@app.get("/relationship", response_model=RelationshipResponse)
async def get_relationship(start: str, end: str):
    """Find the shortest relationship path between two people."""
    snapshot = _require_snapshot()
    _require_person(snapshot, start)
    _require_person(snapshot, end)

    logger.info(f"Finding relationship path from {start} to {end}")

    path = find_relationship_path(start, end, snapshot.individuals, snapshot.families)
    if path is None:
        logger.info(f"No relationship path between {start} and {end}")
        return RelationshipResponse(found=False, hops=None, path=None)

    return RelationshipResponse(found=True, hops=len(path) - 1, path=annotate_with_kinship_terms(path))


@app.get("/roots")
async def get_root_ancestors():
    """Get individuals without known parents."""
    snapshot = _require_snapshot()
    roots = find_root_ancestors(snapshot.individuals, snapshot.families)
    logger.info(f"Found {len(roots)} root ancestors")
    return {"individuals": roots}


@app.get("/youngest")
async def get_youngest_generation():
    """Get individuals from the youngest generation (good starting points)."""
    snapshot = _require_snapshot()
    youngest = find_youngest_generation(snapshot.individuals, snapshot.families)
    logger.info(f"Found {len(youngest)} individuals in youngest generation")
    return {"individuals": youngest}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
