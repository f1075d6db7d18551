"""
FastAPI REST API for gramwalk.

Serves sentence generation from registered n-gram models, plus the 32-bit
word operations, over HTTP.
"""

import logging
import random
from typing import List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from gramwalk.bitops import ARITY, get_operation
from gramwalk.errors import EmptyModelError, UnknownModelError, UsageError
from gramwalk.model import DEFAULT_MAX_WORDS
from gramwalk.registry import ModelRegistry


logger = logging.getLogger(__name__)

# Upper bound on max_words accepted from clients
MAX_WORDS_LIMIT = 10 * DEFAULT_MAX_WORDS

# Global model registry
registry = ModelRegistry()


# Pydantic models for request/response validation
class ModelInfo(BaseModel):
    """Model metadata."""
    id: str
    object: str = "model"
    n: int
    sentences: int
    nodes: int
    edges: int
    source: Optional[str] = None


class ModelList(BaseModel):
    """List of models."""
    object: str = "list"
    data: List[ModelInfo]


class CreateModelRequest(BaseModel):
    """Request to create a model from corpus text."""
    model_id: str
    corpus: str
    n: int = Field(2, ge=1)


class SentenceRequest(BaseModel):
    """Request body for /v1/sentences endpoint."""
    model: str
    count: int = Field(1, ge=1, le=100)
    max_words: int = Field(DEFAULT_MAX_WORDS, ge=1, le=MAX_WORDS_LIMIT)
    full_start: bool = False


class SentenceResponse(BaseModel):
    """Generated sentences."""
    model: str
    sentences: List[str]


class BitOpRequest(BaseModel):
    """Arguments for a bit operation."""
    args: List[int]


class BitOpResponse(BaseModel):
    """Result of a bit operation."""
    op: str
    args: List[int]
    result: int


# Initialize FastAPI app
app = FastAPI(
    title="gramwalk API",
    description="Random sentences from n-gram models, and 32-bit word operations",
    version="0.1.0"
)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "gramwalk API",
        "version": "0.1.0",
        "endpoints": {
            "models": "/v1/models",
            "sentences": "/v1/sentences",
            "bitops": "/v1/bitops",
            "health": "/health"
        }
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "models_loaded": len(registry),
    }


@app.get("/v1/models", response_model=ModelList)
async def list_models():
    """List all loaded models."""
    return ModelList(data=[ModelInfo(**meta) for meta in registry.list_models()])


@app.get("/v1/models/{model_id}", response_model=ModelInfo)
async def get_model(model_id: str):
    """Get information about a specific model."""
    if not registry.has_model(model_id):
        raise HTTPException(status_code=404, detail=f"Model '{model_id}' not found")
    return ModelInfo(**registry.metadata[model_id])


@app.post("/v1/models/create")
async def create_model(request: CreateModelRequest):
    """Build a model from corpus text."""
    try:
        model = registry.build_model(request.model_id, request.corpus, request.n)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "status": "created",
        "model_id": request.model_id,
        "sentences": model.num_sentences,
    }


@app.delete("/v1/models/{model_id}")
async def delete_model(model_id: str):
    """Remove a model from memory."""
    if not registry.has_model(model_id):
        raise HTTPException(status_code=404, detail=f"Model '{model_id}' not found")

    registry.remove_model(model_id)
    return {"status": "removed", "model_id": model_id}


@app.post("/v1/sentences", response_model=SentenceResponse)
async def create_sentences(request: SentenceRequest):
    """
    Generate sentences by random walk.

    Example:
        ```bash
        curl -X POST http://localhost:8000/v1/sentences \\
          -H "Content-Type: application/json" \\
          -d '{"model": "hugo", "count": 3}'
        ```
    """
    try:
        model = registry.get_model(request.model)
        sentences = [
            model.build_sentence(max_words=request.max_words, full_start=request.full_start)
            for _ in range(request.count)
        ]
    except UnknownModelError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except EmptyModelError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return SentenceResponse(model=request.model, sentences=sentences)


@app.get("/v1/bitops")
async def list_bitops():
    """List available bit operations and their arity."""
    return {"operations": [{"name": name, "arity": arity} for name, arity in ARITY.items()]}


@app.post("/v1/bitops/{op}", response_model=BitOpResponse)
async def evaluate_bitop(op: str, request: BitOpRequest):
    """Evaluate a 32-bit word operation."""
    try:
        fn, arity = get_operation(op)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))

    if len(request.args) != arity:
        raise HTTPException(
            status_code=400,
            detail=f"'{op}' takes {arity} argument(s), got {len(request.args)}"
        )

    try:
        result = fn(*request.args)
    except (ValueError, TypeError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    return BitOpResponse(op=op, args=request.args, result=result)


def start_server(
    host: str = "0.0.0.0",
    port: int = 8000,
    directory: Optional[str] = None,
    n: int = 2,
    seed: Optional[int] = None
):
    """
    Start the gramwalk API server.

    Args:
        host: Host to bind to
        port: Port to bind to
        directory: Corpus directory to load models from at startup
        n: Gram size for directory models
        seed: Seed for the process-wide random generator
    """
    if seed is not None:
        random.seed(seed)

    if directory:
        names = registry.load_directory(directory, n)
        logger.info("Loaded %d models from %s", len(names), directory)

    uvicorn.run(app, host=host, port=port)


def main():
    """Entry point for gramwalk-serve command."""
    import argparse
    import sys

    from gramwalk.repl import setup_logging

    parser = argparse.ArgumentParser(description="gramwalk API Server")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    parser.add_argument("--directory", help="Corpus directory to load at startup")
    parser.add_argument("-n", type=int, default=2, help="Gram size (default: 2)")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()
    if args.n < 1:
        parser.error("gram size must be a positive integer")

    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        start_server(
            host=args.host,
            port=args.port,
            directory=args.directory,
            n=args.n,
            seed=args.seed
        )
    except UsageError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
