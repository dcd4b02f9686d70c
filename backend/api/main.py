"""FastAPI backend for the primary-school problem bank.

Two endpoints: ``/api/generate-problem`` asks Gemini for word problems and
normalizes them, ``/api/problems`` reads and writes the collection stored
as a JSON file in a GitHub repository.
"""
import json
import logging
from datetime import datetime, timezone
from typing import AsyncIterator

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.config import Settings, get_settings
from backend.generation import MODEL, build_prompt, call_gemini, normalize_problems
from backend.generation.prompts import MAX_COUNT, MAX_GRADE, MIN_COUNT, MIN_GRADE, clamp
from backend.generation.schema import GenerateRequest, ProblemType
from backend.persistence import GitHubContentsClient

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Model replies for 10 problems can take a while
HTTP_TIMEOUT = 60.0

GENERATE_PATH = "/api/generate-problem"
PROBLEMS_PATH = "/api/problems"
ALLOWED_METHODS = {
    GENERATE_PATH: "POST, OPTIONS",
    PROBLEMS_PATH: "GET, POST, OPTIONS",
}


def cors_headers(path: str) -> dict[str, str]:
    """Open CORS headers so the static frontend can call us from any origin."""
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": ALLOWED_METHODS.get(path, "GET, OPTIONS"),
        "Access-Control-Allow-Headers": "Content-Type",
    }


def json_response(content: dict, path: str, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers=cors_headers(path))


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    """One client per request; closed when the response is sent."""
    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as client:
        yield client


async def read_json_object(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Bad request")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Bad request")
    return body


app = FastAPI(
    title="Problem Bank API",
    description="Generates primary-school arithmetic word problems and stores them in GitHub",
    version="1.0.0",
)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = "Method not allowed" if exc.status_code == 405 else exc.detail
    return json_response({"error": detail}, request.url.path, exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return json_response({"error": "Bad request"}, request.url.path, 400)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return json_response({"error": str(exc) or exc.__class__.__name__}, request.url.path, 500)


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

@app.options(GENERATE_PATH)
async def generate_problem_preflight() -> PlainTextResponse:
    return PlainTextResponse("ok", headers=cors_headers(GENERATE_PATH))


@app.post(GENERATE_PATH)
async def generate_problem(
    request: Request,
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """Generate ``count`` problems of one grade and type with Gemini."""
    body = await read_json_object(request)
    params = GenerateRequest(
        grade=clamp(body.get("grade") or MIN_GRADE, MIN_GRADE, MAX_GRADE, MIN_GRADE),
        type=str(body.get("type") or ProblemType.PPT.value).strip().upper(),
        theme=str(body.get("theme") or ""),
        count=clamp(body.get("count") or MIN_COUNT, MIN_COUNT, MAX_COUNT, MIN_COUNT),
    )

    prompt = build_prompt(params.grade, params.type, params.theme, params.count)
    result = await call_gemini(client, prompt, settings.gemini_api_key)
    if result.error:
        raise HTTPException(status_code=500, detail=result.error)

    problems = normalize_problems(result.problems, params.grade, params.type, params.count)
    logger.info("Generated %d %s problem(s) for grade %d", len(problems), params.type, params.grade)
    return json_response(
        {"problem": problems[0] if problems else None, "problems": problems},
        GENERATE_PATH,
    )


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

def github_store(settings: Settings, client: httpx.AsyncClient) -> GitHubContentsClient:
    if not settings.github_token:
        raise HTTPException(status_code=500, detail="Missing GITHUB_TOKEN")
    return GitHubContentsClient(client, settings.github_token)


def parse_collection(content: str | None) -> list:
    """Decode the stored array; a corrupt file reads as an empty collection."""
    try:
        problems = json.loads(content or "[]")
    except json.JSONDecodeError as e:
        logger.warning("Stored problems file is not valid JSON (%s); treating as empty", e)
        return []
    if not isinstance(problems, list):
        logger.warning("Stored problems file is not a JSON array; treating as empty")
        return []
    return problems


def default_commit_message() -> str:
    stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return f"Update problems {stamp}"


@app.options(PROBLEMS_PATH)
async def problems_preflight() -> PlainTextResponse:
    return PlainTextResponse("ok", headers=cors_headers(PROBLEMS_PATH))


@app.get(PROBLEMS_PATH)
async def get_problems(
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """Return the stored problems and the sha to send back when saving."""
    store = github_store(settings, client)
    file = await store.get_file(settings.owner, settings.repo, settings.github_path, settings.github_branch)

    if file.status == 404:
        return json_response({"problems": [], "sha": None, "notFound": True}, PROBLEMS_PATH, 404)
    if file.error:
        raise HTTPException(status_code=file.status or 500, detail=file.error)

    return json_response({"problems": parse_collection(file.content), "sha": file.sha}, PROBLEMS_PATH)


@app.post(PROBLEMS_PATH)
async def save_problems(
    request: Request,
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """Replace the stored collection.

    The body's ``sha`` must be the one returned by the last read; if the
    file changed since, the response carries ``conflict: true`` and the
    client should read again, merge and retry.
    """
    store = github_store(settings, client)
    body = await read_json_object(request)

    problems = body.get("problems")
    if not isinstance(problems, list):
        problems = []
    sha = body.get("sha") or None
    message = body.get("message") or default_commit_message()

    save = await store.put_file(
        settings.owner,
        settings.repo,
        settings.github_path,
        settings.github_branch,
        str(message),
        json.dumps(problems, indent=2, ensure_ascii=False),
        str(sha) if sha else None,
    )
    if save.error:
        return json_response({"error": save.error, "conflict": save.conflict}, PROBLEMS_PATH, save.status or 500)

    logger.info("Saved %d problem(s)", len(problems))
    return json_response({"ok": True, "sha": save.sha}, PROBLEMS_PATH)


@app.get("/health")
async def health_check(settings: Settings = Depends(get_settings)):
    """Health check endpoint."""
    return {
        "status": "healthy",
        "model": MODEL,
        "repo": settings.github_repo,
        "path": settings.github_path,
        "branch": settings.github_branch,
        "gemini_configured": bool(settings.gemini_api_key),
        "github_configured": bool(settings.github_token),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
