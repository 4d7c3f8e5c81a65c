"""HTTP routes for captures, search, chat and sync."""

from fastapi import APIRouter, Depends, Request
from google import genai
from pydantic import BaseModel

from capture_inbox.auth import TokenProvider
from capture_inbox.config import get_settings
from capture_inbox.errors import CaptureNotFound, InvalidInput
from capture_inbox.fallback import lead_data_from_text
from capture_inbox.intent import IntentRouter, RouteResult
from capture_inbox.llm import (
    FALLBACK_ANSWER,
    SemanticMatches,
    answer_question,
    get_gemini_client,
    parse_lead,
    semantic_search,
)
from capture_inbox.models.capture import ActionTaken, Capture, Category, ContentType, LeadData
from capture_inbox.repository import CaptureRepository
from capture_inbox.search import search_captures


class CaptureRequest(BaseModel):
    content: str
    content_type: ContentType | None = None


class ReprocessRequest(BaseModel):
    content: str | None = None


class ActionRequest(BaseModel):
    action: ActionTaken


class ChatRequest(BaseModel):
    message: str
    content_type: ContentType | None = None


class AskRequest(BaseModel):
    query: str


class LeadParseRequest(BaseModel):
    content: str


def get_repository(request: Request) -> CaptureRepository:
    return request.app.state.repository


def get_llm_client() -> genai.Client | None:
    """Return the Gemini client, or None when no API key is configured."""
    if not get_settings().gemini_api_key:
        return None
    return get_gemini_client()


async def remember_credential(request: Request) -> None:
    """Keep the latest bearer token from the caller for remote store writes."""
    tokens: TokenProvider | None = getattr(request.app.state, "tokens", None)
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if tokens is not None and scheme.lower() == "bearer":
        tokens.remember(token)


router = APIRouter(prefix="", tags=["captures"], dependencies=[Depends(remember_credential)])


@router.post("/captures", status_code=201)
async def create_capture(
    body: CaptureRequest, repository: CaptureRepository = Depends(get_repository)
) -> Capture:
    return await repository.create(body.content, body.content_type)


@router.get("/captures")
async def list_captures(
    category: Category | None = None, repository: CaptureRepository = Depends(get_repository)
) -> list[Capture]:
    return repository.list(category)


@router.get("/captures/{capture_id}")
async def get_capture(
    capture_id: str, repository: CaptureRepository = Depends(get_repository)
) -> Capture:
    capture = repository.get(capture_id)
    if capture is None:
        raise CaptureNotFound(capture_id)
    return capture


@router.delete("/captures/{capture_id}")
async def delete_capture(
    capture_id: str, repository: CaptureRepository = Depends(get_repository)
) -> dict:
    await repository.delete(capture_id)
    return {"ok": True, "id": capture_id}


@router.post("/captures/{capture_id}/reprocess")
async def reprocess_capture(
    capture_id: str,
    body: ReprocessRequest | None = None,
    repository: CaptureRepository = Depends(get_repository),
) -> Capture:
    content = body.content if body is not None else None
    return await repository.reprocess(capture_id, content)


@router.post("/captures/{capture_id}/action")
async def mark_capture_action(
    capture_id: str, body: ActionRequest, repository: CaptureRepository = Depends(get_repository)
) -> Capture:
    return await repository.mark_action(capture_id, body.action)


@router.get("/search")
async def search(q: str = "", repository: CaptureRepository = Depends(get_repository)) -> list[Capture]:
    return search_captures(repository.list(), q)


@router.get("/search/semantic")
async def search_semantic(
    q: str = "",
    repository: CaptureRepository = Depends(get_repository),
    client: genai.Client | None = Depends(get_llm_client),
) -> SemanticMatches:
    """Match captures by meaning with Gemini; keyword ranking without an API key."""
    captures = repository.list()
    if client is None:
        return SemanticMatches(results=search_captures(captures, q), semantic=False)
    return await semantic_search(client, q, captures)


@router.post("/chat")
async def chat(body: ChatRequest, repository: CaptureRepository = Depends(get_repository)) -> RouteResult:
    """Search for question-like messages, capture anything else."""
    return await IntentRouter(repository).route(body.message, body.content_type)


@router.post("/ask")
async def ask(
    body: AskRequest,
    repository: CaptureRepository = Depends(get_repository),
    client: genai.Client | None = Depends(get_llm_client),
) -> dict:
    """Answer a question about the captures conversationally."""
    if not body.query.strip():
        raise InvalidInput("Question must not be empty")
    if client is None:
        answer = FALLBACK_ANSWER
    else:
        answer = await answer_question(client, body.query, repository.list())
    return {"response": answer}


@router.post("/leads/parse")
async def parse_lead_endpoint(
    body: LeadParseRequest, client: genai.Client | None = Depends(get_llm_client)
) -> LeadData:
    if not body.content.strip():
        raise InvalidInput("Lead text must not be empty")
    if client is None:
        return lead_data_from_text(body.content)
    return await parse_lead(client, body.content)


@router.post("/sync")
async def sync(repository: CaptureRepository = Depends(get_repository)) -> dict:
    """Flush pending remote writes now."""
    await repository.sync()
    return {"ok": True, "captures": len(repository.list())}
