from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, BaseModel, Field

from kinnected.auth import get_current_user
from kinnected.core.rate_limit import rate_limit
from kinnected.services.chatbot import ChatbotGateway, get_chatbot

router = APIRouter(
    prefix="/ai",
    tags=["AI"],
    dependencies=[
        Depends(rate_limit("api")),
        Depends(rate_limit("ai")),
        Depends(get_current_user),
    ],
)


class QueryRequest(BaseModel):
    query: str = Field(validation_alias=AliasChoices("query", "message"))


class SuggestionRequest(BaseModel):
    relation: str
    context: Optional[str] = None


@router.post("/query")
def process_query(
    payload: QueryRequest,
    chatbot: ChatbotGateway = Depends(get_chatbot),
):
    return {"success": True, "response": chatbot.reply(payload.query)}


@router.post("/suggestions")
def relationship_suggestions(
    payload: SuggestionRequest,
    chatbot: ChatbotGateway = Depends(get_chatbot),
):
    return {
        "success": True,
        "suggestions": chatbot.suggestions(payload.relation, payload.context),
    }
