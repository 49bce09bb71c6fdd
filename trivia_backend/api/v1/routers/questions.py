from fastapi import APIRouter, Depends, Query, Request, status
from typing import Annotated, Optional
from ....repositories.question_repository import QuestionProvider
from ....schemas.room_schemas import QuestionIn, QuestionItem
from ....domain.model import Question

router = APIRouter(prefix="/questions", tags=["questions"])

def get_provider(request: Request) -> QuestionProvider:
    return request.app.state.questions

ProviderDep = Annotated[QuestionProvider, Depends(get_provider)]

def _to_item(q: Question) -> dict:
    return {
        "id": q.id,
        "text": q.text,
        "answers": q.answers,
        "correctAnswer": q.correct_answer,
        "category": q.category,
        "difficulty": q.difficulty,
    }

@router.get("", response_model=list[QuestionItem])
async def list_questions(
    provider: ProviderDep,
    category: Optional[str] = None,
    limit: Annotated[Optional[int], Query(ge=1, le=500)] = None,
):
    return [_to_item(q) for q in await provider.list_questions(category, limit)]

@router.post("", response_model=QuestionItem, status_code=status.HTTP_201_CREATED)
async def add_question(payload: QuestionIn, provider: ProviderDep):
    question = await provider.add_question(
        {
            "text": payload.text,
            "answers": payload.answers,
            "correct_answer": payload.correctAnswer,
            "category": payload.category,
            "difficulty": payload.difficulty,
        }
    )
    return _to_item(question)
