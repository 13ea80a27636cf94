from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def root():
    return "Quiz room server is online. Hosts and players connect over /ws."


@router.get("/health")
async def health():
    return {"status": "healthy"}
