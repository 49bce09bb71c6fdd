import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from .core.config import settings
from .core.cors import setup_cors
from .core.logging_config import configure_logging
from .core.redis_manager import get_redis, close_redis
from .core.supabase_client import get_supabase
from .api.v1.routers import rooms as rooms_router
from .api.v1.routers import questions as questions_router
from .api.v1.routers import ws_router
from .repositories.question_repository import InMemoryQuestionProvider, SupabaseQuestionProvider
from .repositories.room_store import RedisRoomStore
from .ws.broadcast_hub import BroadcastHub
from .ws.engine_registry import EngineRegistry
from .ws.gateway import ConnectionGateway
from .ws.round_engine import EngineTimings

logger = logging.getLogger(__name__)


def build_question_provider():
    if settings.QUESTION_SOURCE == "supabase":
        return SupabaseQuestionProvider(get_supabase())
    return InMemoryQuestionProvider()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    r = await get_redis()

    store = RedisRoomStore(r, ttl_sec=settings.ROOM_TTL_SEC)
    questions = build_question_provider()
    hub = BroadcastHub()
    registry = EngineRegistry(
        store=store,
        questions=questions,
        hub=hub,
        timings=EngineTimings.from_settings(settings),
    )
    app.state.store = store
    app.state.questions = questions
    app.state.hub = hub
    app.state.registry = registry
    app.state.gateway = ConnectionGateway(store=store, hub=hub, registry=registry)
    logger.info("[startup] env=%s questions=%s", settings.APP_ENV, settings.QUESTION_SOURCE)

    yield

    await registry.shutdown()
    await close_redis()
    logger.info("[shutdown] done")


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
setup_cors(app)

app.include_router(rooms_router.router, prefix=settings.API_V1_PREFIX)
app.include_router(questions_router.router, prefix=settings.API_V1_PREFIX)

app.include_router(ws_router.ws_router)

@app.get("/healthz")
async def healthz():
    return {"status": "ok"}
