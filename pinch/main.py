import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pinch.config import (
    ANIMAL_WORDS,
    CORS_ORIGINS,
    EMOTION_WORDS,
    HOST,
    LOG_LEVEL,
    MAX_MESSAGE_LENGTH,
    MAX_ROOM_ID_LENGTH,
    PORT,
)
from pinch.db.chat import make_chat_store
from pinch.routes.health import router as health_router
from pinch.routes.ws import router as ws_router
from pinch.utils.hub import ConnectionHub
from pinch.utils.identity import IdentityAllocator
from pinch.utils.presence import PresenceController
from pinch.utils.rooms import RoomDirectory

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await app.state.chat_store.close()


def create_app(chat_store=None, allocator=None) -> FastAPI:
    app = FastAPI(
        title="Pinch Server",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.state.chat_store = chat_store if chat_store is not None else make_chat_store()
    directory = RoomDirectory(allocator or IdentityAllocator(EMOTION_WORDS, ANIMAL_WORDS))
    app.state.presence = PresenceController(
        directory,
        ConnectionHub(),
        app.state.chat_store,
        max_message_length=MAX_MESSAGE_LENGTH,
        max_room_id_length=MAX_ROOM_ID_LENGTH,
    )

    app.include_router(health_router)
    app.include_router(ws_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=HOST, port=PORT)
