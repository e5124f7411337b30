import os
from collections import OrderedDict
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from character_chat import storage
from character_chat.llm import Gateway, GeminiClient
from character_chat.routes import router
from character_chat.routes.deps import MAX_SESSIONS

load_dotenv(Path(__file__).parent.parent / ".env")

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


def create_app(
    data_dir: Path | None = None,
    gateway: Gateway | None = None,
    max_sessions: int = MAX_SESSIONS,
) -> FastAPI:
    resolved = data_dir or Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
    storage.init_storage(resolved)

    app = FastAPI(title="Character Chat")
    app.state.gateway = gateway or GeminiClient()
    # least recently used first; see routes.deps.get_session
    app.state.sessions = OrderedDict()
    app.state.max_sessions = max_sessions
    app.state.quizzes = {}
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (uses DATA_DIR env var or default)
app = create_app()
