"""FastMCP server exposing persona and question-set helpers as MCP tools.

Tools:
  - compile_persona_instruction(...)  build the system instruction for a persona
  - validate_question_set(raw)        check model output against the question schema
  - search_public_personas(query)     browse the character hub

Usage:
    python -m character_chat.mcp_server
"""

import os
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from character_chat import storage
from character_chat.challenges import QuestionValidationError, parse_questions, validate_questions
from character_chat.characters import compile_instruction, validate_persona

mcp = FastMCP("character-chat")


@mcp.tool()
def compile_persona_instruction(
    name: str,
    description: str = "",
    mood: str = "",
    voice_tone: str = "",
    skills: list[str] | None = None,
) -> dict:
    """Validate a persona and return the system instruction a chat with it starts with."""
    persona = {
        "name": name,
        "description": description,
        "mood": mood,
        "voice_tone": voice_tone,
        "skills": skills or [],
    }
    errors = validate_persona(persona)
    if errors:
        return {"ok": False, "errors": errors}
    return {"ok": True, "instruction": compile_instruction(persona)}


@mcp.tool()
def validate_question_set(raw: str) -> dict:
    """Validate a generated question set. Returns canonical JSON or the first problem found."""
    try:
        canonical = validate_questions(raw)
        questions = parse_questions(canonical)
    except QuestionValidationError as e:
        return {"ok": False, "error": str(e)}
    return {"ok": True, "questions": canonical, "count": len(questions)}


@mcp.tool()
def search_public_personas(query: str = "", limit: int = 10) -> dict:
    """Public personas, newest first, optionally filtered by name or description."""
    limit = max(1, min(limit, 50))
    if query.strip():
        personas = storage.search_public_personas(query, limit)
    else:
        personas = storage.list_public_personas(limit)
    return {"personas": personas}


if __name__ == "__main__":
    default_dir = Path(__file__).parent.parent / "data"
    storage.init_storage(Path(os.getenv("DATA_DIR", str(default_dir))))
    mcp.run()
