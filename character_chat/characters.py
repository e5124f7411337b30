"""Persona logic: preset tables, builder validation, and system instruction compilation.

A persona is a plain dict:

  id, user_id, name, description, voice_tone, mood, skills, emoji,
  is_public, created_at, updated_at

Builder steps (each gates the next, create and edit share them):
  1 name         2–30 characters
  2 mood         non-blank, preset id or free text
  3 skills       1–10 entries, preset ids or free text
  4 voice_tone   non-blank, preset id or free text
  5 description  10–200 characters

Instruction compilation is a pure function of the persona fields. Preset
moods and tones carry a short descriptor; unknown values are used verbatim.
Preset skill ids map to labels; custom skills pass through unchanged.

Language register: the mood selects one of the LanguageRegister members.
"playful" and "unhinged" unlock extra style blocks, every other mood is
STANDARD. Blocks are looked up in a table keyed by every register.
"""

import enum
from collections.abc import Mapping
from typing import Any

MOOD_DESCRIPTIONS = {
    "friendly": "Warm and welcoming",
    "professional": "Business-like and formal",
    "sarcastic": "Witty with a bite",
    "enthusiastic": "Energetic and excited",
    "calm": "Peaceful and zen",
    "quirky": "Unique and eccentric",
    "mysterious": "Enigmatic and intriguing",
    "playful": "Mischievous and naughty",
    "unhinged": "Wild and unfiltered",
    "dark": "Mysterious and ominous",
}

VOICE_TONE_DESCRIPTIONS = {
    "casual": "Relaxed and informal",
    "formal": "Proper and structured",
    "humorous": "Funny and entertaining",
    "inspiring": "Motivational and uplifting",
    "analytical": "Logical and detailed",
    "storyteller": "Narrative and engaging",
    "empathetic": "Understanding and caring",
    "direct": "Straight to the point",
}

SKILL_LABELS = {
    "coding": "Coding",
    "writing": "Creative Writing",
    "math": "Mathematics",
    "science": "Science",
    "cooking": "Cooking",
    "music": "Music",
    "art": "Art & Design",
    "business": "Business",
    "fitness": "Fitness",
    "travel": "Travel",
    "gaming": "Gaming",
    "philosophy": "Philosophy",
    "psychology": "Psychology",
    "languages": "Languages",
    "finance": "Finance",
    "marketing": "Marketing",
}

MAX_SKILLS = 10
BUILDER_STEPS = (1, 2, 3, 4, 5)

DEFAULT_PERSONA_ID = "default-ai"

DEFAULT_PERSONA: dict[str, Any] = {
    "id": DEFAULT_PERSONA_ID,
    "user_id": "default",
    "name": "AI Assistant",
    "description": "A helpful and knowledgeable AI assistant ready to help with any questions or tasks.",
    "voice_tone": "casual",
    "mood": "friendly",
    "skills": ["general knowledge", "problem solving", "conversation"],
    "emoji": "🤖",
    "is_public": False,
    "created_at": "",
    "updated_at": "",
}


class LanguageRegister(enum.Enum):
    STANDARD = "standard"
    PLAYFUL = "playful"
    UNFILTERED = "unfiltered"


_REGISTER_BY_MOOD = {
    "playful": LanguageRegister.PLAYFUL,
    "unhinged": LanguageRegister.UNFILTERED,
}

# (style block after EXPERTISE, extra behaviour guideline)
_REGISTER_BLOCKS: dict[LanguageRegister, tuple[str, str] | None] = {
    LanguageRegister.STANDARD: None,
    LanguageRegister.PLAYFUL: (
        "LANGUAGE STYLE: Use playful, flirty, and slightly naughty language. "
        "Include suggestive humor, double entendres, and cheeky remarks. "
        "Be mischievous and tease the user in a fun way. Use playfully "
        "suggestive terms like \"naughty\" and \"spicy\" when appropriate.",
        "- Use playful, suggestive language and be flirtatious in your responses",
    ),
    LanguageRegister.UNFILTERED: (
        "LANGUAGE STYLE: Use strong, unfiltered language including profanity "
        "when expressing frustration or emphasis. Don't hold back when it fits "
        "the conversation. Be raw, unfiltered, and brutally honest. Show no "
        "restraint in your language choices.",
        "- Feel free to use strong language, profanity, and be brutally honest without filters",
    ),
}


def register_for_mood(mood: str) -> LanguageRegister:
    """Map a mood value to its language register (STANDARD unless unlocked)."""
    return _REGISTER_BY_MOOD.get(mood, LanguageRegister.STANDARD)


def skill_labels(skills: list[str]) -> list[str]:
    return [SKILL_LABELS.get(skill, skill) for skill in skills]


def compile_instruction(persona: Mapping[str, Any]) -> str:
    """Build the system instruction for a persona.

    Deterministic: identical fields always produce identical text. Nothing is
    cached, so callers recompile whenever a persona changes.
    """
    name = persona["name"]
    mood = persona.get("mood", "")
    tone = persona.get("voice_tone", "")
    mood_desc = MOOD_DESCRIPTIONS.get(mood, "")
    tone_desc = VOICE_TONE_DESCRIPTIONS.get(tone, "")
    skills = ", ".join(skill_labels(list(persona.get("skills", []))))
    block = _REGISTER_BLOCKS[register_for_mood(mood)]

    lines = [
        f"You are {name}, an AI assistant with the following characteristics:",
        "",
        f"DESCRIPTION: {persona.get('description') or 'A helpful AI assistant'}",
        "",
        f"MOOD: {mood}" + (f" - {mood_desc}" if mood_desc else ""),
        "",
        f"VOICE TONE: {tone}" + (f" - {tone_desc}" if tone_desc else ""),
        "",
        f"EXPERTISE: You are particularly skilled in: {skills or 'general knowledge'}",
    ]
    if block is not None:
        lines.append(block[0])
    lines += [
        "",
        "BEHAVIOR GUIDELINES:",
        f"- Always respond in character as {name}",
        f"- Maintain your {mood} mood throughout conversations",
        f"- Use a {tone} tone in your responses",
        f"- Draw upon your expertise in {skills or 'various topics'} when relevant",
        "- Be helpful while staying true to your character description",
    ]
    if block is not None:
        lines.append(block[1])
    lines += [
        "",
        f"Respond to all messages as {name} would, keeping these characteristics consistent.",
    ]
    return "\n".join(lines)


def resolve_instruction(persona: Mapping[str, Any], default_instruction: str = "") -> str:
    """Instruction for a chat session: the default persona uses the user's own text."""
    if persona.get("id") == DEFAULT_PERSONA_ID:
        return default_instruction
    return compile_instruction(persona)


def validate_persona_step(fields: Mapping[str, Any], step: int) -> dict[str, str]:
    """Validate one builder step. Returns {field: message}; empty when valid."""
    errors: dict[str, str] = {}
    if step == 1:
        name = (fields.get("name") or "").strip()
        if not name:
            errors["name"] = "Character name is required"
        elif len(name) < 2:
            errors["name"] = "Name must be at least 2 characters"
        elif len(name) > 30:
            errors["name"] = "Name must be less than 30 characters"
    elif step == 2:
        if not (fields.get("mood") or "").strip():
            errors["mood"] = "Please select a mood or enter a custom one"
    elif step == 3:
        skills = fields.get("skills") or []
        if not skills:
            errors["skills"] = "Please select at least one skill"
        elif len(skills) > MAX_SKILLS:
            errors["skills"] = f"A character can have at most {MAX_SKILLS} skills"
        elif any(not str(s).strip() for s in skills):
            errors["skills"] = "Skills cannot be blank"
    elif step == 4:
        if not (fields.get("voice_tone") or "").strip():
            errors["voice_tone"] = "Please select a communication style"
    elif step == 5:
        description = (fields.get("description") or "").strip()
        if not description:
            errors["description"] = "Character description is required"
        elif len(description) < 10:
            errors["description"] = "Description must be at least 10 characters"
        elif len(description) > 200:
            errors["description"] = "Description must be less than 200 characters"
    else:
        raise ValueError(f"Unknown builder step {step}")
    return errors


def validate_persona(fields: Mapping[str, Any]) -> dict[str, str]:
    """Run every builder step; a persona is only written when this is empty."""
    errors: dict[str, str] = {}
    for step in BUILDER_STEPS:
        errors.update(validate_persona_step(fields, step))
    return errors
