"""File-based JSON record store.

Data layout:
  data/
    personas.json                 All persona records (every owner)
    persona-references.json       {user_id, persona_id} adoption links
    messages/<user>/<bucket>.json Chat log per user and persona (bucket
                                  "default-ai" for the default persona)
    preferences/<user>.json       default_instruction, pinned_personas, voice

Ordering: persona listings are newest first (created_at descending); message
listings are oldest first. Public listings and search take limit/offset.

Owner scoping: update_persona / delete_persona only act on records whose
user_id is the caller; they return None / False otherwise.

Preferences: get_preferences() returns defaults merged with stored values.
update_preferences() applies partial updates: pinned_personas replaced
wholesale, voice merged key-by-key, default_instruction overwritten.
"""

# Re-export all public symbols so `from character_chat import storage` keeps working.

from .core import (  # noqa: F401
    data_dir,
    init_storage,
    messages_dir,
    new_id,
    now,
    preferences_dir,
    safe_name,
)

from .personas import (  # noqa: F401
    create_persona,
    delete_persona,
    delete_persona_reference,
    get_persona,
    list_personas,
    list_public_personas,
    list_referenced_personas,
    save_persona_reference,
    search_public_personas,
    update_persona,
)

from .messages import (  # noqa: F401
    create_message,
    delete_messages,
    get_messages,
)

from .preferences import (  # noqa: F401
    clear_default_instruction,
    get_preferences,
    update_preferences,
)
