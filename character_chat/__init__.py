"""Character chat: persona conversations and generated quiz challenges.

  characters   persona tables, builder validation, system instruction compiler
  llm          Gemini gateway (one-shot generate, chat sessions)
  session      the single active conversation session per user
  challenges   document / topic → validated question JSON
  quiz         quiz attempt state machine and scoring
  storage      JSON file record store
  routes       FastAPI endpoints (app.create_app wires them up)
"""
