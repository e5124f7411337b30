"""Challenge generation pipeline.

Turns a ChallengeConfig (document or topic) into a validated question set:

  document  pdf/image → one multimodal generate call (prompt + inline part)
            text      → one text generate call with the file embedded
  topic     analysis generate call → question generate call with the
            analysis embedded as content

Output schema (compact JSON, nothing around it):

  {"questions": [{"id", "text", "type", "marks",
                  objective:  "options" (4 × {"id": a-d, "text"}),
                              "correctAnswer", "explanation"
                  subjective: "markingScheme": {"points", "marksPerPoint"}}]}

validate_questions() is applied to every model response; any violation
discards the whole batch.
"""

from .core import (  # noqa: F401
    Challenge,
    ChallengeError,
    build_challenge,
    generate_challenge,
    generate_document_challenge,
    generate_topic_challenge,
)
from .documents import (  # noqa: F401
    DocumentError,
    check_document,
    classify_document,
)
from .validation import (  # noqa: F401
    QuestionFormatError,
    QuestionValidationError,
    parse_questions,
    strip_code_fence,
    validate_questions,
)
