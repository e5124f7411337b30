"""Handlebars prompt rendering for challenge generation.

Three challenge prompt variants share one template and differ by modality:
  content : source text is embedded in the prompt (topic analysis, .txt files)
  image   : the image travels as an inline part; prompt asks for visual analysis
  pdf     : the PDF travels as an inline part; prompt asks for document structure

Free text (content, topic, custom instructions) is rendered with triple
braces so JSON quotes survive unescaped.
"""

from collections.abc import Callable
from typing import Any, Literal

import pybars

from character_chat.models import ChallengeConfig

Modality = Literal["content", "image", "pdf"]

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


TOPIC_ANALYSIS_TEMPLATE = """Analyze the following topic and identify key areas to test:
Topic: {{{topic}}}

Please provide:
1. Main concepts and principles
2. Key theories, formulas, or frameworks relevant to the topic
3. Important applications and real-world examples
4. Common misconceptions or challenging aspects
5. Prerequisites and related topics

This analysis will be used to generate exam questions."""

TOPIC_GUIDELINES = """Additional Guidelines:
1. Use the topic analysis to ensure comprehensive coverage
2. Include questions that test both theoretical understanding and practical applications
3. For technical topics, provide detailed explanations or step-by-step solutions
4. Include at least one question that addresses common misconceptions
5. Ensure questions progress from basic concepts to advanced applications"""

CHALLENGE_TEMPLATE = """You are an expert educator. {{#if is_content}}Generate {{count}} {{style}} questions based on the following content.{{/if}}{{#if is_image}}Analyze the image provided and generate {{count}} {{style}} questions based on its content.{{/if}}{{#if is_pdf}}Analyze the PDF document provided and generate {{count}} {{style}} questions based on its content.{{/if}} You MUST return ONLY a valid JSON object with no additional text or formatting.
{{#if is_content}}
Content:
{{{content}}}
{{/if}}
Requirements:
{{#if is_image}}
- First, carefully analyze the image content, including:
   - Text, diagrams, charts, or mathematical expressions
   - Visual elements, symbols, and their relationships
   - Any educational content or concepts shown
{{/if}}{{#if is_pdf}}
- First, carefully analyze the document content, including:
   - Text content, headings, and structure
   - Tables, charts, diagrams, or mathematical expressions
   - Key concepts, theories, and important information
   - Any educational content or learning objectives
{{/if}}
- Generate exactly {{count}} questions
- For each question:
{{#if objective}}
   - Write a clear question
   - Provide exactly 4 options labeled a, b, c, d
   - Include the correct answer and explanation
{{else}}
   - Write a clear question
   - Include a detailed marking scheme with points and marks per point
{{/if}}
- Ensure questions:
   - Are clearly worded{{#if is_image}} and directly related to the image content{{/if}}{{#if is_pdf}} and directly related to the document content{{/if}}
   - Progress from easier to harder
   - Cover different aspects of the material
   - Include calculations where appropriate for mathematical or scientific content
{{#if is_pdf}}
   - Test comprehension, analysis, and application of the material
{{/if}}

You MUST return ONLY the following JSON structure with no additional text, markdown formatting, or code blocks:

{
  "questions": [
    {
      "id": 1,
      "text": "Write the question text here",
      "type": "{{question_type}}",
      "marks": 5,
{{#if objective}}
      "options": [
        {"id": "a", "text": "First option"},
        {"id": "b", "text": "Second option"},
        {"id": "c", "text": "Third option"},
        {"id": "d", "text": "Fourth option"}
      ],
      "correctAnswer": "a",
      "explanation": "Explain why this is the correct answer"
{{else}}
      "markingScheme": {
        "points": ["First point to check", "Second point to check"],
        "marksPerPoint": [3, 2]
      }
{{/if}}
    }
  ]
}

CRITICAL RULES:
1. Return ONLY the JSON object - no additional text, no markdown formatting, no code blocks
2. Use double quotes for all strings in JSON
3. Do not use backticks, markdown, or code block formatting
4. For objective questions:
   - Use only "a", "b", "c", "d" for option IDs
   - Include exactly 4 options for each question
5. For subjective questions:
   - Ensure marksPerPoint array length matches points array length
   - Total marks per question should be the sum of marksPerPoint
{{#if custom_instruction}}

Additional Instructions:
{{{custom_instruction}}}
{{/if}}"""


def build_challenge_context(
    config: ChallengeConfig,
    modality: Modality,
    content: str | None = None,
    custom_instruction: str | None = None,
) -> dict[str, Any]:
    """Assemble template variables for CHALLENGE_TEMPLATE."""
    objective = config.question_type == "objective"
    return {
        "count": config.number_of_questions,
        "style": "multiple-choice" if objective else "open-ended",
        "question_type": config.question_type,
        "objective": objective,
        "is_content": modality == "content",
        "is_image": modality == "image",
        "is_pdf": modality == "pdf",
        "content": content or "",
        "custom_instruction": (custom_instruction or "").strip(),
    }


def challenge_prompt(
    config: ChallengeConfig,
    modality: Modality,
    content: str | None = None,
    custom_instruction: str | None = None,
) -> str:
    if custom_instruction is None:
        custom_instruction = config.custom_instruction
    ctx = build_challenge_context(config, modality, content, custom_instruction)
    return render_prompt(CHALLENGE_TEMPLATE, ctx)


def topic_analysis_prompt(topic: str) -> str:
    return render_prompt(TOPIC_ANALYSIS_TEMPLATE, {"topic": topic})
