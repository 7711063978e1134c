"""
Essay Tutor — Grading Client
=============================
Sends one essay (typed text and/or a photographed answer sheet) to the AI
provider and returns a validated GradingReport.

  - Persona-specific tone on top of a fixed grading brief
  - Response schema sent with the request and enforced on the reply
  - handwritingEvaluation required for photos, forbidden otherwise
"""

import copy
import logging
from typing import Any, Dict, Optional, Union

from essay_tutor.core.config import settings
from essay_tutor.core.errors import SchemaError, ValidationError
from essay_tutor.schemas.grading import MAX_OVERALL_SCORE, GradingReport, GradingRequest, Persona
from essay_tutor.services.ai_provider import AIProvider
from essay_tutor.services.result import ParseResult, parse_reply

logger = logging.getLogger(__name__)

TOPIC_REQUIRED = "请输入题目"
ANSWER_REQUIRED = "请输入答案或上传图片"
UNKNOWN_PERSONA = "未知的批改角色"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# SYSTEM PROMPTS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

PERSONA_TONES = {
    Persona.professor: (
        "You are a strict, authoritative professor at Tsinghua Academy of Arts & Design. "
        "Focus on academic rigor, historical accuracy, and depth. "
        "Critique harshly but constructively."
    ),
    Persona.senior: (
        "You are an encouraging, successful PhD student (Senior) from Tsinghua. "
        "Be supportive, use approachable language, but point out critical mistakes "
        "that could cost marks."
    ),
    Persona.analyst: (
        "You are an objective data analyst. Focus purely on structure, coverage "
        "percentages, and logic flow without emotional coloring."
    ),
}

GRADING_BRIEF = (
    "You are an expert grader for the Tsinghua University Academy of Arts & Design "
    "Master's Entrance Exam, Subject 621 (Art History & Theory).\n"
    "Reference Texts: 《中国美术史》, 《外国美术史》, 《世界现代设计史》.\n\n"
    "Your Task:\n"
    '1. Analyze the user\'s answer (text or handwriting image) for the topic: "{topic}".\n'
    "2. Check for factual errors (dates, artists, dynasties, styles).\n"
    '3. Evaluate against the standard "Total-Split-Total" (总-分-总) logical structure '
    "(Introduction, Body, Conclusion).\n"
    "4. Assess academic language usage (score 0-100).\n"
    '5. Compare with a hypothetical "Excellent Model Answer" standard.\n'
    '6. Provide a "One-click Optimization" rewrite for the weakest section.\n'
    "7. GENERATE WRITING TEMPLATES specifically for this topic:\n"
    "   - Brainstorming: 2 thinking frameworks. technique = name of the mental model; "
    "template = a step-by-step guide on HOW to think (a process, not a fill-in sentence); "
    "example = 3 concrete arguments for THIS topic derived with the method.\n"
    "   - Introduction: 2 opening strategies combining historical context with the definition.\n"
    "   - Conclusion: 2 elevation strategies toward cultural spirit or modern value.\n"
    "   - For intro/conclusion give the abstract template and an example applied to this topic.\n"
    "8. GENERATE A FULL MODEL ESSAY (范文) for this topic.\n"
    "   - Determine the question type from the topic's complexity.\n"
    "   - Noun Explanation (名词解释): ~150-250 words. Definition -> Historical Context -> "
    "Artistic Characteristics -> Impact/Status.\n"
    "   - Short Answer (简答题): ~400-600 words with numbered subheadings.\n"
    "   - Essay Question (论述题): ~800-1200 words with section titles "
    "(一、Introduction, 二、..., 四、Conclusion).\n"
    "   - Academic style using terms from the 621 reference books. Plain text, no Markdown.\n\n"
    "overallScore is an integer out of {max_score}. radarData covers the dimensions "
    "Knowledge, Logic, Language, Innovation, Depth; A is the student's score, B the passing "
    "standard, both 0-100, fullMark is always 100.\n"
    "{handwriting_rule}\n"
    "Output strictly in JSON format matching the schema.\n"
    "Tone: {tone}"
)

HANDWRITING_RULE = (
    "An image is provided: perform OCR, then fill handwritingEvaluation with legibility, "
    "estimatedWordCount and timeManagementAdvice."
)
NO_HANDWRITING_RULE = "No image is provided: do NOT include handwritingEvaluation."


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# RESPONSE SCHEMA
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _string(description: Optional[str] = None, enum: Optional[list] = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "string"}
    if description:
        schema["description"] = description
    if enum:
        schema["enum"] = enum
    return schema


def _integer(description: str) -> Dict[str, Any]:
    return {"type": "integer", "description": description}


def _object(properties: Dict[str, Any], optional: tuple = ()) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": [k for k in properties if k not in optional],
    }


def _array(items: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "array", "items": items}


_TEMPLATE_ITEM = _object({
    "technique": _string("Name of the technique or thinking model"),
    "template": _string("The abstract template or step-by-step thinking guide"),
    "example": _string("The template applied to this topic"),
})

REPORT_SCHEMA: Dict[str, Any] = _object({
    "overallScore": _integer(f"Score out of {MAX_OVERALL_SCORE}"),
    "summary": _string("Overall commentary in the selected persona's tone"),
    "knowledgePoints": _array(_object({
        "point": _string(),
        "covered": {"type": "boolean"},
        "missingDetail": _string("What the answer left out, when not covered"),
    }, optional=("missingDetail",))),
    "logicStructure": _array(_object({
        "section": _string("e.g., Introduction, Body Paragraph 1"),
        "evaluation": _string(),
        "status": _string(enum=["good", "average", "poor"]),
    })),
    "keywordsDetected": _array(_string()),
    "errors": _array(_object({
        "type": _string(enum=["fact", "date", "style", "grammar"]),
        "original": _string(),
        "correction": _string(),
        "explanation": _string(),
    })),
    "radarData": _array(_object({
        "subject": _string("Knowledge, Logic, Language, Innovation or Depth"),
        "A": _integer("User score 0-100"),
        "B": _integer("Standard/Passing score 0-100"),
        "fullMark": _integer("Always 100"),
    })),
    "optimization": _object({
        "originalSegment": _string("A weak paragraph from the user input"),
        "improvedSegment": _string("Rewritten version in academic style"),
        "reason": _string(),
    }),
    "writingTemplates": _object({
        "brainstorming": _array(_TEMPLATE_ITEM),
        "intro": _array(_TEMPLATE_ITEM),
        "conclusion": _array(_TEMPLATE_ITEM),
    }),
    "academicLanguageScore": _integer("Academic language score 0-100"),
    "handwritingEvaluation": _object({
        "legibility": _string(),
        "estimatedWordCount": {"type": "integer"},
        "timeManagementAdvice": _string(),
    }),
    "comparativeLevel": _string(enum=["Excellent", "Good", "Pass", "Fail"]),
    "comparativeComment": _string(),
    "modelEssay": _string(
        "A complete, high-quality model essay with subheadings. Length adapts to the "
        "question type: Noun Exp (~200 words), Short Answer (~400), Essay (~800+)."
    ),
})


def build_report_schema(with_handwriting: bool) -> Dict[str, Any]:
    """Report schema for one request; handwritingEvaluation only for photos."""
    schema = copy.deepcopy(REPORT_SCHEMA)
    if not with_handwriting:
        del schema["properties"]["handwritingEvaluation"]
        schema["required"].remove("handwritingEvaluation")
    return schema


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# REQUEST BUILDING
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def build_grading_request(
    topic: Optional[str],
    answer_text: Optional[str] = None,
    answer_image: Optional[bytes] = None,
    persona: Union[Persona, str] = Persona.professor,
) -> GradingRequest:
    """Validate raw submission fields. Raises ValidationError, never touches the network."""
    topic = (topic or "").strip()
    if not topic:
        raise ValidationError(TOPIC_REQUIRED)
    if not (answer_text and answer_text.strip()) and not answer_image:
        raise ValidationError(ANSWER_REQUIRED)
    try:
        persona = Persona(persona)
    except ValueError as e:
        raise ValidationError(f"{UNKNOWN_PERSONA}: {persona}") from e

    return GradingRequest(
        topic=topic,
        answer_text=answer_text or None,
        answer_image=answer_image or None,
        persona=persona,
    )


def build_system_instruction(topic: str, persona: Persona, with_handwriting: bool) -> str:
    return GRADING_BRIEF.format(
        topic=topic,
        max_score=MAX_OVERALL_SCORE,
        handwriting_rule=HANDWRITING_RULE if with_handwriting else NO_HANDWRITING_RULE,
        tone=PERSONA_TONES[persona],
    )


def build_user_prompt(request: GradingRequest) -> str:
    if request.has_image:
        prompt = f"Analyze this handwritten answer for the topic: {request.topic}."
        if request.has_text:
            prompt += f"\n\nSupplementary typed notes from the student:\n{request.answer_text}"
        return prompt
    return f"Topic: {request.topic}\n\nStudent Answer:\n{request.answer_text}"


def parse_report(raw_text: Optional[str], with_handwriting: bool) -> ParseResult[GradingReport]:
    """Validate a grading reply, including the handwriting presence rule."""
    result = parse_reply(raw_text, GradingReport)
    if not result.ok:
        return result

    report = result.value
    if with_handwriting and report.handwriting_evaluation is None:
        return ParseResult.failure(
            SchemaError("handwritingEvaluation missing for a photographed answer")
        )
    if not with_handwriting and report.handwriting_evaluation is not None:
        return ParseResult.failure(
            SchemaError("handwritingEvaluation present but no image was submitted")
        )
    return result


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CLIENT
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class GradingClient:
    """Grades essays through an AIProvider. Raises GradingError subclasses."""

    def __init__(self, provider: AIProvider, temperature: Optional[float] = None):
        self.provider = provider
        self.temperature = settings.GRADING_TEMPERATURE if temperature is None else temperature

    async def grade(
        self,
        topic: Optional[str],
        answer_text: Optional[str] = None,
        answer_image: Optional[bytes] = None,
        persona: Union[Persona, str] = Persona.professor,
    ) -> GradingReport:
        request = build_grading_request(topic, answer_text, answer_image, persona)
        return await self.grade_request(request)

    async def grade_request(self, request: GradingRequest) -> GradingReport:
        with_handwriting = request.has_image
        logger.info(
            f"[GRADING] Starting: topic={request.topic!r}, persona={request.persona.value}, "
            f"image={with_handwriting}"
        )

        raw = await self.provider.generate_json(
            system_instruction=build_system_instruction(
                request.topic, request.persona, with_handwriting
            ),
            prompt=build_user_prompt(request),
            response_schema=build_report_schema(with_handwriting),
            image=request.answer_image,
            temperature=self.temperature,
        )

        report = parse_report(raw, with_handwriting).unwrap()
        logger.info(
            f"[GRADING] ✓ Score {report.overall_score}/{MAX_OVERALL_SCORE}, "
            f"{len(report.weak_points)} weak point(s)"
        )
        return report
