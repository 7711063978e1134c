import logging
from typing import Any, Dict, Optional

from essay_tutor.core.errors import GradingError, ValidationError
from essay_tutor.schemas.mindmap import MindMapNode
from essay_tutor.services.ai_provider import AIProvider
from essay_tutor.services.result import parse_reply

logger = logging.getLogger(__name__)

MINDMAP_BRANCHES = (
    "Definition",
    "Background",
    "Characteristics/Style",
    "Key Artists/Works",
    "Impact/Influence",
    "Conclusion",
)

MINDMAP_SYSTEM_PROMPT = (
    "Generate a hierarchical mind map structure for a Tsinghua 621 Art History essay "
    'on the topic: "{topic}".\n'
    "The root label is the topic itself. The root MUST have one child per branch, in order: "
    + ", ".join(MINDMAP_BRANCHES) + ".\n"
    "Each branch holds 2-5 concise points; a point may hold its own children.\n"
    "Labels must be in the SAME language as the topic."
)

_LEAF = {"type": "object", "properties": {"label": {"type": "string"}}, "required": ["label"]}


def _node(children: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {"label": {"type": "string"}, "children": {"type": "array", "items": children}},
        "required": ["label"],
    }


# Root → branches → points. Schemas cannot recurse, so the depth is spelled out.
MINDMAP_SCHEMA: Dict[str, Any] = _node(_node(_node(_LEAF)))


class MindMapClient:
    """Builds answer outlines. Upstream failures yield None, never an exception."""

    def __init__(self, provider: AIProvider):
        self.provider = provider

    async def build_mind_map(self, topic: Optional[str]) -> Optional[MindMapNode]:
        topic = (topic or "").strip()
        if not topic:
            raise ValidationError("请输入考点")

        logger.info(f"[MINDMAP] Starting generation for {topic!r}...")
        try:
            raw = await self.provider.generate_json(
                system_instruction=MINDMAP_SYSTEM_PROMPT.format(topic=topic),
                prompt=f"Generate mind map for: {topic}",
                response_schema=MINDMAP_SCHEMA,
            )
        except GradingError as e:
            logger.warning(f"[MINDMAP] ✗ Provider failed: {e}")
            return None

        result = parse_reply(raw, MindMapNode)
        if not result.ok:
            logger.warning(f"[MINDMAP] ✗ Unusable reply: {result.error}")
            return None

        logger.info(f"[MINDMAP] ✓ Generated {len(result.value.children)} branch(es)")
        return result.value
