"""
Shared fixtures for the Essay Tutor tests.
Zero network calls — every AI reply comes from a StubProvider.
"""
import copy
import json

import pytest

from essay_tutor.services.ai_provider import AIProvider
from essay_tutor.services.grading_client import GradingClient
from essay_tutor.services.mindmap_client import MindMapClient
from essay_tutor.services.practice import StaticSuggestionProvider
from essay_tutor.services.workflow import WorkflowController


class StubProvider(AIProvider):
    """Replays canned replies (dicts are JSON-encoded) or raises `error`."""

    name = "Stub"

    def __init__(self, replies=None, error=None, gate=None, on_call=None):
        super().__init__()
        self.replies = list(replies or [])
        self.error = error
        self.gate = gate
        self.on_call = on_call
        self.calls = []

    async def _generate(self, system_instruction, prompt, response_schema, image, temperature):
        self.calls.append({
            "system_instruction": system_instruction,
            "prompt": prompt,
            "response_schema": response_schema,
            "image": image,
            "temperature": temperature,
        })
        if self.on_call:
            self.on_call()
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, str):
            return reply
        return json.dumps(reply, ensure_ascii=False)


REPORT_PAYLOAD = {
    "overallScore": 22,
    "summary": "论点清晰，但对南宋山水的论述不足。",
    "knowledgePoints": [
        {"point": "北宋全景式构图", "covered": True},
        {"point": "南宋边角之景", "covered": False, "missingDetail": "未提及马远、夏圭的“马一角、夏半边”"},
        {"point": "三远法", "covered": True},
    ],
    "logicStructure": [
        {"section": "Introduction", "evaluation": "开门见山，点明时代背景", "status": "good"},
        {"section": "Body Paragraph 1", "evaluation": "论据单薄", "status": "average"},
        {"section": "Conclusion", "evaluation": "缺少升华", "status": "poor"},
    ],
    "keywordsDetected": ["三远法", "范宽", "郭熙"],
    "errors": [
        {
            "type": "date",
            "original": "《溪山行旅图》作于南宋",
            "correction": "《溪山行旅图》作于北宋",
            "explanation": "范宽为北宋画家",
        }
    ],
    "radarData": [
        {"subject": "Knowledge", "A": 70, "B": 60, "fullMark": 100},
        {"subject": "Logic", "A": 65, "B": 60, "fullMark": 100},
        {"subject": "Language", "A": 55, "B": 60, "fullMark": 100},
    ],
    "optimization": {
        "originalSegment": "宋代山水画很有名。",
        "improvedSegment": "宋代山水画以“可行、可望、可游、可居”为审美理想，标志着中国山水画的成熟。",
        "reason": "使用画论术语，提升学术性",
    },
    "writingTemplates": {
        "brainstorming": [
            {"technique": "内外因分析", "template": "第一步：社会环境…第二步：画家个人…", "example": "1. 画院制度 2. 理学思想 3. 个人风格"},
        ],
        "intro": [
            {"technique": "历史语境切入", "template": "在……的背景下，……应运而生。", "example": "在宋代崇文抑武的背景下，山水画臻于成熟。"},
        ],
        "conclusion": [
            {"technique": "文化价值升华", "template": "……不仅……更……", "example": "宋代山水不仅是技法高峰，更是民族精神的写照。"},
        ],
    },
    "academicLanguageScore": 64,
    "comparativeLevel": "Good",
    "comparativeComment": "高于平均水平，接近优秀线。",
    "modelEssay": "一、引言\n宋代是中国山水画的黄金时代。" * 20,
}

HANDWRITING = {
    "legibility": "字迹清晰，个别字潦草",
    "estimatedWordCount": 820,
    "timeManagementAdvice": "结尾仓促，建议预留十分钟",
}


@pytest.fixture
def report_payload():
    return copy.deepcopy(REPORT_PAYLOAD)


@pytest.fixture
def handwriting_payload():
    payload = copy.deepcopy(REPORT_PAYLOAD)
    payload["handwritingEvaluation"] = copy.deepcopy(HANDWRITING)
    return payload


@pytest.fixture
def stub_provider(report_payload):
    return StubProvider([report_payload])


@pytest.fixture
def make_controller():
    def _make(provider, suggestion_provider=None):
        return WorkflowController(
            GradingClient(provider),
            suggestion_provider or StaticSuggestionProvider(),
            MindMapClient(provider),
        )
    return _make


@pytest.fixture
def jpeg_bytes():
    """A small valid JPEG answer sheet."""
    import io
    from PIL import Image

    buffer = io.BytesIO()
    Image.new("RGB", (120, 160), color="white").save(buffer, format="JPEG")
    return buffer.getvalue()
