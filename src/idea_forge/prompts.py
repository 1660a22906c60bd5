"""Prompt builders."""

from __future__ import annotations

from typing import Dict, List

IDEA_SYSTEM_PROMPT = (
    "You are a startup advisor who proposes concrete, realistic business ideas. "
    "Always answer with a single JSON object and nothing else."
)

SOCRATIC_SYSTEM_PROMPTS: Dict[str, str] = {
    "brainstorm": (
        "You are a Socratic coach helping a founder discover business ideas. "
        "Ask one open question at a time and answer with a JSON object only."
    ),
    "refine": (
        "You are a Socratic coach helping a founder sharpen an existing idea. "
        "Probe assumptions with one pointed question at a time and answer with a JSON object only."
    ),
}

VALIDATION_SYSTEM_PROMPT = (
    "You are an experienced product manager who tells real demand from imagined demand. "
    "Judge three dimensions: frequency (high/medium/low), pain point strength "
    "(strong/medium/weak) and payment willingness (high/medium/low). "
    "Real demand scores high or strong on at least two of them. "
    "Give an overall score from 0 to 100 and answer with a JSON object only."
)

GENERATION_FOCUS = {
    "trending": "opportunities riding current market trends",
    "random": "unexpected, unconventional startup concepts",
    "niche": "underserved niche markets",
    "innovation": "disruptive, innovative business models",
    "scalability": "ideas with high growth and scaling potential",
}

IDEA_SCHEMA = (
    '{"ideas": [{"title": "...", "targetMarket": "...", "revenueModel": "...", '
    '"keyFeatures": ["..."], "description": "...", "marketSize": "...", "competition": "..."}]}'
)


def build_idea_prompt(interests: str, generation_type: str, count: int = 5) -> str:
    focus = GENERATION_FOCUS.get(generation_type, generation_type)
    return (
        f"Generate {count} business ideas focused on {focus}.\n\n"
        f"Founder interests and skills:\n{interests}\n\n"
        f"Return JSON in exactly this shape:\n{IDEA_SCHEMA}"
    )


def format_conversation_history(history: List[Dict[str, str]]) -> str:
    if not history:
        return "(This is the start of the conversation.)"
    lines = []
    for message in history:
        label = "User" if message.get("role") == "user" else "AI"
        lines.append(f"{label}: {message.get('content', '')}")
    return "\n\n".join(lines)


def build_socratic_prompt(mode: str, topic: str, conversation: str) -> str:
    goal = "explore possible ideas" if mode == "brainstorm" else "refine the idea"
    return (
        f"Topic: {topic}\n\n"
        f"Conversation so far:\n{conversation}\n\n"
        f"Ask the next question that helps the user {goal}. Return JSON:\n"
        '{"question": "...", "suggestions": ["..."], "insights": "..."}'
    )


def build_validation_prompt(demand: str) -> str:
    return (
        f"Assess whether this is a real demand with business value:\n\n{demand}\n\n"
        "Return JSON in exactly this shape:\n"
        '{"isRealDemand": true, "score": 75, "frequency": "high|medium|low", '
        '"painPoint": "strong|medium|weak", "paymentWillingness": "high|medium|low", '
        '"reasoning": "...", "actionPlan": ["step 1", "step 2"]}\n\n'
        "actionPlan must list 5-8 concrete steps."
    )
