"""
aaraa_erp/assistant.py

Hosted language-model assistant: dashboard insights and chat replies.

Plain text in, plain text out. Insights degrade to a fixed greeting when the
service fails; chat failures raise AssistantError for the route to report.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Mapping, Optional

from flask import current_app
from openai import OpenAI, OpenAIError

from .models import Profile

logger = logging.getLogger(__name__)

INSIGHT_FALLBACK = "Ready to assist you with your daily operations."
CHAT_UNAVAILABLE = "Service unavailable. Please try again."


class AssistantError(Exception):
    pass


def _client() -> OpenAI:
    api_key = current_app.config.get("OPENAI_API_KEY")
    if not api_key:
        raise AssistantError("OPENAI_API_KEY is not configured.")
    return OpenAI(api_key=api_key)


def _complete(messages: List[dict]) -> str:
    try:
        response = _client().chat.completions.create(
            model=current_app.config["ASSISTANT_MODEL"],
            messages=messages,
            temperature=0.4,
        )
    except OpenAIError as exc:
        raise AssistantError(str(exc)) from exc

    text = (response.choices[0].message.content or "").strip()
    if not text:
        raise AssistantError("Empty response from assistant.")
    return text


def insight_prompt(employee: Profile, context: str) -> str:
    return (
        f"User Role: {employee.role}\n"
        f"Designation: {employee.designation}\n"
        f"Department: {employee.department}\n"
        f"Dashboard Context: {context}\n\n"
        "You are the AARAA Infrastructure AI Assistant. Provide a short, executive insight based on this "
        "role and context.\n"
        "Be concise, professional and minimal.\n"
        "Highlight any potential anomalies or key areas of focus.\n"
        "Do not apologize.\n"
        "Maximum 3 sentences."
    )


def system_instruction(employee: Profile) -> str:
    return (
        "You are the AARAA Infrastructure Enterprise AI.\n"
        f"The current user is {employee.name} ({employee.designation}) in the {employee.department} department.\n"
        f"Their role is {employee.role}.\n"
        "Provide professional decision support.\n"
        "Reference the company branding (excellence, infrastructure, premium).\n"
        "Keep answers short and actionable."
    )


def get_dashboard_insight(employee: Profile, context: str) -> str:
    try:
        return _complete([{"role": "user", "content": insight_prompt(employee, context)}])
    except AssistantError as exc:
        logger.warning("AI Insight Error: %s", exc)
        return INSIGHT_FALLBACK


def _history_messages(history: Optional[Iterable[Mapping]]) -> List[dict]:
    # Widget history uses roles "user" / "ai"
    messages = []
    for entry in history or ():
        text = str(entry.get("text") or entry.get("content") or "").strip()
        if not text:
            continue
        role = "assistant" if entry.get("role") in ("ai", "assistant") else "user"
        messages.append({"role": role, "content": text})
    return messages


def chat(employee: Profile, message: str, history: Optional[Iterable[Mapping]] = None) -> str:
    message = (message or "").strip()
    if not message:
        raise AssistantError("Message is empty.")

    messages = [{"role": "system", "content": system_instruction(employee)}]
    messages.extend(_history_messages(history))
    messages.append({"role": "user", "content": message})
    return _complete(messages)
