"""
AI helpers for the board: subtask suggestions and assignee notification drafts.

Both calls are best-effort. Any failure (no API key, network error, malformed
reply) is logged and absorbed: subtask suggestions come back empty and the
email draft falls back to a fixed template.
"""
from __future__ import annotations

import json
import logging
import os
from typing import Any, List, Optional

from openai import OpenAI

from .model import EmailDraft, Task, User

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"

SUBTASKS_PROMPT = """Break down the following project task into 3-5 concrete, actionable subtasks.
Task Title: {title}
Task Description: {description}

Reply with a JSON object of the form {{"subtasks": [{{"title": "..."}}]}}."""

EMAIL_PROMPT = """Write a professional and concise email notification from {sender} to {assignee} regarding a project task update.

Task Details:
- Title: {title}
- Status: {status}
- Priority: {priority}
- Due Date: {due_date}

The email should inform them of the current status or assignment and request any necessary action. Keep it under 100 words.
Reply with a JSON object with the keys "subject" and "body"."""


def _get_client() -> Optional[OpenAI]:
    api_key = os.environ.get("OPENAI_API_KEY")
    if not api_key:
        logger.info("OPENAI_API_KEY not set; AI features use fallbacks only")
        return None
    return OpenAI(api_key=api_key)


def fallback_email_draft(task: Task, assignee: User, sender: User) -> EmailDraft:
    return EmailDraft(
        subject=f"Update regarding task: {task.title}",
        body=(
            f"Hi {assignee.name},\n\n"
            f'Just wanted to give you a quick update on "{task.title}". '
            f"It is currently {task.status.value}. Please check the board for details.\n\n"
            f"Best,\n{sender.name}"
        ),
    )


class TaskAssistant:
    """
    Thin wrapper around a chat-completions client.

    `client` is anything exposing `chat.completions.create(...)` like
    `openai.OpenAI`; pass `None` to run with fallbacks only. When omitted the
    client is built from `OPENAI_API_KEY`.
    """

    _UNSET: Any = object()

    def __init__(self, client: Any = _UNSET, model: Optional[str] = None):
        self.client = _get_client() if client is self._UNSET else client
        self.model = model or os.environ.get("TASKBOARD_AI_MODEL", DEFAULT_MODEL)

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def _complete_json(self, prompt: str) -> Any:
        if self.client is None:
            raise RuntimeError("No AI client configured")
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            response_format={"type": "json_object"},
        )
        text = response.choices[0].message.content
        if not text:
            raise ValueError("Empty response from AI")
        return json.loads(text)

    def suggest_subtasks(self, title: str, description: str = "") -> List[str]:
        try:
            data = self._complete_json(SUBTASKS_PROMPT.format(title=title, description=description))
            items = data.get("subtasks", []) if isinstance(data, dict) else data
            titles = []
            for item in items:
                value = item.get("title") if isinstance(item, dict) else item
                if isinstance(value, str) and value.strip():
                    titles.append(value.strip())
            return titles
        except Exception as e:
            logger.warning("Failed to generate subtasks for %r: %s", title, e)
            return []

    def draft_notification_email(self, task: Task, assignee: User, sender: User) -> EmailDraft:
        prompt = EMAIL_PROMPT.format(
            sender=sender.name,
            assignee=assignee.name,
            title=task.title,
            status=task.status.value,
            priority=task.priority.value,
            due_date=task.due_date.isoformat() if task.due_date else "No due date",
        )
        try:
            data = self._complete_json(prompt)
            return EmailDraft(subject=data["subject"], body=data["body"])
        except Exception as e:
            logger.warning("Failed to draft email for task %r, using template: %s", task.id, e)
            return fallback_email_draft(task, assignee, sender)
