"""Prompt construction for the Gemini-backed operations.

Every builder is a pure function of its arguments: no clock, no randomness,
so identical input always produces byte-identical prompts. Structured input
is embedded with ``json.dumps(..., ensure_ascii=False)`` so Japanese and other
non-ASCII text reaches the model unchanged.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

JSON_ONLY_RULE = (
    "Respond with exactly one JSON object matching the schema above. "
    "Do not wrap it in markdown, do not add comments, and do not write any text before or after it."
)
LANGUAGE_RULE = "Write every human-readable string in the same language as the user's input."

TASK_ANALYSIS_SCHEMA = """{
  "title": "string, a clear task title",
  "description": "string, a detailed description of the task",
  "priority": "integer 1-5 (1 = low, 5 = high)",
  "difficulty": "integer 1-5 (1 = easy, 5 = hard)",
  "estimatedDuration": "integer, expected minutes",
  "category": "string, e.g. work, study, personal",
  "tags": ["string"],
  "isSkippable": "boolean"
}"""

SCHEDULE_SCHEMA = """{
  "optimizedTasks": [
    {
      "id": "string, the task id from the input when present",
      "title": "string, the task title from the input",
      "priority": "low | medium | high | urgent",
      "estimatedDuration": "integer, minutes",
      "scheduledTime": "string, ISO 8601 start time",
      "category": "string",
      "optimizationReason": "string, why this slot was chosen"
    }
  ],
  "optimizationInsights": ["string"],
  "efficiencyScore": "number between 0 and 1",
  "timeDistribution": {
    "morning": "integer, number of tasks",
    "afternoon": "integer, number of tasks",
    "evening": "integer, number of tasks"
  }
}"""

RECOMMENDATIONS_SCHEMA = """{
  "recommendations": [
    {
      "type": "productivity | habit | schedule | goal",
      "title": "string",
      "description": "string",
      "priority": "low | medium | high",
      "actionable": true,
      "estimatedImpact": "low | medium | high",
      "implementationSteps": ["string"],
      "timeframe": "string, e.g. 1 week, 1 month"
    }
  ],
  "insights": {
    "strengths": ["string"],
    "improvementAreas": ["string"],
    "riskFactors": ["string"]
  },
  "personalizedTips": ["string"],
  "nextActions": ["string"]
}"""

CONNECTION_TEST_PROMPT = (
    "This is a connectivity check. Reply with this JSON object and nothing else:\n"
    '{"status": "success", "message": "Vertex AI connection is working"}'
)


def to_prompt_json(value: Any) -> str:
    """Serialize prompt input deterministically and losslessly."""
    return json.dumps(value, ensure_ascii=False, indent=2, default=str)


def build_task_analysis_prompt(user_input: str, scheduled_date: Optional[str] = None) -> str:
    return (
        "You are an expert task-analysis assistant for a personal productivity app.\n"
        "Extract structured task information from the user's input below.\n\n"
        f"User input: {to_prompt_json(user_input)}\n"
        f"Scheduled date: {scheduled_date or 'not specified'}\n\n"
        "Output schema:\n"
        f"{TASK_ANALYSIS_SCHEMA}\n\n"
        f"{LANGUAGE_RULE}\n"
        f"{JSON_ONLY_RULE}"
    )


def build_schedule_prompt(
    tasks: List[Dict[str, Any]],
    preferences: Dict[str, Any],
    task_history: Optional[List[Dict[str, Any]]] = None,
    history_limit: int = 5,
) -> str:
    history_block = to_prompt_json(task_history[:history_limit]) if task_history else "No history available."
    return (
        "You are an expert schedule-optimization assistant.\n"
        "Analyse the task list and produce the best schedule for the user. "
        "Return every input task exactly once; keep each task's id and title.\n\n"
        "Tasks:\n"
        f"{to_prompt_json(tasks)}\n\n"
        "User preferences:\n"
        f"{to_prompt_json(preferences)}\n\n"
        "Recent task history (reference only):\n"
        f"{history_block}\n\n"
        "Output schema:\n"
        f"{SCHEDULE_SCHEMA}\n\n"
        f"{LANGUAGE_RULE}\n"
        f"{JSON_ONLY_RULE}"
    )


def build_recommendations_prompt(profile: Dict[str, Any], context: Dict[str, Any]) -> str:
    return (
        "You are an experienced productivity consultant.\n"
        "Study the user's profile and current situation and write personalised recommendations.\n\n"
        "User profile:\n"
        f"{to_prompt_json(profile)}\n\n"
        "Current situation:\n"
        f"{to_prompt_json(context)}\n\n"
        "Output schema:\n"
        f"{RECOMMENDATIONS_SCHEMA}\n\n"
        f"{LANGUAGE_RULE}\n"
        f"{JSON_ONLY_RULE}"
    )


def build_connection_test_prompt() -> str:
    return CONNECTION_TEST_PROMPT
