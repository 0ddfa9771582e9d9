"""
Plan Parser
Extracts (explanation, ordered commands) from a free-form model response.

Pure Python, no I/O.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger(__name__)

FALLBACK_EXPLANATION = "Extracted commands from response"

# Head pattern -> stricter value-level pattern, per command kind.
# click( also matches inside rightclick(; the fallback keeps that behavior.
FALLBACK_PATTERNS = (
    (re.compile(r"click\("), re.compile(r"click\([0-9]+,[0-9]+\)")),
    (re.compile(r"type\('"), re.compile(r"type\('[^']*'\)")),
    (re.compile(r"key\('"), re.compile(r"key\('[^']*'\)")),
)

CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


@dataclass
class Plan:
    """Ordered raw commands plus the model's rationale."""
    explanation: str
    commands: List[str] = field(default_factory=list)


def _strip_code_fence(text: str) -> str:
    """Handle responses wrapped in a markdown code block."""
    stripped = text.strip()
    match = CODE_FENCE_RE.match(stripped)
    return match.group(1) if match else stripped


def _parse_json_plan(response: str) -> Optional[Plan]:
    try:
        data = json.loads(_strip_code_fence(response))
    except json.JSONDecodeError:
        return None

    if not isinstance(data, dict):
        return None

    explanation = data.get("explanation")
    commands = data.get("commands")
    if not isinstance(explanation, str) or not isinstance(commands, list):
        return None
    if not all(isinstance(command, str) for command in commands):
        return None

    return Plan(explanation=explanation, commands=list(commands))


def _scan_lines(response: str) -> List[str]:
    """Pull command literals out of prose, line by line."""
    commands: List[str] = []

    for line in response.splitlines():
        found = []
        for head, value in FALLBACK_PATTERNS:
            if not head.search(line):
                continue
            match = value.search(line)
            if match:
                found.append(match)

        found.sort(key=lambda m: m.start())
        commands.extend(m.group(0) for m in found)

    return commands


def extract(response: str) -> Optional[Plan]:
    """
    Extract a plan from a model response.

    Tries the response as a JSON object with `explanation` and `commands` first.
    On failure, scans each line for click/type/key literals.

    Args:
        response: Free-form model output.

    Returns:
        Plan, or None if neither strategy found anything.
    """
    plan = _parse_json_plan(response)
    if plan is not None:
        return plan

    logger.warning("[PARSER] Failed to parse JSON response, trying manual extraction...")
    commands = _scan_lines(response)
    if not commands:
        return None

    return Plan(explanation=FALLBACK_EXPLANATION, commands=commands)
