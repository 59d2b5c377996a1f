"""
Tool-call protocol parser.

The AI collaborator requests a side effect with a two-line directive:

    TOOL_CALL: create_matter
    PARAMETERS: {"name": "Jane Doe", "matter_type": "Family Law", ...}

parse_tool_call() never raises. Anything it cannot turn into a schema-valid
ToolInvocation is logged at WARNING and treated as plain prose.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from pydantic import ValidationError as SchemaError

from tools.schemas import TOOL_SCHEMAS
from utils.redaction import describe_text

logger = logging.getLogger(__name__)

_TOOL_CALL_RE = re.compile(r"TOOL_CALL:\s*(\w+)")
_PARAMETERS_RE = re.compile(r"PARAMETERS:\s*", re.IGNORECASE)


@dataclass(frozen=True)
class ToolInvocation:
    tool_name: str
    parameters: Dict[str, Any] = field(default_factory=dict)


def _reject_constant(name: str) -> Any:
    # NaN, Infinity and -Infinity are not JSON
    raise ValueError(f"non-standard JSON constant {name}")


def extract_json_object(content: str) -> Optional[str]:
    """Return the first balanced {...} substring, honouring string literals."""
    start = content.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(content)):
        c = content[i]
        if in_string:
            if escaped:
                escaped = False
            elif c == "\\":
                escaped = True
            elif c == '"':
                in_string = False
            continue
        if c == '"':
            in_string = True
        elif c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return content[start:i + 1]
    return None


def strip_tool_directive(text: str) -> str:
    """Prose that precedes the first TOOL_CALL directive."""
    if not text:
        return ""
    match = _TOOL_CALL_RE.search(text)
    if not match:
        return text.strip()
    return text[:match.start()].strip()


def parse_tool_call(text: str) -> Optional[ToolInvocation]:
    """Parse the first tool directive in an AI reply, or return None."""
    if not text:
        return None

    matches = list(_TOOL_CALL_RE.finditer(text))
    if not matches:
        return None
    if len(matches) > 1:
        logger.warning(f"AI reply contained {len(matches)} tool directives; ignoring {len(matches) - 1}")

    first = matches[0]
    tool_name = first.group(1).lower()
    schema = TOOL_SCHEMAS.get(tool_name)
    if schema is None:
        logger.warning(f"Unknown tool in AI reply: {tool_name}")
        return None

    # Parameters belong to the first directive only
    end = matches[1].start() if len(matches) > 1 else len(text)
    segment = text[first.end():end]
    params_match = _PARAMETERS_RE.search(segment)
    if not params_match:
        logger.warning(f"Tool directive {tool_name} has no PARAMETERS line")
        return None

    raw = extract_json_object(segment[params_match.end():])
    if raw is None:
        logger.warning(f"Tool directive {tool_name} has no JSON object: {describe_text(segment)}")
        return None

    try:
        data = json.loads(raw, parse_constant=_reject_constant)
    except ValueError as e:
        logger.warning(f"Tool directive {tool_name} has invalid JSON: {e}")
        return None

    if not isinstance(data, dict):
        logger.warning(f"Tool directive {tool_name} parameters are not an object")
        return None

    try:
        params = schema.model_validate(data)
    except SchemaError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        logger.warning(f"Tool directive {tool_name} failed schema check on {fields}")
        return None

    return ToolInvocation(tool_name=tool_name, parameters=params.model_dump(exclude_none=True))
