"""
Intake Prompts - system prompt assembly for the AI path

Contains:
- sanitize_prompt_value(): Neutralize user-supplied text before it enters a prompt
- PersonaTemplate: Named $placeholder template for a team persona
- PERSONAS / get_persona(): Persona lookup by team, with a default
- build_context_section(): KNOWN / MISSING listing of the intake fields
- RULES_SECTION: Fixed conversation rules
- build_system_prompt(): Complete prompt for one turn
"""

import html
import re
from dataclasses import dataclass
from string import Template
from typing import Dict, Optional

from errors import ConfigurationError
from tools.registry import ToolRegistry, register_all_tools
from .context import ConversationContext, TeamConfig
from .state_machine import IntakeFlags, IntakeState, is_general_inquiry

PROMPT_VALUE_MAX_CHARS = 200

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_ROLE_LABEL_RE = re.compile(r"^\s*(?:system|user|assistant|prompt|instruct)\s*[:\-|]", re.IGNORECASE | re.MULTILINE)
_INJECTION_RE = re.compile(r"^\s*(?:ignore\s+previous|forget\s+all|reset\s+instructions?)", re.IGNORECASE | re.MULTILINE)
_COORDINATES_RE = re.compile(r"-?\d{1,3}\.\d+\s*,\s*-?\d{1,3}\.\d+")
_URL_RE = re.compile(r"(?:https?://|www\.)\S+", re.IGNORECASE)


def sanitize_prompt_value(value: Optional[str], max_chars: int = PROMPT_VALUE_MAX_CHARS) -> Optional[str]:
    """Make a context value safe to embed in the system prompt.

    URLs and coordinates are replaced before HTML escaping so the
    placeholders survive intact. Returns None when nothing is left.
    """
    if not value or not isinstance(value, str):
        return None

    text = _CONTROL_CHARS_RE.sub("", value)
    text = _ROLE_LABEL_RE.sub("", text)
    text = _INJECTION_RE.sub("", text)
    text = _URL_RE.sub("[url]", text)
    text = _COORDINATES_RE.sub("[coordinates]", text)
    text = html.escape(text, quote=True).strip()

    if len(text) > max_chars:
        text = text[:max_chars] + "..."
    return text or None


@dataclass
class PersonaTemplate:
    """A persona prompt with named $placeholders.

    Every placeholder must be supplied at render time; a missing one is a
    configuration problem, never something to send to the model.
    """

    name: str
    template: str

    def render(self, **values: str) -> str:
        try:
            return Template(self.template).substitute(**values)
        except KeyError as e:
            raise ConfigurationError(
                f"Persona '{self.name}' references an unknown placeholder",
                details=f"missing value for ${e.args[0]}",
                setting=f"persona:{self.name}",
            ) from e
        except ValueError as e:
            raise ConfigurationError(
                f"Persona '{self.name}' has a malformed placeholder",
                details=str(e),
                setting=f"persona:{self.name}",
            ) from e


DEFAULT_PERSONA = PersonaTemplate(
    name="default",
    template="""You are a legal intake specialist for $firm_name. Your primary goal is to empathetically assist people, understand their legal needs, and gather the information needed to create a legal matter.

$intro

**Your persona:**
- Empathetic, caring, and professional.
- Focus on understanding the person's situation and making them feel heard.
- Guide the conversation naturally; do not sound like a form.
- Ask about one or two things at a time, never everything at once.

**CURRENT CONTEXT (for your reference, do not expose this to the client):**
$context_section

**CRITICAL RULES:**
$rules_section

**TOOLS:**
$tools_section

Your response should be in markdown format.""",
)

FAMILY_PERSONA = PersonaTemplate(
    name="family",
    template="""You are the intake assistant for $firm_name, a family law practice. Many people reaching out are going through divorce, custody disputes, or separation, so be gentle and patient.

$intro

**CURRENT CONTEXT (for your reference, do not expose this to the client):**
$context_section

**CRITICAL RULES:**
$rules_section
- If a child's safety is at risk, acknowledge it first and offer to have a lawyer contact them right away.

**TOOLS:**
$tools_section

Your response should be in markdown format.""",
)

# Keyed by persona name or team id
PERSONAS: Dict[str, PersonaTemplate] = {
    "default": DEFAULT_PERSONA,
    "family": FAMILY_PERSONA,
}


def register_persona(key: str, persona: PersonaTemplate) -> None:
    PERSONAS[key] = persona


def get_persona(team_config: TeamConfig, default_key: str = "default") -> PersonaTemplate:
    """Team's named persona, then one registered under the team id, then the default."""
    for key in (team_config.persona, team_config.team_id, default_key):
        if key and key in PERSONAS:
            return PERSONAS[key]
    return DEFAULT_PERSONA


RULES_SECTION = "\n".join([
    "- NEVER repeat the same response or question.",
    "- ALWAYS maintain an empathetic and supportive tone.",
    "- Do NOT make assumptions about missing information. Always ask the client.",
    "- Ask qualifying questions about the situation first. Only request contact details once those answers show the matter is serious enough for a lawyer.",
    "- ALWAYS confirm the legal issue classification (matter type) with the client before calling create_matter.",
    "- Only create a matter once the client has given their name, legal issue, a description, and a phone number or email.",
    "- Never invent or guess contact details; placeholder values like 'N/A' or 'test@test.com' are not acceptable.",
    '- If the query is a general inquiry (e.g., "what services do you offer?", "how much does it cost?"), respond conversationally without creating a matter or calling any tool.',
    '- If the client asks a question that can be answered directly (e.g., "what is family law?"), give a concise, helpful answer.',
    "- If the client shares something sensitive or urgent, acknowledge it with empathy and offer to have a lawyer review it.",
    "- If the client does not want to share some information, respect that and explain why it helps.",
    "- If the client's intent is unclear, ask a clarifying question.",
    "- Keep responses concise but friendly.",
])


def _field_line(label: str, value: Optional[str]) -> str:
    clean = sanitize_prompt_value(value)
    return f"- {label}: KNOWN ({clean})" if clean else f"- {label}: MISSING"


def build_context_section(context: ConversationContext, state: IntakeState, latest_message: str = "") -> str:
    flags = IntakeFlags.from_context(context)
    contact = context.contact_info
    lines = [
        _field_line("Name", contact.name),
        _field_line("Legal Issue", context.primary_matter_type),
        _field_line("Description", context.issue_description),
        _field_line("Phone", contact.phone),
        _field_line("Email", contact.email),
        _field_line("Location", contact.location or context.jurisdiction),
        f"- Is Sensitive Matter: {'YES' if flags.is_sensitive else 'NO'}",
        f"- Is General Inquiry: {'YES' if is_general_inquiry(latest_message) else 'NO'}",
        f"- Current State: {state.value}",
    ]
    missing = flags.missing_fields()
    if missing:
        lines.append(f"- Still Needed: {', '.join(missing)}")
    return "\n".join(lines)


def build_system_prompt(
    context: ConversationContext,
    state: IntakeState,
    team_config: TeamConfig,
    latest_message: str = "",
    firm_name: str = "our firm",
    default_persona: str = "default",
) -> str:
    register_all_tools()
    persona = get_persona(team_config, default_persona)
    return persona.render(
        firm_name=sanitize_prompt_value(team_config.name) or firm_name,
        intro=sanitize_prompt_value(team_config.intro, max_chars=500) or "",
        context_section=build_context_section(context, state, latest_message),
        rules_section=RULES_SECTION,
        tools_section=ToolRegistry.generate_tools_section(),
    )
