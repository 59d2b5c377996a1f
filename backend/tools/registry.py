"""
Tool Registry - dispatch table for the intake tools.

Each tool is a self-contained definition that registers itself with the
registry. The registry is the single source of truth for:
- which tool names the AI may request
- the tools section of the system prompt
- which executor runs for a validated invocation
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class ToolCategory(Enum):
    """Tool categories for grouping and prompt ordering."""

    INTAKE = "intake"  # Gathers or submits client information
    ESCALATION = "escalation"  # Hands the conversation to a human
    DOCUMENT = "document"  # Works on uploaded files


@dataclass
class ToolDefinition:
    """Definition of a tool for the registry."""

    name: str
    description: str
    parameters: Dict[str, Dict[str, str]]
    required_params: List[str]
    executor: Callable[..., Awaitable[Any]]
    category: ToolCategory
    brief: str = ""  # One-line summary for the prompt tools list
    example: Optional[Dict[str, str]] = None  # Sample PARAMETERS object for the prompt
    side_effecting: bool = True


class ToolRegistry:
    """
    Central registry for all intake tools.

    Usage:
        # Register a tool
        ToolRegistry.register(ToolDefinition(...))

        # Prompt text
        section = ToolRegistry.generate_tools_section()

        # Look up an executor
        tool = ToolRegistry.get_tool("create_matter")
    """

    _tools: Dict[str, ToolDefinition] = {}
    _initialized: bool = False

    @classmethod
    def register(cls, tool: ToolDefinition) -> None:
        cls._tools[tool.name] = tool
        logger.debug(f"Registered tool: {tool.name}")

    @classmethod
    def get_tool(cls, name: str) -> Optional[ToolDefinition]:
        return cls._tools.get(name)

    @classmethod
    def get_all_tools(cls) -> Dict[str, ToolDefinition]:
        return cls._tools.copy()

    @classmethod
    def get_tools_by_category(cls, category: ToolCategory) -> List[ToolDefinition]:
        return [t for t in cls._tools.values() if t.category == category]

    @classmethod
    def generate_tools_section(cls) -> str:
        """Generate the TOOLS section of the system prompt from the registry."""
        lines = ["AVAILABLE TOOLS:"]

        for i, tool in enumerate(cls._tools.values(), 1):
            lines.append(f"{i}. {tool.name}: {tool.brief or tool.description}")
            for param, spec in tool.parameters.items():
                marker = "required" if param in tool.required_params else "optional"
                lines.append(f"   - {param} ({spec.get('type', 'string')}, {marker}): {spec.get('description', '')}")

        lines.append("")
        lines.append("To use a tool, reply with exactly these two lines and nothing after them:")
        lines.append("TOOL_CALL: <tool_name>")
        lines.append('PARAMETERS: {"param": "value"}')
        lines.append("")
        lines.append("Rules:")
        lines.append("- PARAMETERS must be a single valid JSON object (double quotes, no comments, no trailing commas)")
        lines.append("- Only one tool call per reply; anything after the first is ignored")
        lines.append("- Never invent values: only use information the client actually gave you")

        examples = [t for t in cls._tools.values() if t.example]
        if examples:
            lines.append("")
            lines.append("Example:")
            lines.append(f"TOOL_CALL: {examples[0].name}")
            lines.append(f"PARAMETERS: {json.dumps(examples[0].example)}")

        return "\n".join(lines)

    @classmethod
    def clear(cls) -> None:
        """Clear all registered tools (for testing)."""
        cls._tools.clear()
        cls._initialized = False

    @classmethod
    def reinitialize(cls) -> int:
        cls.clear()
        register_all_tools()
        return len(cls._tools)


def register_all_tools() -> None:
    """Register the intake tools with the registry (idempotent)."""
    if ToolRegistry._initialized:
        return

    from routers.intake_executors.matter import execute_create_matter, execute_collect_contact_info
    from routers.intake_executors.review import execute_request_lawyer_review
    from routers.intake_executors.document import execute_analyze_document
    from tools.validators import TOOL_REQUIREMENTS

    ToolRegistry.register(
        ToolDefinition(
            name="create_matter",
            brief="Create a legal matter once you have the client's name, matter type, description and a phone or email",
            description="""Create a new legal matter for attorney review.

Only call this when the client has given you their name, the type of legal matter,
a description of their situation, and at least one of phone or email.""",
            parameters={
                "name": {"type": "string", "description": "Client's full name"},
                "matter_type": {"type": "string", "description": "Type of legal matter, e.g. Family Law"},
                "description": {"type": "string", "description": "Brief description of the legal issue"},
                "phone": {"type": "string", "description": "Client's phone number"},
                "email": {"type": "string", "description": "Client's email address"},
                "location": {"type": "string", "description": "City and state, or country"},
                "opposing_party": {"type": "string", "description": "Other party involved, if any"},
            },
            required_params=list(TOOL_REQUIREMENTS["create_matter"].required),
            executor=execute_create_matter,
            category=ToolCategory.INTAKE,
            example={
                "name": "Jane Smith",
                "matter_type": "Family Law",
                "description": "Seeking custody arrangement after separation",
                "phone": "(312) 555-0142",
                "email": "jane.smith@gmail.com",
                "location": "Chicago, IL",
            },
        )
    )

    ToolRegistry.register(
        ToolDefinition(
            name="collect_contact_info",
            brief="Record the client's name and contact details",
            description="Record the client's name and any contact details they have shared.",
            parameters={
                "name": {"type": "string", "description": "Client's full name"},
                "phone": {"type": "string", "description": "Client's phone number"},
                "email": {"type": "string", "description": "Client's email address"},
                "location": {"type": "string", "description": "City and state, or country"},
            },
            required_params=list(TOOL_REQUIREMENTS["collect_contact_info"].required),
            executor=execute_collect_contact_info,
            category=ToolCategory.INTAKE,
        )
    )

    ToolRegistry.register(
        ToolDefinition(
            name="request_lawyer_review",
            brief="Escalate urgent or complex matters to a lawyer",
            description="Request that a lawyer review this matter personally. Use for urgent or complex situations.",
            parameters={
                "urgency": {"type": "string", "description": "low, medium, high or urgent"},
                "complexity": {"type": "string", "description": "Short note on why this is complex"},
                "matter_type": {"type": "string", "description": "Type of legal matter"},
            },
            required_params=list(TOOL_REQUIREMENTS["request_lawyer_review"].required),
            executor=execute_request_lawyer_review,
            category=ToolCategory.ESCALATION,
        )
    )

    ToolRegistry.register(
        ToolDefinition(
            name="analyze_document",
            brief="Analyze a document the client uploaded",
            description="Extract and summarize an uploaded document, and suggest a matter type.",
            parameters={
                "file_id": {"type": "string", "description": "ID of the uploaded file"},
                "analysis_type": {
                    "type": "string",
                    "description": "contract, medical_document, government_form, image or general",
                },
                "specific_question": {"type": "string", "description": "What the client wants to know"},
            },
            required_params=list(TOOL_REQUIREMENTS["analyze_document"].required),
            executor=execute_analyze_document,
            category=ToolCategory.DOCUMENT,
            side_effecting=False,
        )
    )

    ToolRegistry._initialized = True
    logger.info(f"Registered {len(ToolRegistry._tools)} intake tools")
