"""
Declarative table of the PatSnap tools exposed over MCP.

Each entry is data only: name, description, upstream endpoint, arguments and
default values. The dispatcher, and through it the MCP server, is driven
from TOOL_SPECS.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping


@dataclass(frozen=True)
class ArgumentSpec:
    key: str
    type: str = "string"
    description: str = ""
    required: bool = False

    def json_schema(self) -> dict:
        return {"type": self.type, "description": self.description}


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    endpoint_path: str
    arguments: tuple[ArgumentSpec, ...] = ()
    defaults: Mapping[str, Any] = field(default_factory=dict)
    method: str = "GET"

    @property
    def argument_keys(self) -> tuple[str, ...]:
        return tuple(a.key for a in self.arguments)

    @property
    def required_keys(self) -> tuple[str, ...]:
        return tuple(a.key for a in self.arguments if a.required)

    def input_schema(self) -> dict:
        return {
            "type": "object",
            "properties": {a.key: a.json_schema() for a in self.arguments},
            "required": list(self.required_keys),
        }


# -- shared argument definitions ---------------------------------------------

KEYWORDS = ArgumentSpec(
    "keywords",
    description=(
        "Keywords searched in patent title and abstract; supports AND, OR, NOT. "
        "Either keywords or ipc is required."
    ),
)
IPC = ArgumentSpec(
    "ipc",
    description="IPC classification code, e.g. H04M. Either keywords or ipc is required.",
)
APPLY_START = ArgumentSpec("apply_start_time", description="Filing date range start (yyyy or yyyymmdd).")
APPLY_END = ArgumentSpec("apply_end_time", description="Filing date range end (yyyy or yyyymmdd).")
PUBLIC_START = ArgumentSpec("public_start_time", description="Publication date range start (yyyy or yyyymmdd).")
PUBLIC_END = ArgumentSpec("public_end_time", description="Publication date range end (yyyy or yyyymmdd).")
AUTHORITY = ArgumentSpec(
    "authority",
    description="Patent authority code(s), e.g. CN, US, EP, JP; combine several with OR.",
)
LANG = ArgumentSpec("lang", description="Language of the results: en or cn (default en).")
LIMIT = ArgumentSpec("limit", type="integer", description="Maximum number of entries to return.")

COMMON_ARGS: tuple[ArgumentSpec, ...] = (
    KEYWORDS,
    IPC,
    APPLY_START,
    APPLY_END,
    PUBLIC_START,
    PUBLIC_END,
    AUTHORITY,
)

LANG_DEFAULTS: Mapping[str, str] = MappingProxyType({"lang": "en"})


def insights_tool(
    name: str,
    endpoint: str,
    description: str,
    *,
    with_lang: bool = False,
    with_limit: bool = False,
) -> ToolSpec:
    """A plain GET proxy to /insights/{endpoint}."""
    args = COMMON_ARGS
    if with_lang:
        args += (LANG,)
    if with_limit:
        args += (LIMIT,)
    return ToolSpec(
        name=name,
        description=description,
        endpoint_path=endpoint,
        arguments=args,
        defaults=LANG_DEFAULTS if with_lang else MappingProxyType({}),
    )


TOOL_SPECS: tuple[ToolSpec, ...] = (
    insights_tool(
        "get_patent_trends",
        "patent-trends",
        "Number of patent applications and issued patents per year, for spotting "
        "technology trends. Either keywords or ipc is required.",
    ),
    insights_tool(
        "get_word_cloud",
        "word-cloud",
        "Most frequent keywords in the 5,000 most recent patents matching the "
        "search, for a quick view of a technical field. Either keywords or ipc is required.",
        with_lang=True,
    ),
    insights_tool(
        "get_wheel_of_innovation",
        "wheel-of-innovation",
        "Two-level keyword hierarchy (wheel of innovation) of the 5,000 most recent "
        "matching patents. Either keywords or ipc is required.",
        with_lang=True,
    ),
    insights_tool(
        "get_top_authorities_of_origin",
        "priority-country",
        "Priority countries (authorities of origin) of matching patents, showing where "
        "innovation originates. Either keywords or ipc is required.",
    ),
    insights_tool(
        "get_most_cited_patents",
        "most-cited",
        "Patents with the most forward citations among the matching set. "
        "Either keywords or ipc is required.",
        with_limit=True,
    ),
    insights_tool(
        "get_top_inventors",
        "inventor-ranking",
        "Inventors ranked by number of matching patents. Either keywords or ipc is required.",
        with_limit=True,
    ),
    insights_tool(
        "get_top_assignees",
        "applicant-ranking",
        "Assignees (applicants) ranked by number of matching patents. "
        "Either keywords or ipc is required.",
        with_limit=True,
    ),
    insights_tool(
        "get_simple_legal_status",
        "simple-legal-status",
        "Breakdown of matching patents by simple legal status (active, inactive, pending). "
        "Either keywords or ipc is required.",
    ),
    insights_tool(
        "get_most_litigated_patents",
        "most-asserted",
        "Patents involved in the most litigation cases among the matching set. "
        "Either keywords or ipc is required.",
        with_limit=True,
    ),
    ToolSpec(
        name="search_patent_fields",
        description="Search patent statistics using the PatSnap Analytics query search and filter API.",
        endpoint_path="patent-field/query",
        method="POST",
        arguments=(
            ArgumentSpec("query", description="Analytics query string.", required=True),
            ArgumentSpec(
                "field",
                description="Comma-separated field codes, e.g. ASSIGNEE, INVENTOR.",
                required=True,
            ),
            ArgumentSpec("lang", description="Language code: cn, en or jp (default cn)."),
            ArgumentSpec("limit", type="integer", description="Number of results to return (default 50)."),
            ArgumentSpec("offset", type="integer", description="Offset for pagination (default 0)."),
        ),
        defaults=MappingProxyType({"lang": "cn", "limit": 50, "offset": 0}),
    ),
)


def index_tools(specs: Iterable[ToolSpec]) -> Mapping[str, ToolSpec]:
    out: dict[str, ToolSpec] = {}
    for spec in specs:
        if spec.name in out:
            raise ValueError(f"Duplicate tool name: {spec.name}")
        out[spec.name] = spec
    return MappingProxyType(out)

