"""
Tools module for toolhost.

Architecture:
    - Tool: Abstract base class defining the tool interface
    - ToolRegistry: Per-host registry for looking up tools by name
    - ToolContext: Runtime context passed to tools (handles, host, request id)

Tool families:
    - http: test_api_endpoint, check_api_health
    - tasks: run_tests, run_migration
    - sql: query, schema, index and maintenance tools
    - containers: docker-backed devops tools

Each tool is responsible for:
    1. Executing the operation with already-validated arguments
    2. Returning a ToolResult (summary text first, payload second)

Argument validation happens BEFORE tool execution, in the dispatcher.
"""

from toolhost.tools.base import Tool, ToolContext
from toolhost.tools.registry import ToolRegistry

__all__ = [
    "Tool",
    "ToolContext",
    "ToolRegistry",
]
