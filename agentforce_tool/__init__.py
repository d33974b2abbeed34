"""agentforce-tool: forward one MCP tool call from stdin to the AgentForce server."""

from __future__ import annotations

from agentforce_tool.config import ClientConfig, ConnectionProfile
from agentforce_tool.dispatcher import Dispatcher
from agentforce_tool.errors import ErrorCode
from agentforce_tool.exit_codes import ExitCode
from agentforce_tool.operations import Operation
from agentforce_tool.protocol import handle_request, run

__version__ = "1.0.2"
__all__ = [
    "ClientConfig",
    "ConnectionProfile",
    "Dispatcher",
    "ErrorCode",
    "ExitCode",
    "Operation",
    "handle_request",
    "run",
]
