"""
MCP front-end exposing scan_dependencies, decompile_class and analyze_class.

Every tool answers with a single text block. Failures are rendered as text
too, so a client always gets a readable reply instead of a protocol error.
"""

import asyncio
import logging
from typing import Optional

import mcp.types as types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from .analyzer import ClassAnalyzer
from .config import ToolConfig
from .decompiler import DecompilerService
from .errors import ClassLensError
from .formatting import (
    DEFAULT_SUGGESTIONS,
    format_analysis,
    format_decompiled,
    format_scan_result,
    format_tool_error,
)
from .scanner import DependencyScanner

logger = logging.getLogger(__name__)

SERVER_NAME = "java-class-analyzer"

TOOLS = [
    types.Tool(
        name="scan_dependencies",
        description="Scan all dependencies of a Maven project and build a class-name to jar index",
        inputSchema={
            "type": "object",
            "properties": {
                "projectPath": {
                    "type": "string",
                    "description": "Path to the Maven project root",
                },
                "forceRefresh": {
                    "type": "boolean",
                    "description": "Rebuild the index even if one exists",
                    "default": False,
                },
            },
            "required": ["projectPath"],
        },
    ),
    types.Tool(
        name="decompile_class",
        description="Decompile a class from the project's dependencies to Java source",
        inputSchema={
            "type": "object",
            "properties": {
                "className": {
                    "type": "string",
                    "description": "Fully qualified class name, e.g. com.example.QueryBizOrderDO",
                },
                "projectPath": {
                    "type": "string",
                    "description": "Path to the Maven project root",
                },
                "useCache": {
                    "type": "boolean",
                    "description": "Reuse a previously decompiled source",
                    "default": True,
                },
                "cfrPath": {
                    "type": "string",
                    "description": "Path to the CFR jar; discovered automatically when omitted",
                },
            },
            "required": ["className", "projectPath"],
        },
    ),
    types.Tool(
        name="analyze_class",
        description="Analyze the structure of a class: package, modifiers, superclass, interfaces, fields and methods",
        inputSchema={
            "type": "object",
            "properties": {
                "className": {
                    "type": "string",
                    "description": "Fully qualified class name",
                },
                "projectPath": {
                    "type": "string",
                    "description": "Path to the Maven project root",
                },
            },
            "required": ["className", "projectPath"],
        },
    ),
]

SUGGESTIONS = {
    "scan_dependencies": (
        "Check that projectPath points at a Maven project with a pom.xml",
        "Make sure mvn is installed or MAVEN_HOME is set",
        "See the server log for details",
    ),
    "decompile_class": (
        "Run scan_dependencies first to build the class index",
        "Check that the CFR decompiler is installed or CFR_PATH is set",
        "Verify the class name is fully qualified",
    ),
    "analyze_class": (
        "Run scan_dependencies first to build the class index",
        "Check that a JDK with javap is installed or JAVA_HOME is set",
        "Verify the class name is fully qualified",
    ),
}


class ClassLensServer:
    """Binds the services to an MCP Server instance."""

    def __init__(
        self,
        config: Optional[ToolConfig] = None,
        scanner: Optional[DependencyScanner] = None,
        decompiler: Optional[DecompilerService] = None,
        analyzer: Optional[ClassAnalyzer] = None,
    ):
        self.config = config or ToolConfig.from_env()
        self.scanner = scanner or DependencyScanner(self.config)
        self.decompiler = decompiler or DecompilerService(self.scanner, self.config)
        self.analyzer = analyzer or ClassAnalyzer(self.scanner, config=self.config)
        self.server = Server(SERVER_NAME)
        self._register()

    def _register(self):
        @self.server.list_tools()
        async def list_tools() -> list[types.Tool]:
            return TOOLS

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict) -> list[types.TextContent]:
            text = await self.call(name, arguments or {})
            return [types.TextContent(type="text", text=text)]

    async def call(self, name: str, arguments: dict) -> str:
        """Run one tool and return its text reply, rendering any failure."""
        logger.info("call_tool: %s %s", name, arguments)
        try:
            if name == "scan_dependencies":
                return await asyncio.to_thread(self.scan_dependencies, arguments)
            elif name == "decompile_class":
                return await asyncio.to_thread(self.decompile_class, arguments)
            elif name == "analyze_class":
                return await asyncio.to_thread(self.analyze_class, arguments)
            else:
                raise ClassLensError(f"Unknown tool: {name}")
        except Exception as e:
            logger.error("Tool %s failed: %s", name, e)
            return format_tool_error(e, SUGGESTIONS.get(name, DEFAULT_SUGGESTIONS))

    def scan_dependencies(self, arguments: dict) -> str:
        project_path = _required(arguments, "projectPath")
        result = self.scanner.scan_project(project_path, bool(arguments.get("forceRefresh", False)))
        return format_scan_result(result)

    def decompile_class(self, arguments: dict) -> str:
        class_name = _required(arguments, "className")
        project_path = _required(arguments, "projectPath")
        self.ensure_index_exists(project_path)
        source = self.decompiler.decompile_class(
            class_name,
            project_path,
            use_cache=bool(arguments.get("useCache", True)),
            cfr_path=arguments.get("cfrPath") or None,
        )
        return format_decompiled(class_name, source)

    def analyze_class(self, arguments: dict) -> str:
        class_name = _required(arguments, "className")
        project_path = _required(arguments, "projectPath")
        self.ensure_index_exists(project_path)
        return format_analysis(self.analyzer.analyze_class(class_name, project_path))

    def ensure_index_exists(self, project_path: str):
        """Build the class index on first use."""
        if not self.scanner.index_exists(project_path):
            logger.info("No class index for %s, scanning dependencies first", project_path)
            self.scanner.scan_project(project_path)

    async def run_stdio(self):
        logger.info("Java Class Analyzer MCP server starting (stdio)")
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
            )


def _required(arguments: dict, key: str) -> str:
    value = arguments.get(key)
    if not value:
        raise ClassLensError(f"{key} is required")
    return value
