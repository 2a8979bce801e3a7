#!/usr/bin/env python3
"""
Command-line interface for classlens - Java class analysis over MCP.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

from .config import ToolConfig
from .errors import ClassLensError


def setup_logging(verbose: bool = False):
    """Log to stderr; stdout carries MCP traffic when serving."""
    debug = verbose or bool(os.environ.get("CLASSLENS_DEBUG"))
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("anyio").setLevel(logging.WARNING)


def start_command(args):
    """Serve the MCP tools over stdio."""
    from .server import ClassLensServer

    server = ClassLensServer(ToolConfig.from_env())
    try:
        asyncio.run(server.run_stdio())
    except KeyboardInterrupt:
        pass


def scan_command(args):
    """Build the class index of a Maven project."""
    from .formatting import format_scan_result
    from .scanner import DependencyScanner

    scanner = DependencyScanner(ToolConfig.from_env())
    try:
        result = scanner.scan_project(args.project, force_refresh=args.force)
    except ClassLensError as e:
        print(f"Error scanning {args.project}: {e}", file=sys.stderr)
        sys.exit(1)
    print(format_scan_result(result))


def decompile_command(args):
    """Print the decompiled source of a class."""
    from .decompiler import DecompilerService
    from .formatting import format_decompiled

    service = DecompilerService(config=ToolConfig.from_env())
    try:
        source = service.decompile_class(
            args.class_name,
            args.project,
            use_cache=not args.no_cache,
            cfr_path=args.cfr,
        )
    except ClassLensError as e:
        print(f"Error decompiling {args.class_name}: {e}", file=sys.stderr)
        sys.exit(1)
    print(format_decompiled(args.class_name, source))


def analyze_command(args):
    """Print the structure of a class."""
    from .analyzer import ClassAnalyzer
    from .formatting import format_analysis

    analyzer = ClassAnalyzer(config=ToolConfig.from_env())
    try:
        description = analyzer.analyze_class(args.class_name, args.project)
        print(format_analysis(description))
        if args.hierarchy:
            chain = analyzer.get_inheritance_hierarchy(args.class_name, args.project)
            print("Hierarchy: " + " -> ".join(chain))
        if args.subclasses:
            subclasses = analyzer.find_subclasses(args.class_name, args.project)
            print(f"Direct subclasses ({len(subclasses)}):")
            for name in subclasses:
                print(f"  - {name}")
    except ClassLensError as e:
        print(f"Error analyzing {args.class_name}: {e}", file=sys.stderr)
        sys.exit(1)


def config_command(args):
    """Write an MCP client configuration that launches this server."""
    config = {
        "mcpServers": {
            "java-class-analyzer": {
                "command": "classlens",
                "args": ["start"],
                "env": {
                    "MAVEN_REPO": os.environ.get("MAVEN_REPO", ""),
                    "JAVA_HOME": os.environ.get("JAVA_HOME", ""),
                    "CFR_PATH": os.environ.get("CFR_PATH", ""),
                },
            }
        }
    }

    output = Path(args.output)
    output.write_text(json.dumps(config, indent=2) + "\n", encoding="utf-8")
    print(f"MCP client configuration written to {output}")


def main(argv=None):
    """Main entry point for classlens CLI."""
    parser = argparse.ArgumentParser(
        prog="classlens",
        description="Java Class Analyzer - index, decompile and analyze classes of Maven dependencies",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Start command
    start_parser = subparsers.add_parser(
        "start",
        help="Start the MCP server on stdio",
    )
    start_parser.set_defaults(func=start_command)

    # Scan command
    scan_parser = subparsers.add_parser(
        "scan",
        help="Index the classes of a Maven project's dependencies",
    )
    scan_parser.add_argument(
        "project",
        help="Maven project root",
    )
    scan_parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Rebuild the index even if one exists",
    )
    scan_parser.set_defaults(func=scan_command)

    # Decompile command
    decompile_parser = subparsers.add_parser(
        "decompile",
        help="Decompile an indexed class with CFR",
    )
    decompile_parser.add_argument("class_name", help="Fully qualified class name")
    decompile_parser.add_argument("project", help="Maven project root")
    decompile_parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Ignore and do not write the decompile cache",
    )
    decompile_parser.add_argument(
        "--cfr",
        help="Path to the CFR jar (default: discovered)",
    )
    decompile_parser.set_defaults(func=decompile_command)

    # Analyze command
    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Show the structure of an indexed class",
    )
    analyze_parser.add_argument("class_name", help="Fully qualified class name")
    analyze_parser.add_argument("project", help="Maven project root")
    analyze_parser.add_argument(
        "--hierarchy",
        action="store_true",
        help="Also print the superclass chain",
    )
    analyze_parser.add_argument(
        "--subclasses",
        action="store_true",
        help="Also search the index for direct subclasses",
    )
    analyze_parser.set_defaults(func=analyze_command)

    # Config command
    config_parser = subparsers.add_parser(
        "config",
        help="Write an MCP client configuration file",
    )
    config_parser.add_argument(
        "-o", "--output",
        default="mcp-client-config.json",
        help="Output file (default: mcp-client-config.json)",
    )
    config_parser.set_defaults(func=config_command)

    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    # Bare `classlens` is how MCP clients launch the server
    if args.command is None:
        start_command(args)
        return

    args.func(args)


if __name__ == "__main__":
    main()
