#!/usr/bin/env python3
"""
Plant bridge - tool calls over a live control system, with policy-gated writes.
"""

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

# Configure logging
logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "info").upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)


def print_rules(paths: List[str], check: Optional[str] = None) -> int:
    """Print the merged rules of one or two instruction documents; optionally check a datapoint."""
    from bridge.authz.policy import check_write, summarize_decision
    from bridge.authz.rules import RuleSet, extract_rules, merge_rules
    from bridge.providers.document_store import FileDocumentStore

    store = FileDocumentStore()
    policy = RuleSet.empty()
    for path in paths:
        policy = merge_rules(policy, extract_rules(store.read_text(path)))

    if check:
        decision = check_write(check, policy)
        print(summarize_decision(decision, policy))
        return 0 if decision.allowed else 1

    print(json.dumps(policy.to_dict(), indent=2))
    return 0


def call_tool(tool: str, raw_args: Optional[str]) -> int:
    from bridge.tools.tools import run_tool

    args = json.loads(raw_args) if raw_args else {}
    if not isinstance(args, dict):
        print("--args must be a JSON object", file=sys.stderr)
        return 2
    res = run_tool(tool=tool, args=args)
    print(json.dumps({"ok": res.ok, "result": res.result, "error": res.error}, indent=2, default=str))
    return 0 if res.ok else 1


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Expose control-system datapoints as tool calls with policy-gated writes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve tool calls over HTTP
  python main.py --serve --port 8080

  # Show the write policy derived from instruction documents
  python main.py --rules fields/default.md project.md

  # Check a datapoint against that policy
  python main.py --rules fields/default.md project.md --check Boiler1_AI_Assistant

  # Run one tool against the configured control system
  python main.py --tool dp.get --args '{"dpe": "Boiler1.temp"}'
        """,
    )
    parser.add_argument("--serve", action="store_true", help="Run the HTTP tool-call server")
    parser.add_argument("--host", default="0.0.0.0", help="Server bind host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8080, help="Server listen port (default: 8080)")
    parser.add_argument(
        "--rules",
        nargs="+",
        metavar="DOC",
        help="Field instruction document, optionally followed by the project document",
    )
    parser.add_argument("--check", metavar="DPE", help="Datapoint to check against --rules")
    parser.add_argument("--tool", help="Tool name to run once (see /api/v1/tools)")
    parser.add_argument("--args", help="Tool arguments as a JSON object (used with --tool)")

    args = parser.parse_args()

    try:
        if args.serve:
            from bridge.api.server import run as run_server

            run_server(host=args.host, port=args.port)
            return

        if args.rules:
            if len(args.rules) > 2:
                parser.error("--rules takes a field document and at most one project document")
            sys.exit(print_rules(args.rules, check=args.check))

        if args.check:
            parser.error("--check requires --rules")

        if args.tool:
            sys.exit(call_tool(args.tool, args.args))

        parser.print_help()

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        raise


if __name__ == "__main__":
    main()
