#!/usr/bin/env python3
"""
Schema Discovery Interactive CLI

A command-line interface for exploring the sample files with the schema
discovery agent. When the agent asks a question, the next line typed is
sent back as the answer.
"""

import argparse
import atexit
import json
import logging
import signal
import sys
import threading
from typing import Optional

from .agent import SchemaDiscoveryAgent, reply_text
from .config import config
from .conversation import Conversation
from .orchestration import CallbackReporter, NullReporter, OrchestrationResult
from .orchestration.tool_defs import ASK_HUMAN, ASK_HUMAN_TOOL
from .tools.registry import ToolRegistry

# Global shutdown flag for signal handling
_shutdown_requested = threading.Event()
_active_agents: list = []

logger = logging.getLogger(__name__)


def _signal_handler(signum: int, frame) -> None:
    """Handle SIGINT for graceful shutdown."""
    if _shutdown_requested.is_set():
        logger.debug("Force shutdown requested")
        _cleanup_agents()
        sys.exit(1)
    else:
        logger.debug("Shutdown requested")
        _shutdown_requested.set()
        print("\n\nShutting down... (press Ctrl+C again to force)")


def _cleanup_agents() -> None:
    """Close the completion clients of all tracked agents."""
    for agent in _active_agents:
        try:
            agent.close()
        except Exception as e:
            logger.debug(f"Error closing agent: {e}")
    _active_agents.clear()


def _register_agent(agent: SchemaDiscoveryAgent) -> None:
    _active_agents.append(agent)


atexit.register(_cleanup_agents)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def print_banner() -> None:
    """Print the welcome banner."""
    banner = f"""
╔════════════════════════════════════════════════════════════════╗
║                 Schema Discovery Interactive                    ║
║                                                                 ║
║  Tool-calling agent that infers the schema of your data files  ║
╚════════════════════════════════════════════════════════════════╝

Sample files: {config.tools.sample_files_dir}

Available commands:
  /help     - Show this help message
  /history  - Show the conversation history
  /tools    - List available tools
  /verbose  - Toggle step-by-step narration
  /clear    - Start a new conversation
  /quit     - Exit the CLI

Type your requests below. When the agent asks a question, type your answer.
"""
    print(banner)


def print_tools() -> None:
    """Print available tools."""
    print("\nAvailable Tools:")
    print("─" * 64)
    print(ToolRegistry.get_tools_summary())
    print(f"- {ASK_HUMAN}: {ASK_HUMAN_TOOL['function']['description']}")
    print()


def print_history(conversation: Conversation) -> None:
    """Print the conversation messages, skipping the system prompt."""
    messages = [m for m in conversation if m.role != "system"]
    if not messages:
        print("\nNo conversation yet. Type a request first.\n")
        return

    print("\n" + "═" * 70)
    print("CONVERSATION HISTORY")
    print("═" * 70)
    for message in messages:
        if message.tool_calls:
            calls = ", ".join(f"{c.name}({c.arguments})" for c in message.tool_calls)
            print(f"\n[{message.role}] calls: {calls}")
        text = message.text or ""
        if len(text) > 300:
            text = text[:300] + "..."
        if text:
            print(f"\n[{message.role}] {text}")
    print("═" * 70 + "\n")


def result_to_dict(query: str, result: OrchestrationResult, conversation: Conversation) -> dict:
    return {
        "query": query,
        "outcome": result.outcome,
        "answer": reply_text(result),
        "completion_requests": result.completion_requests,
        "history": conversation.to_openai(),
    }


class InteractiveCLI:
    """Interactive CLI for the Schema Discovery Agent."""

    def __init__(self, agent: Optional[SchemaDiscoveryAgent] = None, verbose: bool = False):
        self.verbose = verbose
        self.agent = agent or SchemaDiscoveryAgent()
        _register_agent(self.agent)
        self.conversation = self.agent.new_conversation()

    @property
    def prompt(self) -> str:
        return "answer> " if self.conversation.pending_request is not None else ">>> "

    def toggle_verbose(self) -> None:
        self.verbose = not self.verbose
        print(f"\nVerbose mode: {'ON' if self.verbose else 'OFF'}\n")

    def clear_history(self) -> None:
        """Start a new conversation."""
        self.conversation = self.agent.new_conversation()
        print("\nConversation history cleared.\n")

    def _reporter(self):
        if self.verbose:
            return CallbackReporter(lambda text: print(f"\n{text}"))
        return NullReporter()

    def process_query(self, query: str) -> bool:
        """Process a user request or an answer to a pending question.

        Returns:
            True if should continue, False if shutdown requested
        """
        print("\n" + "─" * 70)
        print("Processing...")
        print("─" * 70 + "\n")

        try:
            result = self.agent.run(query, self.conversation, reporter=self._reporter())

            if _shutdown_requested.is_set():
                print("\n\nRequest completed, shutting down.\n")
                return False

            if result.awaiting_human:
                print("\n" + "═" * 70)
                print("QUESTION")
                print("═" * 70)
                print(result.text)
                print("═" * 70 + "\n")
                return True

            print("\n" + "═" * 70)
            print("ANSWER")
            print("═" * 70)
            print(reply_text(result))
            print("═" * 70 + "\n")

            requests = result.completion_requests
            print(f"(Completed in {requests} model request{'s' if requests != 1 else ''})\n")

        except KeyboardInterrupt:
            _shutdown_requested.set()
            print("\n\nRequest interrupted, shutting down.\n")
            return False
        except Exception as e:
            if _shutdown_requested.is_set():
                print("\n\nShutdown in progress.\n")
                return False
            logger.debug("Request failed", exc_info=True)
            print(f"\nError: {e}\n")

        return True

    def handle_command(self, user_input: str) -> bool:
        """Run a slash command. Returns False when the CLI should exit."""
        command = user_input.lower()

        if command in ("/quit", "/exit", "/q"):
            print("\nGoodbye!\n")
            return False
        elif command in ("/help", "/h", "/?"):
            print_banner()
        elif command == "/history":
            print_history(self.conversation)
        elif command == "/tools":
            print_tools()
        elif command == "/verbose":
            self.toggle_verbose()
        elif command == "/clear":
            self.clear_history()
        else:
            print(f"\nUnknown command: {user_input}")
            print("Type /help for available commands.\n")
        return True

    def run(self) -> None:
        """Run the interactive CLI loop."""
        print_banner()

        while not _shutdown_requested.is_set():
            try:
                user_input = input(self.prompt).strip()

                if _shutdown_requested.is_set():
                    break

                if not user_input:
                    continue

                if user_input.startswith("/"):
                    if not self.handle_command(user_input):
                        break
                elif not self.process_query(user_input):
                    break

            except KeyboardInterrupt:
                if _shutdown_requested.is_set():
                    print("\n")
                    break
                print("\n\nType /quit to exit.\n")
            except EOFError:
                print("\nGoodbye!\n")
                break

        _cleanup_agents()


def run_single_query(
    query: str,
    agent: SchemaDiscoveryAgent,
    as_json: bool = False,
    verbose: bool = False,
) -> OrchestrationResult:
    """Run one request in a fresh conversation and print the reply."""
    conversation = agent.new_conversation()
    reporter = CallbackReporter(lambda text: print(text, file=sys.stderr)) if verbose else None
    result = agent.run(query, conversation, reporter=reporter)

    if as_json:
        print(json.dumps(result_to_dict(query, result, conversation), indent=2, default=str))
    else:
        print(reply_text(result))
    return result


def main() -> None:
    """Main entry point."""
    signal.signal(signal.SIGINT, _signal_handler)

    parser = argparse.ArgumentParser(
        description="Schema Discovery Interactive CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                       # Start interactive mode
  %(prog)s -v                    # Start with verbose logging and narration
  %(prog)s -q "list files"       # Run a single request

Use /tools in interactive mode to see available tools.
""",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging and step narration",
    )

    parser.add_argument(
        "-q",
        "--query",
        type=str,
        help="Run a single request and exit",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Output results as JSON (for scripting)",
    )

    args = parser.parse_args()

    setup_logging(args.verbose)

    agent = SchemaDiscoveryAgent()

    try:
        if args.query:
            _register_agent(agent)
            run_single_query(args.query, agent, as_json=args.json, verbose=args.verbose)
        else:
            cli = InteractiveCLI(agent=agent, verbose=args.verbose)
            cli.run()
    finally:
        _cleanup_agents()


if __name__ == "__main__":
    main()
