"""Tests for the interactive CLI."""

import json
from unittest.mock import patch

from schema_discovery.agent import SchemaDiscoveryAgent
from schema_discovery.interactive import InteractiveCLI, main, run_single_query


class TestInteractiveCLI:
    """Tests for InteractiveCLI."""

    def test_question_prompt_and_answer(self, sample_dir, scripted, text, calls, capsys):
        service = scripted(
            [
                calls(("ask_1", "ask_human", {"message": "Which file?"})),
                calls(("c2", "get_file_size", {"filename": "customers.csv"})),
                text("customers.csv is 96 bytes."),
            ]
        )
        cli = InteractiveCLI(agent=SchemaDiscoveryAgent(completion_service=service))

        assert cli.process_query("analyze a file") is True
        assert cli.prompt == "answer> "
        assert "QUESTION" in capsys.readouterr().out

        assert cli.process_query("customers.csv") is True
        out = capsys.readouterr().out
        assert "ANSWER" in out
        assert "customers.csv is 96 bytes." in out
        assert cli.prompt == ">>> "

    def test_error_is_reported_not_raised(self, scripted, capsys):
        service = scripted([])
        cli = InteractiveCLI(agent=SchemaDiscoveryAgent(completion_service=service))

        with patch.object(cli.agent, "run", side_effect=RuntimeError("boom")):
            assert cli.process_query("hi") is True

        assert "Error: boom" in capsys.readouterr().out

    def test_commands(self, scripted, capsys):
        cli = InteractiveCLI(agent=SchemaDiscoveryAgent(completion_service=scripted([])))

        assert cli.handle_command("/tools") is True
        out = capsys.readouterr().out
        assert "- get_file_content_low_level:" in out
        assert "- ask_human:" in out

        assert cli.handle_command("/verbose") is True
        assert cli.verbose is True

        assert cli.handle_command("/nope") is True
        assert "Unknown command" in capsys.readouterr().out

        assert cli.handle_command("/quit") is False

    def test_clear_starts_new_conversation(self, scripted, text):
        service = scripted([text("a"), text("b"), text("c")])
        cli = InteractiveCLI(agent=SchemaDiscoveryAgent(completion_service=service))
        cli.process_query("hello")
        assert len(cli.conversation) > 1

        cli.handle_command("/clear")

        assert len(cli.conversation) == 1

    def test_verbose_prints_narration(self, scripted, text, capsys):
        service = scripted([text("a"), text("b"), text("c")])
        cli = InteractiveCLI(agent=SchemaDiscoveryAgent(completion_service=service), verbose=True)

        cli.process_query("hello")

        assert "Step 1: Sending messages to the model:" in capsys.readouterr().out

    def test_run_loop(self, sample_dir, scripted, calls, text, capsys):
        service = scripted([calls(("c1", "get_files_list", {})), text("Two files.")])
        cli = InteractiveCLI(agent=SchemaDiscoveryAgent(completion_service=service))

        with patch("builtins.input", side_effect=["", "list files", "/history", "/quit"]):
            cli.run()

        out = capsys.readouterr().out
        assert "Two files." in out
        assert "CONVERSATION HISTORY" in out
        assert "Goodbye!" in out


class TestSingleQuery:
    """Tests for -q mode."""

    def test_plain_output(self, sample_dir, scripted, calls, text, capsys):
        service = scripted([calls(("c1", "get_files_list", {})), text("Two files.")])

        run_single_query("list files", SchemaDiscoveryAgent(completion_service=service))

        assert capsys.readouterr().out.strip() == "Two files."

    def test_json_output(self, sample_dir, scripted, calls, text, capsys):
        service = scripted([calls(("c1", "get_files_list", {})), text("Two files.")])

        run_single_query("list files", SchemaDiscoveryAgent(completion_service=service), as_json=True)

        data = json.loads(capsys.readouterr().out)
        assert data["query"] == "list files"
        assert data["outcome"] == "final"
        assert data["answer"] == "Two files."
        assert data["completion_requests"] == 2

    def test_main_with_query(self, sample_dir, scripted, calls, text, capsys):
        service = scripted([calls(("c1", "get_files_list", {})), text("Two files.")])

        with patch(
            "schema_discovery.interactive.SchemaDiscoveryAgent",
            return_value=SchemaDiscoveryAgent(completion_service=service),
        ), patch("schema_discovery.interactive.signal.signal"), patch(
            "sys.argv", ["schema-discovery", "-q", "list files"]
        ):
            main()

        assert "Two files." in capsys.readouterr().out
