"""
Unit Tests for the Contest Console CLI Parser
"""

import pytest

from contest_console import main as cli


class TestBuildParser:

    def test_project_commands_take_client_and_project(self):
        args = cli.build_parser().parse_args(["status", "sweepstakes-acme", "project-0007"])
        assert (args.client, args.project) == ("sweepstakes-acme", "project-0007")
        assert args.func is cli.cmd_status

    def test_projects_takes_client(self):
        args = cli.build_parser().parse_args(["projects", "sweepstakes-acme"])
        assert args.func is cli.cmd_projects

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])

    def test_missing_project_rejected(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["winners", "sweepstakes-acme"])
