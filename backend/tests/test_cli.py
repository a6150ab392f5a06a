"""Unit tests for CLI argument handling and setup failures."""

import unittest
from unittest import mock

from ideagraph import cli
from ideagraph.extraction.llm_extractor import LLMExtractionError


class CliTests(unittest.TestCase):
    def test_crawl_arguments(self) -> None:
        args = cli.parse_args(["crawl", "--subreddit", "startups", "--subreddit", "SaaS", "--limit", "5"])

        self.assertEqual(args.command, "crawl")
        self.assertEqual(args.subreddits, ["startups", "SaaS"])
        self.assertEqual(args.limit, 5)
        self.assertIs(args.handler, cli.cmd_crawl)

    def test_subcommand_is_required(self) -> None:
        with mock.patch("sys.stderr"):
            with self.assertRaises(SystemExit):
                cli.parse_args([])

    def test_missing_credentials_exit_non_zero(self) -> None:
        with mock.patch.object(cli, "get_default_extractor", side_effect=LLMExtractionError("no key")):
            with self.assertLogs("ideagraph.cli", level="ERROR"):
                self.assertEqual(cli.main(["crawl"]), 1)


if __name__ == "__main__":
    unittest.main()
