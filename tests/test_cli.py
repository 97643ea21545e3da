"""Tests for funcbench.cli: the click entry point."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from funcbench.cli import main
from funcbench.config import BenchRequest
from funcbench.environment import Local
from funcbench.errors import (
    BenchmarkError,
    CommentPostError,
    MissingRequiredVariableError,
    NotARepositoryError,
)
from funcbench.git import Repository
from funcbench_test_helpers import make_cmp


def _local(request: BenchRequest, path: str = ".") -> Local:
    return Local(repo=Repository(root=Path("/repo")), request=request)


class TestHelp(unittest.TestCase):
    def test_help(self) -> None:
        result = CliRunner().invoke(main, ["--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("COMPARE_TARGET", result.output)
        self.assertIn("BENCH_FUNC_REGEX", result.output)
        self.assertIn("--local", result.output)
        self.assertIn("-no-race", result.output)

    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("0.1.0", result.output)


class TestLocalMode(unittest.TestCase):
    def test_requires_positional_arguments(self) -> None:
        result = CliRunner().invoke(main, ["--local", "master"])
        self.assertEqual(result.exit_code, 2)
        self.assertIn("requires COMPARE_TARGET and BENCH_FUNC_REGEX", result.output)

    @patch("funcbench.cli.exec_benchmarks")
    @patch("funcbench.cli.new_local_env", side_effect=_local)
    def test_prints_results(self, mock_env: MagicMock, mock_exec: MagicMock) -> None:
        mock_exec.return_value = [make_cmp("BenchmarkX", old_ns=120.4, new_ns=60.2)]
        result = CliRunner().invoke(main, ["-l", "master", "BenchmarkX", "-no-race"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Results:", result.output)
        self.assertIn("-50.00%", result.output)
        request = mock_env.call_args[0][0]
        self.assertEqual(
            request,
            BenchRequest(bench_func="BenchmarkX", compare_target="master", race_enabled=False),
        )

    @patch("funcbench.cli.exec_benchmarks")
    @patch("funcbench.cli.new_local_env", side_effect=_local)
    def test_race_enabled_by_default(self, mock_env: MagicMock, mock_exec: MagicMock) -> None:
        mock_exec.return_value = []
        result = CliRunner().invoke(main, ["--local", "master", "."])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertTrue(mock_env.call_args[0][0].race_enabled)

    @patch("funcbench.cli.new_local_env")
    def test_not_a_repository_exits_nonzero(self, mock_env: MagicMock) -> None:
        mock_env.side_effect = NotARepositoryError("/tmp/x")
        result = CliRunner().invoke(main, ["-l", "master", "."])
        self.assertEqual(result.exit_code, 1)

    @patch("funcbench.cli.exec_benchmarks")
    @patch("funcbench.cli.new_local_env", side_effect=_local)
    def test_benchmark_failure_exits_nonzero(
        self, mock_env: MagicMock, mock_exec: MagicMock
    ) -> None:
        mock_exec.side_effect = BenchmarkError("build failed")
        result = CliRunner().invoke(main, ["-l", "master", "."])
        self.assertEqual(result.exit_code, 1)
        self.assertNotIn("Results:", result.output)

    @patch("funcbench.cli.exec_benchmarks")
    @patch("funcbench.cli.new_local_env", side_effect=_local)
    def test_profile_and_overrides(self, mock_env: MagicMock, mock_exec: MagicMock) -> None:
        mock_exec.return_value = []
        with tempfile.TemporaryDirectory() as tmp:
            profile = Path(tmp) / "profile.yaml"
            profile.write_text("count: 3\nbench_time: 2s\n")
            result = CliRunner().invoke(
                main, ["-l", "--profile", str(profile), "--count", "5", "master", "."]
            )
        self.assertEqual(result.exit_code, 0, result.output)
        options = mock_exec.call_args[0][1]
        self.assertEqual(options.count, 5)
        self.assertEqual(options.bench_time, "2s")

    @patch("funcbench.cli.new_local_env", side_effect=_local)
    def test_invalid_profile_exits_nonzero(self, mock_env: MagicMock) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            profile = Path(tmp) / "profile.yaml"
            profile.write_text("iterations: 3\n")
            result = CliRunner().invoke(main, ["-l", "--profile", str(profile), "master", "."])
        self.assertEqual(result.exit_code, 1)
        mock_env.assert_not_called()


class TestRemoteMode(unittest.TestCase):
    @patch("funcbench.cli.RemoteConfig.from_env")
    def test_missing_variable_exits_nonzero(self, mock_from_env: MagicMock) -> None:
        mock_from_env.side_effect = MissingRequiredVariableError("GITHUB_TOKEN")
        result = CliRunner().invoke(main, [])
        self.assertEqual(result.exit_code, 1)

    @patch("funcbench.cli.post_err")
    @patch("funcbench.cli.post_results")
    @patch("funcbench.cli.exec_benchmarks")
    @patch("funcbench.cli.new_remote_env")
    @patch("funcbench.cli.load_bench_request")
    @patch("funcbench.cli.RemoteConfig.from_env")
    def test_success(
        self,
        mock_from_env: MagicMock,
        mock_request: MagicMock,
        mock_remote: MagicMock,
        mock_exec: MagicMock,
        mock_post_results: MagicMock,
        mock_post_err: MagicMock,
    ) -> None:
        mock_exec.return_value = []
        result = CliRunner().invoke(main, [])
        self.assertEqual(result.exit_code, 0, result.output)
        mock_request.assert_called_once_with(mock_from_env.return_value.monitor_dir)
        mock_remote.assert_called_once_with(
            mock_from_env.return_value, mock_request.return_value
        )
        mock_post_results.assert_called_once_with(mock_remote.return_value, [])
        mock_post_err.assert_not_called()

    @patch("funcbench.cli.post_err")
    @patch("funcbench.cli.exec_benchmarks")
    @patch("funcbench.cli.new_remote_env")
    @patch("funcbench.cli.load_bench_request")
    @patch("funcbench.cli.RemoteConfig.from_env")
    def test_execution_failure_posts_error(
        self,
        mock_from_env: MagicMock,
        mock_request: MagicMock,
        mock_remote: MagicMock,
        mock_exec: MagicMock,
        mock_post_err: MagicMock,
    ) -> None:
        mock_exec.side_effect = BenchmarkError("benchmarks failed (exit 1)")
        result = CliRunner().invoke(main, [])
        self.assertEqual(result.exit_code, 1)
        mock_post_err.assert_called_once_with(
            mock_remote.return_value, "benchmarks failed (exit 1)"
        )

    @patch("funcbench.cli.post_err")
    @patch("funcbench.cli.exec_benchmarks")
    @patch("funcbench.cli.new_remote_env")
    @patch("funcbench.cli.load_bench_request")
    @patch("funcbench.cli.RemoteConfig.from_env")
    def test_error_comment_failure_still_exits_one(
        self,
        mock_from_env: MagicMock,
        mock_request: MagicMock,
        mock_remote: MagicMock,
        mock_exec: MagicMock,
        mock_post_err: MagicMock,
    ) -> None:
        mock_exec.side_effect = BenchmarkError("benchmarks failed")
        mock_post_err.side_effect = CommentPostError("posting err: HTTP 401")
        result = CliRunner().invoke(main, [])
        self.assertEqual(result.exit_code, 1)


if __name__ == "__main__":
    unittest.main()
