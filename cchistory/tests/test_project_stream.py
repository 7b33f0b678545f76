import json
import os
import tempfile
import time
import unittest
from pathlib import Path

from cchistory.parsers.stream import (
    CommandStreamParser,
    create_resilient_command_stream,
    list_log_files,
)


def _bash(command: str, tool_use_id: str, cwd: str | None = None) -> dict:
    entry = {
        "type": "assistant",
        "timestamp": "2026-03-01T09:00:00Z",
        "message": {"content": [{"type": "tool_use", "id": tool_use_id, "name": "Bash", "input": {"command": command}}]},
    }
    if cwd:
        entry["cwd"] = cwd
    return entry


def _result(tool_use_id: str, is_error: bool = False) -> dict:
    return {"type": "user", "message": {"content": [{"type": "tool_result", "tool_use_id": tool_use_id, "is_error": is_error}]}}


class ProjectStreamTests(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.project_dir = Path(tmpdir.name)

    def _write_jsonl(self, name: str, lines: list[dict], mtime: float | None = None) -> Path:
        path = self.project_dir / name
        path.write_text("\n".join(json.dumps(line) for line in lines), encoding="utf-8")
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path

    def test_files_are_read_oldest_first(self) -> None:
        now = time.time()
        self._write_jsonl("a-newer.jsonl", [_bash("echo newer", "t2"), _result("t2")], mtime=now - 10)
        self._write_jsonl("z-older.jsonl", [_bash("echo older", "t1"), _result("t1", is_error=True)], mtime=now - 100)

        commands = list(CommandStreamParser().create_project_stream(self.project_dir))
        self.assertEqual([(c.command, c.success) for c in commands], [("echo older", False), ("echo newer", True)])

    def test_other_files_are_ignored(self) -> None:
        self._write_jsonl("session.jsonl", [_bash("ls", "t1")])
        (self.project_dir / "notes.txt").write_text(json.dumps(_bash("rm -rf /", "t9")), encoding="utf-8")
        (self.project_dir / "session.jsonl.bak").write_text(json.dumps(_bash("rm -rf /", "t8")), encoding="utf-8")

        commands = list(CommandStreamParser().create_project_stream(self.project_dir))
        self.assertEqual([c.command for c in commands], ["ls"])

    def test_unreadable_file_does_not_stop_later_files(self) -> None:
        now = time.time()
        broken = self.project_dir / "broken.jsonl"
        broken.mkdir()
        os.utime(broken, (now - 100, now - 100))
        self._write_jsonl("good.jsonl", [_bash("git status", "t1"), _result("t1")], mtime=now)

        with self.assertLogs("cchistory.parser", level="ERROR") as captured:
            commands = list(CommandStreamParser().create_project_stream(self.project_dir))

        self.assertEqual([c.command for c in commands], ["git status"])
        self.assertEqual(len(captured.records), 1)
        self.assertIn("broken.jsonl", captured.output[0])

    def test_missing_directory_yields_nothing(self) -> None:
        missing = self.project_dir / "does-not-exist"

        with self.assertLogs("cchistory.parser", level="ERROR") as captured:
            commands = list(CommandStreamParser().create_project_stream(missing))
        self.assertEqual(commands, [])
        self.assertIn("does-not-exist", captured.output[0])

    def test_pending_commands_do_not_leak_between_files(self) -> None:
        now = time.time()
        self._write_jsonl("first.jsonl", [_bash("npm install", "t1")], mtime=now - 50)
        self._write_jsonl("second.jsonl", [_result("t1", is_error=True), _bash("npm test", "t2")], mtime=now)

        commands = list(CommandStreamParser().create_project_stream(self.project_dir))
        self.assertEqual([(c.command, c.success) for c in commands], [("npm install", True), ("npm test", True)])

    def test_resilient_stream_uses_a_fresh_parser_per_call(self) -> None:
        self._write_jsonl("session.jsonl", [_bash("uptime", "t1")])

        first = list(create_resilient_command_stream(self.project_dir))
        second = list(create_resilient_command_stream(self.project_dir))
        self.assertEqual([c.command for c in first], ["uptime"])
        self.assertEqual([c.command for c in second], ["uptime"])

    def test_oversized_integer_line_does_not_end_the_stream(self) -> None:
        huge = '{"type":"user","n":' + "1" * 5000 + ',"message":{"content":"tool_result"}}'
        path = self.project_dir / "session.jsonl"
        path.write_text(
            "\n".join([huge, json.dumps(_bash("pwd", "t1")), json.dumps(_result("t1"))]),
            encoding="utf-8",
        )
        self._write_jsonl("later.jsonl", [_bash("whoami", "t2")], mtime=time.time() + 60)

        commands = list(create_resilient_command_stream(self.project_dir))
        self.assertEqual([c.command for c in commands], ["pwd", "whoami"])

    def test_deeply_nested_line_is_reported_and_skipped(self) -> None:
        nested = "[" * 100000 + '"Bash"' + "]" * 100000
        path = self.project_dir / "session.jsonl"
        path.write_text("\n".join([nested, json.dumps(_bash("pwd", "t1")), json.dumps(_result("t1"))]), encoding="utf-8")

        with self.assertLogs("cchistory.parser", level="WARNING") as captured:
            commands = list(create_resilient_command_stream(self.project_dir))

        self.assertEqual([c.command for c in commands], ["pwd"])
        self.assertEqual(len(captured.records), 1)
        self.assertIn("JSON syntax", captured.output[0])

    def test_list_log_files_orders_by_mtime(self) -> None:
        now = time.time()
        self._write_jsonl("b.jsonl", [], mtime=now - 1)
        self._write_jsonl("c.jsonl", [], mtime=now - 30)
        self._write_jsonl("a.jsonl", [], mtime=now)

        self.assertEqual([p.name for p in list_log_files(self.project_dir)], ["c.jsonl", "b.jsonl", "a.jsonl"])

    def test_list_log_files_raises_for_missing_directory(self) -> None:
        with self.assertRaises(OSError):
            list_log_files(self.project_dir / "missing")


class ProjectRootDiscoveryTests(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.project_dir = Path(tmpdir.name)

    def _write_lines(self, name: str, lines: list[str], mtime: float) -> None:
        path = self.project_dir / name
        path.write_text("\n".join(lines), encoding="utf-8")
        os.utime(path, (mtime, mtime))

    def test_first_cwd_across_files_is_returned(self) -> None:
        now = time.time()
        self._write_lines("a.jsonl", ['{"type":"summary"}', "not json"], mtime=now - 20)
        self._write_lines("b.jsonl", ['{"type":"user"}', '{"type":"user","cwd":"/work/app"}'], mtime=now - 10)
        self._write_lines("c.jsonl", ['{"type":"user","cwd":"/work/other"}'], mtime=now)

        self.assertEqual(CommandStreamParser().extract_project_root(self.project_dir), "/work/app")

    def test_scan_is_limited_to_the_first_lines(self) -> None:
        lines = ['{"type":"summary"}'] * 11 + ['{"type":"user","cwd":"/work/late"}']
        self._write_lines("session.jsonl", lines, mtime=time.time())
        parser = CommandStreamParser()

        self.assertIsNone(parser.extract_project_root(self.project_dir))
        self.assertEqual(parser.extract_project_root(self.project_dir, max_lines=12), "/work/late")

    def test_unparseable_lines_do_not_stop_the_scan(self) -> None:
        huge = '{"type":"summary","n":' + "1" * 5000 + "}"
        nested = "[" * 100000 + "]" * 100000
        self._write_lines("session.jsonl", [huge, nested, '{"type":"user","cwd":"/work/app"}'], mtime=time.time())

        self.assertEqual(CommandStreamParser().extract_project_root(self.project_dir), "/work/app")

    def test_missing_directory_has_no_root(self) -> None:
        self.assertIsNone(CommandStreamParser().extract_project_root(self.project_dir / "missing"))


if __name__ == "__main__":
    unittest.main()
