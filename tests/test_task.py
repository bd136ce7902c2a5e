import sqlite3
from contextlib import closing
from pathlib import Path
from typing import IO, Any
from unittest import TestCase
from unittest.mock import patch

from startsql import CancellationToken, StartSQLOptions, StartupTask, TaskRuntime
from startsql.activity import Activity, ActivityReporter, ActivityState
from startsql.errors import (
    ActivityReportError,
    ConfigurationError,
    DatabaseConnectionError,
    FileAccessError,
    StatementExecutionError,
    TaskCancelled,
    TransactionError,
)
from startsql.tools.testing_mocks import MockFile


class RecordingReporter(ActivityReporter):
    def __init__(self) -> None:
        self.activities: list[Activity] = []

    def report(self, activity: Activity) -> None:
        self.activities.append(activity)

    @property
    def queries(self) -> list[str | None]:
        return [a.query for a in self.activities if a.state is ActivityState.RUNNING]


class CancelAfter(ActivityReporter):
    """CancelAfter requests termination once the given statement starts running."""

    def __init__(self, token: CancellationToken, statement: str) -> None:
        self.token = token
        self.statement = statement

    def report(self, activity: Activity) -> None:
        if activity.query == self.statement:
            self.token.request_terminate()


class TestStartupTask(TestCase):
    def setUp(self) -> None:
        self.workspace = MockFile(directory=True)
        self.db_path = self.workspace.path / "test.db"
        self.db_path.write_bytes(b"")  # empty file is a valid, empty SQLite database
        self.sql_file = self.workspace.path / "startup.sql"
        self.reporter = RecordingReporter()

    def tearDown(self) -> None:
        self.workspace.cleanup()

    def run_task(self, **kwargs: object) -> None:
        options = StartSQLOptions(database=str(self.db_path), **kwargs)  # type: ignore
        StartupTask("test_worker").execute(TaskRuntime(options, reporter=self.reporter))

    def write_statements(self, *lines: str) -> Path:
        self.sql_file.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
        return self.sql_file

    def query(self, sql: str) -> list[tuple[object, ...]]:
        with closing(sqlite3.connect(self.db_path)) as con:
            return con.execute(sql).fetchall()

    def table_exists(self, name: str) -> bool:
        rows = self.query(f"SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = '{name}'")
        return bool(rows)

    def test_inline_statement(self) -> None:
        self.run_task(statement="SELECT 1;")

        self.assertEqual(self.reporter.queries, ["SELECT 1;", "SELECT 1;"])
        self.assertIs(self.reporter.activities[-1].state, ActivityState.IDLE)
        self.assertIsNone(self.reporter.activities[-1].query)

    def test_file_statements_commit(self) -> None:
        self.write_statements("CREATE TABLE t(x int);", "INSERT INTO t VALUES (1);")
        self.run_task(statement_file=self.sql_file)

        self.assertEqual(self.query("SELECT x FROM t"), [(1,)])
        self.assertIs(self.reporter.activities[-1].state, ActivityState.IDLE)

    def test_file_statements_executed_in_order(self) -> None:
        self.write_statements(
            "CREATE TABLE t(x int);",
            "INSERT INTO t VALUES (3);",
            "INSERT INTO t VALUES (1);",
            "INSERT INTO t VALUES (2);",
        )
        self.run_task(statement_file=self.sql_file)

        self.assertEqual(self.query("SELECT x FROM t ORDER BY rowid"), [(3,), (1,), (2,)])
        self.assertEqual(
            self.reporter.queries,
            [
                None,
                "CREATE TABLE t(x int);\n",
                "INSERT INTO t VALUES (3);\n",
                "INSERT INTO t VALUES (1);\n",
                "INSERT INTO t VALUES (2);\n",
            ],
        )

    def test_inline_statement_runs_before_file(self) -> None:
        self.write_statements("INSERT INTO t VALUES (2);")
        self.run_task(statement="CREATE TABLE t(x int)", statement_file=self.sql_file)

        self.assertEqual(self.query("SELECT x FROM t"), [(2,)])
        self.assertEqual(
            self.reporter.queries,
            ["CREATE TABLE t(x int)", "CREATE TABLE t(x int)", "INSERT INTO t VALUES (2);\n"],
        )

    def test_failure_aborts_transaction(self) -> None:
        self.write_statements(
            "CREATE TABLE t(x int);",
            "SELEC 1;",
            "INSERT INTO t VALUES (1);",
        )

        with self.assertRaises(StatementExecutionError) as ctx:
            self.run_task(statement_file=self.sql_file)

        self.assertEqual(ctx.exception.statement, "SELEC 1;\n")
        self.assertIn("SELEC 1;", str(ctx.exception))
        self.assertNotIn("INSERT INTO t VALUES (1);\n", self.reporter.queries)
        self.assertFalse(self.table_exists("t"))
        self.assertNotIn(ActivityState.IDLE, [a.state for a in self.reporter.activities])
        self.assertIs(self.reporter.activities[-1].state, ActivityState.FAILED)
        self.assertEqual(self.reporter.activities[-1].query, "SELEC 1;\n")

    def test_failure_closes_statement_file(self) -> None:
        self.write_statements("CREATE TABLE t(x int);", "SELEC 1;", "SELECT 2;")

        opened: list[IO[str]] = []
        real_open = Path.open

        def tracking_open(self: Path, *args: Any, **kwargs: Any) -> IO[str]:
            f = real_open(self, *args, **kwargs)
            opened.append(f)
            return f

        with (
            patch.object(Path, "open", tracking_open),
            self.assertRaises(StatementExecutionError),
        ):
            self.run_task(statement_file=self.sql_file)

        self.assertEqual(len(opened), 1)
        self.assertTrue(opened[0].closed)

    def test_deferred_constraint_fails_on_commit(self) -> None:
        self.write_statements(
            "CREATE TABLE p(id INTEGER PRIMARY KEY);",
            "CREATE TABLE c(pid INTEGER REFERENCES p(id) DEFERRABLE INITIALLY DEFERRED);",
            "INSERT INTO c VALUES (42);",
        )

        with self.assertRaises(TransactionError) as ctx:
            self.run_task(statement_file=self.sql_file)

        self.assertEqual(ctx.exception.operation, "COMMIT")
        self.assertIn("FOREIGN KEY", str(ctx.exception))
        self.assertFalse(self.table_exists("p"))
        self.assertFalse(self.table_exists("c"))
        self.assertIs(self.reporter.activities[-1].state, ActivityState.FAILED)

    def test_failure_report_error_keeps_original_error(self) -> None:
        class BrokenOnFailure(RecordingReporter):
            def report(self, activity: Activity) -> None:
                if activity.state is ActivityState.FAILED:
                    raise ActivityReportError(Path("status.json"), "Permission denied")
                super().report(activity)

        self.reporter = BrokenOnFailure()

        with (
            self.assertRaises(StatementExecutionError),
            self.assertLogs("Task.test_worker", "WARNING") as logs,
        ):
            self.run_task(statement="SELEC 1")

        self.assertIn("Permission denied", logs.output[0])

    def test_failing_inline_statement_skips_file(self) -> None:
        self.write_statements("CREATE TABLE t(x int);")

        with self.assertRaises(StatementExecutionError):
            self.run_task(statement="SELECT * FROM missing_table", statement_file=self.sql_file)

        self.assertNotIn("CREATE TABLE t(x int);\n", self.reporter.queries)
        self.assertFalse(self.table_exists("t"))

    def test_blank_lines_are_skipped(self) -> None:
        self.write_statements("CREATE TABLE t(x int);", "", "   ", "INSERT INTO t VALUES (1);")
        self.run_task(statement_file=self.sql_file)

        self.assertEqual(self.query("SELECT x FROM t"), [(1,)])
        self.assertEqual(len(self.reporter.queries), 3)

    def test_missing_file(self) -> None:
        with self.assertRaises(FileAccessError) as ctx:
            self.run_task(statement_file=self.workspace.path / "missing.sql")

        self.assertEqual(ctx.exception.path, self.workspace.path / "missing.sql")
        self.assertIn("missing.sql", str(ctx.exception))
        self.assertEqual([a.state for a in self.reporter.activities], [ActivityState.FAILED])

    def test_no_statement_source(self) -> None:
        self.db_path.unlink()

        with self.assertRaises(ConfigurationError):
            self.run_task(create_database=True)

        # The database would have been created if a connection was attempted
        self.assertFalse(self.db_path.exists())

    def test_missing_database(self) -> None:
        self.db_path.unlink()

        with self.assertRaises(DatabaseConnectionError) as ctx:
            self.run_task(statement="SELECT 1")

        self.assertEqual(ctx.exception.database, str(self.db_path))
        self.assertFalse(self.db_path.exists())

    def test_create_database(self) -> None:
        self.db_path.unlink()
        self.run_task(statement="CREATE TABLE t(x int)", create_database=True)
        self.assertTrue(self.table_exists("t"))

    def test_not_a_database(self) -> None:
        self.db_path.write_bytes(b"This is definitely not an SQLite database file." * 10)

        with self.assertRaises(DatabaseConnectionError):
            self.run_task(statement="SELECT 1")

    def test_terminate_between_statements(self) -> None:
        self.write_statements(
            "CREATE TABLE t(x int);",
            "INSERT INTO t VALUES (1);",
            "INSERT INTO t VALUES (2);",
        )
        token = CancellationToken()
        options = StartSQLOptions(database=str(self.db_path), statement_file=self.sql_file)
        runtime = TaskRuntime(options, token, CancelAfter(token, "INSERT INTO t VALUES (1);\n"))

        with self.assertRaises(TaskCancelled) as ctx:
            StartupTask().execute(runtime)

        self.assertEqual(ctx.exception.executed, 2)
        self.assertFalse(self.table_exists("t"))

    def test_reload_request_is_ignored(self) -> None:
        token = CancellationToken()
        token.request_reload()
        options = StartSQLOptions(database=str(self.db_path), statement="CREATE TABLE t(x int)")

        StartupTask().execute(TaskRuntime(options, token, self.reporter))

        self.assertTrue(self.table_exists("t"))

    def test_logs_phases(self) -> None:
        with self.assertLogs("Task.test_worker", level="INFO") as logs:
            self.run_task(statement="SELECT 1;")

        self.assertEqual(
            [r.getMessage() for r in logs.records],
            [
                f"test_worker initialized in database {self.db_path}",
                "running SELECT 1;",
                "exiting",
            ],
        )
