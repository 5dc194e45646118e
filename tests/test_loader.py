import tempfile
import unittest
from pathlib import Path

from sample_schema import build_sample_schema

from startup_config.config import (
    ErrorKind,
    LoadFailure,
    LoadStage,
    LoadSuccess,
    OptionSpec,
    load_config,
    load_settings,
)
from startup_config.node import NodeSettings, build_node_schema

NODE_FILE = """\
[logging]
level = DEBUG

[network]
threads = 16
inbound_port = 18333
peers =
    10.0.0.1:8333
    10.0.0.2:8333

[server]
secure_only = true
"""


class NodeLoadTests(unittest.TestCase):
    def setUp(self) -> None:
        self.schema = build_node_schema()
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.tmp = Path(self._tmp.name)
        self.config_path = self.tmp / "node.cfg"
        self.config_path.write_text(NODE_FILE, encoding="utf-8")

    def _load(self, argv, environ=None) -> LoadSuccess:
        result = load_settings(self.schema, argv, environ=environ or {})
        self.assertIsInstance(result, LoadSuccess, getattr(result, "message", None))
        return result

    def test_no_config_source_uses_defaults(self) -> None:
        result = self._load([])

        self.assertTrue(result.ok)
        self.assertFalse(result.loaded_file)
        self.assertIsNone(result.config_path)
        self.assertIsInstance(result.settings, NodeSettings)
        self.assertIsNone(result.settings.config)
        self.assertEqual(result.settings, NodeSettings())

    def test_blank_config_path_counts_as_absent(self) -> None:
        cases = (
            (["-c", ""], {}),
            (["-c", "  "], {}),
            (["--config="], {}),
            ([""], {}),
            ([], {"NODE_CONFIG": ""}),
            ([], {"NODE_CONFIG": "   "}),
        )
        for argv, environ in cases:
            with self.subTest(argv=argv, environ=environ):
                result = self._load(argv, environ)
                self.assertFalse(result.loaded_file)
                self.assertIsNone(result.config_path)
                self.assertIsNone(result.settings.config)

    def test_blank_command_line_path_leaves_environment_path(self) -> None:
        result = self._load(["-c", ""], {"NODE_CONFIG": str(self.config_path)})

        self.assertTrue(result.loaded_file)
        self.assertEqual(result.settings.config, self.config_path)
        self.assertEqual(result.settings.network.threads, 16)

    def test_file_named_on_command_line(self) -> None:
        result = self._load(["--config", str(self.config_path)])
        settings = result.settings

        self.assertTrue(result.loaded_file)
        self.assertEqual(result.config_path, self.config_path)
        self.assertEqual(settings.config, self.config_path)
        self.assertEqual(settings.logging.level, "DEBUG")
        self.assertEqual(settings.network.threads, 16)
        self.assertEqual(settings.network.inbound_port, 18333)
        self.assertEqual(settings.network.peers, ["10.0.0.1:8333", "10.0.0.2:8333"])
        self.assertTrue(settings.server.secure_only)
        self.assertEqual(settings.network.outbound_connections, 8)

    def test_file_named_by_positional_argument(self) -> None:
        result = self._load([str(self.config_path)])
        self.assertTrue(result.loaded_file)
        self.assertEqual(result.settings.network.threads, 16)

    def test_command_line_beats_file(self) -> None:
        result = self._load(["-c", str(self.config_path), "--log-level", "WARNING"])
        self.assertEqual(result.settings.logging.level, "WARNING")
        self.assertEqual(result.settings.network.threads, 16)

    def test_command_line_beats_environment(self) -> None:
        result = self._load(["--log-level", "ERROR"], {"NODE_LOGGING__LEVEL": "DEBUG"})
        self.assertEqual(result.settings.logging.level, "ERROR")

    def test_environment_beats_file(self) -> None:
        environ = {"NODE_NETWORK__THREADS": "8", "NODE_NETWORK__PEERS": "192.168.1.1:8333"}
        result = self._load(["-c", str(self.config_path)], environ)

        self.assertEqual(result.settings.network.threads, 8)
        self.assertEqual(result.settings.network.peers, ["192.168.1.1:8333"])
        self.assertEqual(result.settings.network.inbound_port, 18333)

    def test_environment_names_the_file(self) -> None:
        result = self._load([], {"NODE_CONFIG": str(self.config_path)})

        self.assertTrue(result.loaded_file)
        self.assertEqual(result.settings.config, self.config_path)
        self.assertEqual(result.settings.network.threads, 16)

    def test_command_line_path_beats_environment_path(self) -> None:
        other = self.tmp / "other.cfg"
        other.write_text("[network]\nthreads = 2\n", encoding="utf-8")

        result = self._load(["-c", str(other)], {"NODE_CONFIG": str(self.config_path)})

        self.assertEqual(result.settings.config, other)
        self.assertEqual(result.settings.network.threads, 2)

    def test_missing_file_is_not_an_error(self) -> None:
        result = self._load(["--config", str(self.tmp / "absent.cfg")])

        self.assertFalse(result.loaded_file)
        self.assertIsNone(result.settings.config)
        self.assertEqual(result.settings.network.threads, 4)

    def test_invalid_file_syntax_fails(self) -> None:
        self.config_path.write_text("[network]\nthreads 16\n", encoding="utf-8")

        result = load_settings(self.schema, ["-c", str(self.config_path)], environ={})

        self.assertIsInstance(result, LoadFailure)
        self.assertFalse(result.ok)
        self.assertEqual(result.kind, ErrorKind.OPTION_SYNTAX)
        self.assertEqual(result.stage, LoadStage.FILE_ATTEMPTED)
        self.assertTrue(result.message)

    def test_unrecognised_flag_fails_before_binding(self) -> None:
        result = load_settings(self.schema, ["--bogus"], environ={})

        self.assertIsInstance(result, LoadFailure)
        self.assertEqual(result.kind, ErrorKind.OPTION_SYNTAX)
        self.assertEqual(result.stage, LoadStage.COMMAND_LINE_PARSED)
        self.assertIn("--bogus", result.message)

    def test_config_path_given_twice_fails(self) -> None:
        result = load_settings(self.schema, ["-c", "a.cfg", "b.cfg"], environ={})
        self.assertIsInstance(result, LoadFailure)
        self.assertEqual(result.stage, LoadStage.COMMAND_LINE_PARSED)

    def test_malformed_environment_is_ignored(self) -> None:
        result = self._load([], {"NODE_NETWORK__THREADS": "many", "NODE_UNKNOWN": "x"})
        self.assertEqual(result.settings.network.threads, 4)

    def test_dotenv_file(self) -> None:
        dotenv_path = self.tmp / ".env"
        dotenv_path.write_text(f"NODE_CONFIG={self.config_path}\nNODE_NETWORK__THREADS=3\n", encoding="utf-8")

        result = load_settings(
            self.schema,
            [],
            environ={"NODE_NETWORK__THREADS": "12"},
            dotenv_path=dotenv_path,
        )

        self.assertIsInstance(result, LoadSuccess)
        self.assertTrue(result.loaded_file)
        self.assertEqual(result.settings.network.threads, 12)

    def test_repeated_loads_are_identical(self) -> None:
        argv = ["-c", str(self.config_path)]
        environ = {"NODE_DATABASE__DIRECTORY": "/srv/chain"}

        first = load_settings(self.schema, argv, environ=environ)
        second = load_settings(self.schema, argv, environ=environ)

        self.assertEqual(first, second)
        self.assertIsNot(first.settings, second.settings)
        self.assertEqual(first.settings.database.directory, Path("/srv/chain"))

    def test_repeated_failures_are_identical(self) -> None:
        first = load_settings(self.schema, ["--bogus"], environ={})
        second = load_settings(self.schema, ["--bogus"], environ={})
        self.assertEqual(first, second)


class DefaultTierTests(unittest.TestCase):
    def setUp(self) -> None:
        self.schema = build_sample_schema()
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.tmp = Path(self._tmp.name)

    def test_first_declared_default_wins(self) -> None:
        result = load_settings(self.schema, [], environ={})

        self.assertIsInstance(result, LoadSuccess)
        self.assertEqual(result.settings.threads, 2)
        self.assertEqual(result.settings.name, "file-default")
        self.assertEqual(result.settings.db.path, "data")

    def test_file_value_beats_any_default(self) -> None:
        path = self.tmp / "app.cfg"
        path.write_text("threads = 9\n[db]\npath = /srv/db\n", encoding="utf-8")

        result = load_settings(self.schema, ["-c", str(path)], environ={})

        self.assertIsInstance(result, LoadSuccess)
        self.assertEqual(result.settings.threads, 9)
        self.assertEqual(result.settings.db.path, "/srv/db")

    def test_binding_failure_is_reported(self) -> None:
        schema = build_sample_schema(settings=(OptionSpec("extra"),))
        path = self.tmp / "app.cfg"
        path.write_text("extra = 1\n", encoding="utf-8")

        result = load_settings(schema, ["-c", str(path)], environ={})

        self.assertIsInstance(result, LoadFailure)
        self.assertEqual(result.kind, ErrorKind.OPTION_SYNTAX)
        self.assertEqual(result.stage, LoadStage.BOUND)
        self.assertIn("extra", result.message)


class LoadConfigTests(unittest.TestCase):
    def test_success(self) -> None:
        ok, message, settings = load_config(build_node_schema(), [], environ={})
        self.assertTrue(ok)
        self.assertEqual(message, "")
        self.assertIsInstance(settings, NodeSettings)

    def test_failure(self) -> None:
        ok, message, settings = load_config(build_node_schema(), ["--bogus"], environ={})
        self.assertFalse(ok)
        self.assertTrue(message)
        self.assertIsNone(settings)


if __name__ == "__main__":
    unittest.main()
