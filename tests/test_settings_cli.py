import io
import logging
import os
import runpy
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from searchdump import cli
from searchdump.config.logging import NOISY_LOGGERS, setup_logging
from searchdump.config.settings import Settings, load_settings, parse_duration
from searchdump.core.exceptions import ConfigError
from searchdump.pipeline.runner import EXIT_FAILED, RunResult


class TestSettings(unittest.TestCase):
    def test_load_from_env(self):
        env = {
            "SEARCHDUMP_FROM": "http://localhost:9200",
            "SEARCHDUMP_TO": "s3://bucket/prefix",
            "SEARCHDUMP_TO_TYPE": "s3",
            "SEARCHDUMP_SEARCH_INDEX_FILTER": "^logs-",
            "SEARCHDUMP_SEARCH_SIZE": "200",
            "SEARCHDUMP_S3_FORCE_PATH_STYLE": "true",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            s = load_settings()

        self.assertEqual(s.from_url, "http://localhost:9200")
        self.assertEqual(s.to_type, "s3")
        self.assertEqual(s.index_filter, "^logs-")
        self.assertEqual(s.page_size, 200)
        self.assertEqual(s.max_retries, 2)
        self.assertTrue(s.s3.force_path_style)
        self.assertEqual(s.s3.region, "eu-central-1")

    def test_bad_integer(self):
        with mock.patch.dict(os.environ, {"SEARCHDUMP_SEARCH_SIZE": "many"}, clear=True):
            with self.assertRaises(ConfigError):
                load_settings()

    def test_parse_duration(self):
        self.assertEqual(parse_duration("2m"), 120)
        self.assertEqual(parse_duration("90s"), 90)
        self.assertEqual(parse_duration("1h"), 3600)
        with self.assertRaises(ConfigError):
            parse_duration("two minutes")

    def test_validate(self):
        ok = Settings(from_url="http://x:9200", to_url="s3://b", to_type="s3")
        self.assertIs(ok.validate(), ok)

        for bad in (
            Settings(),
            Settings(from_url="http://x:9200", to_type="s3"),
            Settings(from_url="http://x:9200", page_size=0),
            Settings(from_url="http://x:9200", max_retries=-1),
            # 3 + 7 + 20 + 55 seconds of backoff cannot fit in a one minute scroll.
            Settings(from_url="http://x:9200", max_retries=4, scroll_keep_alive="1m"),
            # 3 + 7 of backoff plus three attempts of 10 + 30 seconds is 130s.
            Settings(from_url="http://x:9200", scroll_keep_alive="2m"),
        ):
            with self.subTest(settings=bad):
                with self.assertRaises(ConfigError):
                    bad.validate()

    def test_worst_case_gap_counts_every_attempt(self):
        self.assertEqual(Settings(max_retries=0).worst_case_gap(), 40)
        self.assertEqual(Settings(max_retries=2).worst_case_gap(), 3 + 7 + 3 * 40)
        self.assertEqual(Settings(max_retries=4).worst_case_gap(), 3 + 7 + 20 + 55 + 5 * 40)

    def test_keep_alive_derived_from_gap(self):
        self.assertEqual(Settings(max_retries=0).keep_alive(), "2m")
        self.assertEqual(Settings().keep_alive(), "3m")
        self.assertEqual(Settings(max_retries=4).keep_alive(), "5m")
        self.assertEqual(Settings(scroll_keep_alive="10m").keep_alive(), "10m")

        for retries in range(0, 6):
            with self.subTest(max_retries=retries):
                s = Settings(from_url="http://x:9200", max_retries=retries)
                self.assertIs(s.validate(), s)


class TestLogging(unittest.TestCase):
    def setUp(self):
        saved = {name: logging.getLogger(name).level for name in NOISY_LOGGERS}

        def restore():
            for name, level in saved.items():
                logging.getLogger(name).setLevel(level)

        self.addCleanup(restore)

    def test_client_libraries_quiet_unless_debug(self):
        setup_logging("INFO")
        self.assertEqual(logging.getLogger("botocore").level, logging.WARNING)
        self.assertEqual(logging.getLogger("urllib3").level, logging.WARNING)

        setup_logging("DEBUG")
        self.assertEqual(logging.getLogger("botocore").level, logging.DEBUG)
        self.assertEqual(logging.getLogger("urllib3").level, logging.DEBUG)


class TestCli(unittest.TestCase):
    def test_flags_override_env(self):
        base = Settings(from_url="http://env:9200", index_filter="env")
        args = cli.build_parser(base).parse_args(
            ["-f", "http://flag:9200", "-T", "s3", "-t", "s3://b/p", "--search-size", "10", "-D", "--s3-force-path-style"]
        )
        s = cli.settings_from_args(base, args)

        self.assertEqual(s.from_url, "http://flag:9200")
        self.assertEqual(s.index_filter, "env")
        self.assertEqual(s.page_size, 10)
        self.assertEqual(s.log_level, "DEBUG")
        self.assertTrue(s.s3.force_path_style)

    def test_invalid_settings_exit_code(self):
        with mock.patch.dict(os.environ, {}, clear=True), mock.patch.object(cli, "load_dotenv"):
            self.assertEqual(cli.main(["--search-size", "0", "-f", "http://x:9200"]), cli.EXIT_USAGE)

    def test_exit_code_comes_from_run(self):
        with tempfile.TemporaryDirectory() as td:
            with mock.patch.dict(os.environ, {}, clear=True), mock.patch.object(cli, "load_dotenv"), mock.patch.object(
                cli, "run_export", return_value=RunResult(status="FAILED", exit_code=EXIT_FAILED)
            ) as run_export:
                code = cli.main(["-f", "http://x:9200", "-T", "local", "-t", str(Path(td))])

        self.assertEqual(code, EXIT_FAILED)
        settings = run_export.call_args.args[0]
        self.assertEqual(settings.to_type, "local")

    def test_module_entry_point_exits_with_main_status(self):
        with mock.patch.object(cli, "main", return_value=EXIT_FAILED) as main:
            with self.assertRaises(SystemExit) as ctx:
                runpy.run_module("searchdump", run_name="__main__")

        self.assertEqual(ctx.exception.code, EXIT_FAILED)
        main.assert_called_once_with()

    def test_module_help(self):
        with mock.patch.dict(os.environ, {}, clear=True), mock.patch.object(cli, "load_dotenv"):
            with mock.patch("sys.argv", ["searchdump", "--help"]), mock.patch("sys.stdout", new_callable=io.StringIO) as out:
                with self.assertRaises(SystemExit) as ctx:
                    runpy.run_module("searchdump", run_name="__main__")

        self.assertEqual(ctx.exception.code, 0)
        self.assertIn("--search-index-filter", out.getvalue())


if __name__ == "__main__":
    unittest.main()
