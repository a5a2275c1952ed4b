"""Tests for configuration file parsing and layering."""

import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

from brec.config import (
    PROJECT_CONFIG_FILE,
    ConfigError,
    Settings,
    find_project_config,
    get_machine_config_path,
    get_user_config_path,
    load_settings,
    parse_config_file,
)
from brec.logging import LogLevel
from brec.shell import TaskOutputTypes


class TestConfigPaths(unittest.TestCase):
    def test_user_config_path(self):
        with patch("platformdirs.user_config_dir", return_value="/home/u/.config/brec"):
            self.assertEqual(get_user_config_path(), Path("/home/u/.config/brec/config.yml"))

    def test_machine_config_path(self):
        with patch("platformdirs.site_config_dir", return_value="/etc/xdg/brec"):
            self.assertEqual(get_machine_config_path(), Path("/etc/xdg/brec/config.yml"))


class TestFindProjectConfig(unittest.TestCase):
    def test_found_in_parent(self):
        with TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            (root / PROJECT_CONFIG_FILE).write_text("log_level: debug\n")
            nested = root / "a" / "b"
            nested.mkdir(parents=True)

            self.assertEqual(find_project_config(nested), root / PROJECT_CONFIG_FILE)

    def test_nearest_wins(self):
        with TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            (root / PROJECT_CONFIG_FILE).write_text("")
            nested = root / "sub"
            nested.mkdir()
            (nested / PROJECT_CONFIG_FILE).write_text("")

            self.assertEqual(find_project_config(nested), nested / PROJECT_CONFIG_FILE)


class TestParseConfigFile(unittest.TestCase):
    def setUp(self):
        self.tmpdir = TemporaryDirectory()
        self.path = Path(self.tmpdir.name) / "config.yml"

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_missing_file(self):
        self.assertEqual(parse_config_file(self.path), {})

    def test_empty_file(self):
        self.path.write_text("   \n")
        self.assertEqual(parse_config_file(self.path), {})

    def test_all_settings(self):
        self.path.write_text("log_level: DEBUG\ntask_output: err\n")

        self.assertEqual(
            parse_config_file(self.path),
            {"log_level": LogLevel.DEBUG, "task_output": TaskOutputTypes.ERR},
        )

    def test_malformed_yaml(self):
        self.path.write_text("log_level: [unclosed\n")

        with self.assertRaises(ConfigError) as ctx:
            parse_config_file(self.path)
        self.assertIn(str(self.path), str(ctx.exception))

    def test_top_level_not_mapping(self):
        self.path.write_text("- debug\n")

        with self.assertRaises(ConfigError):
            parse_config_file(self.path)

    def test_unknown_key(self):
        self.path.write_text("colour: always\n")

        with self.assertRaises(ConfigError) as ctx:
            parse_config_file(self.path)
        self.assertIn("colour", str(ctx.exception))

    def test_invalid_log_level(self):
        self.path.write_text("log_level: loud\n")

        with self.assertRaises(ConfigError):
            parse_config_file(self.path)

    def test_log_level_wrong_type(self):
        self.path.write_text("log_level: 3\n")

        with self.assertRaises(ConfigError):
            parse_config_file(self.path)

    def test_invalid_task_output(self):
        self.path.write_text("task_output: some\n")

        with self.assertRaises(ConfigError):
            parse_config_file(self.path)


class TestLoadSettings(unittest.TestCase):
    def test_layers_override_in_order(self):
        """Test that project config beats user config, which beats machine config."""
        with TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            machine = root / "machine.yml"
            user = root / "user.yml"
            project = root / "project"
            project.mkdir()

            machine.write_text("log_level: trace\ntask_output: none\n")
            user.write_text("log_level: warn\n")
            (project / PROJECT_CONFIG_FILE).write_text("task_output: out\n")

            with patch("brec.config.get_machine_config_path", return_value=machine), patch(
                "brec.config.get_user_config_path", return_value=user
            ):
                settings = load_settings(project)

        self.assertEqual(settings, Settings(log_level=LogLevel.WARN, task_output=TaskOutputTypes.OUT))

    def test_defaults_without_config(self):
        with TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            with patch(
                "brec.config.get_machine_config_path", return_value=root / "none1.yml"
            ), patch(
                "brec.config.get_user_config_path", return_value=root / "none2.yml"
            ), patch(
                "brec.config.find_project_config", return_value=None
            ):
                settings = load_settings(root)

        self.assertEqual(settings, Settings())


if __name__ == "__main__":
    unittest.main()
