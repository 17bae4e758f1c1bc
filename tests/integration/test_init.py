"""Integration tests for the init command."""

import unittest
from unittest.mock import patch

from helpers.project import ProjectTestCase
from m2m.config import InitDefaults
from m2m.parser import parse_project
from m2m.versions import VersionCatalog, VersionLookupError

LISTING = (
    '<a href="msys2-base-x86_64-20240113.tar.xz">x</a>\n'
    '<a href="msys2-base-x86_64-20250622.tar.xz">y</a>\n'
)


def _offline():
    raise VersionLookupError("offline")


class TestInit(ProjectTestCase):
    def setUp(self):
        super().setUp()
        catalog_patcher = patch("m2m.cli.version_catalog", VersionCatalog(fetch=lambda: LISTING))
        defaults_patcher = patch(
            "m2m.cli_commands.init_project.load_init_defaults", return_value=InitDefaults()
        )
        catalog_patcher.start()
        self.mock_defaults = defaults_patcher.start()
        self.addCleanup(catalog_patcher.stop)
        self.addCleanup(defaults_patcher.stop)

    def test_creates_project_with_latest_version(self):
        result = self.invoke("init")

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Using latest version: 2025-06-22", result.clean_output)

        project = parse_project(self.config_path)
        self.assertEqual(project.msystem, "UCRT64")
        self.assertEqual(project.version, "2025-06-22")
        self.assertEqual(
            project.base_url,
            "https://github.com/msys2/msys2-installer/releases/download/2025-06-22/",
        )
        self.assertIsNone(project.mirror)
        self.assertTrue(project.auto_update)
        self.assertEqual(len(project.packages), 0)

    def test_flags_win(self):
        result = self.invoke(
            "init", "--msystem", "clang64", "--version", "2024-01-13", "--mirror", "https://m.example/"
        )

        self.assertEqual(result.exit_code, 0, result.output)
        project = parse_project(self.config_path)
        self.assertEqual(project.msystem, "CLANG64")
        self.assertEqual(project.version, "2024-01-13")
        self.assertEqual(project.mirror, "https://m.example/")

    def test_defaults_file_values_are_used(self):
        self.mock_defaults.return_value = InitDefaults(msystem="MINGW64", mirror="https://corp.example/")

        self.assertEqual(self.invoke("init").exit_code, 0)

        project = parse_project(self.config_path)
        self.assertEqual(project.msystem, "MINGW64")
        self.assertEqual(project.mirror, "https://corp.example/")

    def test_values_are_quoted_for_toml(self):
        mirror = 'C:\\mirrors\\msys2 "local"'

        result = self.invoke("init", "--version", "2024-01-13", "--mirror", mirror)

        self.assertEqual(result.exit_code, 0, result.output)
        project = parse_project(self.config_path)
        self.assertEqual(project.mirror, mirror)
        self.assertEqual(project.version, "2024-01-13")

    def test_existing_project_is_not_overwritten(self):
        self.write_config("# mine\n")

        result = self.invoke("init")

        self.assertEqual(result.exit_code, 1)
        self.assertIn("already exists", result.clean_output)
        self.assertEqual(self.config_path.read_text(), "# mine\n")

    def test_invalid_msystem(self):
        result = self.invoke("init", "--msystem", "WIN32")

        self.assertEqual(result.exit_code, 1)
        self.assertFalse(self.config_path.exists())

    def test_list_versions(self):
        result = self.invoke("init", "--list-versions")

        self.assertEqual(result.exit_code, 0)
        self.assertIn("2025-06-22", result.clean_output)
        self.assertIn("Latest version: 2025-06-22", result.clean_output)
        self.assertFalse(self.config_path.exists())

    def test_lookup_failure(self):
        with patch("m2m.cli.version_catalog", VersionCatalog(fetch=_offline)):
            result = self.invoke("init")

        self.assertEqual(result.exit_code, 1)
        self.assertIn("offline", result.clean_output)
        self.assertFalse(self.config_path.exists())


if __name__ == "__main__":
    unittest.main()
