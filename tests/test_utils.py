from __future__ import annotations

import logging
import os
from unittest.mock import patch

import pytest

from qtrack.core.utils.env import env_int, load_env_file_if_present


class TestLoadEnvFileIfPresent:
    def test_load_existing_env_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_content = """
# Credential settings
QTRACK_CREDENTIAL_BACKEND=atlas
DB_PASSWORD="s3cret"
QTRACK_ATLAS_CLUSTER='cluster0.abcde'
EMPTY_VALUE=
"""
        env_file.write_text(env_content)
        for key in ["QTRACK_CREDENTIAL_BACKEND", "DB_PASSWORD", "QTRACK_ATLAS_CLUSTER", "EMPTY_VALUE"]:
            monkeypatch.delenv(key, raising=False)

        result = load_env_file_if_present(env_file)

        assert result == {
            "QTRACK_CREDENTIAL_BACKEND": "atlas",
            "DB_PASSWORD": "s3cret",
            "QTRACK_ATLAS_CLUSTER": "cluster0.abcde",
            "EMPTY_VALUE": "",
        }
        assert os.environ["QTRACK_CREDENTIAL_BACKEND"] == "atlas"
        assert os.environ["DB_PASSWORD"] == "s3cret"

    def test_nonexistent_file_returns_empty_dict(self, tmp_path):
        assert load_env_file_if_present(tmp_path / "nonexistent.env") == {}

    def test_default_dotenv_path(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("QTRACK_TEST_KEY=test_value")
        monkeypatch.delenv("QTRACK_TEST_KEY", raising=False)

        with patch("qtrack.core.utils.env.Path") as mock_path:
            mock_path.return_value = env_file

            result = load_env_file_if_present()

        assert result == {"QTRACK_TEST_KEY": "test_value"}
        mock_path.assert_called_once_with(".env")

    def test_export_prefix_and_comments(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "# comment\n    # indented comment\n\nexport QTRACK_EXPORTED=yes\nNOT_A_PAIR\n"
        )
        monkeypatch.delenv("QTRACK_EXPORTED", raising=False)

        result = load_env_file_if_present(env_file)

        assert result == {"QTRACK_EXPORTED": "yes"}
        assert os.environ["QTRACK_EXPORTED"] == "yes"

    def test_existing_variables_are_kept(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("QTRACK_KEEP=from_file")
        monkeypatch.setenv("QTRACK_KEEP", "from_env")

        result = load_env_file_if_present(env_file)

        assert result == {"QTRACK_KEEP": "from_file"}
        assert os.environ["QTRACK_KEEP"] == "from_env"

    def test_override_replaces_existing(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("QTRACK_KEEP=from_file")
        monkeypatch.setenv("QTRACK_KEEP", "from_env")

        load_env_file_if_present(env_file, override=True)

        assert os.environ["QTRACK_KEEP"] == "from_file"

    def test_value_containing_equals(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("QTRACK_MONGODB_URI=mongodb://h/?retryWrites=true&w=majority")
        monkeypatch.delenv("QTRACK_MONGODB_URI", raising=False)

        result = load_env_file_if_present(env_file)

        assert result["QTRACK_MONGODB_URI"] == "mongodb://h/?retryWrites=true&w=majority"


class TestEnvInt:
    def test_unset_returns_default(self, monkeypatch):
        monkeypatch.delenv("QTRACK_MAX_WORKERS", raising=False)
        assert env_int("QTRACK_MAX_WORKERS", 4) == 4

    def test_parses_positive_integer(self, monkeypatch):
        monkeypatch.setenv("QTRACK_MAX_WORKERS", "8")
        assert env_int("QTRACK_MAX_WORKERS", 4) == 8

    @pytest.mark.parametrize("raw", ["abc", "0", "-2", "  "])
    def test_invalid_values_fall_back(self, monkeypatch, caplog, raw):
        monkeypatch.setenv("QTRACK_MAX_WORKERS", raw)

        with caplog.at_level(logging.WARNING, logger="qtrack.core.utils.env"):
            assert env_int("QTRACK_MAX_WORKERS", 4) == 4
