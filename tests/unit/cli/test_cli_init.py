"""Unit tests for cli.init_command.InitCommand."""

import os

import pytest

from src.cli.config import ConfigLoader
from src.cli.init_command import InitCommand
from src.cli.models import ExitCode
from src.github_client.errors import NotFoundError


@pytest.fixture
def new_config_path(tmp_path):
    return str(tmp_path / ".cms-sync" / "config.yaml")


@pytest.fixture
def init(store, output, new_config_path, signed_in_gate):
    return InitCommand(
        config_path=new_config_path,
        output_handler=output,
        auth_gate=signed_in_gate,
        client=store,
    )


class TestInitCommand:

    def test_writes_config(self, init, output, new_config_path):
        exit_code = init.run("https://github.com/acme/site.git", branch="gh-pages")

        assert exit_code == ExitCode.SUCCESS
        config = ConfigLoader.load(new_config_path)
        assert config.repository == "acme/site"
        assert config.branch == "gh-pages"
        assert config.media_folders == ["images", "pdfs"]

        text = output.text()
        assert "Configuration initialized successfully" in text
        assert "Pages found: 4" in text

    def test_branch_defaults_to_main(self, init, new_config_path):
        assert init.run("acme/site") == ExitCode.SUCCESS
        assert ConfigLoader.load(new_config_path).branch == "main"

    def test_existing_config_is_kept(self, init, output, new_config_path):
        os.makedirs(os.path.dirname(new_config_path))
        with open(new_config_path, 'w', encoding='utf-8') as f:
            f.write("repository: other/site\n")

        assert init.run("acme/site") == ExitCode.GENERAL_ERROR
        assert ConfigLoader.load(new_config_path).repository == "other/site"
        assert "already exists" in output.text()

    def test_invalid_repository(self, init, store, new_config_path):
        assert init.run("https://gitlab.com/acme/site") == ExitCode.GENERAL_ERROR
        assert not os.path.exists(new_config_path)
        assert store.calls == []

    def test_repository_not_found(self, init, store, output, new_config_path):
        store.failures['list_entries'] = NotFoundError('')

        assert init.run("acme/missing") == ExitCode.GENERAL_ERROR
        assert not os.path.exists(new_config_path)
        assert "not found" in output.text()

    def test_requires_login(self, store, output, new_config_path, signed_out_gate):
        init = InitCommand(
            config_path=new_config_path,
            output_handler=output,
            auth_gate=signed_out_gate,
            client=store,
        )

        assert init.run("acme/site") == ExitCode.AUTH_ERROR
        assert not os.path.exists(new_config_path)
