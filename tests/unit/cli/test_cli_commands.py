"""Unit tests for the page, media and login commands."""

import json

import pytest

from src.cli.auth_commands import LoginCommand, LogoutCommand, WhoamiCommand
from src.cli.media_commands import DeleteMediaCommand, UploadCommand, new_reference
from src.cli.models import ExitCode
from src.cli.page_commands import PagesCommand, PushCommand, SetCommand, ShowCommand, parse_value
from src.github_client.errors import (
    APIUnreachableError,
    AuthFailureError,
    ConflictError,
)
from src.media.naming import MediaNamer
from src.media.replacement import MediaReplacer
from src.page_sync.synchronizer import SaveRegistry
from tests.fixtures.sample_pages import ABOUT, dumps


@pytest.fixture
def command(store, output, config_path, signed_in_gate):
    """Build a command wired to the in-memory store and a signed-in gate."""
    def build(command_class, **kwargs):
        kwargs.setdefault('auth_gate', signed_in_gate)
        return command_class(config_path=config_path, output_handler=output, client=store, **kwargs)
    return build


def page_json(store, path="about.json"):
    return json.loads(store.content_of(path).decode('utf-8'))


class TestLoginRequired:

    def test_signed_out_operator_gets_auth_error(self, command, store, output, signed_out_gate):
        exit_code = command(PagesCommand, auth_gate=signed_out_gate).run()

        assert exit_code == ExitCode.AUTH_ERROR
        assert store.calls == []
        assert "not signed in" in output.text()

    def test_missing_config(self, store, output, signed_in_gate, tmp_path):
        show = ShowCommand(
            config_path=str(tmp_path / "missing.yaml"),
            output_handler=output,
            auth_gate=signed_in_gate,
            client=store,
        )

        assert show.run("about.json") == ExitCode.GENERAL_ERROR
        assert "cms-sync init" in output.text()


class TestPagesCommand:

    def test_lists_json_and_html_pages(self, command, output):
        assert command(PagesCommand).run() == ExitCode.SUCCESS

        text = output.text()
        for page in ("about.json", "competitions.json", "Config.json", "index.html"):
            assert page in text
        assert "README.md" not in text
        assert "4 page(s)" in text

    def test_all_kinds_includes_other_files(self, command, output):
        assert command(PagesCommand).run(all_kinds=True) == ExitCode.SUCCESS
        assert "README.md" in output.text()

    def test_listing_failure_shows_no_pages(self, command, store, output):
        store.failures['list_entries'] = APIUnreachableError("https://api.github.com")

        assert command(PagesCommand).run() == ExitCode.SUCCESS
        assert "No pages found" in output.text()


class TestShowCommand:

    def test_shows_content_and_sections(self, command, store, output):
        assert command(ShowCommand).run("about.json") == ExitCode.SUCCESS

        text = output.text()
        assert store.token_of("about.json") in text
        assert "Mission Statement" in text
        assert "Developing leaders for tomorrow." in text

    def test_missing_page(self, command, output):
        assert command(ShowCommand).run("nope.json") == ExitCode.GENERAL_ERROR

    def test_network_failure(self, command, store):
        store.failures['read_content'] = APIUnreachableError("https://api.github.com")
        assert command(ShowCommand).run("about.json") == ExitCode.NETWORK_ERROR

    def test_unexpected_failure(self, command, store, output):
        store.failures['read_content'] = RuntimeError("boom")

        assert command(ShowCommand).run("about.json") == ExitCode.GENERAL_ERROR
        assert "Unexpected error: boom" in output.text()


class TestPushCommand:

    def write_source(self, tmp_path, document):
        source = tmp_path / "about.json"
        source.write_text(dumps(document), encoding='utf-8')
        return str(source)

    def test_push_commits_local_content(self, command, store, output, tmp_path):
        updated = dict(ABOUT, missionStatement="Serving members.")
        source = self.write_source(tmp_path, updated)

        assert command(PushCommand).run("about.json", source) == ExitCode.SUCCESS

        assert page_json(store) == updated
        assert store.commits == [("about.json", "Update about.json via CMS editor")]
        assert "Saved about.json" in output.text()

    def test_push_uses_explicit_message(self, command, store, tmp_path):
        source = self.write_source(tmp_path, dict(ABOUT, creed=[]))

        command(PushCommand).run("about.json", source, message="Clear creed")

        assert store.commits == [("about.json", "Clear creed")]

    def test_identical_content_is_not_committed(self, command, store, output, tmp_path):
        source = self.write_source(tmp_path, ABOUT)

        assert command(PushCommand).run("about.json", source) == ExitCode.SUCCESS
        assert store.commits == []
        assert "already matches" in output.text()

    def test_conflict(self, command, store, output, tmp_path):
        source = self.write_source(tmp_path, dict(ABOUT, creed=[]))
        store.failures['write_content'] = ConflictError("about.json")

        assert command(PushCommand).run("about.json", source) == ExitCode.CONFLICTS
        assert "Reload the page" in output.text()

    def test_invalid_json_is_not_sent(self, command, store, tmp_path):
        source = tmp_path / "about.json"
        source.write_text('{"missionStatement": ', encoding='utf-8')

        assert command(PushCommand).run("about.json", str(source)) == ExitCode.GENERAL_ERROR
        assert ('write_content', 'about.json') not in store.calls

    def test_missing_source_file(self, command, store, tmp_path):
        exit_code = command(PushCommand).run("about.json", str(tmp_path / "missing.json"))

        assert exit_code == ExitCode.GENERAL_ERROR
        assert store.calls == []

    def test_binary_source_file(self, command, tmp_path):
        source = tmp_path / "about.json"
        source.write_bytes(b"\xff\xfe\x00")

        assert command(PushCommand).run("about.json", str(source)) == ExitCode.GENERAL_ERROR


class TestParseValue:

    @pytest.mark.parametrize("raw,expected", [
        ('"Ada"', "Ada"),
        ('42', 42),
        ('true', True),
        ('{"name": "Ada"}', {"name": "Ada"}),
        ('Hello world', "Hello world"),
        ('', ""),
    ])
    def test_parse_value(self, raw, expected):
        assert parse_value(raw) == expected


class TestSetCommand:

    def test_set_nested_value(self, command, store):
        exit_code = command(SetCommand).run("about.json", "stateOfficers.0.name", '"Katherine Johnson"')

        assert exit_code == ExitCode.SUCCESS
        assert page_json(store)["stateOfficers"][0]["name"] == "Katherine Johnson"
        assert page_json(store)["stateOfficers"][1] == ABOUT["stateOfficers"][1]

    def test_plain_text_value(self, command, store):
        command(SetCommand).run("about.json", "missionStatement", "Serving members")
        assert page_json(store)["missionStatement"] == "Serving members"

    def test_append(self, command, store):
        exit_code = command(SetCommand).run("about.json", "creed", "I believe in service.", mode='append')

        assert exit_code == ExitCode.SUCCESS
        assert page_json(store)["creed"][-1] == "I believe in service."

    def test_remove(self, command, store):
        assert command(SetCommand).run("about.json", "advisoryCouncil.0", mode='remove') == ExitCode.SUCCESS
        assert page_json(store)["advisoryCouncil"] == []

    def test_schema_problems_are_warnings(self, command, store, output):
        exit_code = command(SetCommand).run("about.json", "stateOfficers", '[{"name": "Ada"}]')

        assert exit_code == ExitCode.SUCCESS
        assert "State Officers: item 0 is missing position" in output.text()

    def test_value_required_outside_remove(self, command, store):
        assert command(SetCommand).run("about.json", "missionStatement") == ExitCode.GENERAL_ERROR
        assert store.commits == []

    def test_unknown_mode(self, command):
        assert command(SetCommand).run("about.json", "creed", '"x"', mode='merge') == ExitCode.GENERAL_ERROR

    @pytest.mark.parametrize("key", ["stateOfficers..name", "stateOfficers.9.name", "missionStatement.0"])
    def test_bad_key(self, command, store, key):
        assert command(SetCommand).run("about.json", key, '"x"') == ExitCode.GENERAL_ERROR
        assert store.commits == []

    def test_html_page_rejected(self, command, store):
        assert command(SetCommand).run("index.html", "title", '"x"') == ExitCode.GENERAL_ERROR
        assert store.commits == []

    def test_busy_when_same_page_is_saving(self, command, store):
        registry = SaveRegistry()
        assert registry.try_acquire("about.json")

        exit_code = command(SetCommand, save_registry=registry).run("about.json", "creed", "[]")

        assert exit_code == ExitCode.BUSY
        assert store.commits == []

    def test_auth_failure_during_save(self, command, store):
        store.failures['write_content'] = AuthFailureError("https://api.github.com", "Bad credentials")
        assert command(SetCommand).run("about.json", "creed", "[]") == ExitCode.AUTH_ERROR


@pytest.fixture
def replacer(store):
    return MediaReplacer(store, namer=MediaNamer(clock=lambda: 1718000000000))


@pytest.fixture
def logo(tmp_path):
    path = tmp_path / "new logo.png"
    path.write_bytes(b"\x89PNG new")
    return str(path)


class TestUploadCommand:

    def test_upload(self, command, store, replacer, output, logo):
        assert command(UploadCommand, replacer=replacer).run(logo) == ExitCode.SUCCESS

        assert store.content_of("images/1718000000000-new_logo.png") == b"\x89PNG new"
        assert "images/1718000000000-new_logo.png" in output.text()

    def test_upload_replaces_old_asset(self, command, store, replacer, output, logo):
        exit_code = command(UploadCommand, replacer=replacer).run(
            logo, folder="images", old_reference="https://example.org/images/old_123.png"
        )

        assert exit_code == ExitCode.SUCCESS
        assert store.exists("images/1718000000000-new_logo.png")
        assert not store.exists("images/old_123.png")
        assert "Removed images/old_123.png" in output.text()

    def test_failed_delete_still_succeeds(self, command, store, replacer, output, logo):
        store.failures['delete_content'] = ConflictError("images/old_123.png")

        exit_code = command(UploadCommand, replacer=replacer).run(logo, old_reference="old_123.png")

        assert exit_code == ExitCode.SUCCESS
        assert store.exists("images/old_123.png")
        assert "Could not remove images/old_123.png" in output.text()

    def test_upload_to_configured_folder(self, command, store, logo):
        assert command(UploadCommand).run(logo, folder="pdfs") == ExitCode.SUCCESS
        assert any(path.startswith("pdfs/") and path.endswith("-new_logo.png")
                   for path, _ in store.commits)

    def test_unknown_folder(self, command, store, logo):
        assert command(UploadCommand).run(logo, folder="videos") == ExitCode.GENERAL_ERROR
        assert store.commits == []


class TestUploadWithPage:

    HERO = "/images/1700000000000-hero.png"

    def test_page_references_are_spliced_and_saved(self, command, store, replacer, output, logo):
        exit_code = command(UploadCommand, replacer=replacer).run(logo, old_reference=self.HERO, page="index.html")

        assert exit_code == ExitCode.SUCCESS
        html = store.content_of("index.html").decode("utf-8")
        assert 'src="/images/1718000000000-new_logo.png"' in html
        assert self.HERO not in html
        assert not store.exists("images/1700000000000-hero.png")
        assert [path for path, _ in store.commits] == [
            "images/1718000000000-new_logo.png",
            "images/1700000000000-hero.png",
            "index.html",
        ]
        assert "Saved index.html" in output.text()

    def test_page_without_reference_uploads_nothing(self, command, store, replacer, logo):
        exit_code = command(UploadCommand, replacer=replacer).run(logo, old_reference=self.HERO, page="about.json")

        assert exit_code == ExitCode.GENERAL_ERROR
        assert store.commits == []

    def test_page_requires_old_reference(self, command, store, replacer, logo):
        assert command(UploadCommand, replacer=replacer).run(logo, page="index.html") == ExitCode.GENERAL_ERROR
        assert store.calls == []

    def test_page_conflict_keeps_uploaded_asset(self, command, store, replacer, logo):
        upload = command(UploadCommand, replacer=replacer)
        original_write = store.write_content

        def write_then_conflict(path, content, message, revision_token=None):
            if path == "index.html":
                raise ConflictError(path, revision_token)
            return original_write(path, content, message, revision_token)

        store.write_content = write_then_conflict

        assert upload.run(logo, old_reference=self.HERO, page="index.html") == ExitCode.CONFLICTS
        assert store.exists("images/1718000000000-new_logo.png")
        assert self.HERO in store.content_of("index.html").decode("utf-8")

    @pytest.mark.parametrize("old,expected", [
        ("/images/old.png", "/images/1-new.png"),
        ("https://example.org/images/old.png?v=2", "https://example.org/images/1-new.png?v=2"),
        ("old.png", "images/1-new.png"),
    ])
    def test_new_reference_keeps_form(self, old, expected):
        assert new_reference(old, "images/old.png", "images/1-new.png") == expected


class TestDeleteMediaCommand:

    def test_delete(self, command, store, output):
        exit_code = command(DeleteMediaCommand).run("1700000000000-bylaws.pdf", folder="pdfs")

        assert exit_code == ExitCode.SUCCESS
        assert not store.exists("pdfs/1700000000000-bylaws.pdf")
        assert "Deleted pdfs/1700000000000-bylaws.pdf" in output.text()

    def test_missing_file(self, command, output):
        assert command(DeleteMediaCommand).run("nope.png") == ExitCode.GENERAL_ERROR
        assert "Could not delete images/nope.png" in output.text()

    def test_auth_failure(self, command, store):
        store.failures['read_content'] = AuthFailureError("https://api.github.com")
        assert command(DeleteMediaCommand).run("old_123.png") == ExitCode.AUTH_ERROR


class TestAuthCommands:

    def test_login(self, output, signed_in_gate):
        signed_in_gate.login.return_value = signed_in_gate.require_user.return_value

        exit_code = LoginCommand(output_handler=output, auth_gate=signed_in_gate).run("owner@example.org", "pw")

        assert exit_code == ExitCode.SUCCESS
        signed_in_gate.login.assert_called_once_with("owner@example.org", "pw")
        assert "Signed in as owner@example.org" in output.text()

    def test_login_rejected(self, output, signed_out_gate):
        signed_out_gate.login.side_effect = AuthFailureError("firebase", "invalid email or password")

        exit_code = LoginCommand(output_handler=output, auth_gate=signed_out_gate).run("x@example.org", "bad")

        assert exit_code == ExitCode.AUTH_ERROR
        assert "invalid email or password" in output.text()

    def test_logout_does_not_require_login(self, output, signed_out_gate):
        assert LogoutCommand(output_handler=output, auth_gate=signed_out_gate).run() == ExitCode.SUCCESS
        signed_out_gate.logout.assert_called_once_with()
        signed_out_gate.require_user.assert_not_called()

    def test_whoami(self, output, signed_in_gate, signed_out_gate):
        assert WhoamiCommand(output_handler=output, auth_gate=signed_in_gate).run() == ExitCode.SUCCESS
        assert WhoamiCommand(output_handler=output, auth_gate=signed_out_gate).run() == ExitCode.AUTH_ERROR
        assert "Not signed in" in output.text()
