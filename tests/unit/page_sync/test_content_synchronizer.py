"""Unit tests for page_sync.synchronizer module."""

import json
import logging

import pytest
from unittest.mock import Mock

from src.github_client.errors import (
    APIUnreachableError,
    AuthFailureError,
    ConflictError,
    InvalidContentError,
    NotFoundError,
)
from src.github_client.models import RevisionedContent
from src.page_sync.errors import BusyError, InvalidStateError, UnsavedChangesError
from src.page_sync.json_tree import parse_path
from src.page_sync.models import PageState
from src.page_sync.synchronizer import ContentSynchronizer, SaveRegistry


def revisioned(path, text, token):
    return RevisionedContent(path=path, content=text.encode('utf-8'), revision_token=token)


class TestOpen:

    def test_open_loads_content_and_token(self, store):
        sync = ContentSynchronizer(store)

        page = sync.open('about.json')

        assert page.state is PageState.CLEAN
        assert page.content == store.content_of('about.json').decode('utf-8')
        assert page.revision_token == store.token_of('about.json')
        assert page.is_dirty is False
        assert sync.current is page

    def test_open_missing_page_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            ContentSynchronizer(store).open('missing.json')

    def test_open_binary_content_raises_invalid_content(self, store):
        store.seed('broken.html', b'\xff\xfe\x00')
        with pytest.raises(InvalidContentError):
            ContentSynchronizer(store).open('broken.html')

    def test_open_refuses_to_drop_unsaved_edits(self, store):
        sync = ContentSynchronizer(store)
        sync.open('about.json')
        sync.edit('{}')

        with pytest.raises(UnsavedChangesError):
            sync.open('index.html')

        assert sync.current.path == 'about.json'
        assert sync.current.content == '{}'

    def test_open_with_discard_changes(self, store):
        sync = ContentSynchronizer(store)
        sync.open('about.json')
        sync.edit('{}')

        page = sync.open('index.html', discard_changes=True)

        assert page.path == 'index.html'
        assert page.state is PageState.CLEAN

    def test_open_after_failed_save_is_guarded(self, store):
        sync = ContentSynchronizer(store)
        sync.open('about.json')
        sync.edit('{"changed": true}')
        store.failures['write_content'] = APIUnreachableError('https://api.github.com')
        with pytest.raises(APIUnreachableError):
            sync.save()

        with pytest.raises(UnsavedChangesError):
            sync.open('index.html')

    def test_close_applies_the_same_guard(self, store):
        sync = ContentSynchronizer(store)
        sync.open('about.json')
        sync.edit('{}')

        with pytest.raises(UnsavedChangesError):
            sync.close()
        sync.close(discard_changes=True)

        assert sync.current is None


class TestEdit:

    def test_edit_marks_dirty_without_server_traffic(self, store):
        sync = ContentSynchronizer(store)
        sync.open('index.html')
        calls_before = len(store.calls)

        page = sync.edit('<html></html>')

        assert page.state is PageState.DIRTY
        assert page.is_dirty is True
        assert len(store.calls) == calls_before

    def test_edit_without_open_page(self, store):
        with pytest.raises(InvalidStateError):
            ContentSynchronizer(store).edit('x')

    def test_edit_field_updates_json(self, store):
        sync = ContentSynchronizer(store)
        sync.open('about.json')

        page = sync.edit_field(('stateOfficers', 0, 'name'), 'Ada King')

        assert page.state is PageState.DIRTY
        document = json.loads(page.content)
        assert document['stateOfficers'][0]['name'] == 'Ada King'
        assert document['stateOfficers'][1]['name'] == 'Alan Turing'
        assert page.content.startswith('{\n  "missionStatement"')

    def test_remove_field_and_append_item(self, store):
        sync = ContentSynchronizer(store)
        sync.open('about.json')

        sync.remove_field(('stateOfficers', 1))
        sync.append_item(('creed',), 'I believe in service.')

        document = sync.document()
        assert [o['name'] for o in document['stateOfficers']] == ['Ada Lovelace']
        assert document['creed'][-1] == 'I believe in service.'

    def test_numeric_dict_key_is_replaced_not_duplicated(self, store):
        store.seed('events.json', '{"years": {"2024": "old"}}')
        sync = ContentSynchronizer(store)
        sync.open('events.json')

        sync.edit_field(parse_path('years.2024'), 'new')
        sync.save()

        saved = store.content_of('events.json').decode('utf-8')
        assert saved.count('"2024"') == 1
        assert json.loads(saved) == {'years': {'2024': 'new'}}

    def test_bad_path_raises_invalid_content_and_keeps_state(self, store):
        sync = ContentSynchronizer(store)
        sync.open('about.json')

        with pytest.raises(InvalidContentError):
            sync.edit_field(('stateOfficers', 7, 'name'), 'Nobody')

        assert sync.state is PageState.CLEAN

    def test_structural_edit_on_html_page(self, store):
        sync = ContentSynchronizer(store)
        sync.open('index.html')

        with pytest.raises(InvalidStateError):
            sync.edit_field(('title',), 'x')

    def test_structural_edit_on_unparsable_json(self, store):
        store.seed('broken.json', '{"a": ')
        sync = ContentSynchronizer(store)
        sync.open('broken.json')

        with pytest.raises(InvalidContentError):
            sync.edit_field(('a',), 1)


class TestSave:

    def test_save_without_edit_is_a_no_op(self, store):
        sync = ContentSynchronizer(store)
        page = sync.open('about.json')
        token = page.revision_token

        result = sync.save()

        assert result.committed is False
        assert result.old_token == result.new_token == token
        assert ('write_content', 'about.json') not in store.calls
        assert store.commits == []
        assert sync.state is PageState.CLEAN

    def test_save_round_trips_content(self, store):
        sync = ContentSynchronizer(store)
        sync.open('index.html')
        sync.edit('<html><body>Änderung</body></html>')

        sync.save()

        assert store.content_of('index.html') == '<html><body>Änderung</body></html>'.encode('utf-8')
        assert sync.current.content == '<html><body>Änderung</body></html>'

    def test_about_json_token_advances(self):
        client = Mock()
        client.read_content.side_effect = [
            revisioned('about.json', '{"missionStatement": "Old"}', 'abc'),
            revisioned('about.json', '{"missionStatement": "New"}', 'def'),
        ]
        client.write_content.return_value = 'def'
        sync = ContentSynchronizer(client)

        sync.open('about.json')
        sync.edit_field(('missionStatement',), 'New')
        result = sync.save()

        client.write_content.assert_called_once_with(
            'about.json',
            json.dumps({"missionStatement": "New"}, indent=2).encode('utf-8'),
            'Update about.json via CMS editor',
            'abc',
        )
        assert result.committed is True
        assert (result.old_token, result.new_token) == ('abc', 'def')
        assert sync.current.revision_token == 'def'
        assert sync.state is PageState.CLEAN
        assert sync.current.is_dirty is False

    def test_reusing_token_after_save_conflicts(self, store):
        sync = ContentSynchronizer(store)
        old_token = sync.open('about.json').revision_token
        sync.edit('{"missionStatement": "New"}')
        sync.save()

        with pytest.raises(ConflictError):
            store.write_content('about.json', b'{}', 'stale', old_token)

    def test_two_sessions_second_save_conflicts(self, store):
        registry = SaveRegistry()
        tab_a = ContentSynchronizer(store, save_registry=registry)
        tab_b = ContentSynchronizer(store, save_registry=registry)
        tab_a.open('about.json')
        tab_b.open('about.json')
        assert tab_a.current.revision_token == tab_b.current.revision_token

        tab_a.edit('{"missionStatement": "From A"}')
        tab_a.save()
        tab_b.edit('{"missionStatement": "From B"}')

        with pytest.raises(ConflictError):
            tab_b.save()

        assert store.content_of('about.json') == b'{"missionStatement": "From A"}'
        assert tab_b.state is PageState.SAVE_FAILED
        assert tab_b.current.content == '{"missionStatement": "From B"}'
        assert isinstance(tab_b.current.last_error, ConflictError)

    def test_conflict_is_not_retried(self):
        client = Mock()
        client.read_content.return_value = revisioned('about.json', '{}', 'abc')
        client.write_content.side_effect = ConflictError('about.json', 'abc')
        sync = ContentSynchronizer(client)
        sync.open('about.json')
        sync.edit('{"a": 1}')

        with pytest.raises(ConflictError):
            sync.save()

        assert client.write_content.call_count == 1
        assert client.read_content.call_count == 1

    def test_invalid_json_is_rejected_before_network(self, store):
        sync = ContentSynchronizer(store)
        sync.open('about.json')
        sync.edit('{"missionStatement": ')

        with pytest.raises(InvalidContentError):
            sync.save()

        assert ('write_content', 'about.json') not in store.calls
        assert sync.state is PageState.DIRTY

    def test_html_is_saved_verbatim(self, store):
        sync = ContentSynchronizer(store)
        sync.open('index.html')
        sync.edit('<p>not { json')

        result = sync.save()

        assert result.committed is True

    def test_failed_save_allows_more_edits_and_retry(self, store):
        sync = ContentSynchronizer(store)
        sync.open('about.json')
        sync.edit('{"a": 1}')
        store.failures['write_content'] = APIUnreachableError('https://api.github.com')

        with pytest.raises(APIUnreachableError):
            sync.save()
        assert sync.state is PageState.SAVE_FAILED
        assert sync.current.content == '{"a": 1}'

        sync.edit('{"a": 2}')
        assert sync.state is PageState.DIRTY
        result = sync.save()

        assert result.committed is True
        assert store.content_of('about.json') == b'{"a": 2}'
        assert sync.current.last_error is None

    def test_save_without_open_page(self, store):
        with pytest.raises(InvalidStateError):
            ContentSynchronizer(store).save()

    def test_custom_message_and_template(self, store):
        sync = ContentSynchronizer(store, commit_message="CMS: {path}")
        sync.open('index.html')
        sync.edit('<p>1</p>')
        sync.save()
        sync.edit('<p>2</p>')
        sync.save("Fix typo")

        assert store.commits == [('index.html', 'CMS: index.html'), ('index.html', 'Fix typo')]


class TestConfirmatoryRead:

    def test_reread_adopts_server_content(self):
        client = Mock()
        client.read_content.side_effect = [
            revisioned('index.html', '<p>old</p>', 'abc'),
            revisioned('index.html', '<p>new</p>\n', 'def'),
        ]
        client.write_content.return_value = 'def'
        sync = ContentSynchronizer(client)
        sync.open('index.html')
        sync.edit('<p>new</p>')

        result = sync.save()

        assert result.content_changed_on_server is True
        assert sync.current.content == '<p>new</p>\n'

    def test_reread_failure_keeps_write_token(self, store, caplog):
        sync = ContentSynchronizer(store)
        sync.open('about.json')
        sync.edit('{"a": 1}')
        store.failures['read_content'] = APIUnreachableError('https://api.github.com')

        with caplog.at_level(logging.WARNING, logger='src.page_sync.synchronizer'):
            result = sync.save()

        assert result.committed is True
        assert result.new_token == store.token_of('about.json')
        assert sync.state is PageState.CLEAN
        assert "could not re-read" in caplog.text

    def test_reread_auth_failure_propagates_after_commit(self, store):
        sync = ContentSynchronizer(store)
        sync.open('about.json')
        sync.edit('{"a": 1}')
        store.failures['read_content'] = AuthFailureError('https://api.github.com')

        with pytest.raises(AuthFailureError):
            sync.save()

        assert sync.state is PageState.CLEAN
        assert sync.current.revision_token == store.token_of('about.json')


class TestBusy:

    def test_second_save_while_saving_is_rejected(self, store):
        sync = ContentSynchronizer(store)
        sync.open('about.json')
        sync.edit('{"a": 1}')
        seen = {}
        real_write = store.write_content

        def write_and_interfere(*args, **kwargs):
            assert sync.state is PageState.SAVING
            for name, attempt in (('save', sync.save), ('edit', lambda: sync.edit('{}')),
                                  ('open', lambda: sync.open('index.html', discard_changes=True))):
                try:
                    attempt()
                except BusyError as e:
                    seen[name] = e
            return real_write(*args, **kwargs)

        store.write_content = write_and_interfere
        result = sync.save()

        assert set(seen) == {'save', 'edit', 'open'}
        assert result.committed is True
        assert store.content_of('about.json') == b'{"a": 1}'

    def test_shared_registry_rejects_same_path(self, store):
        registry = SaveRegistry()
        tab_a = ContentSynchronizer(store, save_registry=registry)
        tab_b = ContentSynchronizer(store, save_registry=registry)
        tab_a.open('about.json')
        tab_b.open('about.json')
        tab_a.edit('{"a": 1}')
        tab_b.edit('{"b": 2}')
        seen = []
        real_write = store.write_content

        def write_and_interfere(*args, **kwargs):
            try:
                tab_b.save()
            except BusyError as e:
                seen.append(e)
            return real_write(*args, **kwargs)

        store.write_content = write_and_interfere
        tab_a.save()

        assert len(seen) == 1
        assert tab_b.state is PageState.DIRTY
        assert not registry.is_saving('about.json')

    def test_different_paths_do_not_block(self, store):
        registry = SaveRegistry()
        tab_a = ContentSynchronizer(store, save_registry=registry)
        tab_b = ContentSynchronizer(store, save_registry=registry)
        tab_a.open('about.json')
        tab_b.open('index.html')
        tab_a.edit('{"a": 1}')
        tab_b.edit('<p>b</p>')
        results = []
        real_write = store.write_content

        def write_and_interfere(path, *args, **kwargs):
            if path == 'about.json':
                store.write_content = real_write
                results.append(tab_b.save())
            return real_write(path, *args, **kwargs)

        store.write_content = write_and_interfere
        tab_a.save()

        assert results[0].committed is True
        assert store.content_of('index.html') == b'<p>b</p>'


class TestSaveRegistry:

    def test_acquire_release(self):
        registry = SaveRegistry()
        assert registry.try_acquire('a.json') is True
        assert registry.try_acquire('a.json') is False
        assert registry.is_saving('a.json') is True
        registry.release('a.json')
        assert registry.try_acquire('a.json') is True

    def test_release_unknown_path_is_harmless(self):
        SaveRegistry().release('never.json')
