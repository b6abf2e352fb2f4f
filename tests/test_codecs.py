"""
저장소 코덱 테스트 - 0/1 <-> bool, JSONB <-> list, 컬럼 이름 해석
"""

import json

import pytest
from psycopg.types.json import Jsonb

from conftest import NOW, account_row, folder_row, note_row
from notes_gateway.schemas.codecs import (
    ACCOUNT_CODEC,
    FOLDER_CODEC,
    NOTE_CODEC,
    decode_account,
    decode_folder,
    decode_note,
    to_list,
)
from notes_gateway.schemas.models import AccountRole, NoteVersion, Visibility


class TestDecode:
    def test_note_flags_and_collections(self):
        version = {"id": "v1", "title": "T", "content": "old", "savedAt": NOW.isoformat()}
        note = decode_note(note_row(pinned=1, favorite=0, tags=["a", "b"], versions=[version], visibility="public"))

        assert note.pinned is True
        assert note.favorite is False
        assert note.tags == ["a", "b"]
        assert note.versions[0].saved_at == NOW
        assert note.visibility is Visibility.public

    def test_note_shadow_fields_keep_null(self):
        note = decode_note(note_row(original_pinned=None, original_favorite=1))
        assert note.original_pinned is None
        assert note.original_favorite is True

    def test_json_text_columns_accepted(self):
        note = decode_note(note_row(tags=json.dumps(["x"]), comments="[]"))
        assert note.tags == ["x"]
        assert note.comments == []

    def test_account(self):
        account = decode_account(account_row(role="admin", permissions=["notes:write"], suspended=1))
        assert account.role is AccountRole.admin
        assert account.permissions == ["notes:write"]
        assert account.suspended is True

    def test_folder_defaults(self):
        folder = decode_folder(folder_row(color=None, is_deleted=None))
        assert folder.color == "#808080"
        assert folder.is_deleted is False


def test_to_list_rejects_objects():
    with pytest.raises(ValueError):
        to_list('{"a": 1}')


class TestEncode:
    def test_bool_columns_become_small_ints(self):
        encoded = NOTE_CODEC.encode({"pinned": True, "favorite": False, "original_pinned": None})
        assert encoded == {"pinned": 1, "favorite": 0, "original_pinned": None}

    def test_json_columns_wrap_models_with_camel_case_keys(self):
        version = NoteVersion(id="v1", title="T", content="C", saved_at=NOW)
        encoded = NOTE_CODEC.encode({"versions": [version]})

        assert isinstance(encoded["versions"], Jsonb)
        record = encoded["versions"].obj[0]
        assert set(record) == {"id", "title", "content", "savedAt"}
        assert record["savedAt"].startswith("2024-05-01T12:00:00")

    def test_enums_become_values(self):
        assert ACCOUNT_CODEC.encode({"role": AccountRole.moderator}) == {"role": "moderator"}

    def test_camel_case_keys_resolved(self):
        assert list(NOTE_CODEC.encode({"folderId": "f1"})) == ["folder_id"]

    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError):
            FOLDER_CODEC.encode({"shadow": 1})
