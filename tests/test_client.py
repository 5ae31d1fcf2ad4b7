import asyncio
import logging
import re

import pytest

from originfs.client import OriginFSClient
from originfs.exceptions import InvalidTypeError, NotFoundError, RemoteError
from originfs.models import AddMutation, DeleteMutation, FieldIndex, UpdateMutation

from fakes import FakeRemote, make_wire, ROOT

NOTES_ID = "ab" * 16
DOCS_ID = "d" * 32
HEX_ID = re.compile(r"^[0-9a-f]{32}$")


class TestLoading:

    @pytest.mark.asyncio
    async def test_index_is_fetched_once(self, client, remote):
        first = await client.list_paths()
        second = await client.list_paths()

        assert set(first) == {"/docs", "/docs/notes.txt"}
        assert first == second
        assert remote.snapshot_calls == 1
        assert client.owner == "alice"

    @pytest.mark.asyncio
    async def test_concurrent_first_calls_share_one_snapshot_fetch(self, client, remote):
        remote.delay = 0.01
        results = await asyncio.gather(
            client.get_id("/docs"),
            client.list_paths(),
            client.exists("/docs/notes.txt"),
            client.list_dir("/"),
        )
        assert results[0] == DOCS_ID
        assert results[2] is True
        assert remote.snapshot_calls == 1

    @pytest.mark.asyncio
    async def test_concurrent_reads_share_one_record_fetch(self, client, remote):
        remote.delay = 0.01
        records = await asyncio.gather(*[client.read_record("/docs/notes.txt") for _ in range(5)])

        assert remote.record_calls[NOTES_ID] == 1
        assert all(r.data == "hello" for r in records)

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_joined_load(self, client, remote):
        remote.delay = 0.02
        first = asyncio.create_task(client.exists("/docs"))
        await asyncio.sleep(0)
        second = asyncio.create_task(client.list_paths())
        await asyncio.sleep(0)

        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first

        assert set(await second) == {"/docs", "/docs/notes.txt"}
        assert remote.snapshot_calls == 1

    @pytest.mark.asyncio
    async def test_failed_snapshot_is_not_memoized(self, client, remote):
        remote.fail_snapshot = True
        with pytest.raises(RemoteError) as exc_info:
            await client.get_id("/docs")
        assert exc_info.value.remote_status == 503

        remote.fail_snapshot = False
        assert await client.get_id("/docs") == DOCS_ID
        assert remote.snapshot_calls == 2


class TestLookups:

    @pytest.mark.asyncio
    async def test_get_id_is_case_insensitive(self, client):
        assert await client.get_id("/DOCS/Notes.TXT") == NOTES_ID

    @pytest.mark.asyncio
    async def test_get_id_missing(self, client):
        with pytest.raises(NotFoundError):
            await client.get_id("/missing.txt")

    @pytest.mark.asyncio
    async def test_get_path(self, client):
        assert await client.get_path(NOTES_ID) == "/docs/notes.txt"
        assert await client.get_path(DOCS_ID) == "/docs"

    @pytest.mark.asyncio
    async def test_get_path_unknown_id(self, client):
        with pytest.raises(NotFoundError):
            await client.get_path("f" * 32)

    @pytest.mark.asyncio
    async def test_read_record_returns_a_copy(self, client):
        record = await client.read_record("/docs/notes.txt")
        record.data = "tampered"
        record.opaque[4] = "tampered"

        assert await client.read_content("/docs/notes.txt") == "hello"
        again = await client.read_record("/docs/notes.txt")
        assert again.opaque[4] == "keep-me"

    @pytest.mark.asyncio
    async def test_opaque_fields_survive(self, client):
        record = await client.read_record("/docs/notes.txt")
        wire = record.to_wire()
        assert wire[4] == "keep-me"
        assert wire[12] == ["x"]
        assert wire[13] == NOTES_ID

    @pytest.mark.asyncio
    async def test_read_content_of_folder(self, client):
        with pytest.raises(InvalidTypeError):
            await client.read_content("/docs")

    @pytest.mark.asyncio
    async def test_stat_uuid(self, client):
        record = await client.stat_uuid(NOTES_ID)
        assert record.name == "Notes"
        assert record.type == ".txt"
        record.name = "changed"
        assert (await client.stat_uuid(NOTES_ID)).name == "Notes"

        with pytest.raises(NotFoundError):
            await client.stat_uuid("0" * 32)

    @pytest.mark.asyncio
    async def test_stat_uuid_keys_record_by_requested_id(self, caplog):
        remote = FakeRemote()
        remote.index[f"{ROOT}/odd.txt"] = "1" * 32
        remote.records["1" * 32] = make_wire("2" * 32, "odd", ".txt")
        client = OriginFSClient(transport=remote)

        with caplog.at_level(logging.WARNING, logger="originfs.cache"):
            record = await client.stat_uuid("1" * 32)

        assert record.uuid == "1" * 32
        assert client.entries.get("1" * 32).uuid == "1" * 32
        assert "2" * 32 in caplog.text
        assert await client.get_path("1" * 32) == "/odd.txt"

    @pytest.mark.asyncio
    async def test_list_dir_returns_immediate_children(self):
        remote = FakeRemote()
        remote.seed(f"{ROOT}/a/b.txt", make_wire("1" * 32, "b", ".txt", f"{ROOT}/a"))
        remote.seed(f"{ROOT}/a/c/d.txt", make_wire("2" * 32, "d", ".txt", f"{ROOT}/a/c"))
        remote.seed(f"{ROOT}/a2/e.txt", make_wire("3" * 32, "e", ".txt", f"{ROOT}/a2"))
        client = OriginFSClient(transport=remote)

        assert set(await client.list_dir("/a")) == {"b.txt", "c"}
        assert set(await client.list_dir("/A/")) == {"b.txt", "c"}
        assert set(await client.list_dir("/")) == {"a", "a2"}
        assert await client.list_dir("/nothing") == []

    @pytest.mark.asyncio
    async def test_exists(self, client):
        assert await client.exists("/DOCS") is True
        assert await client.exists("/nope") is False

    @pytest.mark.asyncio
    async def test_exists_swallows_load_failure(self, client, remote):
        remote.fail_snapshot = True
        assert await client.exists("/docs") is False

        remote.fail_snapshot = False
        assert await client.exists("/docs") is True

    @pytest.mark.asyncio
    async def test_exists_swallows_unexpected_errors(self, client, remote):
        async def explode():
            raise OSError("socket exploded")

        remote.fetch_snapshot = explode
        assert await client.exists("/docs") is False


    def test_join_path(self):
        assert OriginFSClient.join_path("A", "//b/", "C.txt") == "/a/b/c.txt"
        assert OriginFSClient.join_path("/x/") == "/x"


class TestWrite:

    @pytest.mark.asyncio
    async def test_write_never_creates(self, client):
        with pytest.raises(NotFoundError):
            await client.write("/docs/new.txt", "data")
        assert not client.dirty
        assert not await client.exists("/docs/new.txt")

    @pytest.mark.asyncio
    async def test_write_queues_three_updates(self, client):
        await client.write("/docs/Notes.txt", "hello world")

        record = await client.read_record("/docs/notes.txt")
        assert record.data == "hello world"
        assert record.size == 11

        pending = client.pending
        assert [type(m) for m in pending] == [UpdateMutation] * 3
        assert [m.field for m in pending] == [FieldIndex.DATA, FieldIndex.EDITED, FieldIndex.SIZE]
        assert pending[0].value == "hello world"
        assert pending[1].value == record.edited
        assert pending[2].value == 11
        assert [m.to_wire()["idx"] for m in pending] == [4, 10, 12]


class TestCreate:

    @pytest.mark.asyncio
    async def test_create_file_materializes_missing_folders(self, client):
        uuid = await client.create_file("/a/b/c.txt", "xyz")

        pending = client.pending
        assert [type(m) for m in pending] == [AddMutation] * 3
        folder_a, folder_b, file_c = pending
        assert folder_a.record[0] == ".folder" and folder_a.record[1] == "a"
        assert folder_a.record[2] == ROOT
        assert folder_b.record[0] == ".folder" and folder_b.record[1] == "b"
        assert folder_b.record[2] == f"{ROOT}/a"
        assert file_c.uuid == uuid
        assert file_c.record[:4] == [".txt", "c", f"{ROOT}/a/b", "xyz"]
        assert file_c.record[11] == 3
        assert file_c.record[13] == uuid

        assert await client.get_id("/a") == folder_a.uuid
        assert await client.get_id("/a/b") == folder_b.uuid
        assert await client.get_path(uuid) == "/a/b/c.txt"

    @pytest.mark.asyncio
    async def test_create_file_reuses_existing_folders(self, client):
        await client.create_file("/a/b/c.txt", "xyz")
        before = len(client.pending)

        await client.create_file("/a/b/d.txt", "")
        added = client.pending[before:]
        assert len(added) == 1
        assert added[0].record[1] == "d"

    @pytest.mark.asyncio
    async def test_create_file_in_existing_remote_folder(self, client):
        await client.create_file("/docs/todo.md", "- [ ]")
        assert len(client.pending) == 1
        assert client.pending[0].record[2] == f"{ROOT}/docs"

    @pytest.mark.asyncio
    async def test_create_file_splits_at_last_dot(self, client):
        await client.create_file("/archive.tar.gz", "")
        await client.create_file("/README", "")

        archive, readme = client.pending
        assert archive.record[:2] == [".gz", "archive.tar"]
        assert readme.record[:2] == ["", "readme"]
        assert readme.record[2] == ROOT

    @pytest.mark.asyncio
    async def test_create_folder(self, client):
        uuid = await client.create_folder("/projects/new")

        parent, folder = client.pending
        assert parent.record[1] == "projects"
        assert folder.uuid == uuid
        assert folder.record[0] == ".folder"
        assert folder.record[3] == []
        assert folder.record[11] == 0
        with pytest.raises(InvalidTypeError):
            await client.read_content("/projects/new")

    @pytest.mark.asyncio
    async def test_create_folders_is_idempotent(self, client):
        await client.create_folders("/docs/sub/deeper/")
        assert [m.record[1] for m in client.pending] == ["sub", "deeper"]

        await client.create_folders("/docs/sub/deeper")
        await client.create_folders("/")
        assert len(client.pending) == 2

    @pytest.mark.asyncio
    async def test_generated_ids_are_unique_hex(self, client):
        ids = [await client.create_file(f"/f{i}.txt", "") for i in range(20)]
        assert len(set(ids)) == 20
        assert all(HEX_ID.match(i) for i in ids)


class TestRenameRemove:

    @pytest.mark.asyncio
    async def test_rename_moves_index_key(self, client):
        uuid = await client.create_file("/x.txt", "1")
        await client.rename("/x.txt", "/y/z.txt")

        assert not await client.exists("/x.txt")
        assert await client.get_id("/y/z.txt") == uuid
        record = await client.stat_uuid(uuid)
        assert record.name == "z"
        assert record.type == ".txt"
        assert record.location == f"{ROOT}/y"

        updates = client.pending[1:]
        assert [m.field for m in updates] == [FieldIndex.TYPE, FieldIndex.NAME, FieldIndex.LOCATION, FieldIndex.EDITED]
        assert [m.value for m in updates[:3]] == [".txt", "z", f"{ROOT}/y"]

    @pytest.mark.asyncio
    async def test_rename_keeps_case_of_new_name(self, client):
        await client.rename("/docs/notes.txt", "/docs/Renamed.MD")

        assert await client.get_id("/docs/renamed.md") == NOTES_ID
        record = await client.read_record("/docs/renamed.md")
        assert (record.name, record.type) == ("Renamed", ".MD")
        assert record.opaque[4] == "keep-me"

    @pytest.mark.asyncio
    async def test_rename_onto_existing_path_warns(self, client, caplog):
        other = await client.create_file("/other.txt", "x")

        with caplog.at_level(logging.WARNING, logger="originfs.client"):
            await client.rename("/docs/notes.txt", "/other.txt")

        assert await client.get_id("/other.txt") == NOTES_ID
        assert other in caplog.text
        assert "already mapped" in caplog.text

    @pytest.mark.asyncio
    async def test_rename_missing(self, client):
        with pytest.raises(NotFoundError):
            await client.rename("/nope.txt", "/other.txt")
        assert not client.dirty

    @pytest.mark.asyncio
    async def test_remove(self, client):
        await client.read_record("/docs/notes.txt")
        await client.remove("/docs/Notes.txt")

        assert not await client.exists("/docs/notes.txt")
        assert NOTES_ID not in client.entries
        assert len(client.pending) == 1
        assert isinstance(client.pending[0], DeleteMutation)
        assert client.pending[0].to_wire() == {"command": "UUIDd", "uuid": NOTES_ID}

        with pytest.raises(NotFoundError):
            await client.remove("/docs/notes.txt")


class TestCommit:

    @pytest.mark.asyncio
    async def test_commit_sends_log_in_order(self, client, remote):
        await client.create_file("/a/b/c.txt", "xyz")
        await client.write("/docs/notes.txt", "bye")
        await client.rename("/a/b/c.txt", "/a/c.txt")
        await client.remove("/docs")
        expected = [m.to_wire() for m in client.pending]

        assert await client.commit() == len(expected)
        assert remote.batches == [expected]
        assert [u["command"] for u in expected] == ["UUIDa"] * 3 + ["UUIDr"] * 7 + ["UUIDd"]
        assert not client.dirty
        assert client.pending == []

    @pytest.mark.asyncio
    async def test_empty_commit_sends_nothing(self, client, remote):
        assert await client.commit() == 0
        assert remote.batches == []

    @pytest.mark.asyncio
    async def test_failed_commit_keeps_log(self, client, remote):
        await client.create_file("/a/b/c.txt", "xyz")
        await client.remove("/docs/notes.txt")
        before = [m.model_dump() for m in client.pending]

        remote.fail_batch = True
        for _ in range(3):
            with pytest.raises(RemoteError):
                await client.commit()
            assert [m.model_dump() for m in client.pending] == before
            assert client.dirty

        remote.fail_batch = False
        assert await client.commit() == 4
        assert len(remote.batches) == 1
        assert [u["uuid"] for u in remote.batches[0]] == [m["uuid"] for m in before]
        assert not client.dirty

    @pytest.mark.asyncio
    async def test_mutations_during_commit_stay_queued(self, client, remote):
        await client.create_file("/first.txt", "1")
        remote.delay = 0.05

        commit = asyncio.create_task(client.commit())
        await asyncio.sleep(0.01)
        await client.create_file("/second.txt", "2")
        assert await commit == 1

        assert [m.record[1] for m in client.pending] == ["second"]
        assert await client.commit() == 1
        assert [b[0]["dta"][1] for b in remote.batches] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_add_payload_is_snapshotted(self, client, remote):
        await client.create_file("/a.txt", "one")
        await client.write("/a.txt", "two")
        await client.commit()

        add, data_update = remote.batches[0][0], remote.batches[0][1]
        assert add["dta"][3] == "one"
        assert data_update == {"command": "UUIDr", "uuid": add["uuid"], "dta": "two", "idx": 4}


@pytest.mark.asyncio
async def test_context_manager_closes_transport(remote):
    async with OriginFSClient(transport=remote) as client:
        await client.list_paths()
    assert remote.closed
