import pytest

from originfs.client import OriginFSClient

from fakes import FakeRemote, make_wire, ROOT


@pytest.fixture
def remote():
    remote = FakeRemote()
    remote.seed(f"{ROOT}/docs", make_wire("d" * 32, "docs", ".folder", ROOT, []))
    remote.seed(f"{ROOT}/docs/Notes.txt", make_wire("ab" * 16, "Notes", ".txt", f"{ROOT}/docs", "hello", extra={4: "keep-me", 12: ["x"]}))
    return remote


@pytest.fixture
def client(remote):
    return OriginFSClient(transport=remote)
