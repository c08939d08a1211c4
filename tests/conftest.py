"""Shared test fixtures for git-survey tests.

In-memory collaborators stand in for git so the stats engine can be tested
without a repository. Tests that need real git use ``git_repo`` and are
skipped when git is not installed.
"""

import hashlib
import shutil
import subprocess
from collections import deque
from pathlib import Path

import pytest

from git_survey.collaborators import NameResolver, ObjectStore, RefStore, Traversal
from git_survey.objects import (
    CommitEvent,
    ObjectEvent,
    ObjectInfo,
    ObjectKind,
    TreeEntry,
    Whence,
)
from git_survey.refs import RefRecord


def pytest_configure(config):
    """Configure markers."""
    config.addinivalue_line("markers", "git: needs the git executable")


def pytest_collection_modifyitems(config, items):
    """Skip git tests when git is not installed."""
    if shutil.which("git"):
        return
    skip_git = pytest.mark.skip(reason="git not found")
    for item in items:
        if item.get_closest_marker("git"):
            item.add_marker(skip_git)


# ---------------------------------------------------------------------------
# In-memory repository
# ---------------------------------------------------------------------------


def oid(label) -> str:
    """A fake 40-hex object id, unique per label."""
    return hashlib.sha1(str(label).encode()).hexdigest()


class FakeRepo:
    """Objects, trees, commit parents, refs and tags kept in dicts."""

    def __init__(self):
        self.objects = {}
        self.trees = {}
        self.commit_trees = {}
        self.parents = {}
        self.tags = {}
        self.refs = []
        # Referenced ids that lookups should fail on.
        self.missing = set()

    def add_blob(self, blob_oid, size, disk_size=None, whence=Whence.PACKED):
        self.objects[blob_oid] = ObjectInfo(
            blob_oid, ObjectKind.BLOB, size, size if disk_size is None else disk_size, whence
        )
        return blob_oid

    def add_tree(self, tree_oid, entries, size=None, whence=Whence.PACKED):
        """``entries`` is a list of (name, oid, kind) tuples."""
        self.trees[tree_oid] = [
            TreeEntry("40000" if kind is ObjectKind.TREE else "100644", name, child)
            for name, child, kind in entries
        ]
        if size is None:
            size = 28 * max(len(entries), 1)
        self.objects[tree_oid] = ObjectInfo(tree_oid, ObjectKind.TREE, size, size // 2, whence)
        return tree_oid

    def add_commit(self, commit_oid, tree_oid, parents=(), size=200, whence=Whence.PACKED):
        self.commit_trees[commit_oid] = tree_oid
        self.parents[commit_oid] = tuple(parents)
        self.objects[commit_oid] = ObjectInfo(
            commit_oid, ObjectKind.COMMIT, size, size // 2, whence
        )
        return commit_oid

    def add_tag(self, tag_oid, target):
        self.tags[tag_oid] = target
        self.objects[tag_oid] = ObjectInfo(tag_oid, ObjectKind.TAG, 150, 100, Whence.PACKED)
        return tag_oid

    def add_ref(self, name, target, symbolic=False, packed=False):
        self.refs.append(RefRecord.from_name(name, target, symbolic=symbolic, packed=packed))


class FakeObjectStore(ObjectStore):
    def __init__(self, repo):
        self.repo = repo
        self.lookups = []

    def lookup(self, oid, expected):
        self.lookups.append((oid, expected))
        if oid in self.repo.missing:
            return None
        info = self.repo.objects.get(oid)
        if info is None or info.kind is not expected:
            return None
        return info

    def tree_entries(self, oid):
        return self.repo.trees.get(oid)


class FakeRefStore(RefStore):
    def __init__(self, repo):
        self.repo = repo
        self.requested = None

    def list_refs(self, patterns):
        self.requested = list(patterns)

        def matches(name):
            return any(name == p if p == "HEAD" else name.startswith(p) for p in patterns)

        return sorted(
            (r for r in self.repo.refs if matches(r.name)), key=lambda r: (r.oid, r.name)
        )

    def peel(self, oid):
        return self.repo.tags.get(oid)


class FakeTraversal(Traversal):
    """Commits breadth-first from the starts, each followed by its new objects."""

    def __init__(self, repo):
        self.repo = repo

    def _tree_events(self, tree_oid, path, seen):
        if tree_oid in seen:
            return
        seen.add(tree_oid)
        yield ObjectEvent(tree_oid, ObjectKind.TREE, path)
        for entry in self.repo.trees.get(tree_oid, []):
            child_path = f"{path}/{entry.name}" if path else entry.name
            if entry.mode == "40000":
                yield from self._tree_events(entry.oid, child_path, seen)
            elif entry.oid not in seen:
                seen.add(entry.oid)
                yield ObjectEvent(entry.oid, ObjectKind.BLOB, child_path)

    def walk(self, starting_oids):
        seen = set()
        queue = deque(starting_oids)
        while queue:
            commit = queue.popleft()
            if commit in seen:
                continue
            seen.add(commit)
            yield CommitEvent(commit, self.repo.parents.get(commit, ()))
            tree = self.repo.commit_trees.get(commit)
            if tree is not None:
                yield from self._tree_events(tree, "", seen)
            queue.extend(self.repo.parents.get(commit, ()))


class FakeNameResolver(NameResolver):
    def __init__(self, names=None, fail_on=None):
        self.names = dict(names or {})
        self.fail_on = set(fail_on or ())
        self.calls = []

    def resolve(self, commit_oids):
        self.calls.append(list(commit_oids))
        if self.fail_on.intersection(commit_oids):
            raise RuntimeError("name-rev died")
        return {c: self.names[c] for c in commit_oids if c in self.names}


@pytest.fixture
def make_oid():
    """Deterministic fake object ids."""
    return oid


@pytest.fixture
def fake_repo():
    """Empty in-memory repository."""
    return FakeRepo()


@pytest.fixture
def collaborators():
    """Build the four fakes over a FakeRepo."""

    def build(repo, names=None, fail_on=None):
        return {
            "ref_store": FakeRefStore(repo),
            "traversal": FakeTraversal(repo),
            "object_store": FakeObjectStore(repo),
            "name_resolver": FakeNameResolver(names, fail_on),
        }

    return build


@pytest.fixture
def three_ref_repo():
    """One root commit reachable from a branch, a lightweight tag and a remote.

    The commit's tree holds two blobs of 10 and 20000 bytes.
    """
    repo = FakeRepo()
    small = repo.add_blob(oid("small"), 10)
    big = repo.add_blob(oid("big"), 20000, disk_size=9000)
    tree = repo.add_tree(
        oid("root-tree"),
        [("README", small, ObjectKind.BLOB), ("data.bin", big, ObjectKind.BLOB)],
    )
    c1 = repo.add_commit(oid("c1"), tree)
    repo.add_ref("refs/heads/main", c1)
    repo.add_ref("refs/tags/v1", c1)
    repo.add_ref("refs/remotes/origin/main", c1)
    repo.c1 = c1
    repo.root_tree = tree
    repo.big = big
    repo.small = small
    return repo


# ---------------------------------------------------------------------------
# Real git repositories
# ---------------------------------------------------------------------------


class GitRepoBuilder:
    """Small helper for building real repositories in a temp dir."""

    def __init__(self, path: Path, init: bool = True):
        self.path = path
        if not init:
            return
        path.mkdir(parents=True)
        self.git("init", "-q", "-b", "main")
        self.git("config", "user.email", "test@test.com")
        self.git("config", "user.name", "Test")
        self.git("config", "commit.gpgsign", "false")
        self.git("config", "tag.gpgsign", "false")

    def git(self, *args, input=None) -> str:
        result = subprocess.run(
            ["git", "-C", str(self.path), *args],
            input=input,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()

    def write(self, name: str, content) -> Path:
        target = self.path / name
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content)
        return target

    def commit(self, message: str) -> str:
        self.git("add", "-A")
        self.git("commit", "-q", "--allow-empty", "-m", message)
        return self.git("rev-parse", "HEAD")

    def missing_oids(self) -> list:
        """Ids rev-list reports as missing from every ref."""
        out = self.git("rev-list", "--objects", "--all", "--missing=print")
        return [line[1:] for line in out.splitlines() if line.startswith("?")]


@pytest.fixture
def git_repo(tmp_path):
    """A real repository: two commits on main, an annotated tag and a lightweight tag."""
    if not shutil.which("git"):
        pytest.skip("git not found")
    repo = GitRepoBuilder(tmp_path / "repo")
    repo.write("README.md", "hello\n")
    repo.write("src/app.py", "print('hi')\n" * 50)
    repo.first = repo.commit("init")
    repo.write("src/big.bin", b"x" * 5000)
    repo.second = repo.commit("add big file")
    repo.git("tag", "-a", "v1.0", "-m", "release", repo.first)
    repo.git("tag", "light", repo.second)
    return repo


@pytest.fixture
def partial_clone(git_repo, tmp_path):
    """Bare partial clones of ``git_repo``, made with the given filter.

    The origin stays reachable, so any lazy fetch would succeed and show up
    as fewer missing objects.
    """
    git_repo.git("config", "uploadpack.allowFilter", "true")

    def clone(spec: str) -> GitRepoBuilder:
        dest = tmp_path / f"clone-{spec.replace(':', '-')}"
        subprocess.run(
            [
                "git",
                "clone",
                "-q",
                "--bare",
                "--no-local",
                f"--filter={spec}",
                f"file://{git_repo.path}",
                str(dest),
            ],
            capture_output=True,
            check=True,
        )
        repo = GitRepoBuilder(dest, init=False)
        repo.first = git_repo.first
        repo.second = git_repo.second
        return repo

    return clone
