from unittest import mock

import pytest
from git import Actor, InvalidGitRepositoryError, PushInfo, Repo

from frappe_release.release_version import ReleaseVersion
from frappe_release.update_versions import UpdateVersions, update_compose_file, update_env_file

RELEASE = ReleaseVersion.from_tag("v15.2.3", "15")
BASE_CONF = {"task": "update_versions"}
NO_PUSH_CONF = {**BASE_CONF, "commit": {"push": False}}

EXAMPLE_ENV = """ERPNEXT_VERSION=v15.0.0

DB_PASSWORD=123
"""

PWD_YML = """services:
  backend:
    image: frappe/erpnext:v15.0.0
  frontend:
    image: frappe/erpnext:v15.0.0
  db:
    image: mariadb:10.6
"""

ACTOR = Actor("tester", "tester@example.com")


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    (tmp_path / "example.env").write_text(EXAMPLE_ENV)
    (tmp_path / "pwd.yml").write_text(PWD_YML)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def repo(workdir) -> Repo:
    repo = Repo.init(str(workdir))
    repo.index.add(["example.env", "pwd.yml"])
    repo.index.commit("initial", author=ACTOR, committer=ACTOR)
    return repo


class TestUpdateEnvFile:
    def test_replace(self, workdir):
        assert update_env_file("example.env", "ERPNEXT_VERSION", "v15.2.3")
        assert (workdir / "example.env").read_text() == EXAMPLE_ENV.replace("v15.0.0", "v15.2.3")

    def test_unchanged(self, workdir):
        assert not update_env_file("example.env", "ERPNEXT_VERSION", "v15.0.0")
        assert (workdir / "example.env").read_text() == EXAMPLE_ENV

    def test_append_missing_key(self, workdir):
        (workdir / "example.env").write_text("DB_PASSWORD=123")
        assert update_env_file("example.env", "ERPNEXT_VERSION", "v15.2.3")
        assert (workdir / "example.env").read_text() == "DB_PASSWORD=123\nERPNEXT_VERSION=v15.2.3\n"

    def test_only_exact_key(self, workdir):
        (workdir / "example.env").write_text("MY_ERPNEXT_VERSION=keep\nERPNEXT_VERSION=v15.0.0\n")
        update_env_file("example.env", "ERPNEXT_VERSION", "v15.2.3")
        assert (workdir / "example.env").read_text() == "MY_ERPNEXT_VERSION=keep\nERPNEXT_VERSION=v15.2.3\n"

    def test_value_taken_literally(self, workdir):
        update_env_file("example.env", "ERPNEXT_VERSION", r"v15\g<0>")
        assert (workdir / "example.env").read_text() == EXAMPLE_ENV.replace("v15.0.0", r"v15\g<0>")


class TestUpdateComposeFile:
    def test_replace_all_references(self, workdir):
        assert update_compose_file("pwd.yml", "frappe/erpnext", "v15.2.3")
        assert (workdir / "pwd.yml").read_text() == PWD_YML.replace("v15.0.0", "v15.2.3")

    def test_unchanged(self, workdir):
        assert not update_compose_file("pwd.yml", "frappe/erpnext", "v15.0.0")

    def test_other_images_untouched(self, workdir):
        (workdir / "pwd.yml").write_text("image: myorg/frappe/erpnext:old\nimage: frappe/erpnext:old\n")
        update_compose_file("pwd.yml", "frappe/erpnext", "v15.2.3")
        assert (workdir / "pwd.yml").read_text() == "image: myorg/frappe/erpnext:old\nimage: frappe/erpnext:v15.2.3\n"

    def test_tag_taken_literally(self, workdir):
        assert update_compose_file("pwd.yml", "frappe/erpnext", r"v15\1")
        assert (workdir / "pwd.yml").read_text() == PWD_YML.replace("v15.0.0", r"v15\1")


class TestUpdateVersions:
    def test_validate_minimal_schema(self):
        victim = UpdateVersions(RELEASE, BASE_CONF)
        assert victim.files == ["example.env", "pwd.yml"]
        assert victim.compose_tag == "v15.2.3"
        assert victim.config["commit"] == {
            "user_name": "github-actions",
            "user_email": "github-actions@github.com",
            "message": "chore: Update example.env",
            "remote": "origin",
            "branch": "main",
            "push": True,
        }

    def test_compose_tag_image_version(self):
        victim = UpdateVersions(RELEASE, {**BASE_CONF, "compose_tag": "image_version"})
        assert victim.compose_tag == "15.2.3"

    def test_missing_file(self, workdir):
        (workdir / "pwd.yml").unlink()
        with pytest.raises(FileNotFoundError, match="pwd.yml file not found"):
            UpdateVersions(RELEASE, NO_PUSH_CONF).update_files()

    def test_run_outside_repository(self, workdir):
        with pytest.raises(InvalidGitRepositoryError):
            UpdateVersions(RELEASE, NO_PUSH_CONF).run()

        assert (workdir / "example.env").read_text() == EXAMPLE_ENV
        assert (workdir / "pwd.yml").read_text() == PWD_YML

    def test_run_commits_changes(self, repo):
        initial = repo.head.commit

        UpdateVersions(RELEASE, NO_PUSH_CONF).run()

        commit = repo.head.commit
        assert commit != initial
        assert commit.message == "chore: Update example.env"
        assert commit.author.name == "github-actions"
        assert commit.author.email == "github-actions@github.com"
        assert sorted(commit.stats.files) == ["example.env", "pwd.yml"]
        assert not repo.is_dirty()

    def test_run_twice_commits_once(self, repo):
        UpdateVersions(RELEASE, NO_PUSH_CONF).run()
        first = repo.head.commit

        UpdateVersions(RELEASE, NO_PUSH_CONF).run()

        assert repo.head.commit == first
        assert not repo.is_dirty()

    def test_run_unchanged(self, repo):
        initial = repo.head.commit
        UpdateVersions(ReleaseVersion.from_tag("v15.0.0", "15"), NO_PUSH_CONF).run()
        assert repo.head.commit == initial

    def test_commit_changes_pushes(self, workdir):
        m_repo = mock.MagicMock()
        m_repo.working_tree_dir = str(workdir)
        m_repo.git.status.return_value = " M example.env"
        m_repo.remote.return_value.push.return_value = [mock.Mock(flags=PushInfo.FAST_FORWARD)]

        assert UpdateVersions(RELEASE, BASE_CONF).commit_changes(m_repo)

        m_repo.index.add.assert_called_once_with(["example.env", "pwd.yml"])
        m_repo.git.status.assert_called_once_with("--porcelain", "--", "example.env", "pwd.yml")
        m_repo.index.commit.assert_called_once()
        m_repo.remote.assert_called_once_with("origin")
        m_repo.remote.return_value.pull.assert_called_once_with("main", rebase=True)
        m_repo.remote.return_value.push.assert_called_once_with("HEAD:main")

    def test_commit_changes_nothing_to_commit(self, workdir):
        m_repo = mock.MagicMock()
        m_repo.working_tree_dir = str(workdir)
        m_repo.git.status.return_value = ""

        assert not UpdateVersions(RELEASE, BASE_CONF).commit_changes(m_repo)

        m_repo.index.commit.assert_not_called()
        m_repo.remote.assert_not_called()

    def test_commit_changes_push_rejected(self, workdir):
        m_repo = mock.MagicMock()
        m_repo.working_tree_dir = str(workdir)
        m_repo.git.status.return_value = "M  pwd.yml"
        m_repo.remote.return_value.push.return_value = [mock.Mock(flags=PushInfo.REJECTED, summary="[rejected]\n")]

        with pytest.raises(ChildProcessError, match="Failed to push to origin"):
            UpdateVersions(RELEASE, BASE_CONF).commit_changes(m_repo)
