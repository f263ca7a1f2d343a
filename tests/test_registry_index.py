"""Tests for the on-disk registry index."""

import json

import pytest

from moon_dashboard.core.errors import VersionResolutionError
from moon_dashboard.registry.archive import archive_url
from moon_dashboard.registry.index import RegistryIndex


def write_index(root, name, versions, extra_lines=()):
    publisher, package = name.split("/")
    path = root / publisher / f"{package}.index"
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [json.dumps({"name": name, "version": v, "keywords": []}) for v in versions]
    path.write_text("\n".join([*lines, *extra_lines]) + "\n")


@pytest.fixture
def moon_home(tmp_path):
    root = tmp_path / "registry" / "index" / "user"
    write_index(root, "moonbitlang/core", ["0.1.0", "0.2.0", "0.10.0"])
    write_index(root, "moonbitlang/x", ["0.4.6"])
    write_index(root, "test/fixture", ["9.9.9"])
    return tmp_path


def test_latest_is_last_published(moon_home):
    index = RegistryIndex.from_moon_home(moon_home)

    assert index.latest_version("moonbitlang/core") == "0.10.0"
    assert index.versions("moonbitlang/core") == ["0.1.0", "0.2.0", "0.10.0"]


def test_mooncakes_are_keyed_by_publisher_and_package(moon_home):
    index = RegistryIndex.from_moon_home(moon_home, exclude_publishers=["test"])

    assert set(index.all_mooncakes()) == {"moonbitlang/core", "moonbitlang/x"}


def test_test_fixture_publishers_are_excluded(moon_home):
    index = RegistryIndex.from_moon_home(moon_home, exclude_publishers=["test"])

    with pytest.raises(VersionResolutionError):
        index.latest_version("test/fixture")


def test_unknown_package_raises(moon_home):
    index = RegistryIndex.from_moon_home(moon_home)

    with pytest.raises(VersionResolutionError, match="moonbitlang/nope"):
        index.latest_version("moonbitlang/nope")


def test_malformed_records_are_skipped(tmp_path, recwarn):
    root = tmp_path / "registry" / "index" / "user"
    write_index(
        root, "someone/pkg", ["1.0.0"], extra_lines=["{not json", '{"name": 1}']
    )

    index = RegistryIndex.from_moon_home(tmp_path)

    assert index.versions("someone/pkg") == ["1.0.0"]
    assert not [w for w in recwarn if "Formatting" in type(w.message).__name__]


def test_missing_index_directory_knows_nothing(tmp_path):
    index = RegistryIndex.from_moon_home(tmp_path / "nowhere")

    assert index.all_mooncakes() == {}


def test_archive_url_encodes_version():
    url = archive_url("https://host/user/", "moonbitlang/core", "0.1.0+build/7")

    assert url == "https://host/user/moonbitlang/core/0.1.0%2Bbuild%2F7.zip"


def test_reload_sees_newly_published_versions(tmp_path):
    root = tmp_path / "registry" / "index" / "user"
    write_index(root, "moonbitlang/x", ["0.4.5"])
    index = RegistryIndex.from_moon_home(tmp_path)
    assert index.latest_version("moonbitlang/x") == "0.4.5"

    write_index(root, "moonbitlang/x", ["0.4.5", "0.4.6"])
    assert index.latest_version("moonbitlang/x") == "0.4.5"

    index.reload()
    assert index.latest_version("moonbitlang/x") == "0.4.6"
