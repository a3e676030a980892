from __future__ import annotations

import json
import os

import pytest

from core.models import TrackType
from library.catalog import CatalogError, load_catalog, parse_catalog, probe_duration


def _write(tmp_path, data) -> str:
    path = tmp_path / "tracks.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_load_catalog(tmp_path) -> None:
    path = _write(tmp_path, [
        {"id": 1, "title": "Sakura", "type": "short", "tags": ["tiktok", "spring"],
         "duration": "0:45", "src": "audio/sakura.mp3"},
        {"id": 2, "title": "Night Walk", "type": "INST", "duration": "3:10",
         "src": "https://example.com/night.mp3"},
    ])

    tracks = load_catalog(path)

    assert [t.id for t in tracks] == [1, 2]
    first, second = tracks
    assert first.type == TrackType.SHORT
    assert first.tags == ("tiktok", "spring")
    assert first.source == os.path.join(str(tmp_path), "audio", "sakura.mp3")
    assert second.type == TrackType.INST
    assert second.tags == ()
    assert second.source == "https://example.com/night.mp3"


def test_catalog_object_with_tracks_key(tmp_path) -> None:
    path = _write(tmp_path, {"tracks": [{"id": 7, "title": "x", "type": "long", "duration": "4:00"}]})
    assert [t.id for t in load_catalog(path)] == [7]


def test_missing_duration_falls_back_to_zero(tmp_path) -> None:
    path = _write(tmp_path, [{"id": 1, "title": "x", "type": "long", "src": "missing.mp3"}])
    assert load_catalog(path)[0].duration == "0:00"


def test_missing_file(tmp_path) -> None:
    with pytest.raises(CatalogError):
        load_catalog(str(tmp_path / "nope.json"))


def test_invalid_json(tmp_path) -> None:
    path = tmp_path / "tracks.json"
    path.write_text("[{", encoding="utf-8")
    with pytest.raises(CatalogError):
        load_catalog(str(path))


def test_not_a_list(tmp_path) -> None:
    with pytest.raises(CatalogError):
        load_catalog(_write(tmp_path, "tracks"))


@pytest.mark.parametrize(
    "records",
    [
        [{"title": "no id", "type": "short"}],
        [{"id": "abc", "type": "short"}],
        [{"id": 1, "type": "polka"}],
        [{"id": 1, "type": "short"}, {"id": 1, "type": "long"}],
        ["not a record"],
    ],
)
def test_malformed_records(records) -> None:
    with pytest.raises(CatalogError):
        parse_catalog(records)


def test_probe_duration_skips_urls_and_missing_files(tmp_path) -> None:
    assert probe_duration("https://example.com/a.mp3") is None
    assert probe_duration(str(tmp_path / "missing.mp3")) is None
    assert probe_duration("") is None


def test_probe_duration_unreadable_file(tmp_path) -> None:
    junk = tmp_path / "junk.mp3"
    junk.write_bytes(b"not really audio")
    assert probe_duration(str(junk)) is None
