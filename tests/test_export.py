import hashlib
import json

import pytest

from reel_tuning.export import build_document, read_reels_csv, strip_checksum, write_document, write_reels_csv
from reel_tuning.stats import SimulationStats, to_units
from reel_tuning.symbols import strip_from_strings
from reel_tuning.topology import ReelWeightsSet, TopologySet

STRIPS = [
    strip_from_strings(["fa", "bai_gold", "bonus", "liangtong"]),
    strip_from_strings(["zhong", "wusuo"]),
    strip_from_strings(["bawan_gold", "liangsuo", "wild"]),
    strip_from_strings(["wutong"]),
    strip_from_strings(["fa", "fa_gold", "bai", "bonus", "liangtong"]),
]


def test_checksum_covers_order_and_gold():
    expected = hashlib.sha256(b'["fa","bai_gold","bonus","liangtong"]').hexdigest()
    assert strip_checksum(STRIPS[0]) == expected
    assert strip_checksum(list(reversed(STRIPS[0]))) != expected
    assert strip_checksum(strip_from_strings(["fa", "bai", "bonus", "liangtong"])) != expected


def test_csv_round_trip_with_unequal_lengths(tmp_path):
    path = write_reels_csv(tmp_path / "reels" / "base_game.csv", STRIPS)

    assert path.exists()
    assert len(path.read_text().splitlines()) == 5
    assert read_reels_csv(path) == STRIPS


def test_missing_csv_is_reported(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_reels_csv(tmp_path / "nope.csv")


def test_document_is_json_ready(tmp_path, make_topologies):
    topologies = make_topologies({1: {"symbol_density": {"fa": 1.2}, "min_spacing": {"bonus": 10}}})
    weights = ReelWeightsSet([{"fa": 1, "bonus": 1}] * 5)
    stats = SimulationStats(total_spins=10, wagered_units=to_units(10.0), won_units=to_units(9.5))

    document = build_document(topologies, weights, STRIPS, stats, game_mode="free_spins")

    assert document["game_mode"] == "free_spins"
    assert document["name"].startswith("free_spins-95.00-")
    assert [reel["reel_number"] for reel in document["reels"]] == [1, 2, 3, 4, 5]
    assert [reel["length"] for reel in document["reels"]] == [4, 2, 3, 1, 5]
    assert document["reels"][0]["checksum"] == strip_checksum(STRIPS[0])
    assert document["base_weights"]["reel1"] == {"fa": 1, "bonus": 1}
    assert TopologySet.from_dict(document["topologies"]).to_dict() == document["topologies"]

    path = write_document(tmp_path / "out" / "doc.json", document)
    assert json.loads(path.read_text())["stats"]["rtp"] == 95.0


def test_document_without_stats(make_topologies):
    weights = ReelWeightsSet([{"fa": 1}] * 5)
    document = build_document(make_topologies(), weights, STRIPS)

    assert document["stats"] is None
    assert document["game_mode"] == "base_game"
