# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""Tests for the local mirror store."""

import json
import threading

from egypt_drug_guide.config import GuideConfig
from egypt_drug_guide.models import LocalDrug, LocalShortage
from egypt_drug_guide.storage.local_storage import LocalStorage
from egypt_drug_guide.storage.mirror import LocalMirror


def _drugs() -> list[LocalDrug]:
    return [
        LocalDrug(id="1", name="Panadol", new_price=15, old_price=12),
        LocalDrug(id="2", name="Brufen", new_price=30, old_price=35),
    ]


class TestLocalMirror:
    def test_empty_mirror(self, mirror: LocalMirror) -> None:
        assert mirror.load_data() is None
        assert mirror.get_drugs() == []
        assert mirror.get_shortages() == []
        assert mirror.export_data() is None
        assert mirror.get_stats() is None

    def test_save_drugs_keeps_shortages(self, mirror: LocalMirror) -> None:
        mirror.save_shortages([LocalShortage(id="s1", drug_name="Insulin", status="critical")])
        assert mirror.save_drugs(_drugs())

        snapshot = mirror.load_data()
        assert snapshot is not None
        assert [d.name for d in snapshot.drugs] == ["Panadol", "Brufen"]
        assert snapshot.shortages[0].status == "critical"
        assert snapshot.version == GuideConfig.MIRROR_VERSION
        assert snapshot.last_updated.endswith("Z")

    def test_stored_document_uses_wire_names(self, mirror: LocalMirror, storage: LocalStorage) -> None:
        mirror.save_drugs(_drugs())
        raw = json.loads(storage.get_item(GuideConfig.KEY_MIRROR) or "{}")
        assert raw["drugs"][0]["newPrice"] == 15
        assert "lastUpdated" in raw

    def test_add_update_delete_drug(self, mirror: LocalMirror) -> None:
        mirror.save_drugs(_drugs())
        mirror.add_drug(LocalDrug(id="3", name="Augmentin", new_price=90))
        mirror.update_drug("1", LocalDrug(id="1", new_price=18))
        mirror.delete_drug("2")

        drugs = {d.id: d for d in mirror.get_drugs()}
        assert set(drugs) == {"1", "3"}
        # Update merges: untouched fields survive
        assert drugs["1"].name == "Panadol"
        assert drugs["1"].new_price == 18

    def test_shortage_mutations(self, mirror: LocalMirror) -> None:
        mirror.add_shortage(LocalShortage(id="s1", drug_name="Insulin"))
        mirror.add_shortage(LocalShortage(id="s2", drug_name="Heparin"))
        mirror.update_shortage("s1", LocalShortage(id="s1", status="resolved"))
        mirror.delete_shortage("s2")

        shortages = mirror.get_shortages()
        assert len(shortages) == 1
        assert shortages[0].drug_name == "Insulin"
        assert shortages[0].status == "resolved"

    def test_unknown_fields_are_preserved(self, mirror: LocalMirror) -> None:
        assert mirror.import_data({"drugs": [{"id": "1", "name": "Panadol", "barcode": "622"}]})
        exported = mirror.export_data()
        assert exported is not None
        assert exported["drugs"][0]["barcode"] == "622"

    def test_export_data(self, mirror: LocalMirror) -> None:
        mirror.save_drugs(_drugs())
        exported = mirror.export_data()

        assert exported is not None
        assert exported["totalDrugs"] == 2
        assert exported["totalShortages"] == 0
        assert exported["exportDate"].endswith("Z")
        assert exported["version"] == "1.0.0"

    def test_import_data_replaces_everything(self, mirror: LocalMirror) -> None:
        mirror.save_drugs(_drugs())
        mirror.save_shortages([LocalShortage(id="s1")])

        assert mirror.import_data({"drugs": [{"id": "9", "name": "Cataflam"}]})
        assert [d.id for d in mirror.get_drugs()] == ["9"]
        assert mirror.get_shortages() == []

    def test_import_data_rejects_bad_shapes(self, mirror: LocalMirror) -> None:
        assert not mirror.import_data([])
        assert not mirror.import_data({"drugs": "nope"})
        assert not mirror.import_data({"shortages": []})
        assert mirror.load_data() is None

    def test_import_data_accepts_numeric_fields(self, mirror: LocalMirror) -> None:
        assert mirror.import_data(
            {
                "drugs": [{"id": 1, "name": "Panadol", "no": 7, "newPrice": 15}, {"name": "No id"}],
                "shortages": [{"id": 5, "drugName": "Insulin", "status": "critical"}],
            }
        )

        drugs = mirror.get_drugs()
        assert [(d.id, d.no) for d in drugs] == [("1", "7"), ("", "")]
        assert mirror.get_shortages()[0].id == "5"

    def test_numeric_fields_in_stored_document(self, mirror: LocalMirror, storage: LocalStorage) -> None:
        document = {
            "drugs": [{"id": "1", "name": "Panadol", "no": 7}, {"id": 2, "name": "Brufen"}],
            "shortages": [{"id": "s1", "drugName": "Insulin", "status": "critical"}],
        }
        storage.set_item(GuideConfig.KEY_MIRROR, json.dumps(document))

        snapshot = mirror.load_data()
        assert snapshot is not None
        assert snapshot.drugs[0].no == "7"

        assert mirror.add_drug(LocalDrug(id="3", name="Cataflam"))
        assert [d.id for d in mirror.get_drugs()] == ["1", "2", "3"]
        assert len(mirror.get_shortages()) == 1

    def test_unreadable_records_are_not_overwritten(self, mirror: LocalMirror, storage: LocalStorage) -> None:
        document = json.dumps({"drugs": [{"id": "1", "name": "Panadol", "newPrice": "free"}], "shortages": []})
        storage.set_item(GuideConfig.KEY_MIRROR, document)

        assert mirror.load_data() is None
        assert not mirror.add_drug(LocalDrug(id="2", name="Brufen"))
        assert not mirror.save_shortages([LocalShortage(id="s1")])
        assert storage.get_item(GuideConfig.KEY_MIRROR) == document

        # A full import still replaces it
        assert mirror.import_data({"drugs": [{"id": "2", "name": "Brufen"}]})
        assert [d.id for d in mirror.get_drugs()] == ["2"]

    def test_corrupt_document_reads_as_missing(self, mirror: LocalMirror, storage: LocalStorage) -> None:
        storage.set_item(GuideConfig.KEY_MIRROR, "{broken")
        assert mirror.load_data() is None

        storage.set_item(GuideConfig.KEY_MIRROR, json.dumps({"drugs": {"1": {}}}))
        assert mirror.load_data() is None

    def test_clear_all_data(self, mirror: LocalMirror) -> None:
        mirror.save_drugs(_drugs())
        assert mirror.clear_all_data()
        assert mirror.load_data() is None

    def test_get_stats(self, mirror: LocalMirror) -> None:
        mirror.save_drugs(_drugs())
        stats = mirror.get_stats()
        assert stats is not None
        assert stats.total_drugs == 2
        assert stats.total_shortages == 0
        assert stats.version == "1.0.0"

    def test_concurrent_adds_are_not_lost(self, mirror: LocalMirror) -> None:
        """Mutations through one instance are serialized."""
        threads = [
            threading.Thread(target=mirror.add_drug, args=(LocalDrug(id=str(i), name=f"Drug {i}"),))
            for i in range(10)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(mirror.get_drugs()) == 10
