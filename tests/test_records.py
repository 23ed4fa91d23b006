import pytest

from warmerator import normalize_record
from warmerator.records import record_id


class TestNormalizeRecord:

    def test_legacy_fields_are_renamed(self):
        record = normalize_record({"id": "d1", "name": "Rose", "tags": ["floral"], "image": "https://x/rose.png"})
        assert record == {
            "uid": "d1",
            "designName": "Rose",
            "designTags": ["floral"],
            "designImageUrl": "https://x/rose.png",
        }

    def test_canonical_value_wins(self):
        record = normalize_record({"uid": "d1", "id": "legacy", "designStatus": "approved", "status": "pending"})
        assert record == {"uid": "d1", "designStatus": "approved"}

    def test_unknown_fields_pass_through(self):
        record = normalize_record({"uid": "d1", "orderId": 7, "_tags": ["a"]})
        assert record == {"uid": "d1", "orderId": 7, "_tags": ["a"]}

    def test_record_id(self):
        assert record_id({"uid": "d1"}) == "d1"
        assert record_id({"name": "x"}) is None
        assert record_id(["not", "a", "record"]) is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
