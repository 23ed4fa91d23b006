import base64
import gzip
import json
from decimal import Decimal

import pytest

from warmerator.config import COMPRESS_THRESHOLD
from warmerator.json_encoder import dumps
from warmerator.payload import decode_payload, encode_payload


class TestCompression:

    def test_small_payload_not_compressed(self):
        payload, compressed = encode_payload([{"uid": "a"}])
        assert not compressed
        assert json.loads(payload) == [{"uid": "a"}]

    def test_large_payload_is_compressed(self):
        records = [{"uid": f"design-{i}", "designName": "x" * 100} for i in range(COMPRESS_THRESHOLD // 100)]
        payload, compressed = encode_payload(records)
        assert compressed
        wrapper = json.loads(payload)
        assert wrapper["_compressed"] is True
        assert len(payload) < len(dumps(records))

    def test_compressed_data_is_valid_gzip(self):
        payload, _ = encode_payload(["x" * COMPRESS_THRESHOLD])
        raw = base64.b64decode(json.loads(payload)["data"])
        assert json.loads(gzip.decompress(raw).decode()) == ["x" * COMPRESS_THRESHOLD]

    def test_compressed_payload_decodes(self):
        records = [{"uid": str(i), "blob": "y" * 50} for i in range(5000)]
        payload, compressed = encode_payload(records, compress_threshold=1000)
        assert compressed
        assert decode_payload(payload) == records

    def test_missing_value_decodes_to_none(self):
        assert decode_payload(None) is None


class TestRecordEncoder:

    def test_decimals_become_numbers(self):
        """DynamoDB numbers arrive as Decimal"""
        encoded = json.loads(dumps({"price": Decimal("12.50"), "views": Decimal("7")}))
        assert encoded == {"price": 12.5, "views": 7}
        assert isinstance(encoded["views"], int)

    def test_sets_become_sorted_lists(self):
        assert json.loads(dumps({"tags": {"b", "a"}})) == {"tags": ["a", "b"]}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
