import datetime
import json
from decimal import Decimal


class RecordEncoder(json.JSONEncoder):
    """JSON encoder for records coming out of DynamoDB."""

    def default(self, obj):
        if isinstance(obj, Decimal):
            return int(obj) if obj == obj.to_integral_value() else float(obj)
        if isinstance(obj, (datetime.datetime, datetime.date)):
            return obj.isoformat()
        if isinstance(obj, (set, frozenset)):
            return sorted(obj, key=str)
        return super().default(obj)


def dumps(value) -> str:
    return json.dumps(value, cls=RecordEncoder, ensure_ascii=False)
