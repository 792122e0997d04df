import dataclasses
import datetime as dt

from pydantic import BaseModel

from gchat_logging.normalizer import normalize_exception, normalize_value


@dataclasses.dataclass
class Point:
    x: int
    y: int


class User(BaseModel):
    id: int
    name: str


class Opaque:
    __slots__ = ()

    def __str__(self):
        return "opaque"


def raise_and_catch():
    try:
        try:
            raise KeyError("inner")
        except KeyError as e:
            raise RuntimeError("outer") from e
    except RuntimeError as e:
        return e


class TestNormalizeValue:
    def test_scalars_unchanged(self):
        assert normalize_value(None) is None
        assert normalize_value(True) is True
        assert normalize_value(3) == 3
        assert normalize_value(1.5) == 1.5
        assert normalize_value("x") == "x"

    def test_non_finite_floats(self):
        assert normalize_value(float("inf")) == "INF"
        assert normalize_value(float("-inf")) == "-INF"
        assert normalize_value(float("nan")) == "NaN"

    def test_containers(self):
        assert normalize_value({1: (1, 2), "b": {"c": b"d"}}) == {"1": [1, 2], "b": {"c": "d"}}

    def test_datetime(self):
        when = dt.datetime(2024, 1, 2, 3, 4, 5, tzinfo=dt.timezone.utc)
        assert normalize_value(when) == "2024-01-02T03:04:05+00:00"

    def test_objects(self):
        assert normalize_value(User(id=1, name="a")) == {"id": 1, "name": "a"}
        assert normalize_value(Point(1, 2)) == {"test_normalizer.Point": {"x": 1, "y": 2}}
        assert normalize_value(Opaque()) == {"test_normalizer.Opaque": "opaque"}

    def test_depth_limit(self):
        data = current = {}
        for _ in range(12):
            current["n"] = {}
            current = current["n"]
        normalized = normalize_value(data)
        for _ in range(9):
            normalized = normalized["n"]
        assert normalized["n"] == "Over 9 levels deep, aborting normalization"

    def test_item_limit(self):
        normalized = normalize_value(list(range(1005)))
        assert len(normalized) == 1001
        assert normalized[-1] == "Over 1000 items (1005 total), aborting normalization"

        normalized = normalize_value({str(i): i for i in range(1001)})
        assert normalized["..."] == "Over 1000 items (1001 total), aborting normalization"


class TestNormalizeException:
    def test_shape(self):
        data = normalize_exception(raise_and_catch())
        assert data["class"] == "RuntimeError"
        assert data["message"] == "outer"
        assert data["file"].endswith(".py:" + data["file"].rsplit(":", 1)[1])
        assert data["trace"][0] == data["file"]
        assert data["previous"]["class"] == "KeyError"

    def test_without_traceback(self):
        data = normalize_exception(ValueError("bad"))
        assert data == {"class": "ValueError", "message": "bad", "file": "", "trace": []}
