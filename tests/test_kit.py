import pytest

from rubric_normalizer.kit import (
    KitFormatError,
    decode_kit_bytes,
    extract_rubric,
    load_kit_bytes,
    normalize_kit,
)


GENERATED_KIT = {
    "competencies": [
        {"name": "System Design", "importance": "High", "questions": [{"question": "Design a cache."}]},
    ],
    "scoringRubric": [
        {"criterion": "Technical depth", "weight": 0.6},
        {"criterion": "", "weight": 0.6},
        {"weight": None},
    ],
}


def test_extract_generation_rubric():
    key, criteria = extract_rubric(GENERATED_KIT)
    assert key == "scoringRubric"
    assert criteria == [
        ("Technical depth", 0.6),
        ("Unnamed Criterion", 0.6),
        ("Unnamed Criterion", None),
    ]


def test_extract_customization_rubric_skips_non_objects():
    doc = {"rubricCriteria": [{"name": "Communication", "weight": 1}, "oops", {"name": "Ownership"}]}
    key, criteria = extract_rubric(doc)
    assert key == "rubricCriteria"
    assert criteria == [("Communication", 1), ("Ownership", None)]


def test_missing_rubric_is_an_error():
    with pytest.raises(KitFormatError):
        extract_rubric({"competencies": []})


def test_rubric_must_be_a_list():
    with pytest.raises(KitFormatError, match="must be a list"):
        extract_rubric({"scoringRubric": {"criterion": "x"}})


def test_normalize_kit_rewrites_weights_only():
    key, kit, report = normalize_kit(GENERATED_KIT)

    assert key == "scoringRubric"
    assert kit["competencies"] == GENERATED_KIT["competencies"]
    assert [c["weight"] for c in kit["scoringRubric"]] == [0.43, 0.43, 0.14]
    assert [c["criterion"] for c in kit["scoringRubric"]] == [
        "Technical depth",
        "Unnamed Criterion",
        "Unnamed Criterion",
    ]
    assert report["summary"]["criteria"] == 3

    # source document untouched
    assert GENERATED_KIT["scoringRubric"][2] == {"weight": None}


def test_normalize_kit_drops_non_object_entries():
    doc = {"rubricCriteria": [{"name": "A", "weight": 0}, 7, {"name": "B", "weight": 0}]}
    _, kit, _ = normalize_kit(doc)
    assert kit["rubricCriteria"] == [{"name": "A", "weight": 0.5}, {"name": "B", "weight": 0.5}]


def test_load_kit_bytes_tolerates_trailing_commas():
    raw = b'{"scoringRubric": [{"criterion": "A", "weight": 1,},],}'
    assert load_kit_bytes(raw) == {"scoringRubric": [{"criterion": "A", "weight": 1}]}


def test_load_kit_bytes_strips_utf8_bom():
    raw = '{"rubricCriteria": []}'.encode("utf-8-sig")
    assert load_kit_bytes(raw) == {"rubricCriteria": []}


@pytest.mark.parametrize("raw", [b"", b"   ", b"not json", b"[1, 2, 3]"])
def test_load_kit_bytes_rejects_bad_documents(raw):
    with pytest.raises(KitFormatError):
        load_kit_bytes(raw)


def test_decode_kit_bytes_handles_utf8():
    assert decode_kit_bytes('{"name": "Café"}'.encode("utf-8")) == '{"name": "Café"}'


def test_null_rubric_reads_as_empty():
    key, criteria = extract_rubric({"scoringRubric": None})
    assert key == "scoringRubric"
    assert criteria == []

    _, kit, report = normalize_kit({"competencies": [], "scoringRubric": None})
    assert kit["scoringRubric"] == []
    assert report["summary"]["criteria"] == 0


@pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
def test_load_kit_bytes_rejects_non_json_constants(constant):
    raw = ('{"competencies": [{"score": %s}], "scoringRubric": []}' % constant).encode("utf-8")
    with pytest.raises(KitFormatError, match=constant):
        load_kit_bytes(raw)
