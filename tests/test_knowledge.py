import json

from builder_api.knowledge import DEFAULT_KNOWLEDGE_BASE_PATH, design_guidelines, load_knowledge_base


def test_packaged_knowledge_base_has_guidelines():
    kb = load_knowledge_base(DEFAULT_KNOWLEDGE_BASE_PATH)
    guidelines = design_guidelines(kb)
    assert guidelines
    assert all(isinstance(g, str) and g for g in guidelines)


def test_missing_file_gives_empty_kb(tmp_path):
    assert load_knowledge_base(tmp_path / "nope.json") == {}


def test_invalid_json_gives_empty_kb(tmp_path):
    path = tmp_path / "kb.json"
    path.write_text("{not json", encoding="utf-8")
    assert load_knowledge_base(path) == {}


def test_non_object_gives_empty_kb(tmp_path):
    path = tmp_path / "kb.json"
    path.write_text(json.dumps(["a", "b"]), encoding="utf-8")
    assert load_knowledge_base(path) == {}


def test_design_guidelines_order_and_coercion():
    assert design_guidelines({"designGuidelines": ["b", "a", 3]}) == ["b", "a", "3"]
    assert design_guidelines({"designGuidelines": "oops"}) == []
    assert design_guidelines({}) == []
