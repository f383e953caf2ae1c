import json

import pytest

from haircare.errors import ValidationError
from haircare.rules import Rule, get_rules, load_rules
from haircare.services.response_matcher import DEFAULT_REPLY, ProfileFilterView, select_reply

DRY_DANDRUFF = Rule(keywords=("dandruff",), scalp="dry", response="dry-scalp dandruff")
ANY_DANDRUFF = Rule(keywords=("dandruff",), response="generic dandruff")
CURLY_FRIZZ = Rule(keywords=("frizz",), hairType="curly", response="curly frizz")
WASH = Rule(keywords=("wash", "Shampoo"), response="wash advice")

TABLE = (DRY_DANDRUFF, ANY_DANDRUFF, CURLY_FRIZZ, WASH)


def test_first_matching_rule_wins():
    profile = ProfileFilterView(scalp_condition="dry")
    assert select_reply(profile, "I have a dry scalp and dandruff", rules=TABLE) == "dry-scalp dandruff"


def test_earlier_rule_wins_even_when_later_rule_is_more_specific():
    table = (ANY_DANDRUFF, DRY_DANDRUFF)
    profile = ProfileFilterView(scalp_condition="dry")
    assert select_reply(profile, "dandruff", rules=table) == "generic dandruff"


def test_profile_filter_must_match_exactly():
    profile = ProfileFilterView(hair_type="straight")
    assert select_reply(profile, "so much frizz", rules=(CURLY_FRIZZ,)) == DEFAULT_REPLY

    curly = ProfileFilterView(hair_type="curly")
    assert select_reply(curly, "so much frizz", rules=(CURLY_FRIZZ,)) == "curly frizz"


def test_filter_mismatch_falls_through_to_keyword_only_rule():
    profile = ProfileFilterView(scalp_condition="oily")
    assert select_reply(profile, "dandruff again", rules=TABLE) == "generic dandruff"


def test_matching_is_case_insensitive():
    profile = ProfileFilterView()
    assert select_reply(profile, "DANDRUFF", rules=TABLE) == select_reply(profile, "dandruff", rules=TABLE)
    # Keywords are lower-cased too
    assert select_reply(profile, "which shampoo?", rules=TABLE) == "wash advice"


def test_keyword_is_substring_match():
    assert select_reply(None, "I rewashed it twice", rules=TABLE) == "wash advice"


def test_no_match_returns_default_reply():
    assert select_reply(ProfileFilterView(), "tell me a joke", rules=TABLE) == DEFAULT_REPLY


@pytest.mark.parametrize("utterance", ["", "   ", "dandruff", "?!"])
def test_total_over_empty_profile_and_any_utterance(utterance):
    reply = select_reply(None, utterance, rules=TABLE)
    assert isinstance(reply, str) and reply


def test_empty_table_returns_default():
    assert select_reply(ProfileFilterView(hair_type="curly"), "frizz", rules=()) == DEFAULT_REPLY


def test_filterless_rules_only_for_attribute_free_profile():
    assert select_reply(ProfileFilterView(), "dandruff", rules=TABLE) == "generic dandruff"


def test_packaged_table_prefers_dry_scalp_dandruff_rule():
    rules = get_rules()
    assert len(rules) > 0

    dry = select_reply(ProfileFilterView(scalp_condition="dry"), "I have a dry scalp and dandruff")
    plain = select_reply(ProfileFilterView(), "I have a dry scalp and dandruff")
    assert dry != plain
    assert dry != DEFAULT_REPLY
    assert "dry" in dry.lower()


def test_load_rules_rejects_malformed_file(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text(json.dumps([{"keywords": [], "response": "x"}]))
    with pytest.raises(ValidationError):
        load_rules(path)


def test_load_rules_keeps_file_order(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text(json.dumps([
        {"keywords": ["a"], "response": "first"},
        {"keywords": ["a"], "hairType": "wavy", "response": "second"},
    ]))
    rules = load_rules(path)
    assert [r.response for r in rules] == ["first", "second"]
    assert rules[1].hair_type == "wavy"


def test_empty_keyword_is_rejected(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text(json.dumps([
        {"keywords": ["dandruff", ""], "response": "matches everything"},
        {"keywords": ["frizz"], "response": "frizz advice"},
    ]))
    with pytest.raises(ValidationError):
        load_rules(path)
