"""Tests for FactExtractor."""

import re

import pytest

from confidant.memory import (
    ExtractionRule,
    FactExtractor,
    MergePolicy,
    UserProfile,
)


@pytest.fixture
def extractor() -> FactExtractor:
    return FactExtractor()


@pytest.fixture
def profile() -> UserProfile:
    return UserProfile(user_id="alice", created_at="t", last_active_at="t")


def values(candidates, field):
    return [c.value for c in candidates if c.field == field]


class TestExtract:
    """Tests for the individual rules."""

    @pytest.mark.parametrize(
        "text,name",
        [
            ("My name is priya", "Priya"),
            ("Hi, I'm Alex and I love pizza", "Alex"),
            ("i am sam", "Sam"),
            ("Just call me Jo", "Jo"),
        ],
    )
    def test_name(self, extractor: FactExtractor, text: str, name: str):
        assert values(extractor.extract(text), "name") == [name]

    def test_name_skips_common_words(self, extractor: FactExtractor):
        """'I'm so sad' and 'I'm from Delhi' are not names."""
        assert values(extractor.extract("I'm so sad but also excited!!"), "name") == []
        assert values(extractor.extract("I'm from Delhi"), "name") == []

    def test_name_needs_letters(self, extractor: FactExtractor):
        assert values(extractor.extract("I am 30 years old"), "name") == []

    @pytest.mark.parametrize(
        "text,age",
        [
            ("I am 30 years old", 30),
            ("i'm 25", 25),
            ("I am 41 yrs old", 41),
        ],
    )
    def test_age(self, extractor: FactExtractor, text: str, age: int):
        assert values(extractor.extract(text), "age") == [age]

    def test_location(self, extractor: FactExtractor):
        assert values(extractor.extract("I live in New York"), "location") == ["New York"]
        assert values(extractor.extract("I'm from Delhi"), "location") == ["Delhi"]

    def test_location_stops_at_clause(self, extractor: FactExtractor):
        candidates = extractor.extract("I live in Pune and I love cricket")
        assert values(candidates, "location") == ["Pune"]
        assert values(candidates, "interests") == ["cricket"]

    def test_favorite_color(self, extractor: FactExtractor):
        candidates = extractor.extract("My favourite colour is teal")
        assert len(candidates) == 1
        assert candidates[0].field == "preferences"
        assert candidates[0].key == "favoriteColor"
        assert candidates[0].value == "teal"
        assert candidates[0].policy is MergePolicy.OVERWRITE

    def test_interest_trimmed(self, extractor: FactExtractor):
        assert values(extractor.extract("I enjoy hiking   "), "interests") == ["hiking"]

    def test_remember_fact(self, extractor: FactExtractor):
        candidates = extractor.extract("Please remember that my sister is called Meera.")
        assert values(candidates, "facts") == ["my sister is called Meera"]

    def test_no_match(self, extractor: FactExtractor):
        assert extractor.extract("What's the weather like?") == []

    def test_all_rules_fire_independently(self, extractor: FactExtractor):
        text = "My name is Ravi, I am 28 and I like chess. My favorite color is red"
        candidates = extractor.extract(text)
        assert {c.rule for c in candidates} == {"name", "age", "interest", "favorite_color"}


class TestResolve:
    """Tests for merge policies against a profile."""

    def test_first_write_applies_to_empty_profile(
        self, extractor: FactExtractor, profile: UserProfile
    ):
        delta = extractor.propose(profile, "I am 30 years old")
        assert delta.scalars == {"age": 30}

    def test_first_write_wins(self, extractor: FactExtractor, profile: UserProfile):
        """A later age statement does not replace a known age."""
        profile.age = 30
        delta = extractor.propose(profile, "I am 40 years old")
        assert "age" not in delta.scalars
        assert delta.is_empty()

    def test_idempotent_name(self, extractor: FactExtractor, profile: UserProfile):
        """Re-extracting the same message leaves an existing name alone."""
        first = extractor.propose(profile, "My name is Alex")
        profile.name = first.scalars["name"]
        second = extractor.propose(profile, "My name is Alex")
        assert second.is_empty()
        assert profile.name == "Alex"

    def test_overwrite_preference(self, extractor: FactExtractor, profile: UserProfile):
        profile.preferences = {"favoriteColor": "blue"}
        delta = extractor.propose(profile, "my favorite color is green")
        assert delta.preferences == {"favoriteColor": "green"}

    def test_interest_dedup(self, extractor: FactExtractor, profile: UserProfile):
        profile.interests = ["pizza"]
        assert extractor.propose(profile, "I love pizza").is_empty()
        assert extractor.propose(profile, "I love Pizza").interests == ["Pizza"]

    def test_fact_dedup(self, extractor: FactExtractor, profile: UserProfile):
        profile.facts = ["my dog is Rex"]
        assert extractor.propose(profile, "remember that my dog is Rex").is_empty()

    def test_delta_to_updates(self, extractor: FactExtractor, profile: UserProfile):
        delta = extractor.propose(profile, "Hi, I'm Alex and I love pizza")
        assert delta.to_updates() == {"name": "Alex", "interests": ["pizza"]}
        assert delta.fields() == ["name", "interests"]


class TestCustomRules:
    """Tests for pluggable rule tables."""

    def test_custom_rule(self, profile: UserProfile):
        rule = ExtractionRule(
            name="pet",
            pattern=re.compile(r"\bmy (?:dog|cat) is called (\w+)", re.IGNORECASE),
            field="facts",
            policy=MergePolicy.APPEND_UNIQUE,
            transform=lambda raw: f"Has a pet called {raw}",
        )
        extractor = FactExtractor(rules=(rule,))
        delta = extractor.propose(profile, "My dog is called Bruno")
        assert delta.facts == ["Has a pet called Bruno"]

    def test_empty_rule_table(self, profile: UserProfile):
        extractor = FactExtractor(rules=())
        assert extractor.extract("My name is Alex") == []
