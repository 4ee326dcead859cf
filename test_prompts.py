import datetime
import json

from numerology import build_numerology_profile
from prompts import (
    build_chat_prompt,
    build_chat_prompt_with_context,
    build_compatibility_fallback,
    build_compatibility_prompt,
    build_daily_energy_prompt,
    build_personality_prompt,
    build_user_context,
    format_today,
)
from schemas import ChatMessage, ChatUserProfile

TODAY = datetime.date(2026, 10, 18)

JOHN = build_numerology_profile("John Smith", "1990-11-22", TODAY)
JANE = build_numerology_profile("Jane Doe", "1991-05-04", TODAY)
CHAT_PROFILE = ChatUserProfile(full_name="John Smith", birth_date="1990-11-22", birth_location="Lisbon")


def _json_example(prompt):
    return json.loads(prompt[prompt.index("{\n"):])


def test_personality_prompt_embeds_hidden_profile():
    prompt = build_personality_prompt(JOHN)
    assert "- Life Path Number: 7" in prompt
    assert "- Personality Number: 11" in prompt
    assert "- Western Zodiac: Sagittarius (Fire sign)" in prompt
    assert "- Chinese Zodiac: Horse (Metal element)" in prompt
    assert "SECOND PERSON" in prompt
    example = _json_example(prompt)
    assert len(example["strengths"]) == 5
    assert len(example["challenges"]) == 4
    assert set(example) == {"overview", "strengths", "challenges", "lifeLesson", "careerPaths", "relationshipStyle", "spiritualGifts"}


def test_compatibility_prompt_lists_both_people():
    prompt = build_compatibility_prompt(JOHN, JANE, 80, "Strong")
    assert "Person 1 - John Smith:" in prompt
    assert "Person 2 - Jane Doe:" in prompt
    assert "- Energy Signature: Metal Light Bearer" in prompt
    assert "Overall Compatibility Score: 80% (Strong)" in prompt
    assert "Uses John Smith and Jane Doe's names" in prompt
    assert set(_json_example(prompt)) == {
        "overviewNarrative", "emotionalConnection", "communicationDynamic",
        "growthPotential", "dailyLifeTogether", "advice",
    }


def test_daily_energy_prompt():
    prompt = build_daily_energy_prompt(JOHN, 9, 11, "October 18, 2026")
    assert "- Personal Day Number: 9" in prompt
    assert "- Universal Day Number: 11" in prompt
    assert "- Today's Date: October 18, 2026" in prompt
    example = _json_example(prompt)
    assert len(example["dos"]) == 3
    assert len(example["donts"]) == 3


def test_compatibility_fallback_uses_profile_values():
    insight = build_compatibility_fallback(JOHN, JANE, 80, "Strong")
    fields = insight.model_dump()
    assert all(value.strip() for value in fields.values())
    assert "John Smith" in fields["overviewNarrative"]
    assert "Jane Doe" in fields["overviewNarrative"]
    assert "strong alignment" in fields["overviewNarrative"]
    assert "80%" in fields["overviewNarrative"]
    assert "6 and 8" in fields["emotionalConnection"]
    assert "8 and 9" in fields["communicationDynamic"]
    assert "7 and 11" in fields["growthPotential"]
    assert "33 and 9" in fields["dailyLifeTogether"]
    assert "John Smith and Jane Doe" in fields["advice"]


def test_user_context():
    context = build_user_context(CHAT_PROFILE, TODAY)
    assert context.first_name == "John"
    text = context.system_context
    assert text.startswith("You're John's numerology-savvy friend.")
    assert "JOHN'S FULL PROFILE:" in text
    assert "- Life Path 7 (core life purpose)" in text
    assert "- Energy Signature: Metal Mind Seeker" in text
    assert "- Today: Sunday, October 18" in text
    assert "- Personal Day 9, Universal Day 11" in text
    assert 'Start with "Great question!"' in text


def test_format_today():
    assert format_today(datetime.date(2026, 1, 5)) == "Monday, January 5"


def test_chat_prompt_without_history():
    prompt = build_chat_prompt_with_context("Where should I travel?", "SYSTEM", "John", [])
    assert prompt == "SYSTEM\n\nJohn: Where should I travel?\n\nYou:"


def test_chat_prompt_keeps_last_six_messages():
    history = [
        ChatMessage(role="user" if i % 2 == 0 else "assistant", content=f"message {i}")
        for i in range(8)
    ]
    prompt = build_chat_prompt_with_context("And now?", "SYSTEM", "John", history)
    assert "message 0" not in prompt
    assert "message 1" not in prompt
    assert prompt == (
        "SYSTEM\n\n"
        "CHAT:\n"
        "User: message 2\n\nAI: message 3\n\nUser: message 4\n\n"
        "AI: message 5\n\nUser: message 6\n\nAI: message 7\n\n"
        "John: And now?\n\nYou:"
    )


def test_stateless_and_session_prompts_match():
    history = [
        ChatMessage(role="user", content="Hi"),
        ChatMessage(role="assistant", content="Hello John"),
    ]
    context = build_user_context(CHAT_PROFILE, TODAY)
    stateful = build_chat_prompt_with_context("What suits me?", context.system_context, context.first_name, history)
    stateless = build_chat_prompt("What suits me?", CHAT_PROFILE, history, TODAY)
    assert stateless == stateful


def test_chat_profile_accepts_datetime_birth_date():
    profile = ChatUserProfile(full_name="John Smith", birth_date="1990-11-22T08:30:00")
    assert profile.birth_date == datetime.date(1990, 11, 22)
    assert build_user_context(profile, TODAY) == build_user_context(CHAT_PROFILE, TODAY)
