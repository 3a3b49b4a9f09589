from core.models.news import Category
from core.news_parser import parse_line, parse_news_text


def test_parses_simple_dash_lines():
    text = "Shah Rukh Khan - Announces new project\nDeepika Padukone - Wins award"
    drafts = parse_news_text(text, Category.BOLLYWOOD)

    assert [(d.subject_name, d.headline) for d in drafts] == [
        ("Shah Rukh Khan", "Announces new project"),
        ("Deepika Padukone", "Wins award"),
    ]
    assert drafts[0].search_query == "Shah Rukh Khan Announces new project"
    assert all(d.category is Category.BOLLYWOOD for d in drafts)
    assert all(d.body is None for d in drafts)


def test_text_without_separators_yields_nothing():
    text = "Here are today's top stories\nNothing else to report"
    assert parse_news_text(text, Category.TV) == []


def test_empty_input_yields_nothing():
    assert parse_news_text("", Category.TV) == []
    assert parse_news_text("\n\n   \n", Category.TV) == []


def test_never_returns_more_than_fifteen():
    text = "\n".join(f"Person {i} - did something newsworthy today" for i in range(40))
    drafts = parse_news_text(text, Category.HOLLYWOOD)

    assert len(drafts) == 15
    assert drafts[-1].subject_name == "Person 14"


def test_skips_ordinals_bullets_and_markdown():
    text = "\n".join([
        "1. **Alia Bhatt** - Starts shooting for her next film",
        "2) • Ranbir Kapoor: Spotted at the airport",
        "* Kareena Kapoor | Launches her podcast",
    ])
    drafts = parse_news_text(text, Category.BOLLYWOOD)

    assert [d.subject_name for d in drafts] == ["Alia Bhatt", "Ranbir Kapoor", "Kareena Kapoor"]
    assert drafts[1].headline == "Spotted at the airport"


def test_hyphenated_names_survive():
    draft = parse_line("Jean-Claude Van Damme - Returns to action cinema", Category.HOLLYWOOD)

    assert draft.subject_name == "Jean-Claude Van Damme"
    assert draft.headline == "Returns to action cinema"


def test_citations_are_stripped_from_headline():
    draft = parse_line("Emma Stone - Launches production company [1][2]", Category.HOLLYWOOD)
    assert draft.headline == "Launches production company"


def test_body_separator_splits_headline_and_body():
    line = ("Taylor Swift - Drops surprise album with star-studded collaborations"
            "<SEP>The pop star released the record at midnight with twelve new tracks. [3]")
    draft = parse_line(line, Category.HOLLYWOOD)

    assert draft.headline == "Drops surprise album with star-studded collaborations"
    assert draft.body == "The pop star released the record at midnight with twelve new tracks."


def test_short_headline_is_synthesized_from_body():
    line = ("Hina Khan - New show<SEP>Hina Khan has signed on for a daily soap that premieres "
            "next season on a major network")
    draft = parse_line(line, Category.TV)

    assert draft.headline == "Hina Khan has signed on for a daily soap that..."
    assert draft.body.startswith("Hina Khan has signed")


def test_lines_with_empty_parts_are_dropped():
    text = " - headline without a name\nName only - \nKaran Johar - Hosts a new chat show"
    drafts = parse_news_text(text, Category.TV)

    assert [d.subject_name for d in drafts] == ["Karan Johar"]
