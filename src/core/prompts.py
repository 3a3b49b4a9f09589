#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
AI Prompts for celebrity news generation and judging.

This module centralizes all prompt templates: the per-category generation
prompts (versioned), the long-form expansion prompt, and the short yes/no or
structured prompts sent to the judge model.
"""

import json
from typing import List, Dict, Any

from core.models.news import Category

# In-band token separating a headline from its long-form body
BODY_SEPARATOR = "<SEP>"

PROMPT_VERSION_PLAIN = "v1"
PROMPT_VERSION_LONG_FORM = "v2"


class NewsGenerationPrompts:
    """Collection of prompts for the generation API."""

    # Audience description and example lines per category
    CATEGORY_SUBJECTS = {
        Category.BOLLYWOOD: (
            "Indian Bollywood actors and singers",
            "Bollywood celebrities",
            [
                ("Shah Rukh Khan", "Announces new collaboration with international director"),
                ("Deepika Padukone", "Wins Best Actress award at film festival"),
            ],
        ),
        Category.TV: (
            "Indian daily soap and TV industry actors",
            "Indian TV actors",
            [
                ("Hina Khan", "Returns to popular TV show after break"),
                ("Rupali Ganguly", "Show reaches 1000 episode milestone"),
            ],
        ),
        Category.HOLLYWOOD: (
            "American Hollywood actors and singers",
            "Hollywood celebrities",
            [
                ("Leonardo DiCaprio", "Signs for climate change documentary"),
                ("Taylor Swift", "Announces surprise album release"),
            ],
        ),
    }

    # ---------- v1: one line per item ----------
    PLAIN_TEMPLATE = """Using ONLY real-time web results get exactly {count} latest entertainment news items about {audience} trending from the past 24 hours. Each news item must be on a separate line in this exact format:
[Person Name] - [Single line news description]

Example:
{examples}

Requirements:
- Use real, well-known {celebrities}
- Keep each news item to one line
- Make news current and tabloid worthy
- Return exactly {count} items"""

    # ---------- v2: headline plus long-form body ----------
    LONG_FORM_TEMPLATE = """Using ONLY real-time web results get exactly {count} latest entertainment news items about {audience} trending from the past 24 hours. Each news item must be on a separate line in this exact format:
[Person Name] - [Headline of at most 12 words] {sep} [A 120 to 180 word news story]

Example:
{examples}

Requirements:
- Use real, well-known {celebrities}
- Keep each news item, including its story, on one line
- Do not include citation markers or markdown
- Make news current and tabloid worthy
- Return exactly {count} items"""

    EXPANSION_TEMPLATE = (
        "Generate a comprehensive text summary of the given news regarding the provided celebrity. "
        "Provide the latest available contents though search. {category} {subject_name} - {headline}"
    )

    @classmethod
    def _format_examples(cls, category: Category, long_form: bool) -> str:
        _, _, examples = cls.CATEGORY_SUBJECTS[category]
        lines = []
        for name, headline in examples:
            if long_form:
                lines.append(f"{name} - {headline} {BODY_SEPARATOR} [story about {name}]")
            else:
                lines.append(f"{name} - {headline}")
        return "\n".join(lines)

    @classmethod
    def get_category_prompt(cls, category: Category, version: str = PROMPT_VERSION_PLAIN,
                            count: int = 15) -> str:
        """
        Build the generation prompt for a category.

        Args:
            category: News vertical to generate for
            version: Template version ("v1" plain lines, "v2" lines with a body)
            count: Number of items requested

        Returns:
            Prompt text

        Raises:
            ValueError: If the template version is unknown
        """
        if version == PROMPT_VERSION_PLAIN:
            template = cls.PLAIN_TEMPLATE
        elif version == PROMPT_VERSION_LONG_FORM:
            template = cls.LONG_FORM_TEMPLATE
        else:
            raise ValueError(f"Unknown prompt version: {version}")

        audience, celebrities, _ = cls.CATEGORY_SUBJECTS[category]
        return template.format(
            count=count,
            audience=audience,
            celebrities=celebrities,
            examples=cls._format_examples(category, version == PROMPT_VERSION_LONG_FORM),
            sep=BODY_SEPARATOR,
        )

    @classmethod
    def get_expansion_prompt(cls, category: str, subject_name: str, headline: str) -> str:
        return cls.EXPANSION_TEMPLATE.format(
            category=category, subject_name=subject_name, headline=headline
        )


class JudgePrompts:
    """Prompts for the judge model. Every verdict prompt asks for a bare yes/no."""

    SYSTEM_PROMPT = (
        "You are a strict fact-checking assistant for an entertainment news desk. "
        "Answer exactly as instructed, without explanations."
    )

    SAME_EVENT_TEMPLATE = """Do the following two texts describe the same news event?

News: {query}
Video title: {title}

Answer only "yes" or "no"."""

    IMAGE_RELEVANCE_TEMPLATE = """An image file is named "{filename}".
Does this filename show ONLY {subject}?

Rules:
- If the name of another distinct person appears, answer "no", unless that person is joined to {subject} directly with "and" or "&".
- For filenames like "X at Y", answer "yes" only if {subject} is X (the attendee), not Y (the host or event).
- Filenames that do not mention {subject} at all are "no".

Answer only "yes" or "no"."""

    DUPLICATES_INSTRUCTION = (
        "You are given a list of news items in JSON array with fields id, title, body. "
        "Identify pairs of items that are semantically duplicates (same meaning). "
        "Return a JSON array of objects {keep_id, delete_id, reason}. "
        "Choose one of each duplicate pair to keep and mark the other for deletion. "
        "Only return pairs that are clear duplicates."
    )

    @classmethod
    def get_same_event_prompt(cls, query: str, title: str) -> str:
        return cls.SAME_EVENT_TEMPLATE.format(query=query, title=title)

    @classmethod
    def get_image_relevance_prompt(cls, filename: str, subject: str) -> str:
        return cls.IMAGE_RELEVANCE_TEMPLATE.format(filename=filename, subject=subject)

    @classmethod
    def get_duplicates_prompt(cls, items: List[Dict[str, Any]]) -> str:
        """Instruction followed by the batch serialised as a JSON array."""
        return f"{cls.DUPLICATES_INSTRUCTION}\n\n{json.dumps(items, ensure_ascii=False)}"


# Convenience aliases
get_category_prompt = NewsGenerationPrompts.get_category_prompt
get_expansion_prompt = NewsGenerationPrompts.get_expansion_prompt
