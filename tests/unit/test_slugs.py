"""Tests for slug generation."""

import re

from pickmypit.slugs import SUFFIX_LENGTH, post_slug, slugify


class TestSlugify:
    def test_basic(self):
        assert slugify("Golden Retriever Puppy") == "golden-retriever-puppy"

    def test_strips_punctuation(self):
        assert slugify("Cute cat!! (2 months)") == "cute-cat-2-months"

    def test_collapses_dashes_and_trims(self):
        assert slugify("  --Hello -- World--  ") == "hello-world"

    def test_non_ascii_removed(self):
        assert slugify("Café Müller") == "caf-mller"

    def test_empty(self):
        assert slugify("") == ""
        assert slugify(None) == ""
        assert slugify("!!!") == ""


class TestPostSlug:
    def test_suffix_appended(self):
        assert post_slug("Lab Puppy", "123456") == "lab-puppy-123456"

    def test_generated_suffix_is_digits(self):
        slug = post_slug("Lab Puppy")
        assert re.fullmatch(rf"lab-puppy-\d{{{SUFFIX_LENGTH}}}", slug)

    def test_empty_title_fallback(self):
        assert post_slug("???", "000001") == "pet-post-000001"
