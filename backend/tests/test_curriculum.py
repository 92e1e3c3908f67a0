"""Tests for subject naming and the chapter numbering policy table."""

from teachmate.services import curriculum


class TestSubjects:
    def test_aliases(self):
        assert curriculum.canonical_subject("maths") == "Mathematics"
        assert curriculum.canonical_subject(" Science ") == "Science"
        assert curriculum.canonical_subject("History") == "History"
        assert curriculum.canonical_subject(None) == ""

    def test_index_subject(self):
        """English is stored lower-case in the index."""
        assert curriculum.index_subject("English") == "english"
        assert curriculum.index_subject("math") == "Mathematics"


class TestChapterNumbering:
    """Mathematics and Science chapters are offset by 100; English is not."""

    def test_science_words(self):
        assert curriculum.extract_chapters("Explain chapter one please", "Science") == ["101"]

    def test_math_abbreviation(self):
        assert curriculum.extract_chapters("what is in ch 2 and chapter three", "Mathematics") == ["102", "103"]

    def test_already_offset_kept(self):
        assert curriculum.extract_chapters("chapter 103", "Science") == ["103"]

    def test_english_unchanged(self):
        assert curriculum.extract_chapters("ch. 4", "English") == ["4"]

    def test_no_reference(self):
        assert curriculum.extract_chapters("tell me about photosynthesis", "Science") == []

    def test_index_chapter(self):
        assert curriculum.index_chapter("maths", 5) == "105"
        assert curriculum.index_chapter("English", "7") == "7"


class TestGradeNumber:
    def test_parse(self):
        assert curriculum.grade_number("Grade 8") == 8
        assert curriculum.grade_number("10th") == 10

    def test_default(self):
        assert curriculum.grade_number(None) == 8
        assert curriculum.grade_number("Senior", default=12) == 12
