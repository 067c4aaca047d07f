import unittest

from practice_coach.annotation import extract_comments, join_spans, split_annotated
from practice_coach.schema import canned_feedback


class AnnotationTests(unittest.TestCase):
    SAMPLES = [
        "",
        "No markers at all.",
        "I managed a team [Comment: Strong opening] to deliver.",
        "[Comment: Starts with a note] then text",
        "Ends with a note [Comment: Too short]",
        "Two [Comment: one][Comment: two] in a row",
        "Square [brackets] that are [not markers] stay plain",
        "Broken [Comment: never closed",
        "Empty [Comment: ] body is not a marker",
    ]

    def test_split_then_join_reproduces_input(self) -> None:
        for text in self.SAMPLES + [canned_feedback().annotated_answer]:
            self.assertEqual(join_spans(split_annotated(text)), text, text)

    def test_spans_alternate_plain_and_comment(self) -> None:
        spans = split_annotated("I actually [Comment: Filler word] think so.")
        self.assertEqual([s.is_comment for s in spans], [False, True, False])
        self.assertEqual(spans[1].comment, "Filler word")
        self.assertEqual(spans[0].comment, "")

    def test_only_exact_markers_are_comments(self) -> None:
        for text in self.SAMPLES[5:]:
            plain = [s for s in split_annotated(text) if not s.is_comment]
            for span in plain:
                self.assertNotRegex(span.text, r"\[Comment: [^\]]+\]")
        self.assertEqual(extract_comments(self.SAMPLES[6]), [])
        self.assertEqual(extract_comments(self.SAMPLES[7]), [])
        self.assertEqual(extract_comments(self.SAMPLES[8]), [])

    def test_extract_comments(self) -> None:
        self.assertEqual(
            extract_comments(canned_feedback().annotated_answer),
            ["Strong opening", "Use 'I' instead of 'We' here"],
        )


if __name__ == "__main__":
    unittest.main()
