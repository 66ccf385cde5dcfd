import unittest

from jarvis_llm.framing import LineFramer


class LineFramerTests(unittest.TestCase):
    def test_partial_line_is_retained_across_feeds(self) -> None:
        framer = LineFramer()
        self.assertEqual(framer.feed(b"data: {\"a\""), [])
        self.assertEqual(framer.feed(b": 1}\ndata: x"), ['data: {"a": 1}'])
        self.assertEqual(framer.feed(b"\n"), ["data: x"])

    def test_blank_lines_and_crlf(self) -> None:
        framer = LineFramer()
        self.assertEqual(framer.feed(b"one\r\n\r\ntwo\n"), ["one", "", "two"])

    def test_multibyte_character_split_between_reads(self) -> None:
        encoded = "café\n".encode()
        framer = LineFramer()
        self.assertEqual(framer.feed(encoded[:4]), [])
        self.assertEqual(framer.feed(encoded[4:]), ["café"])

    def test_flush_returns_unterminated_tail_once(self) -> None:
        framer = LineFramer()
        framer.feed(b"first\nsecond")
        self.assertEqual(framer.flush(), ["second"])
        self.assertEqual(framer.flush(), [])


if __name__ == "__main__":
    unittest.main()
