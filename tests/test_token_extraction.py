from __future__ import annotations

import unittest

from page_sequence.contracts import OrderingToken, TokenNotFound, ZeroToken
from page_sequence.tokens import extract, split_name


class TestExtract(unittest.TestCase):
    def test_single_integer_after_prefix(self) -> None:
        for n in (1, 2, 9, 10, 42, 123, 2000):
            with self.subTest(n=n):
                tok = extract(f"scan_{n}.png", "scan_")
                self.assertEqual(tok, OrderingToken(major=n, minor=0))

    def test_zero_padded_is_numeric(self) -> None:
        self.assertEqual(extract("page_0007.png", "page_").major, 7)
        self.assertEqual(extract("page_0010.png", "page_").major, 10)

    def test_two_part_token_with_period(self) -> None:
        tok = extract("My_file.CH.3.12.pdf", "My_file.", anywhere=True)
        self.assertEqual((tok.major, tok.minor), (3, 12))

    def test_two_part_token_with_comma(self) -> None:
        tok = extract("page_4,2.png", "page_")
        self.assertEqual((tok.major, tok.minor), (4, 2))

    def test_anywhere_skips_non_digit_text(self) -> None:
        tok = extract("My_file.CH.20.pdf", "My_file.", anywhere=True)
        self.assertEqual(tok, OrderingToken(20))

    def test_image_mode_requires_token_right_after_prefix(self) -> None:
        with self.assertRaises(TokenNotFound):
            extract("page_cover2.png", "page_")

    def test_no_digits_fails(self) -> None:
        with self.assertRaises(TokenNotFound) as ctx:
            extract("My_file.CH.pdf", "My_file.CH.", anywhere=True)
        self.assertEqual(ctx.exception.code, "TOKEN_NOT_FOUND")
        self.assertEqual(ctx.exception.detail["filename"], "My_file.CH.pdf")

    def test_zero_major_fails(self) -> None:
        with self.assertRaises(ZeroToken):
            extract("page_0000.png", "page_")

    def test_zero_minor_is_allowed(self) -> None:
        self.assertEqual(extract("page_3,0.png", "page_"), OrderingToken(3, 0))

    def test_directory_part_is_ignored(self) -> None:
        self.assertEqual(extract("scans/2024/page_0005.png", "page_").major, 5)


class TestSplitName(unittest.TestCase):
    def test_raw_image(self) -> None:
        parts = split_name("page_0001.png")
        self.assertEqual(parts.prefix, "page_")
        self.assertEqual(parts.token_text, "0001")
        self.assertEqual(parts.marker, "")
        self.assertEqual(parts.extension, ".png")

    def test_scaled_image(self) -> None:
        parts = split_name("page_0001_small.jpg")
        self.assertEqual(parts.prefix, "page_")
        self.assertEqual(parts.marker, "_small")
        self.assertEqual(parts.extension, ".jpg")

    def test_chaptered_pdf(self) -> None:
        parts = split_name("My_file.CH.1.pdf")
        self.assertEqual(parts.prefix, "My_file.CH.")
        self.assertEqual(parts.token, OrderingToken(1))

    def test_two_part_trailing_token(self) -> None:
        parts = split_name("My_file.CH.1.5.pdf")
        self.assertEqual(parts.prefix, "My_file.CH.")
        self.assertEqual(parts.token, OrderingToken(1, 5))

    def test_without_trailing_number(self) -> None:
        with self.assertRaises(TokenNotFound):
            split_name("cover.png")


if __name__ == "__main__":
    unittest.main()
