"""Tests for channel output sanitization."""

from agentvcs.git.sanitizer import clean_output


class TestCleanOutput:
    def test_empty(self):
        assert clean_output("") == ""
        assert clean_output(None) == ""

    def test_strips_nul_and_carriage_returns(self):
        assert clean_output("main\r\n\0") == "main"

    def test_drops_non_printable(self):
        assert clean_output("ma\x1b[0min\x07") == "ma[0min"

    def test_drops_non_ascii(self):
        assert clean_output("café") == "caf"

    def test_keeps_tabs_and_inner_newlines(self):
        assert clean_output("3\t1\nnext\n\n") == "3\t1\nnext"

    def test_trims_both_ends_by_default(self):
        assert clean_output("  main  \n") == "main"

    def test_preserve_leading_keeps_status_column(self):
        assert clean_output(" M a.txt\n?? b.txt\n", preserve_leading=True) == (
            " M a.txt\n?? b.txt"
        )
