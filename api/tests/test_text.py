from bankalert.parsers.text import normalize_whitespace


def test_collapses_line_breaks_and_runs():
    assert normalize_whitespace("  An amount\r\nof INR\t\t620.00\n ") == "An amount of INR 620.00"


def test_none_and_non_string():
    assert normalize_whitespace(None) == ""
    assert normalize_whitespace("") == ""
    assert normalize_whitespace(620) == "620"


def test_idempotent():
    once = normalize_whitespace("a \n b\r\r c")
    assert normalize_whitespace(once) == once == "a b c"
