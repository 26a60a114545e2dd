# tests/test_ingest.py

from gradesheet.ingest import parse_csv_row, read_grid, split_rows


def test_quoted_field_keeps_embedded_comma():
    assert parse_csv_row('a,"b,c",d') == ["a", "b,c", "d"]


def test_doubled_quote_inside_quotes_is_literal():
    assert parse_csv_row('"a""b"') == ['a"b']


def test_fields_are_trimmed():
    assert parse_csv_row("  1 , Анна ,  4,5 ") == ["1", "Анна", "4", "5"]


def test_empty_fields_are_kept():
    assert parse_csv_row(",,x,") == ["", "", "x", ""]
    assert parse_csv_row("") == [""]


def test_unclosed_quote_swallows_rest_of_line():
    assert parse_csv_row('a,"b,c,d') == ["a", "b,c,d"]


def test_split_rows_strips_bom_and_handles_crlf():
    text = "\ufeffa,b\r\nc,d\n\ne,f\r\n"
    assert split_rows(text) == ["a,b", "c,d", "", "e,f"]


def test_split_rows_empty():
    assert split_rows("") == []
    assert split_rows("\ufeff  \n ") == []


def test_read_grid_pads_short_rows():
    grid = read_grid("a,b,c\nd\n")
    assert grid.shape == (2, 3)
    assert grid.iloc[1].tolist() == ["d", "", ""]
