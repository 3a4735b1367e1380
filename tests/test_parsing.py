from cashmere.parsing import Dialect, char_offset, dialect_for_path, offset_to_line_col


def test_offset_to_line_col_is_one_based():
    assert offset_to_line_col("abc", 0) == (1, 1)
    assert offset_to_line_col("abc", 2) == (1, 3)


def test_offset_to_line_col_resets_column_after_newline():
    text = "ab\ncd\n\nef"
    assert offset_to_line_col(text, 3) == (2, 1)
    assert offset_to_line_col(text, 4) == (2, 2)
    assert offset_to_line_col(text, 7) == (4, 1)


def test_offset_past_end_stops_at_text_end():
    assert offset_to_line_col("a\nb", 50) == (2, 2)


def test_char_offset_counts_characters_not_bytes():
    source = "é = 1; x".encode("utf-8")
    assert char_offset(source, source.index(b"x")) == 7


def test_dialect_selection_by_extension():
    assert dialect_for_path("src/workflow.ts") is Dialect.TYPESCRIPT
    assert dialect_for_path("src/workflow.mts") is Dialect.TYPESCRIPT
    assert dialect_for_path("src/View.tsx") is Dialect.TSX
    assert dialect_for_path("src/workflow.mjs") is Dialect.JAVASCRIPT
    assert dialect_for_path("file:///repo/src/index.cts") is Dialect.TYPESCRIPT
    assert dialect_for_path("README") is Dialect.JAVASCRIPT
