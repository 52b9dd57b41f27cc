import pytest

from chat_app.cursor_math import screen_cursor, wrap_cursor


def test_origin_is_first_cell():
    assert wrap_cursor(0, 10) == (0, 0)


def test_inside_first_row():
    assert wrap_cursor(5, 10) == (5, 0)


def test_wrap_boundary_stays_on_previous_row():
    assert wrap_cursor(10, 10) == (10, 0)
    assert wrap_cursor(20, 10) == (10, 1)


def test_first_character_after_boundary_starts_next_row():
    assert wrap_cursor(11, 10) == (1, 1)


def test_screen_cursor_applies_origin_and_border_inset():
    # 12 columns including borders leaves a wrap width of 10.
    assert screen_cursor(10, 2, 5, 12) == (13, 6)
    assert screen_cursor(11, 2, 5, 12) == (4, 7)
    assert screen_cursor(0, 0, 0, 12) == (1, 1)


@pytest.mark.parametrize("width", [0, -3])
def test_non_positive_width_is_rejected(width):
    with pytest.raises(ValueError):
        wrap_cursor(3, width)


def test_negative_char_pos_is_rejected():
    with pytest.raises(ValueError):
        wrap_cursor(-1, 10)
