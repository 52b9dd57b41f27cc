from chat_app.channel_selector import ChannelSelector


def test_move_up_from_nothing_selects_last():
    selector = ChannelSelector(["a", "b", "c"])
    selector.move_up()
    assert selector.highlight == 2
    assert selector.highlighted() == "c"


def test_move_down_from_nothing_also_selects_last():
    selector = ChannelSelector(["a", "b", "c"])
    selector.move_down()
    assert selector.highlight == 2


def test_moves_wrap_at_both_ends():
    selector = ChannelSelector(["a", "b", "c"])
    selector.move_down()
    selector.move_down()
    assert selector.highlight == 0
    selector.move_up()
    assert selector.highlight == 2
    selector.move_up()
    assert selector.highlight == 1


def test_empty_selector_never_highlights():
    selector = ChannelSelector()
    selector.move_up()
    selector.move_down()
    assert selector.highlight is None
    assert selector.highlighted() is None


def test_add_is_idempotent_and_clear_drops_highlight():
    selector = ChannelSelector()
    selector.add("a")
    selector.add("a")
    selector.add("b")
    assert selector.channel_ids == ["a", "b"]
    selector.move_up()
    selector.clear()
    assert selector.highlight is None
