"""
Tests for lookup strategy selection.
"""

from mustc.strategy import Strategy, select_strategy


class TestSelectStrategy:

    def test_dot_is_last(self):
        assert select_strategy(".") is Strategy.LAST

    def test_plain_name_is_direct(self):
        assert select_strategy("name") is Strategy.DIRECT
        assert select_strategy("first_name") is Strategy.DIRECT

    def test_dotted_name(self):
        assert select_strategy("a.b") is Strategy.DOTTED
        assert select_strategy("a.b.c") is Strategy.DOTTED
