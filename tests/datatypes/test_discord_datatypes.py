import pytest

from rulecord.datatypes.discord_datatypes import (
    ChannelID,
    GuildID,
    MessageID,
    UserID,
)


class DummyObj:
    def __init__(self, id_val=None):
        self.id = id_val


def test_userid_from_int_and_str_and_equality_and_hash():
    u1 = UserID(12345)
    assert int(u1) == 12345
    assert str(u1) == "12345"

    u2 = UserID("12345")
    assert u1 == u2
    assert hash(u1) == hash(u2)

    u3 = UserID.from_int(67890)
    assert isinstance(u3, UserID)
    assert u3.to_int() == 67890

    u4 = UserID.from_user(DummyObj(id_val=111))  # type: ignore
    assert int(u4) == 111

    # equality with raw types
    assert u4 == 111
    assert u4 == "111"
    assert u4 != 112


def test_different_id_types_are_not_equal():
    assert GuildID(1) != UserID(1)
    assert ChannelID(5) != MessageID(5)


def test_copy_constructor():
    original = ChannelID(42)
    copy = ChannelID(original)
    assert copy == original
    assert copy is not original


def test_from_helpers():
    assert GuildID.from_guild(DummyObj(1)) == GuildID(1)  # type: ignore
    assert ChannelID.from_channel(DummyObj(2)) == ChannelID(2)  # type: ignore
    assert MessageID.from_message(DummyObj(3)) == MessageID(3)  # type: ignore


@pytest.mark.parametrize("bad", [True, 1.5, None, "abc"])
def test_invalid_values_raise(bad):
    with pytest.raises(ValueError):
        GuildID(bad)


def test_usable_as_dict_keys():
    counts = {UserID(1): 3}
    assert counts[UserID("1")] == 3
    assert repr(UserID(1)) == "UserID(1)"
