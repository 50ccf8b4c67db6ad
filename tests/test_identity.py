import pytest

from blocker.errors import InvalidInput
from blocker.identity import parse_account_id, to_id64


def test_plain_account_id():
    assert parse_account_id('111111111') == 111111111
    assert parse_account_id(' 42 ') == 42
    assert parse_account_id(4294967295) == 4294967295


def test_individual_id64_is_reduced_to_account_id():
    assert parse_account_id(str(to_id64(111111111))) == 111111111


@pytest.mark.parametrize('raw', ['', 'abc', '0', '-1', '1.5', '12abc', '²', '１２３',
                                 str(to_id64(0)), '103582791429521412'])
def test_invalid_identities(raw):
    with pytest.raises(InvalidInput):
        parse_account_id(raw)
