import pytest

from eftp.result import Ok, Err, ResultError, is_result


def test_ok_map_and_then():
    assert Ok(2).map(lambda x: x * 3) == Ok(6)
    assert Ok(2).and_then(lambda x: Ok(x + 1)) == Ok(3)
    assert Ok(2).and_then(lambda x: Err('boom')) == Err('boom')


def test_err_short_circuits():
    error = Err('connection_failure')
    called = []
    assert error.map(called.append) is error
    assert error.and_then(called.append) is error
    assert called == []


def test_unwrap():
    assert Ok('x').unwrap() == 'x'
    with pytest.raises(ResultError):
        Err('invalid_port').unwrap()


def test_unwrap_or():
    assert Ok(1).unwrap_or(0) == 1
    assert Err('invalid_port').unwrap_or(0) == 0


def test_err_str_includes_detail():
    assert str(Err('invalid_port')) == 'invalid_port'
    assert str(Err('connection_failure', detail=OSError('refused'))) == 'connection_failure: refused'


def test_is_result():
    assert is_result(Ok(None))
    assert is_result(Err('x'))
    assert not is_result(('ok', None))
