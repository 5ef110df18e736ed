import pytest

from asteroidnet.cli import main, parse_args


def test_parse_args_defaults_are_empty():
    args = parse_args([])
    assert (args.listen, args.connect) == ("", "")


def test_parse_args_single_dash_flags():
    args = parse_args(["-listen", ":7000"])
    assert args.listen == ":7000"
    assert args.connect == ""


def test_parse_args_connect():
    args = parse_args(["--connect", "127.0.0.1:7000"])
    assert args.connect == "127.0.0.1:7000"


def test_parse_args_rejects_unknown_flag():
    with pytest.raises(SystemExit):
        parse_args(["--bogus"])


def test_main_without_mode_fails():
    assert main([]) == 1