import ipaddress

import pytest

from tmonks.cli import Cli, CliError, parse_args, validate_socket_name


def test_rejects_non_loopback_bind():
    cli = parse_args(["--bind", "0.0.0.0"])
    with pytest.raises(CliError) as info:
        cli.validate()
    assert "loopback" in str(info.value)
    assert "SSH tunneling" in str(info.value)


def test_rejects_no_auth_without_confirm():
    cli = parse_args(["--no-auth"])
    with pytest.raises(CliError) as info:
        cli.validate()
    assert "--no-auth is dangerous" in str(info.value)
    assert "--i-understand-no-auth" in str(info.value)


def test_accepts_no_auth_with_confirm():
    cli = parse_args(["--no-auth", "--i-understand-no-auth"])
    cli.validate()
    assert cli.no_auth is True
    assert cli.i_understand_no_auth is True


def test_accepts_loopback_bind():
    cli = parse_args(["--bind", "127.0.0.1"])
    cli.validate()
    assert cli.bind == ipaddress.ip_address("127.0.0.1")


def test_accepts_ipv6_loopback():
    cli = parse_args(["--bind", "::1"])
    cli.validate()
    assert cli.bind == ipaddress.ip_address("::1")


def test_defaults():
    cli = parse_args([])
    assert cli.bind == ipaddress.ip_address("127.0.0.1")
    assert cli.port == 0
    assert cli.socket is None
    assert cli.verbose is False


def test_verbose_short_flag_and_port():
    cli = parse_args(["-v", "--port", "8080"])
    assert cli.verbose is True
    assert cli.port == 8080


def test_invalid_bind_exits():
    with pytest.raises(SystemExit):
        parse_args(["--bind", "not-an-ip"])


def test_out_of_range_port_exits():
    with pytest.raises(SystemExit):
        parse_args(["--port", "70000"])


def test_socket_name_accepts_safe_chars():
    for name in ("dev", "dev-1", "a_b"):
        assert validate_socket_name(name) is None


def test_socket_name_rejects_leading_dash():
    with pytest.raises(CliError):
        validate_socket_name("-hack")


@pytest.mark.parametrize("name", ["a/b", "a b", "a.b"])
def test_socket_name_rejects_special_chars(name):
    with pytest.raises(CliError):
        validate_socket_name(name)


def test_socket_name_rejects_empty_or_too_long():
    with pytest.raises(CliError):
        validate_socket_name("")
    with pytest.raises(CliError):
        validate_socket_name("a" * 33)
    assert validate_socket_name("a" * 32) is None


def test_validate_wraps_bad_socket():
    cli = Cli(socket="a/b")
    with pytest.raises(CliError) as info:
        cli.validate()
    assert "--socket value is invalid" in str(info.value)


def test_validate_accepts_good_socket():
    cli = parse_args(["--socket", "dev"])
    cli.validate()
    assert cli.socket == "dev"