"""Tests for the command line entry point."""

import io
import logging
import socket
import sys

import pytest

from ledger_exporter.cli import _join_hyphen_values, create_parser, parse_config, run
from ledger_exporter.config import ExporterConfig
from ledger_exporter.core.models import Resolution
from tests.samples import PROPOSED_LINE

pytestmark = [pytest.mark.core, pytest.mark.tier(1)]


@pytest.fixture
def restore_package_logger():
    """Undo the handlers run() installs on the package logger."""
    logger = logging.getLogger("ledger_exporter")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


class TestParser:
    """Tests for create_parser() and parse_config()."""

    def test_listen_addr_is_required(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args([])

        assert exc_info.value.code == 2

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args(["--version"])

        assert exc_info.value.code == 0
        assert "ledger-exporter" in capsys.readouterr().out

    @pytest.mark.tra("CLI.Options")
    def test_full_command_line(self) -> None:
        config = parse_config(
            [
                "--listen-addr", "0.0.0.0:9100",
                "--ledger-tail-bin", "/usr/local/bin/monad-ledger-tail",
                "--ledger-tail-args", "--ledger-path=/opt/ledger --forkpoint-path=/fp",
                "--known-identity", "02abc:chorus1",
                "--known-identity", "03def:chorus2",
                "--log-level", "debug",
                "--log-buffer-size", "50",
            ]
        )

        assert (config.host, config.port) == ("0.0.0.0", 9100)
        assert config.ledger_tail_bin == "/usr/local/bin/monad-ledger-tail"
        assert config.ledger_tail_args == ("--ledger-path=/opt/ledger", "--forkpoint-path=/fp")
        assert config.identities.resolve("02abc") == Resolution(True, "chorus1")
        assert config.identities.resolve("03def") == Resolution(True, "chorus2")
        assert config.log_level == "DEBUG"
        assert config.log_buffer_size == 50
        assert not config.read_stdin

    def test_stdin_flag(self) -> None:
        config = parse_config(["--listen-addr", "127.0.0.1:0", "--stdin"])

        assert config.read_stdin

    @pytest.mark.tra("CLI.InvalidConfig")
    @pytest.mark.parametrize(
        "argv",
        [
            ["--listen-addr", "localhost:9100"],
            ["--listen-addr", "0.0.0.0:9100", "--known-identity", "no-colon"],
            ["--listen-addr", "0.0.0.0:9100", "--known-identity", ":name"],
            ["--listen-addr", "0.0.0.0:9100", "--log-buffer-size", "-5"],
        ],
    )
    def test_invalid_values_exit_with_usage_error(
        self, argv: list[str], capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Configuration errors are reported before anything is started."""
        with pytest.raises(SystemExit) as exc_info:
            parse_config(argv)

        assert exc_info.value.code == 2
        assert "error:" in capsys.readouterr().err


class TestJoinHyphenValues:
    """Tests for _join_hyphen_values()."""

    def test_joins_value_starting_with_hyphen(self) -> None:
        assert _join_hyphen_values(["--ledger-tail-args", "--ledger-path=/x", "--stdin"]) == [
            "--ledger-tail-args=--ledger-path=/x",
            "--stdin",
        ]

    def test_leaves_other_options_alone(self) -> None:
        argv = ["--listen-addr", "0.0.0.0:1", "--ledger-tail-args=--a"]

        assert _join_hyphen_values(argv) == argv

    def test_trailing_option_without_value(self) -> None:
        assert _join_hyphen_values(["--ledger-tail-args"]) == ["--ledger-tail-args"]


@pytest.mark.integration
@pytest.mark.tier(3)
@pytest.mark.usefixtures("restore_package_logger")
class TestRun:
    """Tests for run() with real sources and a real server on an ephemeral port."""

    @pytest.mark.tra("CLI.Exit.Stdin")
    def test_stdin_mode_exits_zero_at_end_of_input(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        stdin = io.TextIOWrapper(io.BytesIO(f"{PROPOSED_LINE}\n\nnot json\n".encode()))
        monkeypatch.setattr(sys, "stdin", stdin)
        config = ExporterConfig(host="127.0.0.1", port=0, read_stdin=True)

        assert run(config) == 0

    @pytest.mark.tra("CLI.Exit.TailExited")
    def test_tail_mode_always_exits_one(self) -> None:
        """Even a clean exit of the tail process ends the exporter with 1."""
        config = ExporterConfig(
            host="127.0.0.1",
            port=0,
            ledger_tail_bin=sys.executable,
            ledger_tail_args=("-c", "import time; time.sleep(0.2); print('{}')"),
        )

        assert run(config) == 1

    def test_tail_spawn_failure_exits_one(self, tmp_path) -> None:
        config = ExporterConfig(
            host="127.0.0.1", port=0, ledger_tail_bin=str(tmp_path / "missing")
        )

        assert run(config) == 1

    @pytest.mark.tra("CLI.Exit.BindFailure")
    def test_bind_failure_exits_one(self) -> None:
        """An address already in use is fatal at startup."""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("127.0.0.1", 0))
            sock.listen()
            port = sock.getsockname()[1]
            config = ExporterConfig(host="127.0.0.1", port=port, read_stdin=True)

            assert run(config) == 1
