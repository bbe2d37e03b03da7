"""Tests for the command line entry point."""

import logging
from pathlib import Path
from typing import Any

import pytest

from rabbitmq_exporter import cli
from rabbitmq_exporter.version import __version__


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove exporter settings inherited from the environment."""
    for name in ("RABBIT_URL", "PUBLISH_PORT", "PUBLISH_ADDR", "OUTPUT_FORMAT"):
        monkeypatch.delenv(name, raising=False)


class TestParser:
    """Tests for build_parser()."""

    @pytest.mark.tier(2)
    def test_defaults(self) -> None:
        """The config file defaults to conf/rabbitmq.conf."""
        args = cli.build_parser().parse_args([])

        assert args.config_file == "conf/rabbitmq.conf"
        assert args.check_url is None

    @pytest.mark.tier(2)
    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        """--version prints the exporter version."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--version"])

        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestMain:
    """Tests for main()."""

    @pytest.mark.tier(2)
    @pytest.mark.parametrize(("healthy", "code"), [(True, 0), (False, 1)])
    def test_check_url(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
        healthy: bool,
        code: int,
    ) -> None:
        """--check-url exits 0 on success and 1 with a message on failure."""
        checked: list[str] = []

        def fake_check(url: str) -> bool:
            checked.append(url)
            return healthy

        monkeypatch.setattr(cli, "check_url", fake_check)

        assert cli.main(["--check-url", "http://localhost:9419/health"]) == code
        assert checked == ["http://localhost:9419/health"]
        stderr = capsys.readouterr().err
        assert ("Health check failed" in stderr) is not healthy

    @pytest.mark.tier(2)
    def test_invalid_config(
        self,
        monkeypatch: pytest.MonkeyPatch,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """An invalid configuration exits with 1 before serving."""
        monkeypatch.setenv("RABBIT_URL", "rabbit:15672")

        code = cli.main(["--config-file", str(tmp_path / "missing.conf")])

        assert code == 1
        assert "Invalid configuration" in capsys.readouterr().err

    @pytest.mark.tier(2)
    def test_serves_app(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """main() hands the ASGI app to uvicorn on the configured port."""
        served: dict[str, Any] = {}

        def fake_run(app: Any, **kwargs: Any) -> None:
            served["app"] = app
            served.update(kwargs)

        monkeypatch.setattr(cli.uvicorn, "run", fake_run)
        monkeypatch.setenv("PUBLISH_PORT", "9500")

        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        try:
            code = cli.main(["--config-file", str(tmp_path / "missing.conf")])
        finally:
            root.handlers[:] = handlers
            root.setLevel(level)

        assert code == 0
        assert callable(served["app"])
        assert served["host"] == "0.0.0.0"
        assert served["port"] == 9500
        assert served["log_config"] is None
