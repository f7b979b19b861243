from __future__ import annotations

import json

import httpx
import pytest

from overload import cli
from overload.loadgen import runner


@pytest.fixture
def mock_backend(monkeypatch: pytest.MonkeyPatch) -> list[httpx.Request]:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, stream=httpx.ByteStream(b"hello"))

    def run_with_mock(config, transport=None, **kwargs):
        return runner.run_load(config, transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(cli, "run_load", run_with_mock)
    return calls


def test_prints_text_summary(mock_backend: list[httpx.Request], capsys: pytest.CaptureFixture[str]) -> None:
    code = cli.main(["-r", "3", "-c", "2", "-H", "X-Api-Key:secret", "http://service.test/"])
    out = capsys.readouterr().out.splitlines()
    assert code == 0
    assert len(mock_backend) == 3
    assert mock_backend[0].headers["x-api-key"] == "secret"
    assert out[:4] == ["# Requests: 3", "# Successes: 3", "# Failures: 0", "# Unavailable: 0"]
    assert out[4].startswith("Duration: ")
    assert out[5].startswith("Average Request Duration: ")
    assert out[6].startswith("Requests Per Second: ")
    assert out[7] == "Bytes Received (excluding headers): 15"


def test_prints_json_summary(mock_backend: list[httpx.Request], capsys: pytest.CaptureFixture[str]) -> None:
    code = cli.main(["--json", "--no-gzip", "-r", "2", "http://service.test/"])
    payload = json.loads(capsys.readouterr().out)
    assert code == 0
    assert payload["total_requests"] == 2
    assert payload["successes"] == 2
    assert payload["status_counts"] == {"200": 2}
    assert "accept-encoding" not in mock_backend[0].headers


def test_malformed_header_exits_non_zero(
    mock_backend: list[httpx.Request], capsys: pytest.CaptureFixture[str]
) -> None:
    code = cli.main(["-H", "BadHeader", "http://service.test/"])
    captured = capsys.readouterr()
    assert code == 1
    assert mock_backend == []
    assert captured.out == ""
    assert "Invalid header - BadHeader" in captured.err


def test_malformed_url_exits_non_zero(mock_backend: list[httpx.Request], capsys: pytest.CaptureFixture[str]) -> None:
    code = cli.main(["http://service.test:notaport/"])
    captured = capsys.readouterr()
    assert code == 1
    assert captured.out == ""
    assert "Unable to create HTTP request" in captured.err


def test_version(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(["--version"])
    assert exc.value.code == 0
    assert capsys.readouterr().out.strip() == "overload 0.2.1"


@pytest.mark.parametrize("argv", [[], ["-c", "0", "http://x.test/"], ["-r", "-1", "http://x.test/"]])
def test_usage_errors(argv: list[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(argv)
    assert exc.value.code == 2


def test_config_from_args() -> None:
    args = cli.build_parser().parse_args(
        ["-k", "--secure-tls", "--timeout", "0", "--run-timeout", "5", "-H", "A:b", "-H", "C:d", "http://x.test/"]
    )
    config = cli.config_from_args(args)
    assert config.keep_alive and config.secure_tls and config.gzip
    assert config.request_timeout_sec is None
    assert config.run_timeout_sec == 5.0
    assert config.headers == ("A:b", "C:d")
    assert (config.num_requests, config.concurrency) == (1, 1)


@pytest.mark.parametrize("flag", ["--timeout", "--run-timeout"])
@pytest.mark.parametrize("value", ["nan", "inf", "-inf", "-1"])
def test_rejects_non_finite_seconds(flag: str, value: str) -> None:
    with pytest.raises(SystemExit) as exc:
        cli.build_parser().parse_args([flag, value, "http://x.test/"])
    assert exc.value.code == 2
