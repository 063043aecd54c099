from typer.testing import CliRunner

from regex_download import cli
from regex_download.core.errors import InvalidURLError
from regex_download.core.pipeline import PipelineReport
from regex_download.core.scraping.models import ProcessOutcome

runner = CliRunner()

CONFIG = """\
[example]
prefix = <title>(.*?)</title>
reImages = <img src="([^"]+)"
"""


def write_config(tmp_path):
    path = tmp_path / "regexdownload.conf"
    path.write_text(CONFIG, encoding="utf-8")
    return path


def test_cli_passes_flags_to_pipeline(tmp_path, monkeypatch):
    calls = {}

    def fake_run_pipeline(urls, config, **kwargs):
        calls["urls"] = urls
        calls["config"] = config
        calls.update(kwargs)
        return PipelineReport()

    monkeypatch.setattr(cli, "run_pipeline", fake_run_pipeline)
    config_path = write_config(tmp_path)

    result = runner.invoke(
        cli.app,
        [
            "-v",
            "--keep",
            "--config",
            str(config_path),
            "--jobs",
            "4",
            "-o",
            str(tmp_path),
            "https://www.example.com/a",
            "https://www.example.com/b",
        ],
    )

    assert result.exit_code == 0, result.output
    assert f"Using configuration file: {config_path}" in result.output
    assert list(calls["urls"]) == [
        "https://www.example.com/a",
        "https://www.example.com/b",
    ]
    assert calls["keep_snapshot"] is True
    assert calls["verbose"] is True
    assert calls["max_workers"] == 4
    assert calls["output_dir"] == tmp_path
    assert calls["config"].section("example").prefix == "<title>(.*?)</title>"


def test_cli_uses_environment_config(tmp_path, monkeypatch):
    config_path = write_config(tmp_path)
    monkeypatch.setenv("REGEXDOWNLOAD_CONFIG", str(config_path))
    monkeypatch.setattr(
        cli, "run_pipeline", lambda urls, config, **kwargs: PipelineReport()
    )

    result = runner.invoke(cli.app, ["https://www.example.com/a"])

    assert result.exit_code == 0, result.output


def test_cli_missing_config(tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "find_config_file", lambda: None)

    result = runner.invoke(cli.app, ["https://www.example.com/a"])

    assert result.exit_code == 1


def test_cli_exit_code_reflects_failures(tmp_path, monkeypatch):
    failed = PipelineReport(
        pages=[
            ProcessOutcome(url="http://[::1", error=InvalidURLError("invalid URL"))
        ]
    )
    monkeypatch.setattr(cli, "run_pipeline", lambda urls, config, **kwargs: failed)

    result = runner.invoke(
        cli.app, ["--config", str(write_config(tmp_path)), "http://[::1"]
    )

    assert result.exit_code == 1


def test_cli_creates_missing_output_dir(tmp_path, monkeypatch):
    calls = {}

    def fake_run_pipeline(urls, config, **kwargs):
        calls["is_dir"] = kwargs["output_dir"].is_dir()
        return PipelineReport()

    monkeypatch.setattr(cli, "run_pipeline", fake_run_pipeline)
    target = tmp_path / "out" / "nested"

    result = runner.invoke(
        cli.app,
        ["-c", str(write_config(tmp_path)), "-o", str(target), "https://a.example.com/"],
    )

    assert result.exit_code == 0, result.output
    assert calls["is_dir"] is True


def test_cli_output_dir_that_is_a_file(tmp_path):
    blocker = tmp_path / "taken"
    blocker.write_text("x", encoding="utf-8")

    result = runner.invoke(
        cli.app,
        ["-c", str(write_config(tmp_path)), "-o", str(blocker), "https://a.example.com/"],
    )

    assert result.exit_code == 1
