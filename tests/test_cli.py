from __future__ import annotations

import pytest
import yaml

from ghja import cli

PAGE = (
    "<html><head><title>repo</title></head><body>"
    "<nav><a>Issues</a><a>Pull requests</a></nav>"
    "<pre>Issues and Pull requests</pre>"
    "</body></html>"
)


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("GHJA_ENABLED", "GHJA_USE_REMOTE_API", "GHJA_PROVIDER", "GHJA_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


def _run(workspace, *args):
    return cli.main(["--settings", str(workspace / "settings.yaml"), *args])


def test_translate_writes_output_next_to_input(workspace, capsys):
    source = workspace / "page.html"
    source.write_text(PAGE, encoding="utf-8")

    assert _run(workspace, "translate", str(source)) == 0

    output = (workspace / "page_ja.html").read_text(encoding="utf-8")
    assert "<a>課題</a><a>プルリクエスト</a>" in output
    assert "<pre>Issues and Pull requests</pre>" in output
    assert 'lang="ja"' in output
    assert "Translation complete." in capsys.readouterr().out


def test_translate_refuses_existing_output(workspace, capsys):
    source = workspace / "page.html"
    source.write_text(PAGE, encoding="utf-8")
    target = workspace / "out.html"
    target.write_text("keep me", encoding="utf-8")

    assert _run(workspace, "translate", str(source), "-o", str(target)) == 1
    assert target.read_text(encoding="utf-8") == "keep me"
    assert "already exists" in capsys.readouterr().out

    assert _run(workspace, "translate", str(source), "-o", str(target), "-f") == 0
    assert "課題" in target.read_text(encoding="utf-8")


def test_translate_rejects_other_file_types(workspace, capsys):
    source = workspace / "page.txt"
    source.write_text(PAGE, encoding="utf-8")

    assert _run(workspace, "translate", str(source)) == 1
    assert "isn't supported" in capsys.readouterr().out


def test_missing_input_file(workspace, capsys):
    assert _run(workspace, "translate", str(workspace / "absent.html")) == 1
    assert "not found" in capsys.readouterr().out


def test_disabled_translation_copies_page(workspace):
    source = workspace / "page.html"
    source.write_text(PAGE, encoding="utf-8")

    assert _run(workspace, "disable") == 0
    assert _run(workspace, "translate", str(source)) == 0

    output = (workspace / "page_ja.html").read_text(encoding="utf-8")
    assert "<a>Issues</a>" in output
    assert "課題" not in output


def test_enable_disable_and_reset_persist(workspace, capsys):
    settings = workspace / "settings.yaml"

    assert _run(workspace, "disable") == 0
    assert yaml.safe_load(settings.read_text(encoding="utf-8")) == {"enabled": False}
    assert _run(workspace, "enable") == 0
    assert yaml.safe_load(settings.read_text(encoding="utf-8")) == {"enabled": True}
    assert _run(workspace, "reset") == 0

    out = capsys.readouterr().out
    assert "Translation disabled." in out
    assert "Translation enabled." in out
    assert "Settings restored to defaults." in out


def test_status_masks_api_key(workspace, capsys):
    (workspace / "settings.yaml").write_text(
        "use_remote_api: true\nprovider: DeepL\napi_key: top-secret\n", encoding="utf-8"
    )

    assert _run(workspace, "status") == 0

    out = capsys.readouterr().out
    assert "top-secret" not in out
    assert "********" in out
    assert "DeepL" in out


def test_invalid_settings_are_reported(workspace, capsys):
    (workspace / "settings.yaml").write_text("enabled: sometimes\n", encoding="utf-8")

    assert _run(workspace, "status") == 1
    assert "Settings validation errors" in capsys.readouterr().out


def test_test_provider_without_provider(workspace, capsys):
    (workspace / "settings.yaml").write_text("use_remote_api: true\n", encoding="utf-8")

    assert _run(workspace, "test-provider") == 1
    assert "no provider" in capsys.readouterr().out
