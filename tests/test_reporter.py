import pytest

from sb0_installer.reporter import path_contains, report_path

pytestmark = [pytest.mark.user_interface, pytest.mark.unit]


@pytest.mark.parametrize(
    "search_path, expected",
    [
        ("/usr/bin:/home/dev/.local/bin:/bin", True),
        ("/home/dev/.local/bin", True),
        ("/usr/bin:/home/dev/.local/bin2", False),
        ("/home/dev/.local/bin/sub:/usr/bin", False),
        ("/home/dev/.local", False),
        ("", False),
    ],
)
def test_path_contains_matches_whole_entries(search_path, expected):
    assert path_contains("/home/dev/.local/bin", search_path) is expected


def test_report_path_quiet_when_present(caplog):
    caplog.set_level("INFO", logger="sb0_installer")

    assert report_path("/opt/bin", "/usr/bin:/opt/bin") is True
    assert caplog.text == ""


def test_report_path_suggests_export(caplog):
    caplog.set_level("INFO", logger="sb0_installer")

    assert report_path("/opt/bin", "/usr/bin:/bin") is False
    assert "/opt/bin is not in your PATH" in caplog.text
    assert 'export PATH="/opt/bin:$PATH"' in caplog.text
    assert any(record.levelname == "WARNING" for record in caplog.records)


def test_report_path_defaults_to_environment(monkeypatch):
    monkeypatch.setenv("PATH", "/usr/bin:/opt/bin")
    assert report_path("/opt/bin") is True
