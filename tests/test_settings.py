from pathlib import Path

import pytest

from course_app.utils.settings import DEFAULT_DATA_PATH, AppSettings


def test_defaults_when_environment_is_empty() -> None:
    settings = AppSettings.from_env({})

    assert settings.data_path == DEFAULT_DATA_PATH
    assert settings.sync_url is None
    assert settings.host == "0.0.0.0"
    assert settings.port == 8000
    assert settings.seek_tolerance == 1.0


def test_values_are_read_from_environment(tmp_path) -> None:
    settings = AppSettings.from_env(
        {
            "COURSEQT_DATA_PATH": str(tmp_path / "data.json"),
            "COURSEQT_SYNC_URL": " https://sheets.example.com/exec ",
            "COURSEQT_HOST": "127.0.0.1",
            "COURSEQT_PORT": "9001",
            "COURSEQT_SEEK_TOLERANCE": "2.5",
        }
    )

    assert settings.data_path == Path(tmp_path / "data.json")
    assert settings.sync_url == "https://sheets.example.com/exec"
    assert settings.host == "127.0.0.1"
    assert settings.port == 9001
    assert settings.seek_tolerance == 2.5


@pytest.mark.parametrize(
    "environ, message",
    [
        ({"COURSEQT_PORT": "http"}, "must be a number"),
        ({"COURSEQT_PORT": "0"}, "between 1 and 65535"),
        ({"COURSEQT_PORT": "70000"}, "between 1 and 65535"),
        ({"COURSEQT_SEEK_TOLERANCE": "-1"}, "cannot be negative"),
    ],
)
def test_invalid_values_are_rejected(environ, message) -> None:
    with pytest.raises(ValueError, match=message):
        AppSettings.from_env(environ)


def test_dotenv_file_is_loaded(tmp_path, monkeypatch) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("COURSEQT_PORT=8123\n", encoding="utf-8")
    # Register the variable with monkeypatch so whatever load_dotenv sets is undone.
    monkeypatch.setenv("COURSEQT_PORT", "1")
    monkeypatch.delenv("COURSEQT_PORT")

    settings = AppSettings.from_env(dotenv_path=env_file)

    assert settings.port == 8123
