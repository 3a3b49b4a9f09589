import os

import pytest

from core.env_loader import get_bool_env, get_first_env, load_env_file, parse_env_line


def test_parse_env_line_variants():
    assert parse_env_line("GEMINI_API_KEY=abc") == ("GEMINI_API_KEY", "abc")
    assert parse_env_line('export API_PORT = "8000"') == ("API_PORT", "8000")
    assert parse_env_line("URL='https://x.supabase.co?a=b'") == ("URL", "https://x.supabase.co?a=b")
    assert parse_env_line("# comment") is None
    assert parse_env_line("   ") is None
    with pytest.raises(ValueError):
        parse_env_line("NOT_A_PAIR")


def test_load_env_file_keeps_existing_environment(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("PAPARAZZI_A=from-file\nPAPARAZZI_B=from-file\nbroken line\n", encoding="utf-8")
    monkeypatch.setenv("PAPARAZZI_A", "from-env")
    monkeypatch.setenv("PAPARAZZI_B", "placeholder")
    monkeypatch.delenv("PAPARAZZI_B")

    loaded = load_env_file(env_file)

    assert loaded == 1
    assert os.environ["PAPARAZZI_A"] == "from-env"
    assert os.environ["PAPARAZZI_B"] == "from-file"


def test_missing_env_file_loads_nothing(tmp_path):
    assert load_env_file(tmp_path / "absent.env") == 0


def test_alias_and_bool_helpers(monkeypatch):
    monkeypatch.delenv("JUDGE_API_KEY", raising=False)
    monkeypatch.setenv("GROQ_API_KEY", "groq")
    monkeypatch.setenv("ATTACH_VIDEO", "No")

    assert get_first_env("JUDGE_API_KEY", "GROQ_API_KEY") == "groq"
    assert get_first_env("PAPARAZZI_UNSET_KEY", default="x") == "x"
    assert get_bool_env("ATTACH_VIDEO", True) is False
    assert get_bool_env("PAPARAZZI_UNSET_FLAG", True) is True
