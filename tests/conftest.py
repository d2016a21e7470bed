"""Shared fixtures: every test gets its own config and ansible directories."""

import pytest

from hum.config import reset_config


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point HUM_CONFIG_DIR / HUM_ANSIBLE_DIR at tmp_path and drop the cached Config."""
    config_dir = tmp_path / "hum-config"
    ansible_dir = tmp_path / "ansible"
    monkeypatch.setenv("HUM_CONFIG_DIR", str(config_dir))
    monkeypatch.setenv("HUM_ANSIBLE_DIR", str(ansible_dir))
    monkeypatch.delenv("HUM_GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("HUM_VERBOSE", raising=False)
    reset_config()
    yield config_dir
    reset_config()


class ScriptedPrompter:
    """Prompter stand-in answering from queues and recording what was asked."""

    def __init__(self, secrets=(), lines=(), confirms=()):
        self.secrets = list(secrets)
        self.lines = list(lines)
        self.confirms = list(confirms)
        self.asked = []

    def ask(self, prompt, default=""):
        self.asked.append(prompt)
        answer = self.lines.pop(0) if self.lines else ""
        return answer or default

    def ask_secret(self, prompt):
        self.asked.append(prompt)
        return self.secrets.pop(0) if self.secrets else ""

    def confirm(self, prompt):
        self.asked.append(prompt)
        return self.confirms.pop(0) if self.confirms else False


@pytest.fixture
def scripted_prompter():
    return ScriptedPrompter
