"""Tests for configuration loading."""

import os
import tempfile
from pathlib import Path

import pytest

from thicket.config import load_config
from thicket.errors import ConfigError
from thicket.search.fuzzy import DEFAULT_KEYS


@pytest.fixture
def in_tmpdir():
    """Run in an empty directory so a stray cwd config is never picked up."""
    old_cwd = os.getcwd()
    with tempfile.TemporaryDirectory() as tmpdir:
        os.chdir(tmpdir)
        try:
            yield Path(tmpdir)
        finally:
            os.chdir(old_cwd)


def test_load_config_defaults(in_tmpdir):
    """Test loading config with defaults when no file exists."""
    config = load_config()

    assert config.store.root == Path("./garden")
    assert config.search.threshold == 0.3
    assert config.search.keys == DEFAULT_KEYS
    assert config.search.max_history == 10
    assert config.daily.tags == ("daily", "journal")
    assert config.log.level == "WARNING"
    assert config.log.file is None


def test_load_config_from_file(in_tmpdir):
    """Test loading config from a file."""
    config_path = in_tmpdir / "custom.toml"
    config_path.write_text("""
[store]
root = "my-notes"

[search]
threshold = 0.1
keys = ["title", "tags"]
max_history = 3

[daily]
tags = ["journal"]

[log]
level = "debug"
file = "logs/thicket.log"
""")

    config = load_config(config_path=config_path)

    assert config.store.root == Path("my-notes")
    assert config.search.threshold == 0.1
    assert config.search.keys == ("title", "tags")
    assert config.search.max_history == 3
    assert config.daily.tags == ("journal",)
    assert config.log.level == "DEBUG"
    assert config.log.file == Path("logs/thicket.log")


def test_load_config_search_cwd(in_tmpdir):
    """Test that thicket.toml in cwd is found."""
    (in_tmpdir / "thicket.toml").write_text('[store]\nroot = "from-cwd"\n')

    config = load_config()

    assert config.store.root == Path("from-cwd")


def test_load_config_search_store(in_tmpdir):
    """Test that thicket.toml inside the store is used as a fallback."""
    store = in_tmpdir / "notes"
    store.mkdir()
    (store / "thicket.toml").write_text("[search]\nthreshold = 0.5\n")

    config = load_config(store_path=store)

    assert config.store.root == store
    assert config.search.threshold == 0.5


@pytest.mark.parametrize(
    "body",
    [
        "[search]\nthreshold = 2\n",
        "[search]\nthreshold = 'loose'\n",
        "[search]\nkeys = ['author']\n",
        "[search]\nkeys = []\n",
        "[search]\nmax_history = 0\n",
        "[search\n",
    ],
)
def test_invalid_config_rejected(in_tmpdir, body):
    """Test out-of-range values and broken TOML raise ConfigError."""
    config_path = in_tmpdir / "bad.toml"
    config_path.write_text(body)

    with pytest.raises(ConfigError):
        load_config(config_path=config_path)


def test_daily_tags_single_string(in_tmpdir):
    """Test a bare string is one tag, not one tag per character."""
    config_path = in_tmpdir / "daily.toml"
    config_path.write_text('[daily]\ntags = "daily"\n')

    config = load_config(config_path=config_path)

    assert config.daily.tags == ("daily",)


@pytest.mark.parametrize(
    "body",
    [
        "[daily]\ntags = 3\n",
        "[daily]\ntags = ['ok', '']\n",
        "[daily]\ntags = ['ok', 1]\n",
    ],
)
def test_invalid_daily_tags_rejected(in_tmpdir, body):
    """Test daily tags must be non-empty strings."""
    config_path = in_tmpdir / "bad.toml"
    config_path.write_text(body)

    with pytest.raises(ConfigError, match="daily.tags"):
        load_config(config_path=config_path)
