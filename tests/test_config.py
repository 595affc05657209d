from __future__ import annotations

from pathlib import Path

import pytest

from protoframe.config import (
    AskConfig,
    ConnectConfig,
    PingConfig,
    ProtoframeConfig,
    SerializationConfig,
    discover_config,
    load_config,
)


# ---------------------------------------------------------------------------
# Config dataclass defaults
# ---------------------------------------------------------------------------


class TestDefaults:
    def test_defaults(self) -> None:
        cfg = ProtoframeConfig()
        assert cfg.ask.timeout == 10.0
        assert cfg.ping.timeout == 10.0
        assert cfg.connect.retries == 50
        assert cfg.connect.timeout == 0.5
        assert cfg.serialization.serializer == "json"

    def test_frozen(self) -> None:
        cfg = AskConfig()
        with pytest.raises(AttributeError):
            cfg.timeout = 1.0  # type: ignore[misc]

    @pytest.mark.parametrize(
        "factory",
        [
            lambda: AskConfig(timeout=0),
            lambda: PingConfig(timeout=-1.0),
            lambda: ConnectConfig(retries=0),
            lambda: ConnectConfig(timeout=0),
            lambda: SerializationConfig(serializer="pickle"),  # type: ignore[arg-type]
        ],
    )
    def test_invalid_values(self, factory) -> None:
        with pytest.raises(ValueError):
            factory()


# ---------------------------------------------------------------------------
# TOML loading
# ---------------------------------------------------------------------------


class TestLoadConfig:
    def test_full_file(self, tmp_path: Path) -> None:
        path = tmp_path / "protoframe.toml"
        path.write_text(
            "[ask]\n"
            "timeout = 2.5\n"
            "\n"
            "[ping]\n"
            "timeout = 1.0\n"
            "\n"
            "[connect]\n"
            "retries = 5\n"
            "timeout = 0.25\n"
            "\n"
            "[serialization]\n"
            'serializer = "msgpack"\n'
        )

        cfg = load_config(path)

        assert cfg == ProtoframeConfig(
            ask=AskConfig(timeout=2.5),
            ping=PingConfig(timeout=1.0),
            connect=ConnectConfig(retries=5, timeout=0.25),
            serialization=SerializationConfig(serializer="msgpack"),
        )

    def test_partial_file_keeps_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "protoframe.toml"
        path.write_text("[connect]\nretries = 3\n")

        cfg = load_config(path)

        assert cfg.connect == ConnectConfig(retries=3, timeout=0.5)
        assert cfg.ask == AskConfig()

    def test_unknown_key(self, tmp_path: Path) -> None:
        path = tmp_path / "protoframe.toml"
        path.write_text("[ask]\ndeadline = 3\n")
        with pytest.raises(TypeError):
            load_config(path)

    def test_missing_explicit_path(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.toml")

    def test_no_file_gives_defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("protoframe.config.discover_config", lambda: None)
        assert load_config() == ProtoframeConfig()


class TestDiscoverConfig:
    def test_walks_up(self, tmp_path: Path) -> None:
        (tmp_path / "protoframe.toml").write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)

        assert discover_config(nested) == (tmp_path / "protoframe.toml").resolve()

    def test_discovered_file_is_loaded(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "protoframe.toml").write_text("[ping]\ntimeout = 3.0\n")
        monkeypatch.chdir(tmp_path)

        assert load_config().ping.timeout == 3.0
