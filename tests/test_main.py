"""
Entry Point Tests - argument parsing, settings and the --list output.

Run with: pytest tests/test_main.py -v
"""
import io

from conftest import FakeBackend, mic, out

import main
from main import Settings, build_parser, print_devices
from models import CATEGORY_HEADPHONE
from priority_store import PriorityStore
from store_config import ConfigStore, MemoryStore


class TestParser:
    def test_flags(self, tmp_path):
        args = build_parser().parse_args(["--headless", "--debug", "--config", str(tmp_path / "x.cfg")])
        assert args.headless and args.debug
        assert args.config == tmp_path / "x.cfg"
        assert not args.list and not args.ephemeral


class TestSettings:
    def test_memory_store_uses_defaults(self):
        s = Settings(MemoryStore())
        assert s.integer("blink_interval_ms") == 700
        assert s.flag("start_hidden") is False
        assert s.text("log_level") == "INFO"

    def test_config_store_values(self, tmp_path):
        path = tmp_path / "apriority.cfg"
        path.write_text("[App]\nlog_level = DEBUG\npoll_interval_ms = 3000\n", encoding="utf-8")
        s = Settings(ConfigStore(path=path))
        assert s.text("log_level") == "DEBUG"
        assert s.integer("poll_interval_ms") == 3000


class TestListing:
    def test_print_devices(self, backend, store, make_manager):
        PriorityStore(store).set_category("hp", CATEGORY_HEADPHONE)
        backend.devices = [mic(1, "m", "Mic"), out(2, "spk", "Speakers"), out(3, "hp", "Headset")]
        backend.defaults = {"input": 1, "output": 2}
        m = make_manager()
        m.scan()

        buf = io.StringIO()
        print_devices(m, buf)
        text = buf.getvalue()

        assert "Mode: Speakers (automatic)" in text
        assert "1. Speakers  <spk>  [default]" in text
        assert "1. Headset  <hp>" in text
        assert "Ignored:\n  (none)" in text

    def test_scan_does_not_select(self, backend, make_manager):
        backend.devices = [out(2, "spk")]
        m = make_manager()
        m.scan()
        assert backend.set_calls == []

    def test_main_list_exits_cleanly(self, monkeypatch, capsys):
        fake = FakeBackend([out(2, "spk", "Speakers")])
        monkeypatch.setattr(main, "PulseAudioBackend", lambda: fake)
        monkeypatch.setattr(main, "setup_logging", lambda *a, **k: None)

        assert main.main(["--list", "--ephemeral"]) == 0
        assert "Speakers  <spk>" in capsys.readouterr().out
        assert fake.closed
        assert fake.set_calls == []
