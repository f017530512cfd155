"""
Unit tests for application wiring and process exit codes
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from fireboard2mqtt import main as main_module
from fireboard2mqtt.app import BridgeApp
from fireboard2mqtt.config import BridgeConfig
from fireboard2mqtt.exceptions import FireboardAuthenticationError, SinkError


@pytest.fixture
def cfg():
    return BridgeConfig.model_validate({
        "fireboard": {"account_email": "cook@example.com", "account_password": "hunter2"},
        "mqtt": {"queue_size": 4},
    })


@pytest.fixture
def client():
    client = AsyncMock()
    client.list_devices.return_value = []
    return client


def make_sink(run_error=None):
    sink = MagicMock()
    sink.run = AsyncMock(side_effect=run_error)
    return sink


class TestBridgeApp:
    """Test the app wires the units together"""

    def test_queue_is_bounded(self, cfg, client):
        app = BridgeApp(cfg, client=client, sink=make_sink())
        assert app.queue.maxsize == 4
        assert app.watcher.queue is app.queue

    @pytest.mark.asyncio
    async def test_init_logs_in_then_announces(self, cfg, client):
        app = BridgeApp(cfg, client=client, sink=make_sink())

        await app.init()

        client.login.assert_awaited_once()
        action = app.queue.get_nowait()
        assert action.topic == "fireboard2mqtt/bridge/availability"
        assert action.payload == b"online"

    @pytest.mark.asyncio
    async def test_init_propagates_auth_failure(self, cfg, client):
        client.login.side_effect = FireboardAuthenticationError("bad password")
        app = BridgeApp(cfg, client=client, sink=make_sink())

        with pytest.raises(FireboardAuthenticationError):
            await app.init()
        assert app.queue.empty()

    @pytest.mark.asyncio
    async def test_sink_failure_stops_everything(self, cfg, client):
        sink = make_sink(run_error=SinkError("mqtt connection lost"))
        app = BridgeApp(cfg, client=client, sink=sink)

        with pytest.raises(SinkError):
            await app.run()

        sink.start.assert_called_once()
        sink.stop.assert_called_once()
        client.close.assert_awaited_once()


class TestMainExitCodes:
    """Test failures map onto distinct exit codes"""

    def test_config_error(self, tmp_path, monkeypatch):
        monkeypatch.setattr("sys.argv", ["fireboard2mqtt", "--config", str(tmp_path / "missing.yaml")])

        with pytest.raises(SystemExit) as exc:
            main_module.main()
        assert exc.value.code == main_module.EXIT_CONFIG_ERROR

    def _run_main_with(self, tmp_path, monkeypatch, error):
        config = tmp_path / "config.yaml"
        config.write_text("fireboard:\n  account_email: a@example.com\n  account_password: pw\n")
        monkeypatch.setattr("sys.argv", ["fireboard2mqtt", "--config", str(config)])
        with patch.object(main_module, "amain", new=AsyncMock(side_effect=error)):
            with pytest.raises(SystemExit) as exc:
                main_module.main()
        return exc.value.code

    def test_setup_error(self, tmp_path, monkeypatch):
        code = self._run_main_with(tmp_path, monkeypatch, FireboardAuthenticationError("nope"))
        assert code == main_module.EXIT_SETUP_ERROR

    def test_mqtt_error(self, tmp_path, monkeypatch):
        code = self._run_main_with(tmp_path, monkeypatch, SinkError("gone"))
        assert code == main_module.EXIT_MQTT_ERROR
