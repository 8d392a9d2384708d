"""
Unit tests for settings loading.
"""

import pytest

from infrastructure.settings import load_settings, normalize_port_path


class TestPortPath:
    """Tests for serial port path normalisation."""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("COM3", "COM3"),
            ("COM9", "COM9"),
            ("COM10", "\\\\.\\COM10"),
            ("com12", "\\\\.\\COM12"),
            ("/dev/ttyUSB0", "/dev/ttyUSB0"),
        ],
    )
    def test_normalize(self, path, expected):
        assert normalize_port_path(path) == expected


class TestLoadSettings:
    """Tests for environment parsing."""

    def test_defaults(self):
        settings = load_settings({})

        assert settings.http.port == 9000
        assert settings.http.cors_origins == ("http://localhost:5173",)
        assert [d.label for d in settings.fiscal_devices] == ["A", "B"]
        assert settings.fiscal_devices[0].port == "/dev/ttyUSB0"
        assert settings.fiscal_devices[0].response_timeout_ms == 6000
        assert settings.fiscal_devices[0].retries == 2
        assert settings.pos_devices[1].port == "/dev/ttyACM1"
        assert settings.pos.enq_ack_timeout_ms == 2500
        assert settings.pos.tx_timeout_ms == 200000
        assert settings.agent.pos_timeout_ms == 180000
        assert settings.redis.job_queue == "agent_jobs"

    def test_per_device_overrides(self):
        settings = load_settings(
            {
                "DEFAULT_BAUD": "9600",
                "RESPONSE_TIMEOUT_MS": "3000",
                "DEV_A_PORT": "COM11",
                "DEV_B_BAUD": "19200",
                "DEV_B_RETRIES": "5",
                "POS_DEV_A": "COM4",
            }
        )
        fiscal_a, fiscal_b = settings.fiscal_devices

        assert fiscal_a.port == "\\\\.\\COM11"
        assert fiscal_a.baudrate == 9600
        assert fiscal_a.response_timeout_ms == 3000
        assert fiscal_b.baudrate == 19200
        assert fiscal_b.retries == 5
        assert settings.pos_devices[0].port == "COM4"

    def test_invalid_and_out_of_range_numbers(self):
        settings = load_settings({"HTTP_PORT": "abc", "CMD_RETRIES": "0", "CMD_RETRY_DELAY_MS": "-5"})

        assert settings.http.port == 9000
        assert settings.fiscal_devices[0].retries == 1
        assert settings.fiscal_devices[0].retry_delay_ms == 0

    def test_agent_and_cors(self):
        settings = load_settings(
            {
                "AGENT_BACKEND_URL": "https://tickets.example/",
                "AGENT_KEY": "secret",
                "AGENT_FISCAL_DEVICE": "b",
                "HTTP_CORS_ORIGINS": "http://a.local, http://b.local,",
            }
        )

        assert settings.agent.backend_url == "https://tickets.example"
        assert settings.agent.agent_key == "secret"
        assert settings.agent.fiscal_device == "B"
        assert settings.http.cors_origins == ("http://a.local", "http://b.local")
