import os
import sys

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from replbridge.modules.config import (
    DEFAULT_STREAM_LIMIT,
    REQUIRED_CONFIG_KEYS,
    ConfigModule,
    get_config,
)


def test_defaults():
    """Test configuration with an empty environment."""
    config = ConfigModule({})

    assert config.get("repl_command") == ["lake", "exe", "repl"]
    assert config.get("repl_path") is None
    assert config.get("host") == "0.0.0.0"
    assert config.get("port") == 8080
    assert config.get("command_timeout") == -1.0
    assert config.get("log_level") == "INFO"
    assert config.get("stream_limit") == DEFAULT_STREAM_LIMIT
    assert config.get("shutdown_grace") == 5.0
    assert config.get("eof_grace") == 0.5
    assert config.get("debug") is False


def test_environment_overrides():
    """Test every setting can be overridden."""
    config = ConfigModule(
        {
            "LEAN_REPL_COMMAND": "/opt/repl/bin/repl --json",
            "REPL_PATH": "/srv/mathlib",
            "HOST": "127.0.0.1",
            "PORT": "9000",
            "LEAN_REPL_TIMEOUT": "2.5",
            "LOG_LEVEL": "debug",
            "REPL_STREAM_LIMIT": "1024",
            "REPL_SHUTDOWN_GRACE": "0.5",
            "REPL_EOF_GRACE": "0.1",
            "DEBUG": "true",
        }
    )

    assert config.get("repl_command") == ["/opt/repl/bin/repl", "--json"]
    assert config.get("repl_path") == "/srv/mathlib"
    assert config.get("host") == "127.0.0.1"
    assert config.get("port") == 9000
    assert config.get("command_timeout") == 2.5
    assert config.get("log_level") == "DEBUG"
    assert config.get("stream_limit") == 1024
    assert config.get("shutdown_grace") == 0.5
    assert config.get("eof_grace") == 0.1
    assert config.get("debug") is True


def test_repl_command_quoting():
    """Test the REPL command is split like a shell would."""
    config = ConfigModule({"LEAN_REPL_COMMAND": "'/path with space/lake' exe repl"})

    assert config.get("repl_command") == ["/path with space/lake", "exe", "repl"]


def test_empty_repl_command_rejected():
    """Test a blank REPL command is a configuration error."""
    with pytest.raises(ValueError):
        ConfigModule({"LEAN_REPL_COMMAND": "   "})


@pytest.mark.parametrize(
    "name,key,default",
    [
        ("PORT", "port", 8080),
        ("LEAN_REPL_TIMEOUT", "command_timeout", -1.0),
        ("REPL_STREAM_LIMIT", "stream_limit", DEFAULT_STREAM_LIMIT),
        ("REPL_SHUTDOWN_GRACE", "shutdown_grace", 5.0),
        ("REPL_EOF_GRACE", "eof_grace", 0.5),
    ],
)
def test_invalid_numbers_fall_back_to_default(name, key, default):
    """Test unparseable numbers use the default instead of failing."""
    config = ConfigModule({name: "not-a-number"})

    assert config.get(key) == default


def test_empty_repl_path_means_none():
    """Test an empty REPL_PATH does not override the working directory."""
    assert ConfigModule({"REPL_PATH": ""}).get("repl_path") is None


def test_get_set_get_all():
    """Test the accessor interface."""
    config = ConfigModule({})

    config.set("port", 1234)
    assert config.get("port") == 1234
    assert config.get("missing", "fallback") == "fallback"

    snapshot = config.get_all()
    snapshot["port"] = 1
    assert config.get("port") == 1234


def test_missing_required_key_rejected():
    """Test validation of the configuration contract."""
    config = ConfigModule({})
    config.set("port", None)

    with pytest.raises(ValueError, match="port"):
        config._validate_required_keys()


def test_config_schema():
    """Test the schema lists required and optional keys."""
    schema = ConfigModule.get_config_schema()

    assert set(schema["required"]) == set(REQUIRED_CONFIG_KEYS)
    assert "repl_path" in schema["optional"]
    assert schema["optional"]["repl_path"]["default"] is None


def test_get_config_singleton():
    """Test get_config returns one shared instance."""
    assert get_config() is get_config()
