import re
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from muunto.formats import JSON_FORMAT, FormatOptions, FormatSpec, compile_formats  # noqa: E402


def pytest_configure(config):
    # Add custom markers for test organization
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


@pytest.fixture(autouse=True)
def mock_env_vars(monkeypatch):
    """Set the environment variables read by the Settings class.

    Keeps tests independent of whatever MUUNTO_* variables are set in
    the developer's shell.
    """
    monkeypatch.setenv("MUUNTO_CHARSET", "utf-8")
    monkeypatch.setenv("MUUNTO_FORMATS", '["json"]')
    monkeypatch.setenv("MUUNTO_CHARSETS", "[]")
    monkeypatch.setenv("MUUNTO_NEGOTIATION_CACHE_SIZE", "1000")
    monkeypatch.setenv("MUUNTO_LOG_LEVEL", "INFO")

    yield


def _text_decode(data):
    return data.decode("utf-8") if isinstance(data, bytes) else data


def _text_encode(value):
    return str(value).encode("utf-8")


TEXT_FORMAT = FormatSpec(
    format=("text/plain",),
    decoder=_text_decode,
    encoder=_text_encode,
)

# Pattern-only format: never in consumes/produces, reachable through matchers.
EDN_FORMAT = FormatSpec(
    format=re.compile(r"^application/(vnd.+)?(x-)?(clojure|edn)"),
    decoder=lambda data: ("edn", data),
    encoder=lambda value: b"edn:" + repr(value).encode("utf-8"),
)


@pytest.fixture
def json_registry():
    """Registry with only the built-in JSON format."""
    return compile_formats(FormatOptions(adapters={"json": JSON_FORMAT}, formats=["json"]))


@pytest.fixture
def multi_options():
    """Options with JSON (default), plain text and a pattern-only format."""
    return FormatOptions(
        adapters={"json": JSON_FORMAT, "text": TEXT_FORMAT, "edn": EDN_FORMAT},
        formats=["json", "text", "edn"],
    )


@pytest.fixture
def multi_registry(multi_options):
    return compile_formats(multi_options)
